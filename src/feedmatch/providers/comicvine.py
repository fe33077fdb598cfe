"""ComicVine volume and issue search."""

from __future__ import annotations

import logging
import threading

from pydantic import ValidationError

from ..config import ProviderSettings
from ..matching.scorer import score_candidate
from .base import LookupHints, MatchCandidate, MatchProvider, ProviderError
from .http import DEFAULT_TIMEOUT, ProviderHttpClient
from .models import ComicVineResponse, ComicVineResult

LOGGER = logging.getLogger(__name__)

API_BASE_URL = "https://comicvine.gamespot.com/api"
CONFIDENCE = 0.65
SEARCH_LIMIT = 10


class ComicVineClient:
    def __init__(self, settings: ProviderSettings, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.settings = settings
        self._http = ProviderHttpClient("comicvine", settings.base_url or API_BASE_URL, timeout=timeout)

    def search(self, query: str, cancel: threading.Event | None = None) -> list[ComicVineResult]:
        params = {
            "api_key": self.settings.api_key,
            "format": "json",
            "resources": "volume,issue",
            "limit": SEARCH_LIMIT,
            "query": query,
        }
        payload = self._http.get_json("/search/", params=params, cancel=cancel)
        try:
            return ComicVineResponse.model_validate(payload).results
        except ValidationError as exc:
            raise ProviderError(f"comicvine: malformed search payload for {query!r}") from exc

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self._http.get_bytes(url, cancel=cancel)

    def close(self) -> None:
        self._http.close()


class ComicVineProvider(MatchProvider):
    name = "comicvine"

    def __init__(
        self, settings: ProviderSettings, client: ComicVineClient | None = None, timeout: float = DEFAULT_TIMEOUT
    ):
        self.settings = settings
        self.client = client or ComicVineClient(settings, timeout=timeout)

    def enabled(self) -> bool:
        return self.settings.active

    def search(
        self,
        title: str,
        year: int | None,
        hints: LookupHints,
        cancel: threading.Event | None = None,
    ) -> MatchCandidate | None:
        best: tuple[float, ComicVineResult] | None = None
        for result in self.client.search(title, cancel):
            if result.image is None or not (result.image.original_url or result.image.small_url):
                continue
            score = score_candidate(title, year, hints.category, result.name, None, result.year, "comic")
            if best is None or score > best[0]:
                best = (score, result)
        if best is None:
            LOGGER.debug("ComicVine found no result with an image for %r", title)
            return None

        score, result = best
        image = result.image
        urls = [url for url in (image.original_url, image.small_url) if url] if image else []
        return MatchCandidate(
            provider=self.name,
            provider_id=str(result.id),
            confidence=CONFIDENCE,
            poster_urls=urls,
            title=result.name,
            year=result.year,
            media_type="comic",
            poster_size="original",
            score=score,
        )

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self.client.download(url, cancel)

    def close(self) -> None:
        self.client.close()
