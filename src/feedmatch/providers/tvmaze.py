"""TVmaze show search."""

from __future__ import annotations

import logging
import threading

from pydantic import TypeAdapter, ValidationError

from ..categories.unified import UnifiedCategory
from ..config import ProviderSettings
from ..matching.scorer import score_candidate, score_with_known_ids
from ..models import PosterMatchIds
from .base import LookupHints, MatchCandidate, MatchProvider, ProviderError, adjust_confidence
from .http import DEFAULT_TIMEOUT, ProviderHttpClient
from .models import TvMazeSearchItem, TvMazeShow

LOGGER = logging.getLogger(__name__)

API_BASE_URL = "https://api.tvmaze.com"

THRESHOLD = 0.55
STRICT_THRESHOLD = 0.65
COMMON_TITLE_THRESHOLD = 0.75

_SEARCH_ADAPTER = TypeAdapter(list[TvMazeSearchItem])


class TvMazeClient:
    def __init__(self, settings: ProviderSettings, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.settings = settings
        self._http = ProviderHttpClient("tvmaze", settings.base_url or API_BASE_URL, timeout=timeout)

    def search_shows(self, query: str, cancel: threading.Event | None = None) -> list[TvMazeSearchItem]:
        payload = self._http.get_json("/search/shows", params={"q": query}, cancel=cancel)
        try:
            return _SEARCH_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            raise ProviderError(f"tvmaze: malformed search payload for {query!r}") from exc

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self._http.get_bytes(url, cancel=cancel)

    def close(self) -> None:
        self._http.close()


def threshold_for(hints: LookupHints) -> float:
    if hints.is_ambiguous or hints.category is UnifiedCategory.EMISSION:
        return STRICT_THRESHOLD
    return THRESHOLD


class TvMazeProvider(MatchProvider):
    name = "tvmaze"

    def __init__(self, settings: ProviderSettings, client: TvMazeClient | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.settings = settings
        self.client = client or TvMazeClient(settings, timeout=timeout)

    def enabled(self) -> bool:
        return self.settings.active

    def search(
        self,
        title: str,
        year: int | None,
        hints: LookupHints,
        cancel: threading.Event | None = None,
    ) -> MatchCandidate | None:
        results = self.client.search_shows(title, cancel)
        threshold = threshold_for(hints)
        known = hints.known_ids

        best: tuple[float, TvMazeShow] | None = None
        for result in results:
            show = result.show
            base = score_candidate(title, year, hints.category, show.name, None, show.year, "series")
            score = score_with_known_ids(base, show.externals.thetvdb, show.externals.imdb, known.tvdb, known.imdb)
            if score < threshold:
                continue
            if hints.is_common_title and (year is None or show.year != year or score < COMMON_TITLE_THRESHOLD):
                continue
            if best is None or score > best[0]:
                best = (score, show)

        if best is None:
            LOGGER.debug("TVmaze found no show above %.2f for %r", threshold, title)
            return None

        score, show = best
        url_sizes: dict[str, str] = {}
        if show.image is not None:
            if show.image.original:
                url_sizes[show.image.original] = "original"
            if show.image.medium:
                url_sizes.setdefault(show.image.medium, "medium")
        poster_urls = list(url_sizes)
        size = url_sizes[poster_urls[0]] if poster_urls else None

        return MatchCandidate(
            provider=self.name,
            provider_id=str(show.id),
            confidence=adjust_confidence(score, hints),
            poster_urls=poster_urls,
            ids=PosterMatchIds(tvmaze=show.id, tvdb=show.externals.thetvdb, imdb=show.externals.imdb),
            title=show.name,
            year=show.year,
            media_type="series",
            poster_size=size,
            file_suffix=size,
            url_sizes=url_sizes,
            score=score,
        )

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self.client.download(url, cancel)

    def close(self) -> None:
        self.client.close()
