"""Google Books volume search, by ISBN when the title carries one."""

from __future__ import annotations

import logging
import re
import threading

from pydantic import ValidationError

from ..config import ProviderSettings
from ..matching.scorer import score_candidate
from .base import LookupHints, MatchCandidate, MatchProvider, ProviderError
from .http import DEFAULT_TIMEOUT, ProviderHttpClient
from .models import GoogleBooksResponse, GoogleBooksVolume

LOGGER = logging.getLogger(__name__)

API_BASE_URL = "https://www.googleapis.com/books/v1"
CONFIDENCE = 0.65
MAX_RESULTS = 10

_ISBN = re.compile(r"\b(?:97[89]\d{10}|\d{9}[\dXx])\b")


def extract_isbn(title: str | None) -> str | None:
    """``"Dune ISBN 978-0-441-17271-9"`` -> ``"9780441172719"``."""
    if not title:
        return None
    match = _ISBN.search(title.replace("-", ""))
    return match.group(0).upper() if match else None


class GoogleBooksClient:
    def __init__(self, settings: ProviderSettings, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.settings = settings
        self._http = ProviderHttpClient("googlebooks", settings.base_url or API_BASE_URL, timeout=timeout)

    def search_volumes(
        self, title: str, isbn: str | None = None, cancel: threading.Event | None = None
    ) -> list[GoogleBooksVolume]:
        params: dict[str, object] = {
            "q": f"isbn:{isbn}" if isbn else f"intitle:{title}",
            "maxResults": MAX_RESULTS,
        }
        if self.settings.api_key:
            params["key"] = self.settings.api_key
        payload = self._http.get_json("/volumes", params=params, cancel=cancel)
        try:
            return GoogleBooksResponse.model_validate(payload).items
        except ValidationError as exc:
            raise ProviderError(f"googlebooks: malformed volumes payload for {title!r}") from exc

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self._http.get_bytes(url, cancel=cancel)

    def close(self) -> None:
        self._http.close()


class GoogleBooksProvider(MatchProvider):
    name = "googlebooks"

    def __init__(
        self, settings: ProviderSettings, client: GoogleBooksClient | None = None, timeout: float = DEFAULT_TIMEOUT
    ):
        self.settings = settings
        self.client = client or GoogleBooksClient(settings, timeout=timeout)

    def enabled(self) -> bool:
        return self.settings.active

    def search(
        self,
        title: str,
        year: int | None,
        hints: LookupHints,
        cancel: threading.Event | None = None,
    ) -> MatchCandidate | None:
        isbn = extract_isbn(title)
        volumes = self.client.search_volumes(title, isbn, cancel)

        best: tuple[float, GoogleBooksVolume] | None = None
        for volume in volumes:
            if not volume.thumbnail_url:
                continue
            info = volume.volume_info
            published = int(info.published_date[:4]) if info.published_date and info.published_date[:4].isdigit() else None
            score = score_candidate(title, year, hints.category, info.title, None, published, "book")
            if isbn and volume.has_isbn(isbn):
                score = 1.0
            if best is None or score > best[0]:
                best = (score, volume)
        if best is None:
            LOGGER.debug("Google Books found no volume with a cover for %r", title)
            return None

        score, volume = best
        return MatchCandidate(
            provider=self.name,
            provider_id=volume.id,
            confidence=CONFIDENCE,
            poster_urls=[volume.thumbnail_url] if volume.thumbnail_url else [],
            title=volume.volume_info.title,
            media_type="book",
            poster_size="thumb",
            score=score,
        )

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self.client.download(url, cancel)

    def close(self) -> None:
        self.client.close()
