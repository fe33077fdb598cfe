"""Anime lookups through the Jikan (MyAnimeList) API."""

from __future__ import annotations

import logging
import threading

from pydantic import ValidationError

from ..config import ProviderSettings
from ..matching.scorer import score_candidate
from .base import LookupHints, MatchCandidate, MatchProvider, ProviderError
from .http import DEFAULT_TIMEOUT, ProviderHttpClient
from .models import JikanAnime, JikanSearchResponse

LOGGER = logging.getLogger(__name__)

API_BASE_URL = "https://api.jikan.moe/v4"
CONFIDENCE = 0.70
SEARCH_LIMIT = 10


class JikanClient:
    def __init__(self, settings: ProviderSettings, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.settings = settings
        self._http = ProviderHttpClient("jikan", settings.base_url or API_BASE_URL, timeout=timeout)

    def search_anime(self, query: str, cancel: threading.Event | None = None) -> list[JikanAnime]:
        payload = self._http.get_json("/anime", params={"q": query, "limit": SEARCH_LIMIT}, cancel=cancel)
        try:
            return JikanSearchResponse.model_validate(payload).data
        except ValidationError as exc:
            raise ProviderError(f"jikan: malformed search payload for {query!r}") from exc

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self._http.get_bytes(url, cancel=cancel)

    def close(self) -> None:
        self._http.close()


class JikanProvider(MatchProvider):
    name = "jikan"

    def __init__(self, settings: ProviderSettings, client: JikanClient | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.settings = settings
        self.client = client or JikanClient(settings, timeout=timeout)

    def enabled(self) -> bool:
        return self.settings.active

    def search(
        self,
        title: str,
        year: int | None,
        hints: LookupHints,
        cancel: threading.Event | None = None,
    ) -> MatchCandidate | None:
        query = title.strip()
        if not query:
            return None

        ranked = sorted(
            (
                (score_candidate(query, year, hints.category, anime.title, anime.title_english, anime.year, "anime"), anime)
                for anime in self.client.search_anime(query, cancel)
                if anime.mal_id > 0
            ),
            key=lambda entry: (entry[0], entry[1].scored_by or 0),
            reverse=True,
        )
        if not ranked:
            return None

        score, anime = ranked[0]
        image_url = anime.image_url
        return MatchCandidate(
            provider=self.name,
            provider_id=str(anime.mal_id),
            confidence=CONFIDENCE,
            poster_urls=[image_url] if image_url else [],
            title=anime.title or anime.title_english,
            year=anime.year,
            media_type="anime",
            poster_size="original",
            score=score,
        )

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self.client.download(url, cancel)

    def close(self) -> None:
        self.client.close()
