"""Fanart.tv posters looked up by a tmdb (movies) or tvdb (series) id."""

from __future__ import annotations

import logging
import threading

from pydantic import ValidationError

from ..config import ProviderSettings
from ..models import PosterMatchIds
from .base import LookupHints, MatchCandidate, MatchProvider, ProviderError, ProviderNotFoundError, adjust_confidence
from .http import DEFAULT_TIMEOUT, ProviderHttpClient
from .models import FanartImage, FanartMovieResponse, FanartTvResponse

LOGGER = logging.getLogger(__name__)

API_BASE_URL = "https://webservice.fanart.tv/v3"
DEFAULT_REFERENCE_SCORE = 0.5


class FanartClient:
    def __init__(self, settings: ProviderSettings, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.settings = settings
        self._http = ProviderHttpClient("fanart", settings.base_url or API_BASE_URL, timeout=timeout)

    def movie_posters(self, tmdb_id: int, cancel: threading.Event | None = None) -> list[FanartImage]:
        payload = self._http.get_json(f"/movies/{tmdb_id}", params={"api_key": self.settings.api_key}, cancel=cancel)
        try:
            return FanartMovieResponse.model_validate(payload).movieposter
        except ValidationError as exc:
            raise ProviderError(f"fanart: malformed movie payload for {tmdb_id}") from exc

    def tv_posters(self, tvdb_id: int, cancel: threading.Event | None = None) -> list[FanartImage]:
        payload = self._http.get_json(f"/tv/{tvdb_id}", params={"api_key": self.settings.api_key}, cancel=cancel)
        try:
            return FanartTvResponse.model_validate(payload).tvposter
        except ValidationError as exc:
            raise ProviderError(f"fanart: malformed tv payload for {tvdb_id}") from exc

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self._http.get_bytes(url, cancel=cancel)

    def close(self) -> None:
        self._http.close()


def pick_poster(
    posters: list[FanartImage], language_priority: list[str], original_language: str | None = None
) -> FanartImage | None:
    """User languages first, then the original language, then the most liked poster."""
    ranked = sorted((poster for poster in posters if poster.url), key=lambda poster: poster.likes, reverse=True)
    if not ranked:
        return None
    for lang in [*language_priority, original_language]:
        if not lang:
            continue
        for poster in ranked:
            if (poster.lang or "").lower() == lang.lower():
                return poster
    return ranked[0]


class FanartProvider(MatchProvider):
    name = "fanart"

    def __init__(self, settings: ProviderSettings, client: FanartClient | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.settings = settings
        self.client = client or FanartClient(settings, timeout=timeout)

    def enabled(self) -> bool:
        return self.settings.active

    def search(
        self,
        title: str,
        year: int | None,
        hints: LookupHints,
        cancel: threading.Event | None = None,
    ) -> MatchCandidate | None:
        known = hints.known_ids
        is_series = hints.media_type in ("series", "emission")
        try:
            if is_series:
                if not known.tvdb:
                    return None
                provider_id = known.tvdb
                posters = self.client.tv_posters(known.tvdb, cancel)
            else:
                if not known.tmdb:
                    return None
                provider_id = known.tmdb
                posters = self.client.movie_posters(known.tmdb, cancel)
        except ProviderNotFoundError:
            LOGGER.debug("Fanart has no entry for %r", title)
            return None

        languages = list(dict.fromkeys([self.settings.language, "en"]))
        poster = pick_poster(posters, languages, hints.original_language)
        if poster is None or not poster.url:
            return None

        reference = hints.reference_score if hints.reference_score is not None else DEFAULT_REFERENCE_SCORE
        return MatchCandidate(
            provider=self.name,
            provider_id=str(provider_id),
            confidence=adjust_confidence(reference, hints),
            poster_urls=[poster.url],
            ids=PosterMatchIds(tmdb=known.tmdb, tvdb=known.tvdb),
            media_type="series" if is_series else "movie",
            poster_lang=poster.lang,
            poster_size="original",
            file_suffix="tv" if is_series else "movie",
            score=reference,
        )

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self.client.download(url, cancel)

    def close(self) -> None:
        self.client.close()
