"""TMDB movie and tv search with thresholded candidate selection."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from pydantic import ValidationError

from ..categories.unified import UnifiedCategory
from ..config import ProviderSettings
from ..matching.scorer import score_candidate
from ..matching.titles import count_significant_token_overlap
from ..models import PosterMatchIds
from .base import LookupHints, MatchCandidate, MatchProvider, ProviderError, adjust_confidence
from .http import DEFAULT_TIMEOUT, ProviderHttpClient
from .models import TmdbExternalIds, TmdbImagesResponse, TmdbSearchItem, TmdbSearchResponse

LOGGER = logging.getLogger(__name__)

API_BASE_URL = "https://api.themoviedb.org/3"
IMAGE_BASE_URL = "https://image.tmdb.org/t/p"
POSTER_SIZE = "w500"

STRONG_THRESHOLD = 0.50
AMBIGUOUS_THRESHOLD = 0.65
COMMON_TITLE_THRESHOLD = 0.75
WEAK_THRESHOLD = 0.25
YEARLESS_AMBIGUOUS_SCORE = 0.85
YEARLESS_AMBIGUOUS_OVERLAP = 2


class TmdbClient:
    """HTTP client for the TMDB v3 API."""

    def __init__(self, settings: ProviderSettings, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.settings = settings
        self._http = ProviderHttpClient("tmdb", settings.base_url or API_BASE_URL, timeout=timeout)

    def _params(self, **extra: object) -> dict[str, object]:
        params: dict[str, object] = {"api_key": self.settings.api_key or ""}
        params.update({key: value for key, value in extra.items() if value is not None})
        return params

    def search(
        self, kind: str, query: str, year: int | None, cancel: threading.Event | None = None
    ) -> list[TmdbSearchItem]:
        year_param = "year" if kind == "movie" else "first_air_date_year"
        params = self._params(query=query, language=self.settings.language, include_adult="false")
        if year is not None:
            params[year_param] = year
        payload = self._http.get_json(f"/search/{kind}", params=params, cancel=cancel)
        try:
            return TmdbSearchResponse.model_validate(payload).results
        except ValidationError as exc:
            raise ProviderError(f"tmdb: malformed search payload for {query!r}") from exc

    def preferred_poster(
        self, kind: str, tmdb_id: int, language: str | None, cancel: threading.Event | None = None
    ) -> tuple[str, str | None] | None:
        """Best-voted poster in the preferred language, then English, then textless."""
        languages = [lang for lang in (language, self.settings.language, "en") if lang]
        include = ",".join(dict.fromkeys(languages + ["null"]))
        payload = self._http.get_json(
            f"/{kind}/{tmdb_id}/images", params=self._params(include_image_language=include), cancel=cancel
        )
        try:
            posters = TmdbImagesResponse.model_validate(payload).posters
        except ValidationError as exc:
            raise ProviderError(f"tmdb: malformed images payload for {kind}/{tmdb_id}") from exc
        if not posters:
            return None

        ranked = sorted(posters, key=lambda image: (image.vote_average, image.vote_count), reverse=True)
        for lang in dict.fromkeys(languages):
            for image in ranked:
                if (image.iso_639_1 or "").lower() == lang.lower():
                    return image.file_path, image.iso_639_1
        return ranked[0].file_path, ranked[0].iso_639_1

    def external_ids(self, kind: str, tmdb_id: int, cancel: threading.Event | None = None) -> TmdbExternalIds:
        payload = self._http.get_json(f"/{kind}/{tmdb_id}/external_ids", params=self._params(), cancel=cancel)
        try:
            return TmdbExternalIds.model_validate(payload)
        except ValidationError as exc:
            raise ProviderError(f"tmdb: malformed external ids for {kind}/{tmdb_id}") from exc

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self._http.get_bytes(url, cancel=cancel)

    def close(self) -> None:
        self._http.close()


def poster_url(file_path: str, size: str = POSTER_SIZE) -> str:
    return f"{IMAGE_BASE_URL}/{size}/{file_path.lstrip('/')}"


@dataclass
class _Scored:
    kind: str
    item: TmdbSearchItem
    score: float
    overlap: int

    @property
    def media_type(self) -> str:
        return "movie" if self.kind == "movie" else "series"


@dataclass(frozen=True)
class TmdbMatchPolicy:
    """Acceptance thresholds for one query."""

    strong: float
    common_threshold: float
    allow_weak: bool
    is_ambiguous: bool
    is_common: bool

    @classmethod
    def for_query(cls, hints: LookupHints, year: int | None) -> TmdbMatchPolicy:
        strong = AMBIGUOUS_THRESHOLD if hints.is_ambiguous else STRONG_THRESHOLD
        common_threshold = max(strong, COMMON_TITLE_THRESHOLD)
        if hints.is_common_title:
            strong = common_threshold
        return cls(
            strong=strong,
            common_threshold=common_threshold,
            allow_weak=not hints.is_ambiguous and not hints.is_common_title and year is not None,
            is_ambiguous=hints.is_ambiguous,
            is_common=hints.is_common_title,
        )

    def is_acceptable(self, scored: _Scored, year: int | None) -> bool:
        if self.is_common:
            return year is not None and scored.item.year == year and scored.score >= self.common_threshold
        if self.is_ambiguous:
            if scored.score < self.strong:
                return False
            if year is None:
                return scored.overlap >= YEARLESS_AMBIGUOUS_OVERLAP or scored.score >= YEARLESS_AMBIGUOUS_SCORE
            return True
        return scored.score >= self.strong

    def is_weak_acceptable(self, scored: _Scored, year: int | None, expected_media_type: str | None) -> bool:
        if not self.allow_weak or scored.score < WEAK_THRESHOLD:
            return False
        if scored.item.year != year:
            return False
        if expected_media_type and expected_media_type != scored.media_type:
            return False
        return scored.overlap > 0


def search_plan(hints: LookupHints, year: int | None) -> list[tuple[str, int | None]]:
    """Ordered (kind, year) searches for a release."""
    if hints.category is UnifiedCategory.EMISSION:
        plan = [("tv", year), ("tv", None)]
    elif hints.media_type in ("series", "emission"):
        plan = [("tv", year), ("tv", None), ("movie", year), ("movie", None)]
    else:
        plan = [("movie", year), ("movie", None), ("tv", year)]
    return list(dict.fromkeys(plan))


class TmdbProvider(MatchProvider):
    name = "tmdb"

    def __init__(self, settings: ProviderSettings, client: TmdbClient | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.settings = settings
        self.client = client or TmdbClient(settings, timeout=timeout)

    def enabled(self) -> bool:
        return self.settings.active

    def _gather(
        self, title: str, year: int | None, hints: LookupHints, cancel: threading.Event | None
    ) -> list[_Scored]:
        seen: set[tuple[str, int]] = set()
        scored: list[_Scored] = []
        for kind, search_year in search_plan(hints, year):
            for item in self.client.search(kind, title, search_year, cancel):
                key = (kind, item.id)
                if key in seen:
                    continue
                seen.add(key)
                media_type = "movie" if kind == "movie" else "series"
                score = score_candidate(
                    title,
                    year,
                    hints.category,
                    item.display_title,
                    item.display_original_title,
                    item.year,
                    media_type,
                )
                overlap = count_significant_token_overlap(title, item.display_title, item.display_original_title)
                scored.append(_Scored(kind, item, score, overlap))

        scored.sort(key=lambda entry: (entry.score, year is not None and entry.item.year == year), reverse=True)
        return scored

    def select(self, scored: list[_Scored], year: int | None, hints: LookupHints) -> _Scored | None:
        """Pick the best acceptable candidate, preferring ones with a poster."""
        policy = TmdbMatchPolicy.for_query(hints, year)
        expected = "series" if hints.media_type in ("series", "emission") else hints.media_type

        accepted = [entry for entry in scored if policy.is_acceptable(entry, year)]
        if not accepted:
            accepted = [entry for entry in scored if policy.is_weak_acceptable(entry, year, expected)]
        if not accepted:
            return None
        with_poster = [entry for entry in accepted if entry.item.poster_path]
        return with_poster[0] if with_poster else accepted[0]

    def search(
        self,
        title: str,
        year: int | None,
        hints: LookupHints,
        cancel: threading.Event | None = None,
    ) -> MatchCandidate | None:
        best = self.select(self._gather(title, year, hints, cancel), year, hints)
        if best is None:
            LOGGER.debug("TMDB found no acceptable candidate for %r (%s)", title, year)
            return None

        item = best.item
        ids = PosterMatchIds(tmdb=item.id)
        if best.kind == "tv":
            try:
                external = self.client.external_ids("tv", item.id, cancel)
                ids.tvdb = external.tvdb_id
                ids.imdb = external.imdb_id
            except ProviderError as exc:
                LOGGER.debug("TMDB external ids lookup failed for tv/%s: %s", item.id, exc)

        poster_urls: list[str] = []
        poster_lang: str | None = None
        if item.poster_path:
            file_path = item.poster_path
            try:
                preferred = self.client.preferred_poster(best.kind, item.id, hints.original_language, cancel)
                if preferred is not None:
                    file_path, poster_lang = preferred
            except ProviderError as exc:
                LOGGER.debug("TMDB images lookup failed for %s/%s: %s", best.kind, item.id, exc)
            poster_urls.append(poster_url(file_path))
            if file_path != item.poster_path:
                poster_urls.append(poster_url(item.poster_path))

        return MatchCandidate(
            provider=self.name,
            provider_id=str(item.id),
            confidence=adjust_confidence(best.score, hints),
            poster_urls=poster_urls,
            ids=ids,
            title=item.display_title,
            year=item.year,
            media_type=best.media_type,
            original_language=item.original_language,
            poster_lang=poster_lang,
            poster_size=POSTER_SIZE,
            file_suffix=POSTER_SIZE,
            score=best.score,
        )

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self.client.download(url, cancel)

    def close(self) -> None:
        self.client.close()
