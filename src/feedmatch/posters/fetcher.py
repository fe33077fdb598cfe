"""Fetch, persist and cache the poster for one release."""

from __future__ import annotations

import logging
import threading

from ..categories.unified import UnifiedCategory
from ..logging_utils import LogBlockBuilder, render_fields_block
from ..matching.ambiguity import evaluate as evaluate_ambiguity
from ..matching.titles import normalize_title
from ..models import FetchOutcome, PosterMatchIds, Release
from ..persistence.match_cache import PosterMatch, PosterMatchCache, build_fingerprint
from ..persistence.release_store import ReleaseStore
from ..providers.base import FetchCancelled, raise_if_cancelled
from ..utils import hash_bytes
from .orchestrator import PosterMatchOrchestrator
from .storage import PosterStorage
from .strategies import MatchResult, PosterRequest, poster_file_name

LOGGER = logging.getLogger(__name__)

STATUS_OK = 200
STATUS_BAD_REQUEST = 400
STATUS_NOT_FOUND = 404
STATUS_CANCELLED = 499
STATUS_ERROR = 500
STATUS_EMPTY_IMAGE = 502

REUSE_MIN_CONFIDENCE = 0.80
REUSE_MIN_CONFIDENCE_AMBIGUOUS = 0.90
CACHED_FILE_MISSING = "cached poster missing"


class PosterFetchCoordinator:
    """Resolve a release's poster through the cache or the provider waterfall.

    No exception crosses :meth:`fetch_poster`; every path ends in a
    :class:`FetchOutcome`.
    """

    def __init__(
        self,
        releases: ReleaseStore,
        cache: PosterMatchCache,
        storage: PosterStorage,
        orchestrator: PosterMatchOrchestrator,
    ) -> None:
        self.releases = releases
        self.cache = cache
        self.storage = storage
        self.orchestrator = orchestrator

    def fetch_poster(
        self,
        release_id: int,
        cancel: threading.Event | None = None,
        skip_if_exists: bool = True,
    ) -> FetchOutcome:
        try:
            return self._fetch(release_id, cancel, skip_if_exists)
        except FetchCancelled:
            LOGGER.info("Poster fetch for release %s cancelled", release_id)
            return FetchOutcome.failure(STATUS_CANCELLED, "cancelled")
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Poster fetch for release %s failed", release_id)
            return FetchOutcome.failure(STATUS_ERROR, str(exc) or exc.__class__.__name__)

    def _fetch(self, release_id: int, cancel: threading.Event | None, skip_if_exists: bool) -> FetchOutcome:
        release = self.releases.get_for_poster(release_id)
        if release is None:
            return FetchOutcome.failure(STATUS_NOT_FOUND, "release not found")

        if skip_if_exists and release.poster_file and self.storage.exists(release.poster_file):
            return FetchOutcome(
                ok=True,
                status_code=STATUS_OK,
                provider=release.poster_provider,
                provider_id=release.poster_provider_id,
                poster_file=release.poster_file,
                cached=True,
            )

        title = release.search_title
        if not title:
            return FetchOutcome.failure(STATUS_BAD_REQUEST, "missing title")

        media_type = release.effective_media_type
        normalized = normalize_title(title)
        fingerprint = build_fingerprint(media_type, normalized, release.year, release.season, release.episode)
        ambiguity = evaluate_ambiguity(normalized, media_type, release.year)
        known_ids = PosterMatchIds(tmdb=release.tmdb_id, tvdb=release.tvdb_id)

        reused = self._reuse_cached(release, fingerprint, normalized, media_type, known_ids, ambiguity.is_ambiguous)
        if reused is not None:
            return reused

        request = PosterRequest(
            title=title,
            year=release.year,
            media_type=media_type,
            category=release.unified_category,
            season=release.season,
            episode=release.episode,
            known_ids=known_ids,
            ambiguity=ambiguity,
        )
        result = self.orchestrator.match(request, cancel)

        if not result.matched:
            return self._record_miss(release, result)

        raise_if_cancelled(cancel)
        return self._persist(release, fingerprint, normalized, media_type, result)

    def _reuse_cached(
        self,
        release: Release,
        fingerprint: str,
        normalized: str,
        media_type: str,
        known_ids: PosterMatchIds,
        ambiguous: bool,
    ) -> FetchOutcome | None:
        row = self.cache.try_get(fingerprint)
        if row is None and release.year is None:
            row = self.cache.try_get_by_title_key(media_type, normalized)
            if row is not None and not self._can_reuse_by_title(row, known_ids, ambiguous):
                row = None
        if row is None or not row.poster_file:
            return None

        if not self.storage.exists(row.poster_file):
            self.cache.record_error(row.fingerprint, CACHED_FILE_MISSING)
            return None

        self.releases.save_poster(
            release.id,
            poster_file=row.poster_file,
            provider=row.poster_provider,
            provider_id=row.poster_provider_id,
            lang=row.poster_lang,
            size=row.poster_size,
            ids=row.ids,
        )
        self.cache.touch_seen(row.fingerprint)
        LOGGER.debug(
            render_fields_block(
                "Poster Reused From Cache",
                {"Release": release.id, "Title": release.search_title, "File": row.poster_file},
            )
        )
        return FetchOutcome(
            ok=True,
            status_code=STATUS_OK,
            provider=row.poster_provider,
            provider_id=row.poster_provider_id,
            poster_file=row.poster_file,
            cached=True,
        )

    @staticmethod
    def _can_reuse_by_title(row: PosterMatch, known_ids: PosterMatchIds, ambiguous: bool) -> bool:
        if known_ids.overlaps(row.ids):
            return True
        threshold = REUSE_MIN_CONFIDENCE_AMBIGUOUS if ambiguous else REUSE_MIN_CONFIDENCE
        return row.confidence >= threshold

    def _record_miss(self, release: Release, result: MatchResult) -> FetchOutcome:
        status = STATUS_EMPTY_IMAGE if result.last_image_empty else STATUS_NOT_FOUND
        error = "poster image empty" if status == STATUS_EMPTY_IMAGE else "no poster match"
        self.releases.record_poster_failure(release.id, error)

        builder = LogBlockBuilder("Poster Not Found")
        builder.add_fields(
            {
                "Release": release.id,
                "Title": release.search_title,
                "Category": _category_label(release.unified_category),
                "Strategy": result.strategy,
            }
        )
        builder.add_section("Attempts", [attempt.describe() for attempt in result.attempts])
        LOGGER.debug(builder.render())
        return FetchOutcome.failure(status, error)

    def _persist(
        self,
        release: Release,
        fingerprint: str,
        normalized: str,
        media_type: str,
        result: MatchResult,
    ) -> FetchOutcome:
        candidate = result.candidate
        image = result.image
        if candidate is None or not image:
            return FetchOutcome.failure(STATUS_NOT_FOUND, "no poster match")

        file_name = poster_file_name(candidate, result.image_url)
        self.storage.save(file_name, image)
        self.releases.save_poster(
            release.id,
            poster_file=file_name,
            provider=candidate.provider,
            provider_id=candidate.provider_id,
            lang=candidate.poster_lang,
            size=candidate.poster_size,
            poster_hash=hash_bytes(image),
            ids=candidate.ids,
        )
        self.cache.upsert(
            PosterMatch(
                fingerprint=fingerprint,
                media_type=media_type,
                normalized_title=normalized,
                year=release.year,
                season=release.season,
                episode=release.episode,
                ids=candidate.ids,
                confidence=candidate.confidence,
                match_source=candidate.provider,
                poster_file=file_name,
                poster_provider=candidate.provider,
                poster_provider_id=candidate.provider_id,
                poster_lang=candidate.poster_lang,
                poster_size=candidate.poster_size,
            )
        )
        LOGGER.info(
            render_fields_block(
                "Poster Fetched",
                {
                    "Release": release.id,
                    "Title": release.search_title,
                    "Provider": f"{candidate.provider}:{candidate.provider_id}",
                    "Confidence": candidate.confidence,
                    "File": file_name,
                },
            )
        )
        return FetchOutcome(
            ok=True,
            status_code=STATUS_OK,
            provider=candidate.provider,
            provider_id=candidate.provider_id,
            poster_file=file_name,
        )


def _category_label(category: UnifiedCategory | None) -> str:
    return category.value if category is not None else "-"
