"""SQLite-backed store for the releases the poster pipeline reads and updates."""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from pathlib import Path

from ..categories.classifier import chunk
from ..categories.unified import UnifiedCategory, try_parse
from ..matching.titles import normalize_title
from ..models import PosterMatchIds, Release
from .match_cache import PosterMatchCache, build_fingerprint

LOGGER = logging.getLogger(__name__)

QUERY_BATCH_SIZE = 500

_RELEASE_COLUMNS = (
    "id",
    "title",
    "source",
    "title_clean",
    "year",
    "season",
    "episode",
    "category_ids",
    "std_category_id",
    "spec_category_id",
    "media_type",
    "unified_category",
    "poster_file",
    "poster_provider",
    "poster_provider_id",
    "poster_lang",
    "poster_size",
    "poster_hash",
    "poster_last_attempt_ts",
    "poster_last_error",
    "tmdb_id",
    "tvdb_id",
    "ext_provider",
    "ext_provider_id",
    "ext_title",
    "ext_overview",
)


def _encode_ids(ids: list[int]) -> str:
    return ",".join(str(category_id) for category_id in ids)


def release_fingerprint(release: Release) -> str:
    """Fingerprint of the subject a release describes, as used by the match cache."""
    return build_fingerprint(
        release.effective_media_type,
        normalize_title(release.search_title),
        release.year,
        release.season,
        release.episode,
    )


def _decode_ids(raw: str | None) -> list[int]:
    result: list[int] = []
    for part in (raw or "").split(","):
        part = part.strip()
        if part.lstrip("-").isdigit():
            result.append(int(part))
    return result


class ReleaseStore:
    """Release rows plus the poster/external-detail write-back.

    When an externally confirmed provider id changes, the poster match cache
    row for the release's subject is deleted so the stale pairing is not
    served again.

    Example:
        cache = PosterMatchCache(db_path)
        store = ReleaseStore(db_path, cache)
        store.upsert_release(Release(id=1, title="Inception", year=2010, media_type="movie"))
        store.update_external_details(1, "tmdb", "27205")
    """

    SCHEMA_VERSION = 1
    COMPONENT = "releases"

    def __init__(self, db_path: Path, cache: PosterMatchCache | None = None) -> None:
        self._db_path = db_path
        self._cache = cache
        self._local = threading.local()
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection for the current thread."""
        if not hasattr(self._local, "connection") or self._local.connection is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._local.connection = sqlite3.connect(self._db_path, check_same_thread=False)
            self._local.connection.execute("PRAGMA journal_mode=WAL")
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    def _init_db(self) -> None:
        conn = self._get_connection()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_versions (
                component TEXT PRIMARY KEY,
                version INTEGER NOT NULL
            )
        """)
        row = conn.execute(
            "SELECT version FROM schema_versions WHERE component = ?", (self.COMPONENT,)
        ).fetchone()
        current_version = row["version"] if row else 0
        if current_version < self.SCHEMA_VERSION:
            self._migrate_schema(current_version)

    def _migrate_schema(self, from_version: int) -> None:
        conn = self._get_connection()
        if from_version < 1:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS releases (
                    id INTEGER PRIMARY KEY,
                    title TEXT NOT NULL,
                    source TEXT NOT NULL DEFAULT '',
                    title_clean TEXT,
                    year INTEGER,
                    season INTEGER,
                    episode INTEGER,
                    category_ids TEXT NOT NULL DEFAULT '',
                    std_category_id INTEGER,
                    spec_category_id INTEGER,
                    media_type TEXT,
                    unified_category TEXT,
                    poster_file TEXT,
                    poster_provider TEXT,
                    poster_provider_id TEXT,
                    poster_lang TEXT,
                    poster_size TEXT,
                    poster_hash TEXT,
                    poster_last_attempt_ts INTEGER,
                    poster_last_error TEXT,
                    tmdb_id INTEGER,
                    tvdb_id INTEGER,
                    ext_provider TEXT,
                    ext_provider_id TEXT,
                    ext_title TEXT,
                    ext_overview TEXT
                )
            """)
        conn.execute(
            """
            INSERT INTO schema_versions (component, version) VALUES (?, ?)
            ON CONFLICT(component) DO UPDATE SET version = excluded.version
            """,
            (self.COMPONENT, self.SCHEMA_VERSION),
        )
        conn.commit()

    @staticmethod
    def _row_to_release(row: sqlite3.Row) -> Release:
        unified = try_parse(row["unified_category"]) if row["unified_category"] else None
        return Release(
            id=row["id"],
            title=row["title"],
            source=row["source"] or "",
            title_clean=row["title_clean"],
            year=row["year"],
            season=row["season"],
            episode=row["episode"],
            category_ids=_decode_ids(row["category_ids"]),
            std_category_id=row["std_category_id"],
            spec_category_id=row["spec_category_id"],
            media_type=row["media_type"],
            unified_category=unified,
            poster_file=row["poster_file"],
            poster_provider=row["poster_provider"],
            poster_provider_id=row["poster_provider_id"],
            poster_lang=row["poster_lang"],
            poster_size=row["poster_size"],
            poster_hash=row["poster_hash"],
            poster_last_attempt_ts=row["poster_last_attempt_ts"],
            poster_last_error=row["poster_last_error"],
            tmdb_id=row["tmdb_id"],
            tvdb_id=row["tvdb_id"],
            ext_provider=row["ext_provider"],
            ext_provider_id=row["ext_provider_id"],
            ext_title=row["ext_title"],
            ext_overview=row["ext_overview"],
        )

    def upsert_release(self, release: Release) -> None:
        """Insert or replace a release as delivered by ingestion."""
        unified = release.unified_category.value if isinstance(release.unified_category, UnifiedCategory) else None
        values = (
            release.id,
            release.title,
            release.source,
            release.title_clean,
            release.year,
            release.season,
            release.episode,
            _encode_ids(release.category_ids),
            release.std_category_id,
            release.spec_category_id,
            release.media_type,
            unified,
            release.poster_file,
            release.poster_provider,
            release.poster_provider_id,
            release.poster_lang,
            release.poster_size,
            release.poster_hash,
            release.poster_last_attempt_ts,
            release.poster_last_error,
            release.tmdb_id,
            release.tvdb_id,
            release.ext_provider,
            release.ext_provider_id,
            release.ext_title,
            release.ext_overview,
        )
        placeholders = ", ".join("?" for _ in _RELEASE_COLUMNS)
        conn = self._get_connection()
        conn.execute(
            f"INSERT OR REPLACE INTO releases ({', '.join(_RELEASE_COLUMNS)}) VALUES ({placeholders})",
            values,
        )
        conn.commit()

    def get_for_poster(self, release_id: int) -> Release | None:
        row = self._get_connection().execute(
            f"SELECT {', '.join(_RELEASE_COLUMNS)} FROM releases WHERE id = ?", (release_id,)
        ).fetchone()
        return self._row_to_release(row) if row else None

    def get_many_for_poster(self, release_ids: list[int]) -> dict[int, Release]:
        """Load several releases, batching ids to stay under SQLite's host-parameter limit."""
        conn = self._get_connection()
        releases: dict[int, Release] = {}
        for batch in chunk(list(dict.fromkeys(release_ids)), QUERY_BATCH_SIZE):
            placeholders = ", ".join("?" for _ in batch)
            rows = conn.execute(
                f"SELECT {', '.join(_RELEASE_COLUMNS)} FROM releases WHERE id IN ({placeholders})", batch
            ).fetchall()
            for row in rows:
                release = self._row_to_release(row)
                releases[release.id] = release
        return releases

    def save_poster(
        self,
        release_id: int,
        *,
        poster_file: str,
        provider: str | None,
        provider_id: str | None,
        lang: str | None = None,
        size: str | None = None,
        poster_hash: str | None = None,
        ids: PosterMatchIds | None = None,
    ) -> None:
        """Record a persisted poster; never touches the match cache."""
        conn = self._get_connection()
        conn.execute(
            """
            UPDATE releases SET
                poster_file = ?,
                poster_provider = ?,
                poster_provider_id = ?,
                poster_lang = ?,
                poster_size = ?,
                poster_hash = COALESCE(?, poster_hash),
                poster_last_attempt_ts = ?,
                poster_last_error = NULL,
                tmdb_id = COALESCE(tmdb_id, ?),
                tvdb_id = COALESCE(tvdb_id, ?)
            WHERE id = ?
            """,
            (
                poster_file,
                provider,
                provider_id,
                lang,
                size,
                poster_hash,
                int(time.time()),
                ids.tmdb if ids else None,
                ids.tvdb if ids else None,
                release_id,
            ),
        )
        conn.commit()

    def record_poster_failure(self, release_id: int, error: str) -> None:
        conn = self._get_connection()
        conn.execute(
            "UPDATE releases SET poster_last_attempt_ts = ?, poster_last_error = ? WHERE id = ?",
            (int(time.time()), error, release_id),
        )
        conn.commit()

    def update_external_details(
        self,
        release_id: int,
        provider: str,
        provider_id: str,
        title: str | None = None,
        overview: str | None = None,
    ) -> bool:
        """Store a confirmed external id; invalidates the cache row when it changed.

        Returns False when the release does not exist.
        """
        release = self.get_for_poster(release_id)
        if release is None:
            return False

        provider = provider.strip().lower()
        provider_id = str(provider_id).strip()
        changed = (release.ext_provider or "").lower() != provider or (release.ext_provider_id or "") != provider_id

        numeric_id = int(provider_id) if provider_id.isdigit() else None
        conn = self._get_connection()
        conn.execute(
            """
            UPDATE releases SET
                ext_provider = ?,
                ext_provider_id = ?,
                ext_title = COALESCE(?, ext_title),
                ext_overview = COALESCE(?, ext_overview),
                tmdb_id = CASE WHEN ? = 'tmdb' AND ? IS NOT NULL THEN ? ELSE tmdb_id END,
                tvdb_id = CASE WHEN ? = 'tvdb' AND ? IS NOT NULL THEN ? ELSE tvdb_id END
            WHERE id = ?
            """,
            (
                provider,
                provider_id,
                title,
                overview,
                provider,
                numeric_id,
                numeric_id,
                provider,
                numeric_id,
                numeric_id,
                release_id,
            ),
        )
        conn.commit()

        if changed and self._cache is not None:
            fingerprint = release_fingerprint(release)
            if self._cache.delete(fingerprint):
                LOGGER.info("Invalidated poster match for release %s (%s:%s)", release_id, provider, provider_id)
        return True

    def close(self) -> None:
        """Close the database connection."""
        if hasattr(self._local, "connection") and self._local.connection is not None:
            self._local.connection.close()
            self._local.connection = None
