"""SQLite-backed cache of resolved poster matches.

Rows are keyed by a fingerprint of the release subject (media type,
normalized title, year, season and episode) so identical subjects are
resolved once. The upsert is a single conditional statement:

- ``poster_file`` keeps the stored value unless the incoming one is non-empty
- ``confidence`` is overwritten by any strictly positive value, except when
  the write carries no poster file while one is already stored
- other nullable columns take the incoming value when it is not null
"""

from __future__ import annotations

import hashlib
import logging
import sqlite3
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path

from ..models import PosterMatchIds

LOGGER = logging.getLogger(__name__)


def build_fingerprint(
    media_type: str | None,
    normalized_title: str | None,
    year: int | None,
    season: int | None = None,
    episode: int | None = None,
) -> str:
    """sha256 of ``"movie|the matrix|1999|null|null"``, lowercase hex."""

    def _part(value: int | None) -> str:
        return "null" if value is None else str(value)

    key = "|".join(
        [
            (media_type or "").strip().lower(),
            (normalized_title or "").strip(),
            _part(year),
            _part(season),
            _part(episode),
        ]
    )
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def _now() -> int:
    return int(time.time())


@dataclass
class PosterMatch:
    """One cached match for a release subject.

    A confidence of ``0.0`` means "unset"; it never replaces a stored value.
    """

    fingerprint: str
    media_type: str
    normalized_title: str
    year: int | None = None
    season: int | None = None
    episode: int | None = None
    ids: PosterMatchIds | None = None
    confidence: float = 0.0
    match_source: str | None = None
    poster_file: str | None = None
    poster_provider: str | None = None
    poster_provider_id: str | None = None
    poster_lang: str | None = None
    poster_size: str | None = None
    created_ts: int = field(default_factory=_now)
    last_seen_ts: int = field(default_factory=_now)
    last_attempt_ts: int | None = None
    last_error: str | None = None


_COLUMNS = (
    "fingerprint, media_type, normalized_title, year, season, episode, ids_json, confidence, match_source, "
    "poster_file, poster_provider, poster_provider_id, poster_lang, poster_size, "
    "created_ts, last_seen_ts, last_attempt_ts, last_error"
)


class PosterMatchCache:
    """Fingerprint-keyed poster match rows.

    Example:
        cache = PosterMatchCache(Path("/data/feedmatch.db"))
        fingerprint = build_fingerprint("movie", "the matrix", 1999)
        cache.upsert(PosterMatch(fingerprint, "movie", "the matrix", 1999, confidence=0.9, poster_file="a.jpg"))
        cache.try_get(fingerprint).poster_file  # "a.jpg"
    """

    SCHEMA_VERSION = 1
    COMPONENT = "poster_matches"

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
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
                CREATE TABLE IF NOT EXISTS poster_matches (
                    fingerprint TEXT PRIMARY KEY,
                    media_type TEXT NOT NULL,
                    normalized_title TEXT NOT NULL,
                    year INTEGER,
                    season INTEGER,
                    episode INTEGER,
                    ids_json TEXT,
                    confidence REAL NOT NULL DEFAULT 0,
                    match_source TEXT,
                    poster_file TEXT,
                    poster_provider TEXT,
                    poster_provider_id TEXT,
                    poster_lang TEXT,
                    poster_size TEXT,
                    created_ts INTEGER NOT NULL,
                    last_seen_ts INTEGER NOT NULL,
                    last_attempt_ts INTEGER,
                    last_error TEXT
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_poster_matches_title_key
                ON poster_matches (media_type, normalized_title, year)
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_poster_matches_file ON poster_matches (poster_file)")
        conn.execute(
            """
            INSERT INTO schema_versions (component, version) VALUES (?, ?)
            ON CONFLICT(component) DO UPDATE SET version = excluded.version
            """,
            (self.COMPONENT, self.SCHEMA_VERSION),
        )
        conn.commit()

    @staticmethod
    def _row_to_match(row: sqlite3.Row) -> PosterMatch:
        return PosterMatch(
            fingerprint=row["fingerprint"],
            media_type=row["media_type"],
            normalized_title=row["normalized_title"],
            year=row["year"],
            season=row["season"],
            episode=row["episode"],
            ids=PosterMatchIds.from_json(row["ids_json"]),
            confidence=float(row["confidence"] or 0.0),
            match_source=row["match_source"],
            poster_file=row["poster_file"],
            poster_provider=row["poster_provider"],
            poster_provider_id=row["poster_provider_id"],
            poster_lang=row["poster_lang"],
            poster_size=row["poster_size"],
            created_ts=int(row["created_ts"]),
            last_seen_ts=int(row["last_seen_ts"]),
            last_attempt_ts=row["last_attempt_ts"],
            last_error=row["last_error"],
        )

    def _fetch_one(self, query: str, params: tuple) -> PosterMatch | None:
        try:
            row = self._get_connection().execute(query, params).fetchone()
            if row is None:
                return None
            return self._row_to_match(row)
        except (sqlite3.Error, TypeError, ValueError) as exc:
            LOGGER.warning("Ignoring unreadable poster match row: %s", exc)
            return None

    def try_get(self, fingerprint: str) -> PosterMatch | None:
        """Return the row for ``fingerprint``; unreadable rows count as a miss."""
        if not fingerprint:
            return None
        return self._fetch_one(f"SELECT {_COLUMNS} FROM poster_matches WHERE fingerprint = ?", (fingerprint,))

    def try_get_by_title_key(
        self, media_type: str | None, normalized_title: str | None, year: int | None = None
    ) -> PosterMatch | None:
        """Best row for a title: same year first, then any year.

        Rows are ranked by confidence, then by how recently they were seen.
        """
        if not normalized_title:
            return None
        query = f"SELECT {_COLUMNS} FROM poster_matches WHERE media_type = ? AND normalized_title = ?"
        order = " ORDER BY confidence DESC, last_seen_ts DESC LIMIT 1"
        params: tuple = ((media_type or "").lower(), normalized_title.strip())
        if year is not None:
            exact = self._fetch_one(query + " AND year = ?" + order, params + (year,))
            if exact is not None:
                return exact
        return self._fetch_one(query + order, params)

    def upsert(self, match: PosterMatch) -> None:
        now = _now()
        ids_json = match.ids.to_json() if match.ids is not None and match.ids.has_any() else None
        conn = self._get_connection()
        conn.execute(
            f"""
            INSERT INTO poster_matches ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(fingerprint) DO UPDATE SET
                media_type = excluded.media_type,
                normalized_title = excluded.normalized_title,
                year = COALESCE(excluded.year, poster_matches.year),
                season = COALESCE(excluded.season, poster_matches.season),
                episode = COALESCE(excluded.episode, poster_matches.episode),
                ids_json = COALESCE(excluded.ids_json, poster_matches.ids_json),
                confidence = CASE
                    WHEN excluded.confidence > 0
                         AND (COALESCE(excluded.poster_file, '') <> ''
                              OR COALESCE(poster_matches.poster_file, '') = '')
                    THEN excluded.confidence
                    ELSE poster_matches.confidence
                END,
                match_source = COALESCE(excluded.match_source, poster_matches.match_source),
                poster_file = COALESCE(NULLIF(excluded.poster_file, ''), poster_matches.poster_file),
                poster_provider = COALESCE(excluded.poster_provider, poster_matches.poster_provider),
                poster_provider_id = COALESCE(excluded.poster_provider_id, poster_matches.poster_provider_id),
                poster_lang = COALESCE(excluded.poster_lang, poster_matches.poster_lang),
                poster_size = COALESCE(excluded.poster_size, poster_matches.poster_size),
                last_seen_ts = excluded.last_seen_ts,
                last_attempt_ts = excluded.last_attempt_ts,
                last_error = CASE
                    WHEN NULLIF(excluded.poster_file, '') IS NOT NULL THEN excluded.last_error
                    ELSE COALESCE(excluded.last_error, poster_matches.last_error)
                END
            """,
            (
                match.fingerprint,
                (match.media_type or "").lower(),
                match.normalized_title,
                match.year,
                match.season,
                match.episode,
                ids_json,
                max(0.0, float(match.confidence or 0.0)),
                match.match_source,
                match.poster_file or None,
                match.poster_provider,
                match.poster_provider_id,
                match.poster_lang,
                match.poster_size,
                match.created_ts or now,
                now,
                match.last_attempt_ts or now,
                match.last_error,
            ),
        )
        conn.commit()

    def _update(self, query: str, params: tuple) -> bool:
        conn = self._get_connection()
        cursor = conn.execute(query, params)
        conn.commit()
        return cursor.rowcount > 0

    def touch_seen(self, fingerprint: str) -> bool:
        return self._update("UPDATE poster_matches SET last_seen_ts = ? WHERE fingerprint = ?", (_now(), fingerprint))

    def record_error(self, fingerprint: str, error: str) -> bool:
        return self._update(
            "UPDATE poster_matches SET last_attempt_ts = ?, last_error = ? WHERE fingerprint = ?",
            (_now(), error, fingerprint),
        )

    def delete(self, fingerprint: str) -> bool:
        return self._update("DELETE FROM poster_matches WHERE fingerprint = ?", (fingerprint,))

    def delete_by_poster_file(self, poster_file: str) -> int:
        conn = self._get_connection()
        cursor = conn.execute("DELETE FROM poster_matches WHERE poster_file = ?", (poster_file,))
        conn.commit()
        return cursor.rowcount

    def clear(self) -> int:
        conn = self._get_connection()
        cursor = conn.execute("DELETE FROM poster_matches")
        conn.commit()
        return cursor.rowcount

    def close(self) -> None:
        """Close the database connection."""
        if hasattr(self._local, "connection") and self._local.connection is not None:
            self._local.connection.close()
            self._local.connection = None
