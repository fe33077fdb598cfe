from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .categories.unified import UnifiedCategory, to_media_type


@dataclass
class Release:
    """A release as seen by the poster pipeline.

    Only the poster, category and external-detail fields are ever written back.
    """

    id: int
    title: str
    source: str = ""
    title_clean: str | None = None
    year: int | None = None
    season: int | None = None
    episode: int | None = None
    category_ids: list[int] = field(default_factory=list)
    std_category_id: int | None = None
    spec_category_id: int | None = None
    media_type: str | None = None
    unified_category: UnifiedCategory | None = None
    poster_file: str | None = None
    poster_provider: str | None = None
    poster_provider_id: str | None = None
    poster_lang: str | None = None
    poster_size: str | None = None
    poster_hash: str | None = None
    poster_last_attempt_ts: int | None = None
    poster_last_error: str | None = None
    tmdb_id: int | None = None
    tvdb_id: int | None = None
    ext_provider: str | None = None
    ext_provider_id: str | None = None
    ext_title: str | None = None
    ext_overview: str | None = None

    @property
    def search_title(self) -> str:
        return (self.title_clean or self.title or "").strip()

    @property
    def effective_media_type(self) -> str:
        """Stored media type, else the one implied by the unified category."""
        if self.media_type:
            return self.media_type.strip().lower()
        return to_media_type(self.unified_category)


@dataclass(slots=True)
class PosterMatchIds:
    tmdb: int | None = None
    tvdb: int | None = None
    tvmaze: int | None = None
    igdb: int | None = None
    imdb: str | None = None

    def has_any(self) -> bool:
        return any(value for value in (self.tmdb, self.tvdb, self.tvmaze, self.igdb)) or bool(self.imdb)

    def overlaps(self, other: PosterMatchIds | None) -> bool:
        """True when both sides carry the same id for at least one provider."""
        if other is None:
            return False
        for name in ("tmdb", "tvdb", "tvmaze", "igdb"):
            mine = getattr(self, name)
            theirs = getattr(other, name)
            if mine and theirs and mine == theirs:
                return True
        if self.imdb and other.imdb and self.imdb.lower() == other.imdb.lower():
            return True
        return False

    def merge(self, other: PosterMatchIds | None) -> PosterMatchIds:
        """Return a copy filled with ``other``'s ids where this one has none."""
        if other is None:
            return PosterMatchIds(self.tmdb, self.tvdb, self.tvmaze, self.igdb, self.imdb)
        return PosterMatchIds(
            tmdb=self.tmdb or other.tmdb,
            tvdb=self.tvdb or other.tvdb,
            tvmaze=self.tvmaze or other.tvmaze,
            igdb=self.igdb or other.igdb,
            imdb=self.imdb or other.imdb,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tmdb": self.tmdb,
            "tvdb": self.tvdb,
            "tvmaze": self.tvmaze,
            "igdb": self.igdb,
            "imdb": self.imdb,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_json(cls, raw: str | None) -> PosterMatchIds | None:
        """Parse a stored ids payload; corrupt or empty payloads yield None."""
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(data, dict):
            return None
        try:
            return cls(
                tmdb=_optional_int(data.get("tmdb")),
                tvdb=_optional_int(data.get("tvdb")),
                tvmaze=_optional_int(data.get("tvmaze")),
                igdb=_optional_int(data.get("igdb")),
                imdb=str(data["imdb"]) if data.get("imdb") else None,
            )
        except (TypeError, ValueError):
            return None


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(slots=True)
class FetchOutcome:
    """Result of a single poster fetch, safe to hand back to any caller."""

    ok: bool
    status_code: int
    provider: str | None = None
    provider_id: str | None = None
    poster_file: str | None = None
    cached: bool = False
    error: str | None = None

    @classmethod
    def failure(cls, status_code: int, error: str) -> FetchOutcome:
        return cls(ok=False, status_code=status_code, error=error)
