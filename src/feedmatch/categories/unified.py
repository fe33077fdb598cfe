"""Unified categories and the single range table they are derived from.

Both the id classifier and the resolver's std-id override read
``CATEGORY_RANGES``; nothing else encodes numeric ranges.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from . import groups


class UnifiedCategory(str, Enum):
    FILM = "Film"
    SERIE = "Serie"
    EMISSION = "Emission"
    SPECTACLE = "Spectacle"
    JEU_WINDOWS = "JeuWindows"
    ANIMATION = "Animation"
    ANIME = "Anime"
    AUDIO = "Audio"
    BOOK = "Book"
    COMIC = "Comic"
    XXX = "Xxx"
    OTHER = "Other"

    def __str__(self) -> str:
        return self.value


SPECIFICITY: dict[UnifiedCategory, int] = {
    UnifiedCategory.ANIME: 10,
    UnifiedCategory.COMIC: 9,
    UnifiedCategory.SPECTACLE: 8,
    UnifiedCategory.ANIMATION: 7,
    UnifiedCategory.SERIE: 6,
    UnifiedCategory.FILM: 5,
    UnifiedCategory.AUDIO: 4,
    UnifiedCategory.BOOK: 3,
    UnifiedCategory.JEU_WINDOWS: 2,
}


def specificity(category: UnifiedCategory) -> int:
    return SPECIFICITY.get(category, 0)


@dataclass(frozen=True)
class CategoryRange:
    """Inclusive id range.

    ``group`` is the coarse classifier key of the whole family; ``category``
    is what a std id in the range resolves to.
    """

    low: int
    high: int
    group: str
    category: UnifiedCategory

    def contains(self, category_id: int) -> bool:
        return self.low <= category_id <= self.high

    @property
    def specificity(self) -> int:
        return specificity(self.category)


# Narrow rows first: the first row containing an id wins.
CATEGORY_RANGES: tuple[CategoryRange, ...] = (
    CategoryRange(5070, 5070, "series", UnifiedCategory.ANIME),
    CategoryRange(7030, 7039, "books", UnifiedCategory.COMIC),
    CategoryRange(1000, 1999, "games", UnifiedCategory.OTHER),
    CategoryRange(2000, 2999, "films", UnifiedCategory.FILM),
    CategoryRange(3000, 3999, "audio", UnifiedCategory.AUDIO),
    CategoryRange(4000, 4999, "games", UnifiedCategory.OTHER),
    CategoryRange(5000, 5999, "series", UnifiedCategory.SERIE),
    CategoryRange(6000, 6999, "xxx", UnifiedCategory.XXX),
    CategoryRange(7000, 7999, "books", UnifiedCategory.BOOK),
    CategoryRange(8000, 8999, "other", UnifiedCategory.OTHER),
)

PC_GAMES_ID = 4050
# Sources whose 4050 ("PC/Games") listing is reliably Windows games.
PC_GAME_SOURCES = frozenset({"LACALE"})


def find_range(category_id: int | None) -> CategoryRange | None:
    if category_id is None:
        return None
    for row in CATEGORY_RANGES:
        if row.contains(category_id):
            return row
    return None


def category_for_std_id(category_id: int | None, source_key: str = "") -> UnifiedCategory:
    """Map a standard id to a unified category (``OTHER`` when unmapped)."""
    if category_id == PC_GAMES_ID and source_key in PC_GAME_SOURCES:
        return UnifiedCategory.JEU_WINDOWS
    row = find_range(category_id)
    return row.category if row is not None else UnifiedCategory.OTHER


_KEYS: dict[UnifiedCategory, str] = {
    UnifiedCategory.FILM: "films",
    UnifiedCategory.SERIE: "series",
    UnifiedCategory.EMISSION: "emissions",
    UnifiedCategory.SPECTACLE: "spectacle",
    UnifiedCategory.JEU_WINDOWS: "games",
    UnifiedCategory.ANIMATION: "animation",
    UnifiedCategory.ANIME: "anime",
    UnifiedCategory.AUDIO: "audio",
    UnifiedCategory.BOOK: "books",
    UnifiedCategory.COMIC: "comics",
}

_MEDIA_TYPES: dict[UnifiedCategory, str] = {
    UnifiedCategory.FILM: "movie",
    UnifiedCategory.SPECTACLE: "movie",
    UnifiedCategory.ANIMATION: "movie",
    UnifiedCategory.SERIE: "series",
    UnifiedCategory.EMISSION: "series",
    UnifiedCategory.JEU_WINDOWS: "game",
    UnifiedCategory.ANIME: "anime",
    UnifiedCategory.AUDIO: "audio",
    UnifiedCategory.BOOK: "book",
    UnifiedCategory.COMIC: "comic",
}

_KEY_TO_CATEGORY: dict[str, UnifiedCategory] = {key: category for category, key in _KEYS.items()}


def to_key(category: UnifiedCategory) -> str:
    return _KEYS.get(category, "other")


def to_label(category: UnifiedCategory) -> str:
    key = _KEYS.get(category)
    return groups.label_for_key(key) if key else "Autre"


def to_media_type(category: UnifiedCategory | None) -> str:
    if category is None:
        return "unknown"
    return _MEDIA_TYPES.get(category, "unknown")


def try_parse(value: str | None) -> UnifiedCategory | None:
    """Parse an enum name or value case-insensitively ("serie", "JEU_WINDOWS")."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    lowered = text.lower()
    for category in UnifiedCategory:
        if lowered in (category.value.lower(), category.name.lower()):
            return category
    return None


def try_parse_key(key: str | None) -> UnifiedCategory | None:
    canonical = groups.try_normalize_key(key)
    if canonical is None:
        return None
    return _KEY_TO_CATEGORY.get(canonical)
