"""Canonical category group keys, their labels and accepted aliases."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..utils import normalize_token


@dataclass(frozen=True)
class CategoryGroup:
    key: str
    label: str
    aliases: tuple[str, ...] = field(default_factory=tuple)


GROUPS: tuple[CategoryGroup, ...] = (
    CategoryGroup("films", "Films", ("film", "movie", "movies")),
    CategoryGroup("series", "Série TV", ("serie", "tv")),
    CategoryGroup("animation", "Animation"),
    CategoryGroup("anime", "Anime"),
    CategoryGroup("games", "Jeux PC", ("game",)),
    CategoryGroup("comics", "Comics", ("comic",)),
    CategoryGroup("books", "Livres", ("book",)),
    CategoryGroup("audio", "Audio"),
    CategoryGroup("spectacle", "Spectacle"),
    CategoryGroup("emissions", "Emissions", ("emission", "shows", "show")),
)

CANONICAL_KEYS: frozenset[str] = frozenset(group.key for group in GROUPS)

_LABELS: dict[str, str] = {group.key: group.label for group in GROUPS}
_LOOKUP: dict[str, str] = {}
for _group in GROUPS:
    _LOOKUP[normalize_token(_group.key)] = _group.key
    for _alias in _group.aliases:
        _LOOKUP[normalize_token(_alias)] = _group.key


def try_normalize_key(raw: str | None) -> str | None:
    """Map a key or alias to its canonical group key.

    ``"Movies"`` -> ``"films"``, ``"show"`` -> ``"emissions"``. Returns None
    for empty input, ``"other"`` and anything unknown.
    """
    if raw is None:
        return None
    token = normalize_token(raw)
    if not token:
        return None
    return _LOOKUP.get(token)


def is_canonical_key(key: str | None) -> bool:
    return key is not None and key in CANONICAL_KEYS


def label_for_key(key: str) -> str:
    canonical = try_normalize_key(key)
    if canonical is None:
        raise ValueError(f"Unknown category group key: {key!r}")
    return _LABELS[canonical]


def assert_canonical_key(key: str | None) -> str:
    """Return ``key`` unchanged, or raise if it is an alias or unknown.

    Guards storage writes against alias leakage ("film" instead of "films").
    """
    if is_canonical_key(key):
        return key  # type: ignore[return-value]
    canonical = try_normalize_key(key)
    if canonical is not None:
        raise ValueError(f"Category key {key!r} is not canonical; use {canonical!r}")
    raise ValueError(f"Category key {key!r} is not canonical")
