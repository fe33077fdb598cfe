"""Range and keyword classification of indexer categories.

Everything here is pure: no I/O, no configuration.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import TypeVar

from ..utils import strip_diacritics
from .unified import find_range

PC_TOKENS = frozenset({"pc", "windows", "win32", "win64"})

GAME_TOKENS = frozenset({"game", "games", "jeu", "jeux", "gaming", "videogame", "videogames"})

APP_OS_TOKENS = frozenset({
    "app", "apps", "application", "applications", "software", "softwares", "mobile",
    "android", "ios", "apk", "ipa", "exe", "msi", "dmg", "deb", "rpm", "iso",
    "firmware", "driver", "drivers", "windows", "linux", "macos", "mac",
})

BLACKLIST_TOKENS = frozenset({
    "application", "applications", "app", "apps", "appli", "applis",
    "software", "softwares", "mobile", "apk", "ipa", "exe", "msi", "dmg",
    "deb", "rpm", "iso", "crack", "keygen", "serial", "serials", "warez", "nulled",
    "firmware", "driver", "drivers", "android", "ios", "macos", "mac", "windows", "linux",
    "emulation", "emulator", "emulators", "emu",
    "gps", "garmin", "tomtom",
    "imprimante", "imprimantes", "printer", "printers",
    "console", "xbox", "ps4", "ps5", "playstation", "nintendo", "switch",
    "wallpaper", "wallpapers", "image", "images", "photo", "photos", "pic", "pics", "picture", "pictures",
    "porn", "porno", "erotic", "erotique", "hentai", "nsfw", "xxx", "adult",
    "sport", "sports", "misc", "other", "divers",
})

SERIES_TOKENS = frozenset({"serie", "series", "tv", "tele"})
FILM_TOKENS = frozenset({"film", "films", "movie", "movies", "cinema"})
ANIME_TOKENS = frozenset({"anime", "animation"})
AUDIO_TOKENS = frozenset({
    "audio", "music", "musique", "mp3", "flac", "wav", "aac", "m4a", "opus",
    "podcast", "audiobook", "audiobooks", "album", "albums", "soundtrack", "ost",
})
BOOK_TOKENS = frozenset({"book", "books", "livre", "livres", "ebook", "ebooks", "epub", "mobi", "kindle", "isbn"})
COMIC_TOKENS = frozenset({"comic", "comics", "bd", "manga", "scan", "scans", "graphic", "novel", "novels"})
SPECTACLE_TOKENS = frozenset({
    "spectacle", "concert", "opera", "theatre", "ballet",
    "symphonie", "orchestr", "philharmon", "ring", "choregraph", "danse",
})
SHOW_TOKENS = frozenset({
    "emission", "show", "talk", "reality", "documentaire", "docu", "magazine",
    "reportage", "enquete", "quotidien", "quotidienne",
})

# Tie-break order when several groups share the top score.
UNIFIED_PRIORITY = ("series", "anime", "films", "games", "spectacle", "shows", "audio", "books", "comics", "other")

MIN_TOKEN_SCORE = 3

_NON_ALNUM = re.compile(r"[^0-9a-z]+")

T = TypeVar("T")


def normalize(value: str | None) -> str:
    if not value or not value.strip():
        return ""
    lowered = strip_diacritics(value.lower())
    return _NON_ALNUM.sub(" ", lowered).strip()


def tokenize(value: str | None) -> set[str]:
    normalized = normalize(value)
    if not normalized:
        return set()
    return set(normalized.split())


def _lowered(tokens: Iterable[str]) -> set[str]:
    return {token.strip().lower() for token in tokens if token and token.strip()}


def classify_by_id(category_id: int | None, tokens: Iterable[str] = ()) -> str | None:
    """Classify a numeric category id into a coarse group key.

    ``tokens`` is accepted for call-site symmetry with token classification;
    the numeric ranges alone decide the group.
    """
    row = find_range(category_id)
    return row.group if row is not None else None


def is_pc_game_tokens(tokens: Iterable[str]) -> bool:
    token_set = _lowered(tokens)
    if not token_set:
        return False
    has_pc = bool(token_set & PC_TOKENS)
    has_game = bool(token_set & GAME_TOKENS) or (
        "video" in token_set and bool(token_set & {"jeu", "jeux"})
    )
    return has_pc and has_game


def find_blacklisted_token(tokens: Iterable[str], ignore: Iterable[str] = ()) -> str | None:
    ignored = _lowered(ignore)
    for token in sorted(_lowered(tokens)):
        if token in ignored:
            continue
        if token in BLACKLIST_TOKENS:
            return token
    return None


def is_blacklisted(tokens: Iterable[str], ignore: Iterable[str] = ()) -> bool:
    return find_blacklisted_token(tokens, ignore) is not None


def classify_by_tokens(tokens: Iterable[str]) -> str | None:
    """Classify a token set by exact keyword membership.

    A blacklisted token forces None regardless of any positive match.
    """
    token_set = _lowered(tokens)
    if not token_set:
        return None

    ignore = PC_TOKENS if is_pc_game_tokens(token_set) else ()
    if is_blacklisted(token_set, ignore):
        return None

    scores = dict.fromkeys(UNIFIED_PRIORITY[:-1], 0)

    if token_set & SERIES_TOKENS and not token_set & APP_OS_TOKENS:
        scores["series"] = 3

    has_spectacle = bool(token_set & SPECTACLE_TOKENS)
    if token_set & ANIME_TOKENS:
        scores["anime"] = 4
    if token_set & AUDIO_TOKENS:
        scores["audio"] = 4
    if token_set & BOOK_TOKENS:
        scores["books"] = 4
    if token_set & COMIC_TOKENS:
        scores["comics"] = 4
    if has_spectacle:
        scores["spectacle"] = 4
    if token_set & SHOW_TOKENS:
        scores["shows"] = 4

    has_game = bool(token_set & {"jeu", "jeux", "game", "games"})
    is_game = bool(token_set & PC_TOKENS) and has_game
    if is_game:
        scores["games"] = 3

    has_film = bool(token_set & FILM_TOKENS)
    if not has_spectacle and (has_film or ("video" in token_set and not has_game)):
        scores["films"] = 3

    best = max(scores.values())
    if best < MIN_TOKEN_SCORE:
        return None
    for key in UNIFIED_PRIORITY:
        if scores.get(key) == best:
            return key
    return None


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive batches of at most ``size`` items."""
    if size <= 0:
        raise ValueError("Chunk size must be greater than 0")
    return [list(items[start:start + size]) for start in range(0, len(items), size)]
