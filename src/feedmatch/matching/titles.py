"""Release title normalization and token helpers."""

from __future__ import annotations

import functools
import re

from ..utils import strip_diacritics

_BRACKET_TAGS = re.compile(r"\[[^\]]*\]")
_PAREN_TAGS = re.compile(r"\([^)]*\)")
_SEASON_EPISODE = re.compile(r"\bS\d{1,2}E\d{1,3}\b", re.IGNORECASE)
_ALT_SEASON_EPISODE = re.compile(r"\b\d{1,2}x\d{1,3}\b")
_SEASON_ONLY = re.compile(r"\bS\d{1,2}\b|\b(?:season|saison)\s*\d{1,2}\b", re.IGNORECASE)
_YEAR = re.compile(r"\b(?:19\d{2}|20\d{2})\b")
_QUALITY_TAGS = re.compile(
    r"\b(?:2160p|1080p|720p|480p|4k|8k|hdr10|hdr|dv|dovi|x264|x265|h\.?264|h\.?265|hevc|av1|xvid|divx"
    r"|aac|dts|truehd|atmos|webrip|web[- .]?dl|bluray|bdrip|brrip|dvdrip|hdtv|remux|proper|repack"
    r"|extended|uncut|limited|complete|collection|pack)\b",
    re.IGNORECASE,
)
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SPACES = re.compile(r"\s+")

STOP_WORDS = frozenset({
    # English
    "the", "and", "with", "from", "into", "over", "under", "without", "of", "to", "in", "on", "for", "by",
    "a", "an", "is", "it", "its", "at", "as", "be", "but", "or", "not", "this", "that", "was", "are",
    # French
    "le", "la", "les", "des", "du", "de", "au", "aux", "un", "une", "et", "ou", "en", "sur", "dans",
    "ce", "cette", "ces", "son", "sa", "ses", "mon", "ma", "mes", "ton", "ta", "tes", "leur", "leurs",
    "qui", "que", "quoi", "dont", "avec", "pour", "par", "sans", "sous", "vers", "chez", "entre",
    "comme", "mais", "donc", "car", "ni", "ne", "pas", "plus", "moins", "tres", "bien", "tout", "tous",
    # German
    "der", "die", "das", "den", "dem", "ein", "eine", "einer", "eines", "einem", "einen",
    "und", "oder", "aber", "doch", "wenn", "weil", "dass", "ob", "als", "wie", "wo", "wer",
    "mit", "von", "zu", "bei", "nach", "vor", "aus", "um", "auf", "im", "am",
    "ist", "sind", "war", "waren", "hat", "haben", "wird", "werden", "kann", "konnen",
    "nicht", "auch", "noch", "nur", "schon", "sehr", "mehr", "viel", "alle", "alles",
    # Spanish
    "el", "los", "lo", "las", "unos", "unas", "y", "o", "pero", "sino", "porque",
    "cual", "quien", "donde", "cuando", "como", "con", "sin", "para", "por", "sobre",
    "del", "al", "se", "su", "sus", "mi", "mis", "tu", "tus", "es", "esta",
    "este", "esto", "eso", "ese", "no", "si", "muy", "mas", "menos", "todo", "todos", "nada",
    # Italian
    "il", "gli", "i", "uno", "ed", "ma", "che", "chi", "cui", "dove",
    "per", "tra", "fra", "di", "da", "della", "dei", "delle", "nel", "nella",
    "non", "molto", "poco", "tutto", "tutti", "questo", "quello",
    # Portuguese
    "os", "um", "uma", "uns", "umas", "ao", "aos", "do", "dos", "das", "nas",
    "em", "sem", "ate", "desde", "contra",
    "eu", "ele", "ela", "nos", "vos", "eles", "elas", "meu", "minha", "seu", "sua",
    "nao", "sim", "muito", "pouco", "mal",
})


def looks_like_packed_uppercase(raw: str | None) -> bool:
    """``"FBIMW"``-style titles: 4 to 6 uppercase letters, no separators."""
    if not raw:
        return False
    trimmed = raw.strip()
    if not 4 <= len(trimmed) <= 6:
        return False
    return trimmed.isalpha() and trimmed.isupper()


@functools.lru_cache(maxsize=4096)
def normalize_title(value: str | None) -> str:
    """Reduce a release title to lowercase words used for matching and fingerprints.

    ``"The.Matrix.1999.1080p.BluRay.x264"`` -> ``"the matrix"``
    """
    if not value or not value.strip():
        return ""

    raw = value.strip()
    text = _BRACKET_TAGS.sub(" ", raw)
    text = _PAREN_TAGS.sub(" ", text)
    for separator in ".-_+":
        text = text.replace(separator, " ")

    text = _SEASON_EPISODE.sub(" ", text)
    text = _ALT_SEASON_EPISODE.sub(" ", text)
    text = _SEASON_ONLY.sub(" ", text)
    text = _YEAR.sub(" ", text)
    text = _QUALITY_TAGS.sub(" ", text)

    text = _NON_ALNUM.sub(" ", strip_diacritics(text.lower()))
    if looks_like_packed_uppercase(raw):
        compact = _SPACES.sub("", text)
        if 4 <= len(compact) <= 6:
            text = f"{compact[:-1]} {compact[-1]}"
    return _SPACES.sub(" ", text).strip()


def normalize_title_strict(value: str | None) -> str:
    """Lowercase and strip accents only; keeps years and tags (``"1917"``)."""
    if not value or not value.strip():
        return ""
    lowered = strip_diacritics(value.strip().lower())
    return _SPACES.sub(" ", _NON_ALNUM.sub(" ", lowered)).strip()


def clean_search_title(value: str | None) -> str:
    """Title sent to providers: trailing separators dropped, accents removed."""
    text = (value or "").strip().rstrip("-. ")
    return strip_diacritics(text.strip())


def get_tokens(value: str | None) -> list[str]:
    return normalize_title(value).split()


def get_significant_tokens(value: str | None) -> list[str]:
    return [token for token in get_tokens(value) if len(token) > 2 and token not in STOP_WORDS]


def count_significant_token_overlap(query: str, candidate: str | None, original_candidate: str | None = None) -> int:
    query_tokens = set(get_significant_tokens(query))
    if not query_tokens:
        return 0
    overlap = len(query_tokens & set(get_significant_tokens(candidate)))
    if original_candidate:
        overlap = max(overlap, len(query_tokens & set(get_significant_tokens(original_candidate))))
    return overlap
