from __future__ import annotations

from dataclasses import dataclass, field

from .titles import get_significant_tokens, normalize_title

COMMON_TITLES = frozenset({"ca", "red", "mama"})

CHANNEL_TOKENS = frozenset({
    "tf1", "m6", "c8", "w9", "tfx", "gulli", "nrj12", "nrj",
    "france2", "france3", "france4", "france5", "franceinfo",
    "canal", "canalplus", "arte", "bfm", "lci", "rmc",
})


@dataclass(frozen=True)
class TitleAmbiguity:
    is_ambiguous: bool
    is_channel_like: bool
    is_common_title: bool
    significant_token_count: int
    reasons: tuple[str, ...] = field(default_factory=tuple)


def _is_common_token(token: str | None) -> bool:
    if not token:
        return False
    return token in COMMON_TITLES or len(token) <= 3


def _looks_letter_separated(normalized: str, significant: list[str]) -> bool:
    tokens = normalized.split()
    if not tokens:
        return False
    if "".join(tokens) in CHANNEL_TOKENS:
        return True
    if len(tokens) <= 3 and all(len(token) <= 2 for token in tokens):
        if any(ch.isdigit() for token in tokens for ch in token):
            return True
        if all(len(token) == 1 for token in tokens):
            return True
    if not significant and len(tokens) <= 2:
        return True
    return any(token in CHANNEL_TOKENS for token in tokens)


def evaluate(title: str | None, media_type: str | None, year: int | None) -> TitleAmbiguity:
    """Decide whether a title is too generic to trust a loose provider match."""
    normalized = normalize_title(title)
    significant = get_significant_tokens(normalized)
    token_count = len(significant)

    is_series = (media_type or "").lower() == "series"
    very_short = len(normalized) <= 3
    common = token_count == 1 and _is_common_token(significant[0])
    letter_separated = _looks_letter_separated(normalized, significant)
    year_missing = year is None
    series_few_tokens = is_series and year_missing and token_count < 2
    single_token = token_count == 1 and (year_missing or common)

    reasons: list[str] = []
    if very_short:
        reasons.append("very-short")
    if letter_separated:
        reasons.append("letters-separated")
    if common:
        reasons.append("common-title")
    if series_few_tokens:
        reasons.append("series-no-year-few-tokens")
    if single_token:
        reasons.append("single-token")

    return TitleAmbiguity(
        is_ambiguous=very_short or letter_separated or series_few_tokens or single_token,
        is_channel_like=letter_separated,
        is_common_title=common,
        significant_token_count=token_count,
        reasons=tuple(reasons),
    )
