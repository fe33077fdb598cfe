"""Score provider candidates against a release title."""

from __future__ import annotations

from ..categories.unified import UnifiedCategory, to_media_type
from . import ambiguity as title_ambiguity
from .similarity import compact_contains, dice_coefficient, jaro_winkler
from .titles import get_significant_tokens, looks_like_packed_uppercase, normalize_title

CONTAINMENT_SCORE = 0.75
TVMAZE_ID_BONUS = 0.15


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _split_packed(normalized: str, raw: str | None) -> str | None:
    if not normalized or " " in normalized or len(normalized) < 4:
        return None
    if not looks_like_packed_uppercase(raw):
        return None
    return f"{normalized[:-1]} {normalized[-1]}"


def title_similarity(left: str, right: str, raw_left: str | None = None, raw_right: str | None = None) -> float:
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0

    tokens_left = left.split()
    tokens_right = right.split()
    if not tokens_left or not tokens_right:
        return 0.0

    score = dice_coefficient(set(tokens_left), set(tokens_right))
    if score < 0.5 and compact_contains(tokens_left, tokens_right):
        score = max(score, CONTAINMENT_SCORE)

    if 0.35 <= score <= 0.65 or len(get_significant_tokens(left)) <= 3 or len(get_significant_tokens(right)) <= 3:
        score = max(score, jaro_winkler("".join(tokens_left), "".join(tokens_right)))

    split_left = _split_packed(left, raw_left)
    if split_left:
        score = max(score, title_similarity(split_left, right))
    split_right = _split_packed(right, raw_right)
    if split_right:
        score = max(score, title_similarity(left, split_right))
    return score


def score_candidate(
    query_title: str,
    query_year: int | None,
    query_category: UnifiedCategory | None,
    candidate_title: str | None,
    candidate_original_title: str | None = None,
    candidate_year: int | None = None,
    candidate_media_type: str | None = None,
) -> float:
    """Return a 0..1 confidence that the candidate is the release's subject."""
    norm_query = normalize_title(query_title)
    score = max(
        title_similarity(norm_query, normalize_title(candidate_title), query_title, candidate_title),
        title_similarity(norm_query, normalize_title(candidate_original_title), query_title, candidate_original_title),
    )

    if query_year is not None and candidate_year is not None:
        diff = abs(query_year - candidate_year)
        if diff == 0:
            score += 0.12
        elif diff == 1:
            score += 0.05
        else:
            score -= 0.12

    expected_media_type = to_media_type(query_category) if query_category is not None else None
    if expected_media_type and expected_media_type != "unknown" and candidate_media_type:
        score += 0.08 if expected_media_type == candidate_media_type.lower() else -0.08

    verdict = title_ambiguity.evaluate(norm_query, expected_media_type or candidate_media_type, query_year)
    if verdict.is_common_title:
        score -= 0.08 if query_year is not None else 0.2
    if verdict.is_channel_like:
        score -= 0.35
    if verdict.significant_token_count <= 1:
        score -= 0.05

    return _clamp(score)


def score_with_known_ids(
    base_score: float,
    candidate_tvdb_id: int | None,
    candidate_imdb_id: str | None,
    known_tvdb_id: int | None,
    known_imdb_id: str | None,
) -> float:
    """Add the id-agreement bonus used for episode-guide candidates."""
    bonus = 0.0
    if candidate_tvdb_id is not None and known_tvdb_id is not None and candidate_tvdb_id == known_tvdb_id:
        bonus = TVMAZE_ID_BONUS
    if candidate_imdb_id and known_imdb_id and candidate_imdb_id.lower() == known_imdb_id.lower():
        bonus = TVMAZE_ID_BONUS
    return _clamp(base_score + bonus)
