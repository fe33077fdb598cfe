"""Title normalization, ambiguity detection and candidate scoring.

Public API:
- normalize_title: Reduce a release title to matching words
- get_significant_tokens: Non stop-word tokens longer than two characters
- evaluate_ambiguity: Flag generic or channel-like titles
- score_candidate: 0..1 confidence for a provider candidate

Example:
    from feedmatch.matching import normalize_title, score_candidate

    normalize_title("The.Matrix.1999.1080p")  # "the matrix"
    score_candidate("The Matrix", 1999, UnifiedCategory.FILM, "The Matrix", None, 1999, "movie")
"""

from .ambiguity import TitleAmbiguity
from .ambiguity import evaluate as evaluate_ambiguity
from .scorer import score_candidate, score_with_known_ids, title_similarity
from .titles import (
    clean_search_title,
    count_significant_token_overlap,
    get_significant_tokens,
    get_tokens,
    normalize_title,
    normalize_title_strict,
)

__all__ = [
    "TitleAmbiguity",
    "clean_search_title",
    "count_significant_token_overlap",
    "evaluate_ambiguity",
    "get_significant_tokens",
    "get_tokens",
    "normalize_title",
    "normalize_title_strict",
    "score_candidate",
    "score_with_known_ids",
    "title_similarity",
]
