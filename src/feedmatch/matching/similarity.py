"""Fuzzy string similarity utilities.

This module provides the string comparisons used by candidate scoring. It
uses rapidfuzz when available for performance, falling back to stdlib
difflib.
"""

from __future__ import annotations

import difflib

try:
    from rapidfuzz.distance import JaroWinkler
except ImportError:  # pragma: no cover - optional dependency
    JaroWinkler = None  # type: ignore[assignment]


def jaro_winkler(candidate: str, target: str) -> float:
    """Jaro-Winkler similarity between two strings.

    Args:
        candidate: First string to compare
        target: Second string to compare

    Returns:
        Float between 0.0 and 1.0 where 1.0 is identical
    """
    if not candidate or not target:
        return 0.0
    if candidate == target:
        return 1.0
    if JaroWinkler is not None:
        return float(JaroWinkler.similarity(candidate, target))
    return difflib.SequenceMatcher(None, candidate, target, autojunk=False).ratio()


def dice_coefficient(left: set[str], right: set[str]) -> float:
    """Sørensen-Dice overlap of two token sets."""
    if not left or not right:
        return 0.0
    return (2.0 * len(left & right)) / (len(left) + len(right))


def compact_contains(left: list[str], right: list[str]) -> bool:
    """True when one title, spaces removed, is a substring of the other."""
    compact_left = "".join(left)
    compact_right = "".join(right)
    if not compact_left or not compact_right:
        return False
    return compact_left in compact_right or compact_right in compact_left
