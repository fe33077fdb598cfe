from __future__ import annotations

from collections.abc import Iterable

from ..utils import dedupe_preserving_order
from .standard import get_parent_id


def normalize_category_ids(category_ids: Iterable[int] | None) -> list[int]:
    """Drop every id that is the declared parent of another id in the set.

    ``[5000, 105000, 5070]`` -> ``[105000, 5070]``. Order is preserved,
    duplicates are removed and the operation is idempotent.
    """
    if not category_ids:
        return []
    ids = dedupe_preserving_order(category_ids)
    parents = {parent for parent in (get_parent_id(category_id) for category_id in ids) if parent is not None}
    return [category_id for category_id in ids if category_id not in parents]
