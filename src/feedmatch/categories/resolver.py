"""Resolve raw indexer category ids into one unified category."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from ..utils import normalize_token
from .normalizer import normalize_category_ids
from .standard import get_parent_id, is_spec_id, is_standard_id
from .unified import UnifiedCategory, category_for_std_id, specificity

LOGGER = logging.getLogger(__name__)

BOOKS_PARENT_ID = 7000
COMICS_WINDOW = range(7030, 7040)

DEFAULT_SOURCE_OVERRIDES: dict[str, dict[int, UnifiedCategory]] = {
    "C411": {
        102000: UnifiedCategory.FILM,
        105000: UnifiedCategory.SERIE,
        105080: UnifiedCategory.EMISSION,
    },
    "YGEGE": {
        102183: UnifiedCategory.FILM,
        102178: UnifiedCategory.ANIMATION,
        102184: UnifiedCategory.SERIE,
        102185: UnifiedCategory.SPECTACLE,
        102182: UnifiedCategory.EMISSION,
        102161: UnifiedCategory.JEU_WINDOWS,
    },
    "LACALE": {
        131681: UnifiedCategory.FILM,
        117804: UnifiedCategory.SERIE,
    },
    "TOS": {
        100001: UnifiedCategory.FILM,
        100002: UnifiedCategory.SERIE,
    },
}


def normalize_source_key(source_name: str | None) -> str:
    """``"Ygg-Ege"`` -> ``"YGGEGE"``: accents and separators dropped, uppercased."""
    if not source_name:
        return ""
    return normalize_token(source_name).upper()


def resolve_std_spec(
    std_id: int | None,
    spec_id: int | None,
    all_ids: Iterable[int] | None,
) -> tuple[int | None, int | None]:
    """Pick the effective (std, spec) pair for a release.

    The most specific standard id present wins over any supplied or parent
    std id; the supplied std id is only used when no standard id is present.
    The first vendor id in ``all_ids`` replaces the supplied spec id.
    """
    ids = list(all_ids or ())

    child: int | None = None
    parent: int | None = None
    for category_id in normalize_category_ids(ids):
        if not is_standard_id(category_id):
            continue
        if get_parent_id(category_id) is not None:
            if child is None:
                child = category_id
        elif parent is None:
            parent = category_id

    resolved_std = child if child is not None else parent
    if resolved_std is None:
        resolved_std = std_id

    resolved_spec = next((category_id for category_id in ids if is_spec_id(category_id)), spec_id)
    return resolved_std, resolved_spec


def apply_std_override(from_map: UnifiedCategory, std_id: int | None) -> UnifiedCategory:
    """Let ``std_id`` override ``from_map`` only when strictly more specific.

    ``apply_std_override(SERIE, 5070)`` is ``ANIME``; ``(SERIE, 5000)`` and
    ``(SERIE, 2000)`` stay ``SERIE``.
    """
    if std_id is None:
        return from_map
    from_std = category_for_std_id(std_id)
    if from_std is UnifiedCategory.OTHER:
        return from_map
    return from_std if specificity(from_std) > specificity(from_map) else from_map


@dataclass(frozen=True)
class Resolution:
    std_id: int | None
    spec_id: int | None
    category: UnifiedCategory
    from_map: UnifiedCategory
    override_source: str | None = None


class UnifiedCategoryResolver:
    """Combine std ranges, per-source overrides and specificity into one category."""

    def __init__(self, source_overrides: Mapping[str, Mapping[int, UnifiedCategory]] | None = None) -> None:
        merged: dict[str, dict[int, UnifiedCategory]] = {
            key: dict(mapping) for key, mapping in DEFAULT_SOURCE_OVERRIDES.items()
        }
        for raw_key, mapping in (source_overrides or {}).items():
            key = normalize_source_key(raw_key)
            if not key:
                continue
            merged.setdefault(key, {}).update({int(spec): UnifiedCategory(category) for spec, category in mapping.items()})
        self._overrides = merged

    def _lookup_override(self, source_key: str, spec_id: int | None) -> tuple[UnifiedCategory | None, str | None]:
        if spec_id is None:
            return None, None
        table_key = source_key if source_key in self._overrides else None
        if table_key is None and source_key:
            table_key = next((key for key in self._overrides if key in source_key), None)
        if table_key is None:
            return None, None
        return self._overrides[table_key].get(spec_id), table_key

    def explain(
        self,
        source_name: str | None,
        std_id: int | None,
        spec_id: int | None,
        all_ids: Iterable[int] | None,
    ) -> Resolution:
        source_key = normalize_source_key(source_name)
        final_std, final_spec = resolve_std_spec(std_id, spec_id, all_ids)

        mapped, table_key = self._lookup_override(source_key, final_spec)
        if mapped is not None:
            from_map = mapped
        else:
            table_key = None
            from_map = category_for_std_id(final_std, source_key) if final_std is not None else UnifiedCategory.OTHER

        category = apply_std_override(from_map, final_std)

        # Rows written before child ids were tracked carry the books parent
        # as std id and the comics child as spec id.
        if final_std == BOOKS_PARENT_ID and final_spec in COMICS_WINDOW:
            category = UnifiedCategory.COMIC

        return Resolution(final_std, final_spec, category, from_map, table_key)

    def resolve(
        self,
        source_name: str | None,
        std_id: int | None,
        spec_id: int | None,
        all_ids: Iterable[int] | None,
    ) -> UnifiedCategory:
        resolution = self.explain(source_name, std_id, spec_id, all_ids)
        LOGGER.debug(
            "Resolved %s std=%s spec=%s -> %s",
            source_name or "<unknown>",
            resolution.std_id,
            resolution.spec_id,
            resolution.category.value,
        )
        return resolution.category
