"""Static catalog of the shared torznab standard categories."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..utils import dedupe_preserving_order

STANDARD_MIN_ID = 1000
STANDARD_MAX_ID = 8999
# Indexer-specific ("spec") ids start here and are never standard children.
SPEC_ID_THRESHOLD = 100000


@dataclass(frozen=True)
class StandardCategory:
    id: int
    label: str
    parent_id: int | None = None

    @property
    def is_parent(self) -> bool:
        return self.parent_id is None


def _family(parent_id: int, parent_label: str, children: Iterable[tuple[int, str]]) -> list[StandardCategory]:
    rows = [StandardCategory(parent_id, parent_label)]
    rows.extend(StandardCategory(child_id, label, parent_id) for child_id, label in children)
    return rows


_CATALOG: tuple[StandardCategory, ...] = tuple(
    _family(1000, "Console", [
        (1010, "Console/NDS"),
        (1020, "Console/PSP"),
        (1030, "Console/Wii"),
        (1040, "Console/XBox"),
        (1050, "Console/XBox 360"),
        (1060, "Console/Wiiware"),
        (1070, "Console/XBox 360 DLC"),
        (1080, "Console/PS3"),
        (1090, "Console/Other"),
        (1140, "Console/XBox One"),
        (1180, "Console/PS4"),
    ])
    + _family(2000, "Movies", [
        (2010, "Movies/Foreign"),
        (2020, "Movies/Other"),
        (2030, "Movies/SD"),
        (2040, "Movies/HD"),
        (2045, "Movies/UHD"),
        (2050, "Movies/BluRay"),
        (2060, "Movies/3D"),
        (2070, "Movies/Documentary"),
    ])
    + _family(3000, "Audio", [
        (3010, "Audio/MP3"),
        (3020, "Audio/Video"),
        (3030, "Audio/Audiobook"),
        (3040, "Audio/Lossless"),
        (3050, "Audio/Other"),
        (3060, "Audio/Foreign"),
    ])
    + _family(4000, "PC", [
        (4010, "PC/0day"),
        (4020, "PC/ISO"),
        (4030, "PC/Mac"),
        (4040, "PC/Mobile-Other"),
        (4050, "PC/Games"),
        (4060, "PC/Mobile-iOS"),
        (4070, "PC/Mobile-Android"),
    ])
    + _family(5000, "TV", [
        (5010, "TV/WEB-DL"),
        (5020, "TV/Foreign"),
        (5030, "TV/SD"),
        (5040, "TV/HD"),
        (5045, "TV/UHD"),
        (5050, "TV/Other"),
        (5060, "TV/Sport"),
        (5070, "TV/Anime"),
        (5080, "TV/Documentary"),
    ])
    + _family(6000, "XXX", [
        (6010, "XXX/DVD"),
        (6020, "XXX/WMV"),
        (6030, "XXX/XviD"),
        (6040, "XXX/x264"),
        (6050, "XXX/Pack"),
        (6060, "XXX/ImgSet"),
        (6070, "XXX/Other"),
    ])
    + _family(7000, "Books", [
        (7010, "Books/Mags"),
        (7020, "Books/EBook"),
        (7030, "Books/Comics"),
        (7040, "Books/Technical"),
        (7050, "Books/Foreign"),
    ])
    + _family(8000, "Other", [
        (8010, "Other/Misc"),
        (8020, "Other/Hashed"),
    ])
)

_BY_ID: dict[int, StandardCategory] = {category.id: category for category in _CATALOG}


def is_standard_id(category_id: int | None) -> bool:
    if category_id is None:
        return False
    return STANDARD_MIN_ID <= category_id <= STANDARD_MAX_ID


def is_spec_id(category_id: int | None) -> bool:
    return category_id is not None and category_id >= SPEC_ID_THRESHOLD


def get(category_id: int) -> StandardCategory | None:
    return _BY_ID.get(category_id)


def get_all_standard() -> tuple[StandardCategory, ...]:
    """Return every standard category, parents first within each family."""
    return _CATALOG


def get_parent_id(category_id: int | None) -> int | None:
    """Return the standard parent of ``category_id``.

    Declared catalog children return their declared parent. Undeclared ids
    inside a standard family fall back to the family's thousand block. Top
    level ids, non-standard ids and vendor ids have no parent.
    """
    if category_id is None or not is_standard_id(category_id):
        return None
    declared = _BY_ID.get(category_id)
    if declared is not None:
        return declared.parent_id
    if category_id % 1000 == 0:
        return None
    return (category_id // 1000) * 1000


def merge_with_standard(category_ids: Iterable[int]) -> list[int]:
    """Return ``category_ids`` followed by every missing standard id."""
    return dedupe_preserving_order([*category_ids, *(category.id for category in _CATALOG)])
