"""Category catalogs, classification and unified category resolution.

Public API:
- StandardCategory / get_all_standard / get_parent_id / is_standard_id
- try_normalize_key / label_for_key / assert_canonical_key
- classify_by_id / classify_by_tokens / chunk
- normalize_category_ids
- UnifiedCategory / UnifiedCategoryResolver / resolve_std_spec / apply_std_override

Example:
    from feedmatch.categories import UnifiedCategoryResolver

    resolver = UnifiedCategoryResolver()
    resolver.resolve("C411", None, None, [5000, 105000, 5070])  # UnifiedCategory.ANIME
"""

from .classifier import chunk, classify_by_id, classify_by_tokens, tokenize
from .groups import CANONICAL_KEYS, assert_canonical_key, label_for_key, try_normalize_key
from .normalizer import normalize_category_ids
from .resolver import UnifiedCategoryResolver, apply_std_override, resolve_std_spec
from .standard import StandardCategory, get_all_standard, get_parent_id, is_standard_id
from .unified import UnifiedCategory, to_key, to_label, to_media_type, try_parse, try_parse_key

__all__ = [
    "CANONICAL_KEYS",
    "StandardCategory",
    "UnifiedCategory",
    "UnifiedCategoryResolver",
    "apply_std_override",
    "assert_canonical_key",
    "chunk",
    "classify_by_id",
    "classify_by_tokens",
    "get_all_standard",
    "get_parent_id",
    "is_standard_id",
    "label_for_key",
    "normalize_category_ids",
    "resolve_std_spec",
    "to_key",
    "to_label",
    "to_media_type",
    "tokenize",
    "try_normalize_key",
    "try_parse",
    "try_parse_key",
]
