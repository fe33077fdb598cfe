from __future__ import annotations

import functools
import hashlib
import os
import re
import unicodedata
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, Dict, List, Optional, TypeVar
from urllib.parse import urlparse

import yaml


NORMALIZE_PATTERN = re.compile(r"[^a-z0-9]+")

# Boolean true/false string values
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})

T = TypeVar("T")


def strip_diacritics(value: str) -> str:
    """Remove combining marks, e.g. "Café" -> "Cafe"."""
    if not value:
        return value
    decomposed = unicodedata.normalize("NFD", value)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return unicodedata.normalize("NFC", stripped)


@functools.lru_cache(maxsize=2048)
def normalize_token(value: str) -> str:
    """Return a compact lowercase ``[a-z0-9]`` token used for key lookups."""
    lowered = strip_diacritics(value.strip().lower())
    return NORMALIZE_PATTERN.sub("", lowered)


def dedupe_preserving_order(values: Iterable[T]) -> List[T]:
    seen: set[T] = set()
    result: List[T] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: expand_env(val) for key, val in value.items()}
    return value


def load_yaml_file(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return expand_env(data)


def hash_bytes(data: bytes) -> str:
    """Compute SHA-256 digest of raw bytes (lowercase hex)."""
    return hashlib.sha256(data).hexdigest()


def file_extension_from_url(url: Optional[str], fallback: str = ".jpg") -> str:
    """Return the extension of the URL path, e.g. ``.png``, or ``fallback``."""
    if not url:
        return fallback
    try:
        path = urlparse(url).path
    except ValueError:
        return fallback
    suffix = Path(path).suffix.lower()
    if not suffix or len(suffix) > 5 or not suffix[1:].isalnum():
        return fallback
    return suffix


def parse_env_bool(value: Optional[str]) -> Optional[bool]:
    """Parse a boolean from an environment variable string.

    Returns None if value is None or not a recognized boolean string.
    """
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def env_bool(name: str) -> Optional[bool]:
    """Get a boolean from an environment variable."""
    return parse_env_bool(os.getenv(name))


def validate_url(url: Optional[str]) -> bool:
    """Validate that URL is a valid http/https URL."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)
    except ValueError:
        return False


def parse_int_list(values: Sequence[str]) -> List[int]:
    """Parse ``["5000,5070", "105000"]`` style arguments into integers."""
    result: List[int] = []
    for raw in values:
        for part in str(raw).split(","):
            part = part.strip()
            if not part:
                continue
            result.append(int(part))
    return result
