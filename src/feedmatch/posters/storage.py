"""Path-safe poster storage under a single root directory."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

from ..utils import ensure_directory

LOGGER = logging.getLogger(__name__)

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_name_part(value: str) -> str:
    """Make a provider id usable inside a file name (``"tt0133093"`` stays as is)."""
    cleaned = _UNSAFE_NAME_CHARS.sub("_", value.strip()).strip("._")
    return cleaned or "unknown"


class PosterStorage:
    """Poster files stored flat under ``root``.

    Every name goes through :meth:`resolve_stored_path`, which only accepts a
    bare file name that resolves inside the root.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        ensure_directory(root)
        self._resolved_root = root.resolve()

    def resolve_stored_path(self, name: str | None) -> Path | None:
        if not name or not name.strip():
            return None
        if name != name.strip() or name in (".", ".."):
            return None
        if os.path.isabs(name) or name.startswith(("/", "\\")):
            return None
        if Path(name).name != name or ".." in name:
            return None
        if _INVALID_CHARS.search(name):
            return None

        candidate = (self._resolved_root / name).resolve()
        root_prefix = str(self._resolved_root).rstrip(os.sep) + os.sep
        if not str(candidate).startswith(root_prefix):
            return None
        return candidate

    def exists(self, name: str | None) -> bool:
        path = self.resolve_stored_path(name)
        return path is not None and path.is_file()

    def save(self, name: str, data: bytes) -> Path:
        """Write ``data`` atomically: temp file in the root, then replace."""
        path = self.resolve_stored_path(name)
        if path is None:
            raise ValueError(f"Invalid poster file name: {name!r}")
        if not data:
            raise ValueError("Refusing to store an empty poster")

        ensure_directory(self._resolved_root)
        fd, temp_name = tempfile.mkstemp(prefix=".poster-", suffix=".tmp", dir=self._resolved_root)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, path)
        finally:
            if os.path.exists(temp_name):
                os.remove(temp_name)
        LOGGER.debug("Stored poster %s (%d bytes)", path.name, len(data))
        return path
