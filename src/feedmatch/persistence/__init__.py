"""Persistence layer for releases and poster match caching.

This package provides SQLite-backed storage for the releases the poster
pipeline reads and updates, and the fingerprint-keyed cache of resolved
poster matches. Both stores can share one database file.

Public API:
- PosterMatch: One cached match row
- PosterMatchCache: Fingerprint-keyed cache with a monotonic upsert
- build_fingerprint: Stable key for a release subject
- ReleaseStore: Release rows plus poster/external-detail write-back
- release_fingerprint: Fingerprint of a stored release

Example:
    from feedmatch.persistence import PosterMatchCache, ReleaseStore

    cache = PosterMatchCache(Path("/data/feedmatch.db"))
    store = ReleaseStore(Path("/data/feedmatch.db"), cache)
    release = store.get_for_poster(42)
"""

from .match_cache import PosterMatch, PosterMatchCache, build_fingerprint
from .release_store import ReleaseStore, release_fingerprint

__all__ = [
    "PosterMatch",
    "PosterMatchCache",
    "ReleaseStore",
    "build_fingerprint",
    "release_fingerprint",
]
