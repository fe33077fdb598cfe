"""Feedmatch core package.

The feedmatch package is organized into focused modules with clear separation of concerns:

- **categories**: Standard category catalog, id normalization and unified category resolution
- **matching**: Title normalization, ambiguity detection and candidate scoring
- **providers**: HTTP clients for TMDB, TVmaze, Fanart.tv, IGDB, Jikan, TheAudioDB, Google Books and ComicVine
- **posters**: Match strategies, the orchestrator, poster storage and the fetch coordinator
- **persistence**: SQLite stores for releases and the shared poster match cache
- **config**: YAML configuration loading

The main entry point for poster fetching is ``PosterFetchCoordinator``; category
resolution goes through ``UnifiedCategoryResolver``.
"""

from .categories import UnifiedCategory, UnifiedCategoryResolver
from .posters import PosterFetchCoordinator
from .version import __version__

__all__ = [
    "__version__",
    "PosterFetchCoordinator",
    "UnifiedCategory",
    "UnifiedCategoryResolver",
]
