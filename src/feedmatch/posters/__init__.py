"""Poster matching pipeline.

Public API:
- PosterFetchCoordinator: Cache reuse, provider waterfall, storage and persistence
- PosterMatchOrchestrator: Routes a request to one strategy
- PosterStorage: Path-safe poster files under one root
- PosterRequest / MatchResult: Strategy input and output

Example:
    orchestrator = PosterMatchOrchestrator.from_providers(build_providers(config))
    coordinator = PosterFetchCoordinator(releases, cache, PosterStorage(root), orchestrator)
    outcome = coordinator.fetch_poster(42)
"""

from .fetcher import PosterFetchCoordinator
from .orchestrator import PosterMatchOrchestrator
from .storage import PosterStorage, sanitize_name_part
from .strategies import (
    AnimeStrategy,
    AudioStrategy,
    GameStrategy,
    GenericStrategy,
    MatchAttempt,
    MatchResult,
    MatchStrategy,
    PosterRequest,
    VideoStrategy,
    default_strategies,
    poster_file_name,
)

__all__ = [
    "AnimeStrategy",
    "AudioStrategy",
    "GameStrategy",
    "GenericStrategy",
    "MatchAttempt",
    "MatchResult",
    "MatchStrategy",
    "PosterFetchCoordinator",
    "PosterMatchOrchestrator",
    "PosterRequest",
    "PosterStorage",
    "VideoStrategy",
    "default_strategies",
    "poster_file_name",
    "sanitize_name_part",
]
