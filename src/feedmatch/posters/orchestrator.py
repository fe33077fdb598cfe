from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from ..categories.unified import UnifiedCategory
from ..providers import ProviderSet
from .strategies import MatchResult, MatchStrategy, PosterRequest, default_strategies

LOGGER = logging.getLogger(__name__)


class PosterMatchOrchestrator:
    """Route each release to exactly one strategy, in a fixed order.

    The first strategy whose ``can_handle`` accepts the media type and
    unified category owns the release; its waterfall result is final.
    """

    def __init__(self, strategies: Sequence[MatchStrategy]) -> None:
        if not strategies:
            raise ValueError("At least one match strategy is required")
        self.strategies = list(strategies)

    @classmethod
    def from_providers(cls, providers: ProviderSet) -> PosterMatchOrchestrator:
        return cls(default_strategies(providers))

    def select(self, media_type: str | None, category: UnifiedCategory | None) -> MatchStrategy | None:
        for strategy in self.strategies:
            if strategy.can_handle(media_type, category):
                return strategy
        return None

    def match(self, request: PosterRequest, cancel: threading.Event | None = None) -> MatchResult:
        strategy = self.select(request.media_type, request.category)
        if strategy is None:
            LOGGER.debug("No strategy handles media type %r", request.media_type)
            return MatchResult(strategy="none")
        LOGGER.debug("Matching %r with the %s strategy", request.title, strategy.name)
        return strategy.try_match(request, cancel)
