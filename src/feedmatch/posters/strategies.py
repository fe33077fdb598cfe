"""Per-media-type provider waterfalls.

Each strategy owns an ordered list of providers and stops at the first one
that yields a candidate whose poster download returned bytes. Provider
failures are logged and treated as a miss for that provider; a candidate
whose image is empty lets the waterfall continue, carrying its ids forward
for later fallbacks (e.g. TMDB's tmdb id for Fanart).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from ..categories.unified import UnifiedCategory
from ..matching.ambiguity import TitleAmbiguity
from ..models import PosterMatchIds
from ..providers import ProviderSet
from ..providers.base import LookupHints, MatchCandidate, MatchProvider, ProviderError, raise_if_cancelled
from ..utils import file_extension_from_url
from .storage import sanitize_name_part

LOGGER = logging.getLogger(__name__)

VIDEO_MEDIA_TYPES = frozenset({"movie", "series", "emission"})
SERIES_MEDIA_TYPES = frozenset({"series", "emission"})
TVMAZE_MIN_TOKENS = 2


@dataclass
class PosterRequest:
    title: str
    year: int | None
    media_type: str
    category: UnifiedCategory | None = None
    season: int | None = None
    episode: int | None = None
    known_ids: PosterMatchIds = field(default_factory=PosterMatchIds)
    ambiguity: TitleAmbiguity | None = None

    @property
    def is_series(self) -> bool:
        return self.media_type in SERIES_MEDIA_TYPES or self.category in (
            UnifiedCategory.SERIE,
            UnifiedCategory.EMISSION,
        )

    def hints(self) -> LookupHints:
        media_type = self.media_type
        if self.category is UnifiedCategory.EMISSION:
            media_type = "emission"
        return LookupHints(
            media_type=media_type,
            category=self.category,
            ambiguity=self.ambiguity,
            known_ids=PosterMatchIds().merge(self.known_ids),
            season=self.season,
            episode=self.episode,
        )


@dataclass
class MatchAttempt:
    provider: str
    outcome: str  # hit | miss | error | empty-image | disabled
    detail: str | None = None

    def describe(self) -> str:
        return f"{self.provider}: {self.outcome}" + (f" ({self.detail})" if self.detail else "")


@dataclass
class MatchResult:
    strategy: str
    candidate: MatchCandidate | None = None
    image: bytes | None = None
    image_url: str | None = None
    attempts: list[MatchAttempt] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.candidate is not None and bool(self.image)

    @property
    def last_image_empty(self) -> bool:
        """The final attempt found a candidate but no usable image."""
        return bool(self.attempts) and self.attempts[-1].outcome == "empty-image"


def should_use_tvmaze(category: UnifiedCategory | None, ambiguity: TitleAmbiguity | None) -> bool:
    """TVmaze is reliable for distinctive series titles only."""
    if ambiguity is None:
        return category in (UnifiedCategory.SERIE, UnifiedCategory.EMISSION)
    if ambiguity.is_channel_like or ambiguity.significant_token_count < TVMAZE_MIN_TOKENS:
        return False
    if category is UnifiedCategory.EMISSION:
        return not ambiguity.is_ambiguous
    return True


def poster_file_name(candidate: MatchCandidate, url: str | None) -> str:
    """``tmdb-603-w500.jpg``, ``igdb-1942-cover.jpg``, ``jikan-5114.jpg``."""
    stem = f"{sanitize_name_part(candidate.provider)}-{sanitize_name_part(candidate.provider_id)}"
    if candidate.file_suffix:
        stem = f"{stem}-{sanitize_name_part(candidate.file_suffix)}"
    return f"{stem}{file_extension_from_url(url)}"


class MatchStrategy:
    """Base class for provider waterfalls."""

    name: str = "strategy"

    def can_handle(self, media_type: str | None, category: UnifiedCategory | None) -> bool:  # pragma: no cover
        raise NotImplementedError

    def providers_for(self, request: PosterRequest) -> list[MatchProvider]:  # pragma: no cover - interface
        raise NotImplementedError

    def try_match(self, request: PosterRequest, cancel: threading.Event | None = None) -> MatchResult:
        result = MatchResult(strategy=self.name)
        hints = request.hints()
        providers = self.providers_for(request)
        if not providers:
            LOGGER.debug("%s strategy has no provider for %s", self.name, request.category)

        for provider in providers:
            if not provider.enabled():
                result.attempts.append(MatchAttempt(provider.name, "disabled"))
                continue
            raise_if_cancelled(cancel)
            try:
                candidate = provider.search(request.title, request.year, hints, cancel)
            except ProviderError as exc:
                LOGGER.warning("Provider %s failed for %r: %s", provider.name, request.title, exc)
                result.attempts.append(MatchAttempt(provider.name, "error", str(exc)))
                continue

            if candidate is None:
                result.attempts.append(MatchAttempt(provider.name, "miss"))
                continue

            hints.known_ids = hints.known_ids.merge(candidate.ids)
            if candidate.score:
                hints.reference_score = candidate.score
            if candidate.original_language:
                hints.original_language = candidate.original_language

            for url in candidate.poster_urls:
                raise_if_cancelled(cancel)
                try:
                    data = provider.download(url, cancel)
                except ProviderError as exc:
                    LOGGER.debug("Poster download from %s failed: %s", provider.name, exc)
                    continue
                if data:
                    candidate.ids = hints.known_ids.merge(candidate.ids)
                    candidate.select_url(url)
                    result.candidate = candidate
                    result.image = data
                    result.image_url = url
                    result.attempts.append(MatchAttempt(provider.name, "hit", candidate.provider_id))
                    return result

            LOGGER.debug("%s matched %r but returned no image, falling back", provider.name, request.title)
            result.attempts.append(MatchAttempt(provider.name, "empty-image", candidate.provider_id))

        return result


class VideoStrategy(MatchStrategy):
    """Movies: TMDB then Fanart. Series: TVmaze, TMDB, then Fanart via tvdb."""

    name = "video"

    def __init__(self, tmdb: MatchProvider, fanart: MatchProvider, tvmaze: MatchProvider) -> None:
        self.tmdb = tmdb
        self.fanart = fanart
        self.tvmaze = tvmaze

    def can_handle(self, media_type: str | None, category: UnifiedCategory | None) -> bool:
        return (media_type or "").lower() in VIDEO_MEDIA_TYPES

    def providers_for(self, request: PosterRequest) -> list[MatchProvider]:
        if not request.is_series:
            return [self.tmdb, self.fanart]
        category = request.category or UnifiedCategory.SERIE
        providers: list[MatchProvider] = []
        if should_use_tvmaze(category, request.ambiguity):
            providers.append(self.tvmaze)
        providers.extend([self.tmdb, self.fanart])
        return providers


class GameStrategy(MatchStrategy):
    name = "game"

    def __init__(self, igdb: MatchProvider) -> None:
        self.igdb = igdb

    def can_handle(self, media_type: str | None, category: UnifiedCategory | None) -> bool:
        return (media_type or "").lower() == "game"

    def providers_for(self, request: PosterRequest) -> list[MatchProvider]:
        return [self.igdb]


class AnimeStrategy(MatchStrategy):
    name = "anime"

    def __init__(self, jikan: MatchProvider) -> None:
        self.jikan = jikan

    def can_handle(self, media_type: str | None, category: UnifiedCategory | None) -> bool:
        return (media_type or "").lower() == "anime"

    def providers_for(self, request: PosterRequest) -> list[MatchProvider]:
        return [self.jikan]


class AudioStrategy(MatchStrategy):
    name = "audio"

    def __init__(self, track: MatchProvider, album: MatchProvider) -> None:
        self.track = track
        self.album = album

    def can_handle(self, media_type: str | None, category: UnifiedCategory | None) -> bool:
        return (media_type or "").lower() == "audio"

    def providers_for(self, request: PosterRequest) -> list[MatchProvider]:
        return [self.track, self.album]


class GenericStrategy(MatchStrategy):
    """Books and comics; every other category has no provider and misses."""

    name = "generic"

    def __init__(self, books: MatchProvider, comics: MatchProvider) -> None:
        self.books = books
        self.comics = comics

    def can_handle(self, media_type: str | None, category: UnifiedCategory | None) -> bool:
        return True

    def providers_for(self, request: PosterRequest) -> list[MatchProvider]:
        if request.category is UnifiedCategory.BOOK or request.media_type == "book":
            return [self.books]
        if request.category is UnifiedCategory.COMIC or request.media_type == "comic":
            return [self.comics]
        return []


def default_strategies(providers: ProviderSet) -> list[MatchStrategy]:
    """Strategies in routing order: Video, Game, Anime, Audio, Generic."""
    return [
        VideoStrategy(providers.tmdb, providers.fanart, providers.tvmaze),
        GameStrategy(providers.igdb),
        AnimeStrategy(providers.jikan),
        AudioStrategy(providers.audiodb_track, providers.audiodb_album),
        GenericStrategy(providers.googlebooks, providers.comicvine),
    ]
