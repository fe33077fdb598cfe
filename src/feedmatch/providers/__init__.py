"""Catalog provider clients.

Public API:
- MatchProvider: Base class with ``search``/``download``
- MatchCandidate / LookupHints: Values exchanged with strategies
- ProviderError / ProviderNotFoundError: Raised by the HTTP layer
- FetchCancelled: Raised when the caller's cancel event is set
- ProviderSet / build_providers: One configured instance of every provider

Example:
    from feedmatch.providers import build_providers

    providers = build_providers(load_config(Path("feedmatch.yaml")))
    candidate = providers.tmdb.search("The Matrix", 1999, LookupHints(media_type="movie"))
"""

from __future__ import annotations

from dataclasses import dataclass

from ..config import AppConfig
from .audiodb import TheAudioDbClient, TheAudioDbProvider
from .base import (
    FetchCancelled,
    LookupHints,
    MatchCandidate,
    MatchProvider,
    ProviderError,
    ProviderNotFoundError,
    adjust_confidence,
    raise_if_cancelled,
)
from .comicvine import ComicVineProvider
from .fanart import FanartProvider
from .googlebooks import GoogleBooksProvider
from .igdb import IgdbProvider
from .jikan import JikanProvider
from .tmdb import TmdbProvider
from .tvmaze import TvMazeProvider


@dataclass
class ProviderSet:
    tmdb: MatchProvider
    tvmaze: MatchProvider
    fanart: MatchProvider
    igdb: MatchProvider
    jikan: MatchProvider
    audiodb_track: MatchProvider
    audiodb_album: MatchProvider
    googlebooks: MatchProvider
    comicvine: MatchProvider

    def all(self) -> list[MatchProvider]:
        return [
            self.tmdb,
            self.tvmaze,
            self.fanart,
            self.igdb,
            self.jikan,
            self.audiodb_track,
            self.audiodb_album,
            self.googlebooks,
            self.comicvine,
        ]

    def close(self) -> None:
        for provider in self.all():
            provider.close()


def build_providers(config: AppConfig) -> ProviderSet:
    timeout = config.settings.http.timeout
    audiodb_client = TheAudioDbClient(config.provider("theaudiodb"), timeout=timeout)
    return ProviderSet(
        tmdb=TmdbProvider(config.provider("tmdb"), timeout=timeout),
        tvmaze=TvMazeProvider(config.provider("tvmaze"), timeout=timeout),
        fanart=FanartProvider(config.provider("fanart"), timeout=timeout),
        igdb=IgdbProvider(config.provider("igdb"), timeout=timeout),
        jikan=JikanProvider(config.provider("jikan"), timeout=timeout),
        audiodb_track=TheAudioDbProvider(config.provider("theaudiodb"), "track", client=audiodb_client),
        audiodb_album=TheAudioDbProvider(config.provider("theaudiodb"), "album", client=audiodb_client),
        googlebooks=GoogleBooksProvider(config.provider("googlebooks"), timeout=timeout),
        comicvine=ComicVineProvider(config.provider("comicvine"), timeout=timeout),
    )


__all__ = [
    "FetchCancelled",
    "LookupHints",
    "MatchCandidate",
    "MatchProvider",
    "ProviderError",
    "ProviderNotFoundError",
    "ProviderSet",
    "adjust_confidence",
    "build_providers",
    "raise_if_cancelled",
]
