from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

import pytest

from feedmatch.persistence import PosterMatchCache, ReleaseStore
from feedmatch.posters import PosterFetchCoordinator, PosterMatchOrchestrator, PosterStorage
from feedmatch.providers import LookupHints, MatchCandidate, MatchProvider, ProviderSet


class FakeProvider(MatchProvider):
    """Scriptable provider recording every search and download."""

    def __init__(
        self,
        name: str,
        candidate: MatchCandidate | Callable[[LookupHints], MatchCandidate | None] | None = None,
        image: bytes = b"",
        error: Exception | None = None,
        active: bool = True,
    ) -> None:
        self.name = name
        self.candidate = candidate
        self.image = image
        self.error = error
        self.active = active
        self.searches: list[tuple[str, int | None, LookupHints]] = []
        self.downloads: list[str] = []
        self.on_search: Callable[[], None] | None = None

    def enabled(self) -> bool:
        return self.active

    def search(self, title, year, hints, cancel: threading.Event | None = None):
        self.searches.append((title, year, hints))
        if self.on_search is not None:
            self.on_search()
        if self.error is not None:
            raise self.error
        if callable(self.candidate):
            return self.candidate(hints)
        return self.candidate

    def download(self, url, cancel: threading.Event | None = None) -> bytes:
        self.downloads.append(url)
        return self.image


def fake_provider_set(**overrides: FakeProvider) -> ProviderSet:
    names = {
        "tmdb": "tmdb",
        "tvmaze": "tvmaze",
        "fanart": "fanart",
        "igdb": "igdb",
        "jikan": "jikan",
        "audiodb_track": "theaudiodb",
        "audiodb_album": "theaudiodb",
        "googlebooks": "googlebooks",
        "comicvine": "comicvine",
    }
    providers = {field: overrides.get(field) or FakeProvider(name) for field, name in names.items()}
    return ProviderSet(**providers)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "feedmatch.db"


@pytest.fixture
def cache(db_path: Path) -> PosterMatchCache:
    cache = PosterMatchCache(db_path)
    yield cache
    cache.close()


@pytest.fixture
def releases(db_path: Path, cache: PosterMatchCache) -> ReleaseStore:
    store = ReleaseStore(db_path, cache)
    yield store
    store.close()


@pytest.fixture
def storage(tmp_path: Path) -> PosterStorage:
    return PosterStorage(tmp_path / "posters")


@pytest.fixture
def make_coordinator(releases: ReleaseStore, cache: PosterMatchCache, storage: PosterStorage):
    def _make(providers: ProviderSet) -> PosterFetchCoordinator:
        return PosterFetchCoordinator(releases, cache, storage, PosterMatchOrchestrator.from_providers(providers))

    return _make
