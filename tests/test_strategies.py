"""Tests for strategy routing and provider waterfalls."""

from __future__ import annotations

import threading

import pytest
from conftest import FakeProvider, fake_provider_set

from feedmatch.categories import UnifiedCategory
from feedmatch.matching import evaluate_ambiguity
from feedmatch.models import PosterMatchIds
from feedmatch.posters import (
    AnimeStrategy,
    AudioStrategy,
    GameStrategy,
    GenericStrategy,
    PosterMatchOrchestrator,
    PosterRequest,
    VideoStrategy,
    poster_file_name,
)
from feedmatch.posters.strategies import should_use_tvmaze
from feedmatch.providers import FetchCancelled, MatchCandidate, ProviderError


def _tmdb_matrix(urls=None) -> MatchCandidate:
    return MatchCandidate(
        provider="tmdb",
        provider_id="603",
        confidence=0.95,
        poster_urls=["https://image.tmdb.org/t/p/w500/matrix.jpg"] if urls is None else urls,
        ids=PosterMatchIds(tmdb=603, imdb="tt0133093"),
        original_language="en",
        file_suffix="w500",
        score=1.0,
    )


def _matrix_request() -> PosterRequest:
    return PosterRequest(
        title="The Matrix",
        year=1999,
        media_type="movie",
        category=UnifiedCategory.FILM,
        ambiguity=evaluate_ambiguity("the matrix", "movie", 1999),
    )


class TestOrchestratorRouting:
    def test_requires_strategies(self) -> None:
        with pytest.raises(ValueError, match="At least one"):
            PosterMatchOrchestrator([])

    @pytest.mark.parametrize(
        "media_type,expected",
        [
            ("movie", VideoStrategy),
            ("series", VideoStrategy),
            ("emission", VideoStrategy),
            ("game", GameStrategy),
            ("anime", AnimeStrategy),
            ("audio", AudioStrategy),
            ("book", GenericStrategy),
            ("unknown", GenericStrategy),
            (None, GenericStrategy),
        ],
    )
    def test_select(self, media_type, expected) -> None:
        orchestrator = PosterMatchOrchestrator.from_providers(fake_provider_set())
        assert isinstance(orchestrator.select(media_type, None), expected)

    def test_can_handle(self) -> None:
        providers = fake_provider_set()
        assert VideoStrategy(providers.tmdb, providers.fanart, providers.tvmaze).can_handle("Movie", None)
        assert not GameStrategy(providers.igdb).can_handle("movie", UnifiedCategory.FILM)
        assert AnimeStrategy(providers.jikan).can_handle("anime", UnifiedCategory.ANIME)
        assert GenericStrategy(providers.googlebooks, providers.comicvine).can_handle(None, None)

    def test_only_the_owning_strategy_runs(self) -> None:
        igdb = FakeProvider("igdb")
        tmdb = FakeProvider("tmdb", candidate=_tmdb_matrix(), image=b"img")
        orchestrator = PosterMatchOrchestrator.from_providers(fake_provider_set(igdb=igdb, tmdb=tmdb))

        result = orchestrator.match(PosterRequest("Hades", 2020, "game", UnifiedCategory.JEU_WINDOWS))

        assert result.strategy == "game"
        assert not result.matched
        assert len(igdb.searches) == 1
        assert tmdb.searches == []


class TestVideoWaterfall:
    def test_first_hit_wins(self) -> None:
        tmdb = FakeProvider("tmdb", candidate=_tmdb_matrix(), image=b"poster")
        fanart = FakeProvider("fanart")
        providers = fake_provider_set(tmdb=tmdb, fanart=fanart)

        result = PosterMatchOrchestrator.from_providers(providers).match(_matrix_request())

        assert result.matched
        assert result.candidate.provider_id == "603"
        assert result.image == b"poster"
        assert result.image_url == "https://image.tmdb.org/t/p/w500/matrix.jpg"
        assert [a.outcome for a in result.attempts] == ["hit"]
        assert fanart.searches == []

    def test_empty_image_falls_back_with_known_ids(self) -> None:
        tmdb = FakeProvider("tmdb", candidate=_tmdb_matrix(urls=[]))

        def fanart_lookup(hints):
            if hints.known_ids.tmdb != 603:
                return None
            return MatchCandidate(
                provider="fanart",
                provider_id="603",
                confidence=0.9,
                poster_urls=["https://assets.fanart.tv/movieposter/matrix.png"],
                ids=PosterMatchIds(tmdb=603),
            )

        fanart = FakeProvider("fanart", candidate=fanart_lookup, image=b"png")
        providers = fake_provider_set(tmdb=tmdb, fanart=fanart)

        result = PosterMatchOrchestrator.from_providers(providers).match(_matrix_request())

        assert result.matched
        assert result.candidate.provider == "fanart"
        assert result.candidate.ids.imdb == "tt0133093"
        assert [a.outcome for a in result.attempts] == ["empty-image", "hit"]

    def test_provider_error_is_a_miss(self) -> None:
        tmdb = FakeProvider("tmdb", error=ProviderError("tmdb failed after 3 attempts"))
        fanart = FakeProvider("fanart")
        providers = fake_provider_set(tmdb=tmdb, fanart=fanart)

        result = PosterMatchOrchestrator.from_providers(providers).match(_matrix_request())

        assert not result.matched
        assert [a.outcome for a in result.attempts] == ["error", "miss"]
        assert not result.last_image_empty

    def test_disabled_provider_is_skipped(self) -> None:
        tmdb = FakeProvider("tmdb", active=False)
        fanart = FakeProvider("fanart")
        providers = fake_provider_set(tmdb=tmdb, fanart=fanart)

        result = PosterMatchOrchestrator.from_providers(providers).match(_matrix_request())

        assert tmdb.searches == []
        assert result.attempts[0].describe() == "tmdb: disabled"

    def test_last_attempt_empty_image(self) -> None:
        tmdb = FakeProvider("tmdb", candidate=_tmdb_matrix(), image=b"")
        fanart = FakeProvider("fanart", active=False)
        providers = fake_provider_set(tmdb=tmdb, fanart=fanart)
        strategy = VideoStrategy(providers.tmdb, providers.fanart, providers.tvmaze)

        result = strategy.try_match(PosterRequest("The Matrix", 1999, "movie"))

        assert not result.last_image_empty
        assert [a.outcome for a in result.attempts] == ["empty-image", "disabled"]

        result = VideoStrategy(tmdb, FakeProvider("fanart"), providers.tvmaze).try_match(
            PosterRequest("The Matrix", 1999, "movie")
        )
        assert [a.outcome for a in result.attempts] == ["empty-image", "miss"]

        result = GameStrategy(FakeProvider("igdb", candidate=_tmdb_matrix())).try_match(
            PosterRequest("Hades", 2020, "game")
        )
        assert result.last_image_empty

    def test_series_order_uses_tvmaze_for_distinctive_titles(self) -> None:
        providers = fake_provider_set()
        strategy = VideoStrategy(providers.tmdb, providers.fanart, providers.tvmaze)
        request = PosterRequest(
            "Breaking Bad",
            2008,
            "series",
            UnifiedCategory.SERIE,
            ambiguity=evaluate_ambiguity("breaking bad", "series", 2008),
        )
        assert [p.name for p in strategy.providers_for(request)] == ["tvmaze", "tmdb", "fanart"]

        request = PosterRequest(
            "Dark", None, "series", UnifiedCategory.SERIE, ambiguity=evaluate_ambiguity("dark", "series", None)
        )
        assert [p.name for p in strategy.providers_for(request)] == ["tmdb", "fanart"]

    def test_cancelled_before_search(self) -> None:
        tmdb = FakeProvider("tmdb", candidate=_tmdb_matrix(), image=b"img")
        providers = fake_provider_set(tmdb=tmdb)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(FetchCancelled):
            PosterMatchOrchestrator.from_providers(providers).match(_matrix_request(), cancel)
        assert tmdb.searches == []


class TestAnimeStrategy:
    def test_jikan_miss_is_terminal(self) -> None:
        jikan = FakeProvider("jikan")
        tmdb = FakeProvider("tmdb", candidate=_tmdb_matrix(), image=b"img")
        tvmaze = FakeProvider("tvmaze", candidate=_tmdb_matrix(), image=b"img")
        providers = fake_provider_set(jikan=jikan, tmdb=tmdb, tvmaze=tvmaze)

        result = PosterMatchOrchestrator.from_providers(providers).match(
            PosterRequest("Cowboy Bebop", 1998, "anime", UnifiedCategory.ANIME)
        )

        assert result.strategy == "anime"
        assert not result.matched
        assert [a.describe() for a in result.attempts] == ["jikan: miss"]
        assert len(jikan.searches) == 1
        assert tmdb.searches == []
        assert tvmaze.searches == []


class TestAudioWaterfall:
    @staticmethod
    def _album() -> MatchCandidate:
        return MatchCandidate(
            provider="theaudiodb",
            provider_id="2115888",
            confidence=0.65,
            poster_urls=["https://www.theaudiodb.com/images/media/album/thumb/discovery.jpg"],
        )

    def test_track_miss_falls_back_to_album(self) -> None:
        track = FakeProvider("theaudiodb")
        album = FakeProvider("theaudiodb", candidate=self._album(), image=b"cover")
        strategy = AudioStrategy(track, album)

        result = strategy.try_match(PosterRequest("Daft Punk - Discovery", 2001, "audio", UnifiedCategory.AUDIO))

        assert result.matched
        assert result.candidate.provider_id == "2115888"
        assert [a.outcome for a in result.attempts] == ["miss", "hit"]
        assert len(track.searches) == 1

    def test_track_empty_image_falls_back_to_album(self) -> None:
        track_candidate = MatchCandidate(
            provider="theaudiodb",
            provider_id="32793500",
            confidence=0.65,
            poster_urls=["https://www.theaudiodb.com/images/media/track/thumb/one-more-time.jpg"],
        )
        track = FakeProvider("theaudiodb", candidate=track_candidate, image=b"")
        album = FakeProvider("theaudiodb", candidate=self._album(), image=b"cover")

        result = AudioStrategy(track, album).try_match(PosterRequest("Daft Punk - One More Time", None, "audio"))

        assert result.matched
        assert result.image == b"cover"
        assert [a.outcome for a in result.attempts] == ["empty-image", "hit"]

    def test_miss_after_both_is_terminal(self) -> None:
        track = FakeProvider("theaudiodb")
        album = FakeProvider("theaudiodb")
        tmdb = FakeProvider("tmdb", candidate=_tmdb_matrix(), image=b"img")
        providers = fake_provider_set(audiodb_track=track, audiodb_album=album, tmdb=tmdb)

        result = PosterMatchOrchestrator.from_providers(providers).match(
            PosterRequest("Unknown Artist - Unknown Album", None, "audio", UnifiedCategory.AUDIO)
        )

        assert not result.matched
        assert [a.outcome for a in result.attempts] == ["miss", "miss"]
        assert len(album.searches) == 1
        assert tmdb.searches == []


class _OriginalUnavailable(FakeProvider):
    def download(self, url, cancel: threading.Event | None = None) -> bytes:
        self.downloads.append(url)
        return b"" if "original" in url else self.image


class TestDownloadedSize:
    def test_size_follows_the_successful_url(self) -> None:
        original = "https://static.tvmaze.com/uploads/images/original_untouched/0/2400.jpg"
        medium = "https://static.tvmaze.com/uploads/images/medium_portrait/0/2400.jpg"
        candidate = MatchCandidate(
            provider="tvmaze",
            provider_id="169",
            confidence=0.9,
            poster_urls=[original, medium],
            poster_size="original",
            file_suffix="original",
            url_sizes={original: "original", medium: "medium"},
        )
        tvmaze = _OriginalUnavailable("tvmaze", candidate=candidate, image=b"medium")
        strategy = VideoStrategy(FakeProvider("tmdb"), FakeProvider("fanart"), tvmaze)
        request = PosterRequest(
            "Breaking Bad",
            2008,
            "series",
            UnifiedCategory.SERIE,
            ambiguity=evaluate_ambiguity("breaking bad", "series", 2008),
        )

        result = strategy.try_match(request)

        assert result.matched
        assert tvmaze.downloads == [original, medium]
        assert result.candidate.poster_size == "medium"
        assert poster_file_name(result.candidate, result.image_url) == "tvmaze-169-medium.jpg"


class TestGenericStrategy:
    def test_routes_books_and_comics(self) -> None:
        books = FakeProvider("googlebooks")
        comics = FakeProvider("comicvine")
        strategy = GenericStrategy(books, comics)

        assert strategy.providers_for(PosterRequest("Dune", 1965, "book", UnifiedCategory.BOOK)) == [books]
        assert strategy.providers_for(PosterRequest("Saga", None, "comic", UnifiedCategory.COMIC)) == [comics]

    def test_other_categories_have_no_provider(self) -> None:
        strategy = GenericStrategy(FakeProvider("googlebooks"), FakeProvider("comicvine"))

        result = strategy.try_match(PosterRequest("Whatever", None, "unknown", UnifiedCategory.OTHER))

        assert not result.matched
        assert result.attempts == []


class TestShouldUseTvmaze:
    def test_without_ambiguity(self) -> None:
        assert should_use_tvmaze(UnifiedCategory.SERIE, None)
        assert not should_use_tvmaze(UnifiedCategory.FILM, None)

    def test_channel_like_titles(self) -> None:
        assert not should_use_tvmaze(UnifiedCategory.EMISSION, evaluate_ambiguity("tf1", "series", None))

    def test_short_titles(self) -> None:
        assert not should_use_tvmaze(UnifiedCategory.SERIE, evaluate_ambiguity("dark", "series", 2017))

    def test_distinctive_series(self) -> None:
        assert should_use_tvmaze(UnifiedCategory.SERIE, evaluate_ambiguity("breaking bad", "series", 2008))


class TestPosterFileName:
    def test_with_suffix(self) -> None:
        assert poster_file_name(_tmdb_matrix(), "https://image.tmdb.org/t/p/w500/abc.jpg") == "tmdb-603-w500.jpg"

    def test_extension_from_url(self) -> None:
        candidate = MatchCandidate(provider="jikan", provider_id="5114", confidence=0.9)
        assert poster_file_name(candidate, "https://cdn.myanimelist.net/images/anime/1/5114l.webp") == (
            "jikan-5114.webp"
        )
        assert poster_file_name(candidate, None) == "jikan-5114.jpg"

    def test_unsafe_ids_are_sanitized(self) -> None:
        candidate = MatchCandidate(provider="googlebooks", provider_id="a/b c", confidence=0.9)
        assert poster_file_name(candidate, "http://books/x") == "googlebooks-a_b_c.jpg"
