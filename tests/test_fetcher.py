"""End-to-end tests for the poster fetch coordinator."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

from conftest import FakeProvider, fake_provider_set

from feedmatch.categories import UnifiedCategory
from feedmatch.config import ProviderSettings
from feedmatch.models import PosterMatchIds, Release
from feedmatch.persistence import PosterMatch, build_fingerprint
from feedmatch.providers import MatchCandidate
from feedmatch.providers.fanart import FanartProvider
from feedmatch.providers.models import FanartImage

MATRIX_URL = "https://image.tmdb.org/t/p/w500/f89U3ADr1oiB1s9GkdPOEpXUk5H.jpg"


def _matrix_release(release_id: int = 1, year: int | None = 1999) -> Release:
    return Release(
        id=release_id,
        title="The.Matrix.1999.MULTi.1080p.BluRay.x264",
        title_clean="The Matrix",
        source="C411",
        year=year,
        category_ids=[2000, 2040, 102000],
        media_type="movie",
        unified_category=UnifiedCategory.FILM,
    )


def _matrix_candidate(urls=None) -> MatchCandidate:
    return MatchCandidate(
        provider="tmdb",
        provider_id="603",
        confidence=0.95,
        poster_urls=[MATRIX_URL] if urls is None else urls,
        ids=PosterMatchIds(tmdb=603, imdb="tt0133093"),
        poster_lang="fr",
        poster_size="w500",
        file_suffix="w500",
    )


def _game_release(release_id: int = 5) -> Release:
    return Release(
        id=release_id,
        title="Obscure.Game.v1.0-GOG",
        title_clean="Obscure Game",
        media_type="game",
        unified_category=UnifiedCategory.JEU_WINDOWS,
    )


class TestFetchPoster:
    def test_tmdb_hit_is_persisted(self, releases, cache, storage, make_coordinator) -> None:
        releases.upsert_release(_matrix_release())
        tmdb = FakeProvider("tmdb", candidate=_matrix_candidate(), image=b"\xff\xd8matrix")
        coordinator = make_coordinator(fake_provider_set(tmdb=tmdb))

        outcome = coordinator.fetch_poster(1)

        assert outcome.ok
        assert outcome.status_code == 200
        assert outcome.provider == "tmdb"
        assert outcome.provider_id == "603"
        assert outcome.poster_file == "tmdb-603-w500.jpg"
        assert not outcome.cached
        assert (storage.root / "tmdb-603-w500.jpg").read_bytes() == b"\xff\xd8matrix"

        release = releases.get_for_poster(1)
        assert release.poster_file == "tmdb-603-w500.jpg"
        assert release.poster_lang == "fr"
        assert release.poster_hash
        assert release.tmdb_id == 603

        row = cache.try_get(build_fingerprint("movie", "the matrix", 1999))
        assert row.poster_file == "tmdb-603-w500.jpg"
        assert row.confidence == 0.95
        assert row.match_source == "tmdb"
        assert row.ids.imdb == "tt0133093"

    def test_fanart_fallback_uses_tmdb_id(self, releases, make_coordinator) -> None:
        releases.upsert_release(_matrix_release())
        tmdb = FakeProvider("tmdb", candidate=_matrix_candidate(urls=[]))

        def fanart_lookup(hints):
            if hints.known_ids.tmdb != 603:
                return None
            return MatchCandidate(
                provider="fanart",
                provider_id="603",
                confidence=0.9,
                poster_urls=["https://assets.fanart.tv/fanart/movies/603/movieposter/the-matrix.jpg"],
                ids=PosterMatchIds(tmdb=603),
                file_suffix="movie",
            )

        fanart = FakeProvider("fanart", candidate=fanart_lookup, image=b"fanart")
        coordinator = make_coordinator(fake_provider_set(tmdb=tmdb, fanart=fanart))

        outcome = coordinator.fetch_poster(1)

        assert outcome.ok
        assert outcome.provider == "fanart"
        assert outcome.poster_file == "fanart-603-movie.jpg"

    def test_fanart_movie_and_series_ids_do_not_share_a_file(self, releases, storage, make_coordinator) -> None:
        movie = _matrix_release(release_id=1)
        movie.tmdb_id = 603
        series = Release(
            id=2,
            title="Some.Long.Show.S01E01.1080p",
            title_clean="Some Long Show",
            season=1,
            episode=1,
            media_type="series",
            unified_category=UnifiedCategory.SERIE,
            tvdb_id=603,
        )
        releases.upsert_release(movie)
        releases.upsert_release(series)

        client = MagicMock()
        client.movie_posters.return_value = [FanartImage(url="https://assets.fanart.tv/movie.jpg", lang="en", likes=5)]
        client.tv_posters.return_value = [FanartImage(url="https://assets.fanart.tv/tv.jpg", lang="en", likes=5)]
        client.download.side_effect = lambda url, cancel=None: b"MOVIE" if "movie" in url else b"SERIES"
        fanart = FanartProvider(ProviderSettings(name="fanart", api_key="key"), client=client)
        coordinator = make_coordinator(fake_provider_set(fanart=fanart))

        first = coordinator.fetch_poster(1)
        second = coordinator.fetch_poster(2)

        assert first.poster_file == "fanart-603-movie.jpg"
        assert second.poster_file == "fanart-603-tv.jpg"
        assert (storage.root / releases.get_for_poster(1).poster_file).read_bytes() == b"MOVIE"
        assert (storage.root / releases.get_for_poster(2).poster_file).read_bytes() == b"SERIES"

    def test_game_miss_is_terminal(self, releases, cache, storage, make_coordinator) -> None:
        releases.upsert_release(_game_release())
        igdb = FakeProvider("igdb")
        tmdb = FakeProvider("tmdb", candidate=_matrix_candidate(), image=b"img")
        googlebooks = FakeProvider("googlebooks", candidate=_matrix_candidate(), image=b"img")
        coordinator = make_coordinator(fake_provider_set(igdb=igdb, tmdb=tmdb, googlebooks=googlebooks))

        outcome = coordinator.fetch_poster(5)

        assert not outcome.ok
        assert outcome.status_code == 404
        assert outcome.error == "no poster match"
        assert len(igdb.searches) == 1
        assert tmdb.searches == []
        assert googlebooks.searches == []
        assert cache.try_get(build_fingerprint("game", "obscure game", None)) is None
        assert releases.get_for_poster(5).poster_last_error == "no poster match"
        assert not storage.root.exists() or not any(storage.root.iterdir())

    def test_empty_image_is_502(self, releases, cache, make_coordinator) -> None:
        releases.upsert_release(_game_release())
        candidate = MatchCandidate(
            provider="igdb",
            provider_id="1942",
            confidence=0.85,
            poster_urls=["https://images.igdb.com/igdb/image/upload/t_cover_big/co1wyy.jpg"],
            file_suffix="cover",
        )
        coordinator = make_coordinator(fake_provider_set(igdb=FakeProvider("igdb", candidate=candidate)))

        outcome = coordinator.fetch_poster(5)

        assert outcome.status_code == 502
        assert outcome.error == "poster image empty"
        assert cache.try_get(build_fingerprint("game", "obscure game", None)) is None
        assert releases.get_for_poster(5).poster_file is None

    def test_cancel_during_search_persists_nothing(self, releases, cache, storage, make_coordinator) -> None:
        releases.upsert_release(_matrix_release())
        cancel = threading.Event()
        tmdb = FakeProvider("tmdb", candidate=_matrix_candidate(), image=b"img")
        tmdb.on_search = cancel.set
        coordinator = make_coordinator(fake_provider_set(tmdb=tmdb))

        outcome = coordinator.fetch_poster(1, cancel=cancel)

        assert outcome.status_code == 499
        assert tmdb.downloads == []
        assert releases.get_for_poster(1).poster_file is None
        assert cache.try_get(build_fingerprint("movie", "the matrix", 1999)) is None
        assert not storage.exists("tmdb-603-w500.jpg")

    def test_unexpected_error_is_500(self, releases, make_coordinator) -> None:
        releases.upsert_release(_matrix_release())
        tmdb = FakeProvider("tmdb", error=RuntimeError("boom"))
        coordinator = make_coordinator(fake_provider_set(tmdb=tmdb))

        outcome = coordinator.fetch_poster(1)

        assert outcome.status_code == 500
        assert outcome.error == "boom"

    def test_unknown_release(self, make_coordinator) -> None:
        outcome = make_coordinator(fake_provider_set()).fetch_poster(404)
        assert outcome.status_code == 404
        assert outcome.error == "release not found"

    def test_missing_title(self, releases, make_coordinator) -> None:
        releases.upsert_release(Release(id=9, title="   ", media_type="movie"))
        outcome = make_coordinator(fake_provider_set()).fetch_poster(9)
        assert outcome.status_code == 400


class TestCachedPosters:
    def test_existing_poster_is_skipped(self, releases, storage, make_coordinator) -> None:
        release = _matrix_release()
        release.poster_file = "tmdb-603-w500.jpg"
        release.poster_provider = "tmdb"
        release.poster_provider_id = "603"
        releases.upsert_release(release)
        storage.save("tmdb-603-w500.jpg", b"img")
        tmdb = FakeProvider("tmdb", candidate=_matrix_candidate(), image=b"new")
        coordinator = make_coordinator(fake_provider_set(tmdb=tmdb))

        outcome = coordinator.fetch_poster(1)

        assert outcome.cached
        assert outcome.poster_file == "tmdb-603-w500.jpg"
        assert tmdb.searches == []

    def test_second_release_reuses_cache_row(self, releases, make_coordinator) -> None:
        releases.upsert_release(_matrix_release(1))
        releases.upsert_release(_matrix_release(2))
        tmdb = FakeProvider("tmdb", candidate=_matrix_candidate(), image=b"img")
        coordinator = make_coordinator(fake_provider_set(tmdb=tmdb))

        first = coordinator.fetch_poster(1)
        second = coordinator.fetch_poster(2)

        assert first.ok and not first.cached
        assert second.ok and second.cached
        assert second.poster_file == "tmdb-603-w500.jpg"
        assert len(tmdb.searches) == 1
        assert releases.get_for_poster(2).poster_provider_id == "603"

    def test_missing_cached_file_triggers_search(self, releases, cache, make_coordinator) -> None:
        releases.upsert_release(_matrix_release())
        fingerprint = build_fingerprint("movie", "the matrix", 1999)
        cache.upsert(PosterMatch(fingerprint, "movie", "the matrix", 1999, confidence=0.9, poster_file="gone.jpg"))
        tmdb = FakeProvider("tmdb", candidate=_matrix_candidate(), image=b"img")
        coordinator = make_coordinator(fake_provider_set(tmdb=tmdb))

        outcome = coordinator.fetch_poster(1)

        assert outcome.ok and not outcome.cached
        assert len(tmdb.searches) == 1
        assert cache.try_get(fingerprint).poster_file == "tmdb-603-w500.jpg"

    def test_yearless_release_reuses_confident_title_match(self, releases, cache, storage, make_coordinator) -> None:
        releases.upsert_release(_matrix_release(year=None))
        storage.save("tmdb-603-w500.jpg", b"img")
        cache.upsert(
            PosterMatch(
                build_fingerprint("movie", "the matrix", 1999),
                "movie",
                "the matrix",
                1999,
                confidence=0.95,
                poster_file="tmdb-603-w500.jpg",
                poster_provider="tmdb",
                poster_provider_id="603",
            )
        )
        tmdb = FakeProvider("tmdb")
        coordinator = make_coordinator(fake_provider_set(tmdb=tmdb))

        outcome = coordinator.fetch_poster(1)

        assert outcome.cached
        assert tmdb.searches == []

    def test_yearless_release_ignores_weak_title_match(self, releases, cache, storage, make_coordinator) -> None:
        releases.upsert_release(_matrix_release(year=None))
        storage.save("tmdb-1-w500.jpg", b"img")
        cache.upsert(
            PosterMatch(
                build_fingerprint("movie", "the matrix", 2021),
                "movie",
                "the matrix",
                2021,
                confidence=0.5,
                poster_file="tmdb-1-w500.jpg",
            )
        )
        tmdb = FakeProvider("tmdb")
        coordinator = make_coordinator(fake_provider_set(tmdb=tmdb))

        outcome = coordinator.fetch_poster(1)

        assert outcome.status_code == 404
        assert len(tmdb.searches) == 1
