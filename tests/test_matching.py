from __future__ import annotations

import pytest

from feedmatch.categories import UnifiedCategory
from feedmatch.matching import (
    count_significant_token_overlap,
    evaluate_ambiguity,
    get_significant_tokens,
    normalize_title,
    normalize_title_strict,
    score_candidate,
    score_with_known_ids,
    title_similarity,
)
from feedmatch.matching.similarity import compact_contains, dice_coefficient, jaro_winkler


class TestNormalizeTitle:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("The.Matrix.1999.1080p.BluRay.x264", "the matrix"),
            ("Amélie [FR] (2001)", "amelie"),
            ("Breaking.Bad.S01E01.720p.HDTV", "breaking bad"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_strips_release_noise(self, raw, expected) -> None:
        assert normalize_title(raw) == expected

    def test_packed_uppercase_is_split(self) -> None:
        assert normalize_title("FBIMW") == "fbim w"

    def test_strict_keeps_years(self) -> None:
        assert normalize_title_strict("1917 (2019)") == "1917 2019"

    def test_significant_tokens_skip_stop_words(self) -> None:
        assert get_significant_tokens("The Lord of the Rings") == ["lord", "rings"]

    def test_token_overlap_uses_original_title(self) -> None:
        assert count_significant_token_overlap("La Haine", "Hate", "La Haine") == 1


class TestAmbiguity:
    def test_distinctive_title_is_not_ambiguous(self) -> None:
        verdict = evaluate_ambiguity("Breaking Bad", "series", 2008)
        assert not verdict.is_ambiguous
        assert verdict.significant_token_count == 2

    def test_common_title(self) -> None:
        verdict = evaluate_ambiguity("Red", "movie", 2010)
        assert verdict.is_common_title
        assert verdict.is_ambiguous

    def test_channel_like_title(self) -> None:
        verdict = evaluate_ambiguity("TF1", "series", None)
        assert verdict.is_channel_like
        assert "letters-separated" in verdict.reasons

    def test_yearless_single_token(self) -> None:
        assert evaluate_ambiguity("Inception", "movie", None).is_ambiguous
        assert not evaluate_ambiguity("Inception", "movie", 2010).is_ambiguous


class TestSimilarity:
    def test_dice_coefficient(self) -> None:
        assert dice_coefficient({"a", "b"}, {"b", "c"}) == pytest.approx(0.5)
        assert dice_coefficient(set(), {"a"}) == 0.0

    def test_compact_contains(self) -> None:
        assert compact_contains(["spider", "man"], ["spiderman", "homecoming"])
        assert not compact_contains([], ["x"])

    def test_jaro_winkler_bounds(self) -> None:
        assert jaro_winkler("matrix", "matrix") == 1.0
        assert jaro_winkler("", "matrix") == 0.0
        assert 0.0 < jaro_winkler("matrix", "matrx") < 1.0

    def test_title_similarity_identical(self) -> None:
        assert title_similarity("the matrix", "the matrix") == 1.0


class TestScoreCandidate:
    def test_exact_title_and_year(self) -> None:
        score = score_candidate("The Matrix", 1999, UnifiedCategory.FILM, "The Matrix", None, 1999, "movie")
        assert score == pytest.approx(1.0)

    def test_year_mismatch_lowers_score(self) -> None:
        exact = score_candidate("The Matrix", 1999, UnifiedCategory.FILM, "The Matrix", None, 1999, "movie")
        off = score_candidate("The Matrix", 1999, UnifiedCategory.FILM, "The Matrix", None, 2021, "movie")
        assert off < exact

    def test_media_type_mismatch_lowers_score(self) -> None:
        movie = score_candidate("Dark Waters", None, UnifiedCategory.FILM, "Dark Waters", None, None, "movie")
        series = score_candidate("Dark Waters", None, UnifiedCategory.FILM, "Dark Waters", None, None, "series")
        assert series < movie

    def test_original_title_is_considered(self) -> None:
        score = score_candidate("La Haine", 1995, UnifiedCategory.FILM, "Hate", "La Haine", 1995, "movie")
        assert score >= 0.9

    def test_unrelated_titles_score_low(self) -> None:
        score = score_candidate("The Matrix", 1999, UnifiedCategory.FILM, "Pride and Prejudice", None, 2005, "movie")
        assert score < 0.5

    def test_score_is_clamped(self) -> None:
        score = score_candidate("TF1", None, UnifiedCategory.EMISSION, "Something Else", None, None, "movie")
        assert 0.0 <= score <= 1.0

    def test_known_id_bonus(self) -> None:
        assert score_with_known_ids(0.5, 81189, None, 81189, None) == pytest.approx(0.65)
        assert score_with_known_ids(0.5, None, "TT0903747", None, "tt0903747") == pytest.approx(0.65)
        assert score_with_known_ids(0.95, 1, None, 1, None) == 1.0
        assert score_with_known_ids(0.5, 1, None, 2, None) == pytest.approx(0.5)
