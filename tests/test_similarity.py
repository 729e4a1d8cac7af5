"""Tests for string similarity metrics."""

import pytest

from catalogsync.matching.similarity import edit_distance, similarity, token_overlap_ratio


class TestEditDistance:
    def test_identical(self) -> None:
        assert edit_distance("masterpieces", "masterpieces") == 0

    def test_classic_example(self) -> None:
        assert edit_distance("kitten", "sitting") == 3

    def test_against_empty(self) -> None:
        assert edit_distance("", "abc") == 3
        assert edit_distance("abc", "") == 3


class TestSimilarity:
    @pytest.mark.parametrize("value", ["1992 masterpieces", "x", "ultra x men"])
    def test_reflexive(self, value: str) -> None:
        """A string is fully similar to itself."""
        assert similarity(value, value) == 1.0

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            ("1992 masterpieces", "1992 masterpiece"),
            ("ultra x men", "x men series"),
            ("abc", ""),
        ],
    )
    def test_symmetric(self, a: str, b: str) -> None:
        assert similarity(a, b) == similarity(b, a)

    def test_disjoint_strings_score_zero(self) -> None:
        """Equal-length strings with no common character score 0.0."""
        assert similarity("abc", "xyz") == 0.0

    def test_one_empty(self) -> None:
        assert similarity("abc", "") == 0.0

    def test_both_empty(self) -> None:
        """Two empty strings are defined as identical."""
        assert similarity("", "") == 1.0

    def test_one_edit(self) -> None:
        assert similarity("1992 masterpieces", "1992 masterpiece") == pytest.approx(16 / 17)

    def test_bounded(self) -> None:
        score = similarity("fleer ultra", "platinum")
        assert 0.0 <= score <= 1.0


class TestTokenOverlapRatio:
    def test_full_overlap(self) -> None:
        assert token_overlap_ratio("1992 masterpieces", "1992 masterpieces holofoil") == 1.0

    def test_ignores_short_tokens(self) -> None:
        """Tokens of two characters or fewer do not count."""
        assert token_overlap_ratio("x men series", "x men") == 0.5

    def test_no_significant_tokens(self) -> None:
        assert token_overlap_ratio("ab cd", "ab cd") == 0.0

    def test_not_symmetric(self) -> None:
        assert token_overlap_ratio("ultra", "ultra x men chrome") == 1.0
        assert token_overlap_ratio("ultra x men chrome", "ultra") == pytest.approx(1 / 3)
