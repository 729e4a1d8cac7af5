"""Tests for name normalization."""

from catalogsync.matching.normalizer import (
    clean_text,
    contains_phrase,
    normalize,
    remove_stop_tokens,
    tokenize,
)


class TestCleanText:
    def test_lowercases_and_collapses_whitespace(self) -> None:
        """Whitespace runs collapse to one space and ends are trimmed."""
        assert clean_text("  1992  Marvel  ") == "1992 marvel"

    def test_punctuation_becomes_space(self) -> None:
        """Hyphens and brackets split words rather than joining them."""
        assert clean_text("Spider-Man [What If]") == "spider man what if"

    def test_underscore_is_punctuation(self) -> None:
        assert clean_text("x_men") == "x men"

    def test_empty(self) -> None:
        assert clean_text("") == ""


class TestRemoveStopTokens:
    def test_removes_phrase_as_a_unit(self) -> None:
        """Multi-word stop phrases are removed when all words are adjacent."""
        assert remove_stop_tokens(["short", "print", "colossus"]) == ["colossus"]

    def test_partial_phrase_is_kept(self) -> None:
        """A lone word from a stop phrase survives."""
        assert remove_stop_tokens(["short", "colossus"]) == ["short", "colossus"]
        assert remove_stop_tokens(["deck", "builder"]) == ["deck", "builder"]

    def test_custom_vocabulary(self) -> None:
        assert remove_stop_tokens(["foo", "bar"], stop_tokens=["foo"]) == ["bar"]


class TestNormalize:
    def test_drops_brand_words(self) -> None:
        """Brand and noise words are removed."""
        assert normalize("1992 Marvel Masterpieces") == "1992 masterpieces"

    def test_drops_manufacturer_phrase(self) -> None:
        assert normalize("Upper Deck Marvel Platinum Base") == "platinum"

    def test_empty_input(self) -> None:
        """Empty input normalizes to empty output."""
        assert normalize("") == ""

    def test_only_stop_tokens(self) -> None:
        """A name made only of stop tokens normalizes to empty."""
        assert normalize("Marvel Trading Cards") == ""

    def test_idempotent(self) -> None:
        """Normalizing twice gives the same result as once."""
        for value in (
            "1993 SkyBox Marvel Masterpieces",
            "Spider-Man [What If] #12",
            "  Upper   Deck  X-Men ",
        ):
            once = normalize(value)
            assert normalize(once) == once

    def test_deterministic(self) -> None:
        assert normalize("Fleer Ultra X-Men") == normalize("Fleer Ultra X-Men")


class TestTokenize:
    def test_splits_on_whitespace(self) -> None:
        assert tokenize("1992 marvel masterpieces") == ["1992", "marvel", "masterpieces"]

    def test_empty(self) -> None:
        assert tokenize("") == []


class TestContainsPhrase:
    def test_matches_whole_words(self) -> None:
        assert contains_phrase("2023 Upper Deck Marvel", "upper deck")

    def test_does_not_match_inside_word(self) -> None:
        """Phrases only match on word boundaries."""
        assert not contains_phrase("toppstown", "topps")
        assert not contains_phrase("Game Boy Color", "pc")

    def test_empty_phrase_never_matches(self) -> None:
        assert not contains_phrase("anything", "")
