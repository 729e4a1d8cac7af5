"""Tests for listing title parsing."""

import pytest

from catalogsync.models.catalog import ParsedIdentity
from catalogsync.parsers.card_identity import parse_title


class TestParseTitle:
    def test_set_prefix_number_name(self) -> None:
        """Set name, number, then card name."""
        result = parse_title("1992 Marvel Masterpieces #15 Spider-Man")

        assert result == ParsedIdentity(
            card_number="15",
            card_name="Spider-Man",
            set_name_hint="1992 Marvel Masterpieces",
        )

    def test_trailing_number(self) -> None:
        """Name followed by a trailing number."""
        result = parse_title("Colossus #64")

        assert result == ParsedIdentity(card_number="64", card_name="Colossus", set_name_hint="")

    def test_bracketed_variant(self) -> None:
        """A bracketed variant stays part of the card name."""
        result = parse_title("Spider-Man [What If] #12")

        assert result.card_number == "12"
        assert result.card_name == "Spider-Man [What If]"
        assert result.set_name_hint == ""

    @pytest.mark.parametrize(
        ("title", "number"),
        [
            ("Wolverine #I-13", "I-13"),
            ("Storm #15a", "15a"),
            ("Rogue #PR-2", "PR-2"),
        ],
    )
    def test_alphanumeric_numbers(self, title: str, number: str) -> None:
        assert parse_title(title).card_number == number

    def test_multi_word_name(self) -> None:
        result = parse_title("1993 SkyBox Marvel Masterpieces #2 Captain America")

        assert result.card_number == "2"
        assert result.card_name == "Captain America"
        assert result.set_name_hint == "1993 SkyBox Marvel Masterpieces"

    def test_surrounding_whitespace(self) -> None:
        assert parse_title("  Colossus #64  ").card_name == "Colossus"

    def test_no_number_falls_back_to_title(self) -> None:
        """Titles without a number keep the whole title as the name."""
        result = parse_title("Spider-Man Hologram")

        assert result.card_number == ""
        assert result.card_name == "Spider-Man Hologram"

    def test_bare_number_is_not_a_card(self) -> None:
        result = parse_title("#64")

        assert result.card_number == ""
