"""
Card identity parser for external listing titles.

Extracts card number, card name and an optional set-name hint from the
free-text product titles the catalog provider returns.

Supported title shapes, tried in order:
1. "Colossus #64"                                 -> trailing number
2. "1992 Marvel Masterpieces #15 Spider-Man"      -> set prefix, number, name
3. "Spider-Man [What If] #12"                     -> bracketed variant
4. anything else                                  -> title as name, no number

Pure functions, no network or storage access.
"""

import re
from collections.abc import Callable

from catalogsync.models.catalog import ParsedIdentity

# Card numbers may carry letters and hyphens (e.g. "I-13", "15a")
CARD_NUMBER = r"([A-Za-z0-9-]+)"

# Rule 1: "<name> #<number>" where name has no bracketed variant tag
TRAILING_NUMBER_PATTERN = re.compile(rf"^([^\[\]]+?)\s+#{CARD_NUMBER}$")

# Rule 2: "<set hint> #<number> <name>"
EMBEDDED_NUMBER_PATTERN = re.compile(rf"^(.+?)\s+#{CARD_NUMBER}\s+(.+)$")

# Rule 3: "<name> [<variant>] #<number>"
VARIANT_PATTERN = re.compile(rf"^(.+?)\s+\[(.+?)\]\s+#{CARD_NUMBER}$")


def _trailing_number(match: re.Match[str]) -> ParsedIdentity:
    card_name, card_number = match.groups()
    return ParsedIdentity(card_number=card_number.strip(), card_name=card_name.strip())


def _embedded_number(match: re.Match[str]) -> ParsedIdentity:
    set_name_hint, card_number, card_name = match.groups()
    return ParsedIdentity(
        card_number=card_number.strip(),
        card_name=card_name.strip(),
        set_name_hint=set_name_hint.strip(),
    )


def _variant(match: re.Match[str]) -> ParsedIdentity:
    card_name, variant, card_number = match.groups()
    return ParsedIdentity(
        card_number=card_number.strip(),
        card_name=f"{card_name.strip()} [{variant.strip()}]",
    )


TITLE_RULES: tuple[tuple[re.Pattern[str], Callable[[re.Match[str]], ParsedIdentity]], ...] = (
    (TRAILING_NUMBER_PATTERN, _trailing_number),
    (EMBEDDED_NUMBER_PATTERN, _embedded_number),
    (VARIANT_PATTERN, _variant),
)


def parse_title(title: str) -> ParsedIdentity:
    """
    Parse a card identity out of a listing title.

    Args:
        title: Raw product title from the external catalog

    Returns:
        ParsedIdentity. card_number is "" when no number token was found;
        callers decide whether that is acceptable.
    """
    text = title.strip()

    for pattern, build in TITLE_RULES:
        match = pattern.match(text)
        if match:
            return build(match)

    return ParsedIdentity(card_number="", card_name=text)

