"""
Name normalization for set and listing comparison.

Two levels are provided:
- clean_text: lowercase, punctuation to spaces, whitespace collapsed
- normalize: clean_text plus removal of brand/noise stop tokens

Both are pure and deterministic. Empty input yields empty output.
"""

import re
from collections.abc import Iterable

from catalogsync.config import STOP_TOKENS

# Anything that is not a letter, digit or whitespace (underscore counts as punctuation)
_PUNCTUATION = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def clean_text(s: str) -> str:
    """
    Lowercase, replace punctuation with spaces and collapse whitespace.

    Examples:
        "Spider-Man [What If]" -> "spider man what if"
        "  1992  Marvel  " -> "1992 marvel"
    """
    if not s:
        return ""
    lowered = _PUNCTUATION.sub(" ", s.lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def tokenize(s: str) -> list[str]:
    """Split an already-cleaned string into tokens."""
    return s.split() if s else []


def _phrases(stop_tokens: Iterable[str]) -> list[tuple[str, ...]]:
    """Stop tokens as token tuples, longest phrase first."""
    phrases = {tuple(tokenize(clean_text(token))) for token in stop_tokens}
    phrases.discard(())
    return sorted(phrases, key=len, reverse=True)


def remove_stop_tokens(tokens: list[str], stop_tokens: Iterable[str] = STOP_TOKENS) -> list[str]:
    """
    Drop stop tokens and stop phrases from a token list.

    Multi-word stop phrases ("upper deck") only match as whole consecutive
    token runs, so "deck" on its own is kept.
    """
    phrases = _phrases(stop_tokens)
    kept: list[str] = []
    i = 0
    while i < len(tokens):
        for phrase in phrases:
            if tuple(tokens[i : i + len(phrase)]) == phrase:
                i += len(phrase)
                break
        else:
            kept.append(tokens[i])
            i += 1
    return kept


def normalize(s: str, stop_tokens: Iterable[str] = STOP_TOKENS) -> str:
    """
    Canonicalize free text for comparison.

    Lowercases, strips punctuation, collapses whitespace and removes stop
    tokens (brand and noise words).

    Examples:
        "1992 Marvel Masterpieces" -> "1992 masterpieces"
        "Upper Deck Marvel Platinum Base" -> "platinum"
        "" -> ""
    """
    return " ".join(remove_stop_tokens(tokenize(clean_text(s)), stop_tokens))


def contains_phrase(text: str, phrase: str) -> bool:
    """
    True if the cleaned phrase occurs in the cleaned text on word boundaries.

    contains_phrase("2023 upper deck marvel", "upper deck") -> True
    contains_phrase("toppstown", "topps") -> False
    """
    cleaned_phrase = clean_text(phrase)
    if not cleaned_phrase:
        return False
    return f" {cleaned_phrase} " in f" {clean_text(text)} "
