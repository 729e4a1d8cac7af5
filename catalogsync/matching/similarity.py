"""
String similarity metrics.

All functions expect already-normalized input (see normalizer.normalize).
"""

from rapidfuzz.distance import Levenshtein

from catalogsync.config import MIN_OVERLAP_TOKEN_LENGTH


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit cost insert, delete and substitute."""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """
    Edit-distance similarity in [0.0, 1.0].

    Defined as (max_len - edit_distance) / max_len. Two empty strings score
    1.0; callers must treat that as a degenerate match.
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - edit_distance(a, b)) / max_len


def token_overlap_ratio(a: str, b: str) -> float:
    """
    Fraction of a's significant tokens that appear verbatim in b.

    Tokens of MIN_OVERLAP_TOKEN_LENGTH characters or fewer are ignored.
    Returns 0.0 when a has no significant tokens. Not symmetric.
    """
    significant = [token for token in a.split() if len(token) > MIN_OVERLAP_TOKEN_LENGTH]
    if not significant:
        return 0.0
    b_tokens = set(b.split())
    matching = sum(1 for token in significant if token in b_tokens)
    return matching / len(significant)
