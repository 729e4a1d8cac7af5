"""
Set matching for external catalog listings.

Normalization, similarity scoring and tiered set matching.
"""

from catalogsync.matching.normalizer import clean_text, contains_phrase, normalize, tokenize
from catalogsync.matching.set_matcher import SetMatcher, is_card_listing
from catalogsync.matching.similarity import edit_distance, similarity, token_overlap_ratio

__all__ = [
    "SetMatcher",
    "clean_text",
    "contains_phrase",
    "edit_distance",
    "is_card_listing",
    "normalize",
    "similarity",
    "token_overlap_ratio",
    "tokenize",
]
