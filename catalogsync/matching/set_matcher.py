"""
Set Matcher.

Decides which canonical set (if any) an external listing belongs to.

Tiers, evaluated per candidate set, first hit wins:
1. EXACT: normalized label equals normalized set name (short-circuits)
2. SIMILARITY: edit-distance similarity >= SIMILARITY_THRESHOLD
3. TOKEN_OVERLAP: set-name tokens found in label >= TOKEN_OVERLAP_THRESHOLD
4. STRUCTURAL_PATTERN: year + manufacturer + product line shared by both

Across candidates the highest confidence wins; ties go to the stronger
tier, then to the shorter set name (base set over subset).

A listing that matches nothing returns None. It is never guessed.
"""

import logging
import re
from collections.abc import Iterable, Sequence

from catalogsync.config import (
    CARD_CATEGORY_TOKENS,
    MANUFACTURER_TOKENS,
    NON_CARD_TOKENS,
    PRODUCT_LINE_TOKENS,
    SIMILARITY_THRESHOLD,
    STOP_TOKENS,
    STRUCTURAL_CONFIDENCE,
    TOKEN_OVERLAP_THRESHOLD,
)
from catalogsync.matching.normalizer import clean_text, contains_phrase, normalize
from catalogsync.matching.similarity import similarity, token_overlap_ratio
from catalogsync.models.catalog import CanonicalSet, ExternalListing, MatchResult, MatchStrategy

logger = logging.getLogger(__name__)

YEAR_PATTERN = re.compile(r"\b(\d{4})\b")


def is_card_listing(
    listing: ExternalListing,
    card_tokens: Iterable[str] = CARD_CATEGORY_TOKENS,
    non_card_tokens: Iterable[str] = NON_CARD_TOKENS,
) -> bool:
    """
    True if the listing looks like a trading card product.

    Requires at least one card indicator in the label or title and no
    non-card indicator (video games, figures, toys).
    """
    text = f"{listing.category_label} {listing.title}"
    has_card_indicator = any(contains_phrase(text, token) for token in card_tokens)
    has_non_card_indicator = any(contains_phrase(text, token) for token in non_card_tokens)
    return has_card_indicator and not has_non_card_indicator


class SetMatcher:
    """
    Tiered fuzzy matcher from listing category labels to canonical sets.

    All thresholds and vocabularies are injectable so behavior can be
    audited and tuned in one place.
    """

    def __init__(
        self,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        token_overlap_threshold: float = TOKEN_OVERLAP_THRESHOLD,
        structural_confidence: float = STRUCTURAL_CONFIDENCE,
        stop_tokens: Sequence[str] = STOP_TOKENS,
        manufacturer_tokens: Sequence[str] = MANUFACTURER_TOKENS,
        product_line_tokens: Sequence[str] = PRODUCT_LINE_TOKENS,
    ) -> None:
        self._similarity_threshold = similarity_threshold
        self._token_overlap_threshold = token_overlap_threshold
        self._structural_confidence = structural_confidence
        self._stop_tokens = stop_tokens
        self._manufacturer_tokens = manufacturer_tokens
        self._product_line_tokens = product_line_tokens

    def match(
        self, listing: ExternalListing, candidate_sets: Sequence[CanonicalSet]
    ) -> MatchResult | None:
        """
        Find the best canonical set for a listing.

        Args:
            listing: External listing to classify
            candidate_sets: Sets the listing may belong to

        Returns:
            Best MatchResult, or None if no candidate passes any tier
        """
        label = listing.category_label
        normalized_label = normalize(label, self._stop_tokens)

        best: MatchResult | None = None
        best_key: tuple[float, int, int] | None = None

        for candidate in candidate_sets:
            result = self.score(label, normalized_label, candidate)
            if result is None:
                continue

            if result.strategy is MatchStrategy.EXACT:
                return result

            key = (-result.confidence, result.strategy.rank, len(candidate.name))
            if best_key is None or key < best_key:
                best, best_key = result, key

        return best

    def score(
        self, label: str, normalized_label: str, candidate: CanonicalSet
    ) -> MatchResult | None:
        """Evaluate the tiers for one candidate. First passing tier wins."""
        normalized_set = normalize(candidate.name, self._stop_tokens)

        # Tiers 1-3 compare normalized text; empty strings would match trivially
        if normalized_label and normalized_set:
            if normalized_label == normalized_set:
                return MatchResult(candidate.id, MatchStrategy.EXACT, 1.0)

            score = similarity(normalized_label, normalized_set)
            if score >= self._similarity_threshold:
                return MatchResult(candidate.id, MatchStrategy.SIMILARITY, score)

            ratio = token_overlap_ratio(normalized_set, normalized_label)
            if ratio >= self._token_overlap_threshold:
                return MatchResult(candidate.id, MatchStrategy.TOKEN_OVERLAP, ratio)

        if self._structural_match(label, candidate.name):
            return MatchResult(
                candidate.id, MatchStrategy.STRUCTURAL_PATTERN, self._structural_confidence
            )

        return None

    def _structural_match(self, label: str, set_name: str) -> bool:
        """
        True if the set name has year, manufacturer and product line tokens
        and the label contains the same three.

        Runs on clean_text, not normalize: manufacturer names are stop tokens.
        """
        cleaned_set = clean_text(set_name)
        cleaned_label = clean_text(label)

        year_match = YEAR_PATTERN.search(cleaned_set)
        manufacturer = _first_phrase(cleaned_set, self._manufacturer_tokens)
        product_line = _first_phrase(cleaned_set, self._product_line_tokens)

        if not (year_match and manufacturer and product_line):
            return False

        return (
            contains_phrase(cleaned_label, year_match.group(1))
            and contains_phrase(cleaned_label, manufacturer)
            and contains_phrase(cleaned_label, product_line)
        )


def _first_phrase(text: str, vocabulary: Iterable[str]) -> str | None:
    """First vocabulary entry present in text, in vocabulary order."""
    for phrase in vocabulary:
        if contains_phrase(text, phrase):
            return phrase
    return None
