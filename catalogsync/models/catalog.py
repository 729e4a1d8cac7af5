from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class CanonicalSet:
    """
    An internal, authoritative card set.

    Attributes:
        id: Database identifier
        name: Display name (e.g., "1992 Marvel Masterpieces")
        year: Release year
        slug: URL-safe unique key derived from the name
    """

    id: int
    name: str
    year: int
    slug: str


@dataclass(frozen=True)
class CanonicalCard:
    """A card belonging to exactly one canonical set."""

    id: int
    set_id: int
    card_number: str
    name: str
    estimated_value: Decimal | None = None
    front_image_url: str | None = None


@dataclass(frozen=True)
class PriceTiers:
    """Provider price points in integer cents. Missing tiers are None."""

    loose: int | None = None
    complete: int | None = None
    new: int | None = None

    def best_hint(self) -> Decimal | None:
        """
        First available price (loose, then complete, then new) in dollars.

        Zero prices are treated as missing.
        """
        for cents in (self.loose, self.complete, self.new):
            if cents:
                return (Decimal(cents) / 100).quantize(Decimal("0.01"))
        return None


@dataclass(frozen=True)
class ExternalListing:
    """One product entry returned by the external catalog search."""

    external_id: str
    title: str
    category_label: str
    price_tiers: PriceTiers = field(default_factory=PriceTiers)
    image_url: str | None = None


class MatchStrategy(str, Enum):
    """Tier by which a listing was attached to a set, strongest first."""

    EXACT = "exact"
    SIMILARITY = "similarity"
    TOKEN_OVERLAP = "token_overlap"
    STRUCTURAL_PATTERN = "structural_pattern"

    @property
    def rank(self) -> int:
        """Tier order used for tie-breaking (lower is stronger)."""
        return _STRATEGY_RANK[self]


_STRATEGY_RANK = {
    MatchStrategy.EXACT: 0,
    MatchStrategy.SIMILARITY: 1,
    MatchStrategy.TOKEN_OVERLAP: 2,
    MatchStrategy.STRUCTURAL_PATTERN: 3,
}


@dataclass(frozen=True)
class MatchResult:
    """Why a listing was attached to a set."""

    set_id: int
    strategy: MatchStrategy
    confidence: float


@dataclass(frozen=True)
class ParsedIdentity:
    """Card identity extracted from a listing title."""

    card_number: str
    card_name: str
    set_name_hint: str = ""
