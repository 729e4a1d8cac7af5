from catalogsync.models.catalog import (
    CanonicalCard,
    CanonicalSet,
    ExternalListing,
    MatchResult,
    MatchStrategy,
    ParsedIdentity,
    PriceTiers,
)
from catalogsync.models.checkpoint import (
    ImportCheckpoint,
    ImportOptions,
    ImportStats,
    PlannedCard,
)
from catalogsync.models.failure import (
    AuthError,
    DuplicateError,
    FailureKind,
    ImportFailure,
    KnownError,
    NetworkError,
    NoMatchError,
    ParseError,
    RateLimitError,
)

__all__ = [
    "AuthError",
    "CanonicalCard",
    "CanonicalSet",
    "DuplicateError",
    "ExternalListing",
    "FailureKind",
    "ImportCheckpoint",
    "ImportFailure",
    "ImportOptions",
    "ImportStats",
    "KnownError",
    "MatchResult",
    "MatchStrategy",
    "NetworkError",
    "NoMatchError",
    "ParseError",
    "ParsedIdentity",
    "PlannedCard",
    "PriceTiers",
    "RateLimitError",
]
