"""
Import Failure Taxonomy.

Every failure the reconciliation engine can observe is classified here.

Failure kinds:
- AuthError: provider credentials missing or rejected. FATAL, aborts the run.
- NetworkError / RateLimitError: transient, retried with backoff. When
  retries are exhausted the owning set is recorded as failed and skipped.
- ParseError: listing title has no usable card number. Listing skipped.
- NoMatchError: listing does not belong to the queried set. Listing skipped
  and kept for operator review.
- DuplicateError: card already exists. Counted as skipped, never recorded.

Only AuthError propagates out of a run. Everything else is converted into
an ImportFailure record at the smallest scope that can handle it.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of import failures."""

    AUTH = "auth"
    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    PARSE = "parse"
    NO_MATCH = "no_match"
    DUPLICATE = "duplicate"


class ImportFailure(BaseModel):
    """One recorded failure in a reconciliation run."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="Operator-readable explanation of what went wrong",
    )
    set_id: int | None = Field(
        default=None,
        description="Canonical set being processed when the failure occurred",
    )
    set_name: str | None = Field(
        default=None,
        description="Name of the canonical set being processed",
    )
    external_id: str | None = Field(
        default=None,
        description="Provider listing ID for listing-level failures",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    kind: FailureKind

    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)

    def to_failure(
        self,
        set_id: int | None = None,
        set_name: str | None = None,
        external_id: str | None = None,
    ) -> ImportFailure:
        """Convert to an ImportFailure record."""
        message = self.message if not self.detail else f"{self.message} ({self.detail})"
        return ImportFailure(
            kind=self.kind,
            message=message,
            set_id=set_id,
            set_name=set_name,
            external_id=external_id,
        )


class AuthError(KnownError):
    """Provider credentials are missing or were rejected. Never retried."""

    kind = FailureKind.AUTH


class NetworkError(KnownError):
    """
    Transport failure, timeout, or server error from the provider.

    Attributes:
        status_code: HTTP status when the provider answered, else None
        retryable: False for failures a retry cannot fix (e.g. 404)
    """

    kind = FailureKind.NETWORK

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        status_code: int | None = None,
        retryable: bool = True,
    ):
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(message, detail)


class RateLimitError(NetworkError):
    """Provider answered with an explicit rate-limit status."""

    kind = FailureKind.RATE_LIMITED

    def __init__(self, message: str, detail: str | None = None, retry_after: float | None = None):
        self.retry_after = retry_after
        super().__init__(message, detail, status_code=429, retryable=True)


class ParseError(KnownError):
    """Listing title yields no usable card number."""

    kind = FailureKind.PARSE


class NoMatchError(KnownError):
    """No candidate set passes the set matcher for a listing."""

    kind = FailureKind.NO_MATCH


class DuplicateError(KnownError):
    """Card already exists in the canonical store."""

    kind = FailureKind.DUPLICATE
