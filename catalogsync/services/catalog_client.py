"""
External catalog client.

Rate-limited, retrying wrapper over the provider's product search endpoint.

INVARIANTS:
- Every outbound attempt (retries included) passes the shared RateLimiter
- Transport errors, timeouts, 5xx and 429 are retried with exponential backoff
- Exhausted retries raise NetworkError / RateLimitError, never raw httpx errors
- Credential failures raise AuthError immediately and are never retried
- Returned listings are unique by external_id
"""

import asyncio
import logging
from collections.abc import Iterable
from types import TracebackType
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from catalogsync.config import Settings
from catalogsync.models.catalog import ExternalListing
from catalogsync.models.failure import AuthError, NetworkError, RateLimitError
from catalogsync.parsers.catalog_payload import parse_products_response
from catalogsync.services.rate_limiter import RateLimiter, Sleep

logger = logging.getLogger(__name__)

USER_AGENT = "CatalogSync/1.0"
PRODUCTS_PATH = "/api/products"


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, NetworkError) and exc.retryable


def _retry_after(response: httpx.Response) -> float | None:
    """Seconds from a Retry-After header, None if absent or not numeric."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


def dedupe_listings(listings: Iterable[ExternalListing]) -> list[ExternalListing]:
    """Drop repeated external IDs, keeping the first occurrence."""
    unique: dict[str, ExternalListing] = {}
    for listing in listings:
        unique.setdefault(listing.external_id, listing)
    return list(unique.values())


class CatalogClient:
    """
    Query-by-text client for the external catalog provider.

    Usage:
        async with CatalogClient.from_settings(settings) as client:
            listings = await client.fetch("1992 Marvel Masterpieces")
    """

    def __init__(
        self,
        base_url: str,
        api_token: str,
        rate_limiter: RateLimiter,
        *,
        timeout: float = 30.0,
        max_attempts: int = 3,
        backoff_base_delay: float = 2.0,
        backoff_multiplier: float = 2.0,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._rate_limiter = rate_limiter
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._backoff = wait_exponential(multiplier=backoff_base_delay, exp_base=backoff_multiplier)
        self._sleep = sleep
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            timeout=timeout,
        )
        self.retry_count = 0

    @classmethod
    def from_settings(
        cls, settings: Settings, rate_limiter: RateLimiter | None = None
    ) -> "CatalogClient":
        """Build a client from application settings."""
        return cls(
            base_url=settings.catalog_api_url,
            api_token=settings.catalog_api_token,
            rate_limiter=rate_limiter or RateLimiter(settings.min_request_interval),
            timeout=settings.request_timeout,
            max_attempts=settings.max_attempts,
            backoff_base_delay=settings.backoff_base_delay,
            backoff_multiplier=settings.backoff_multiplier,
        )

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def ensure_credentials(self) -> None:
        """
        Fail fast when no provider token is configured.

        Raises:
            AuthError: If the API token is missing
        """
        if not self._api_token.strip():
            raise AuthError(
                "Catalog provider API token is not configured",
                detail="set CATALOG_API_TOKEN",
            )

    async def fetch(self, query: str) -> list[ExternalListing]:
        """
        Search the provider and return deduplicated listings.

        Args:
            query: Free-text search (usually a canonical set name)

        Returns:
            Listings unique by external_id, in provider order

        Raises:
            AuthError: Credentials missing or rejected
            RateLimitError: Still rate limited after max_attempts
            NetworkError: Still failing after max_attempts, or a
                non-retryable provider error
        """
        self.ensure_credentials()

        def log_retry(retry_state: RetryCallState) -> None:
            self.retry_count += 1
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.warning(
                "Catalog query %r attempt %d/%d failed: %s; retrying in %.1fs",
                query,
                retry_state.attempt_number,
                self._max_attempts,
                exc,
                delay,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_exception(_is_retryable),
            before_sleep=log_retry,
            sleep=self._sleep,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                data = await self._request(query)

        listings = dedupe_listings(parse_products_response(data))
        logger.debug("Catalog query %r returned %d listings", query, len(listings))
        return listings

    def _wait(self, retry_state: RetryCallState) -> float:
        """Exponential backoff, stretched to honor a provider Retry-After."""
        delay = self._backoff(retry_state)
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, RateLimitError) and exc.retry_after is not None:
            return max(delay, exc.retry_after)
        return delay

    async def _request(self, query: str) -> dict[str, Any]:
        """One paced HTTP attempt, classified into the failure taxonomy."""
        await self._rate_limiter.wait()

        try:
            response = await self._client.get(
                f"{self._base_url}{PRODUCTS_PATH}",
                params={"t": self._api_token, "q": query},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"Catalog request timed out for {query!r}", str(e)) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Catalog request failed for {query!r}", str(e)) from e
        except httpx.RequestError as e:
            # Redirect loops and undecodable bodies recur on retry
            raise NetworkError(
                f"Catalog request failed for {query!r}", str(e), retryable=False
            ) from e

        status = response.status_code
        if status in (401, 403):
            raise AuthError("Catalog provider rejected the API token", detail=f"HTTP {status}")
        if status == 429:
            raise RateLimitError(
                f"Catalog provider rate limited query {query!r}",
                detail="HTTP 429",
                retry_after=_retry_after(response),
            )
        if status >= 500:
            raise NetworkError(
                f"Catalog provider error for {query!r}", detail=f"HTTP {status}", status_code=status
            )
        if status >= 400:
            raise NetworkError(
                f"Catalog request rejected for {query!r}",
                detail=f"HTTP {status}",
                status_code=status,
                retryable=False,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(
                f"Catalog provider returned invalid JSON for {query!r}",
                str(e),
                status_code=status,
                retryable=False,
            ) from e

        if not isinstance(data, dict):
            raise NetworkError(
                f"Unexpected catalog response for {query!r}", status_code=status, retryable=False
            )

        api_status = data.get("status", "success")
        if api_status != "success":
            message = str(data.get("error-message") or api_status)
            if "token" in message.lower():
                raise AuthError("Catalog provider rejected the API token", detail=message)
            raise NetworkError(
                f"Catalog provider error for {query!r}",
                detail=message,
                status_code=status,
                retryable=False,
            )

        return data
