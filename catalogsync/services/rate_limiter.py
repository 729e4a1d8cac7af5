"""
Process-wide request pacing gate.

One RateLimiter instance is shared by every outbound catalog request in the
process, so the provider's limit holds regardless of which set triggered a
call. The clock and sleep functions are injectable for tests.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class RateLimiter:
    """
    Enforces a minimum interval between consecutive requests.

    Waiting is cooperative (asyncio.sleep), so other tasks such as status
    reporting keep running during the pause.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request_at: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_request_at(self) -> float | None:
        """Clock reading of the most recent permitted request."""
        return self._last_request_at

    async def wait(self) -> None:
        """Block until the next request may go out, then record it."""
        async with self._lock:
            if self._last_request_at is not None:
                remaining = self._last_request_at + self.min_interval - self._clock()
                if remaining > 0:
                    logger.debug("Pacing catalog request for %.2fs", remaining)
                    await self._sleep(remaining)
            self._last_request_at = self._clock()
