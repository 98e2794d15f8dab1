"""Rate limiting: inbound HTTP throttling and outbound send pacing."""

import asyncio
import time
from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import settings
from core.exceptions import ErrorCode

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    detail = exc.detail if isinstance(exc, RateLimitExceeded) else str(exc)
    return JSONResponse(
        status_code=429,
        content={
            "error_code": ErrorCode.RATE_LIMIT_EXCEEDED.value,
            "message": f"Rate limit exceeded: {detail}",
            "details": {
                "retry_after": str(detail),
            },
        },
    )


class TokenBucket:
    """Asyncio token bucket shared by the workers of one campaign.

    With ``capacity=1`` consecutive ``acquire()`` calls are spaced at least
    ``interval_seconds`` apart no matter how many coroutines wait on it.
    An interval of zero disables pacing.
    """

    def __init__(
        self,
        interval_seconds: float,
        capacity: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._interval = max(interval_seconds, 0.0)
        self._capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._lock = asyncio.Lock()

    @classmethod
    def from_millis(cls, interval_ms: int, **kwargs: object) -> "TokenBucket":
        return cls(interval_ms / 1000.0, **kwargs)  # type: ignore[arg-type]

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def acquire(self) -> None:
        """Wait until a token is available, then take it."""
        if self._interval == 0:
            return

        # The lock is held while sleeping so waiters are served in FIFO order
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                await self._sleep((1 - self._tokens) * self._interval)
                self._refill()
            self._tokens = max(self._tokens - 1, 0.0)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._updated_at
        self._updated_at = now
        self._tokens = min(float(self._capacity), self._tokens + elapsed / self._interval)
