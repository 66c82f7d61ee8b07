"""
Token-Bucket Rate Limiter

Paces calls to the embedding backend. The bucket holds at most `capacity`
tokens and refills at `rate_per_second`; every backend call costs one
token. With capacity=1 and rate=10/s consecutive calls are spaced 100 ms
apart, the first call goes out immediately.

Clock and sleep are injectable so the policy is testable without real
delays:

    limiter = TokenBucketLimiter(rate_per_second=10, clock=fake.now, sleep=fake.sleep)

Limiters are cheap and stateful; create one per unit of work (one
ingestion request). Sharing one across requests would couple their pacing.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Protocol

logger = logging.getLogger(__name__)

_EPSILON = 1e-9   # float slack so a full refill is never re-slept


class RateLimiter(Protocol):
    async def acquire(self) -> float:
        """Wait for permission to make one call. Returns seconds waited."""
        ...


class TokenBucketLimiter:

    def __init__(
        self,
        rate_per_second: float,
        capacity:        int = 1,
        clock:           Callable[[], float] = time.monotonic,
        sleep:           Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if rate_per_second <= 0:
            raise ValueError(f"rate_per_second must be positive, got {rate_per_second}")
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")

        self._rate     = rate_per_second
        self._capacity = capacity
        self._clock    = clock
        self._sleep    = sleep
        self._tokens   = float(capacity)
        self._updated  = clock()

    @classmethod
    def from_interval(cls, seconds: float, **kwargs) -> "TokenBucketLimiter":
        """One call per `seconds` (capacity 1)."""
        return cls(rate_per_second=1.0 / seconds, capacity=1, **kwargs)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._updated = now
        self._tokens = min(float(self._capacity), self._tokens + elapsed * self._rate)

    async def acquire(self) -> float:
        waited = 0.0
        self._refill()

        while self._tokens < 1.0 - _EPSILON:
            delay = (1.0 - self._tokens) / self._rate
            await self._sleep(delay)
            waited += delay
            self._refill()

        self._tokens -= 1.0
        if waited:
            logger.debug("RateLimiter | waited=%.3fs", waited)
        return waited


class UnlimitedLimiter:
    """No-op limiter (pacing disabled via EMBEDDING_DELAY_SECONDS=0)."""

    async def acquire(self) -> float:
        return 0.0


def build_limiter(delay_seconds: float) -> RateLimiter:
    """Limiter spacing calls `delay_seconds` apart, or a no-op for <= 0."""
    if delay_seconds <= 0:
        return UnlimitedLimiter()
    return TokenBucketLimiter.from_interval(delay_seconds)
