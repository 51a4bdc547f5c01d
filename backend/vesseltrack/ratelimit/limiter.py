"""Fixed-window request counters.

Provides:
- RateLimitRule and RateDecision value types
- InMemoryRateLimiter for single-process deployments
- RedisRateLimiter sharing budgets across API and worker processes

Both backends perform check-and-increment atomically, so concurrent callers
on the same key can never overshoot the ceiling.
"""

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from redis.exceptions import RedisError

from vesseltrack.cache.redis_client import RedisClient
from vesseltrack.errors import RateLimiterUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_seconds: int = 60


@dataclass(frozen=True)
class RateDecision:
    """Outcome of an acquire attempt."""

    allowed: bool
    retry_after: int = 0
    remaining: Optional[int] = None

    @classmethod
    def allow(cls, remaining: Optional[int] = None) -> "RateDecision":
        return cls(allowed=True, remaining=remaining)

    @classmethod
    def deny(cls, retry_after: int) -> "RateDecision":
        return cls(allowed=False, retry_after=max(1, retry_after), remaining=0)


class RateLimiter(ABC):
    """Counts hits per key within a fixed window."""

    @abstractmethod
    async def hit(self, key: str, rule: RateLimitRule) -> RateDecision:
        """Consume one slot for ``key`` if any is left in the current window."""

    async def close(self) -> None:
        return None


class InMemoryRateLimiter(RateLimiter):
    """Process-local limiter guarded by a single asyncio.Lock."""

    def __init__(
        self,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max_entries
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = asyncio.Lock()

    async def hit(self, key: str, rule: RateLimitRule) -> RateDecision:
        async with self._lock:
            now = self._clock()
            window_start, count = self._windows.get(key, (now, 0))
            if now - window_start >= rule.window_seconds:
                window_start, count = now, 0

            if count >= rule.limit:
                retry_after = math.ceil(window_start + rule.window_seconds - now)
                return RateDecision.deny(retry_after)

            self._windows[key] = (window_start, count + 1)
            if len(self._windows) > self.max_entries:
                self._prune(now, rule.window_seconds)
            return RateDecision.allow(remaining=rule.limit - count - 1)

    def _prune(self, now: float, window_seconds: int) -> None:
        expired = [
            key
            for key, (start, _) in self._windows.items()
            if now - start >= window_seconds
        ]
        for key in expired:
            del self._windows[key]


class RedisRateLimiter(RateLimiter):
    """Limiter backed by Redis INCR so every process shares one budget."""

    def __init__(self, redis_client: RedisClient):
        self.redis = redis_client

    async def hit(self, key: str, rule: RateLimitRule) -> RateDecision:
        """Consume one slot in the shared window.

        Raises:
            RateLimiterUnavailableError: If Redis cannot be reached
        """
        try:
            count, ttl = await self.redis.incr_window(key, rule.window_seconds)
        except (RedisError, RuntimeError) as e:
            raise RateLimiterUnavailableError(
                f"Rate limit counter unavailable for {key}: {e.__class__.__name__}"
            ) from e
        if count > rule.limit:
            logger.debug(f"Rate limit reached for {key} ({count}/{rule.limit})")
            return RateDecision.deny(ttl)
        return RateDecision.allow(remaining=rule.limit - count)
