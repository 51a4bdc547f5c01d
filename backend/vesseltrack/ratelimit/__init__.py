"""Provider request budgets."""

from vesseltrack.ratelimit.limiter import (
    InMemoryRateLimiter,
    RateDecision,
    RateLimiter,
    RateLimitRule,
    RedisRateLimiter,
)
from vesseltrack.ratelimit.throttle import ProviderThrottle

__all__ = [
    "InMemoryRateLimiter",
    "ProviderThrottle",
    "RateDecision",
    "RateLimiter",
    "RateLimitRule",
    "RedisRateLimiter",
]
