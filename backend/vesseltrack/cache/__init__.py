"""Cache services for provider responses and rate-limit counters."""

from vesseltrack.cache.base import CacheBackend
from vesseltrack.cache.memory import MemoryCache
from vesseltrack.cache.redis_client import RedisClient

__all__ = ["CacheBackend", "MemoryCache", "RedisClient"]
