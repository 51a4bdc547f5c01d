"""Redis caching layer.

Provides:
- Connection pooling for Redis
- JSON value caching with TTL
- Atomic fixed-window counters for provider rate limiting
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

# Cache key prefix for provider responses
CACHE_PREFIX = "vesseltrack:"


class RedisClient:
    """Redis client with connection pooling for caching operations."""

    def __init__(self, redis_url: str, prefix: str = CACHE_PREFIX):
        """Initialize Redis client.

        Args:
            redis_url: Redis connection URL
            prefix: Prefix applied to every cache key
        """
        self.redis_url = redis_url
        self.prefix = prefix
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None
        self._is_connected = False

    async def connect(self) -> None:
        """Establish connection to Redis with connection pooling."""
        if self._is_connected:
            return

        try:
            self._pool = ConnectionPool.from_url(
                self.redis_url,
                max_connections=20,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)

            # Test connection
            await self._client.ping()
            self._is_connected = True
            logger.info("Redis client connected successfully")

        except RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

        if self._pool:
            await self._pool.disconnect()
            self._pool = None

        self._is_connected = False
        logger.info("Redis client disconnected")

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @property
    def client(self) -> redis.Redis:
        """Underlying redis client; raises if not connected."""
        if self._client is None:
            raise RuntimeError("Redis client is not connected")
        return self._client

    async def health_check(self) -> bool:
        """Check Redis connection health.

        Returns:
            True if healthy, False otherwise
        """
        if not self._client:
            return False

        try:
            await self._client.ping()
            return True
        except RedisError:
            return False

    # ==================== Cache operations ====================

    async def get(self, key: str) -> Optional[Any]:
        """Get a cached JSON value, or None on miss or error."""
        if not self._client:
            return None

        try:
            data = await self._client.get(f"{self.prefix}{key}")
            if data:
                return json.loads(data)
            return None
        except RedisError as e:
            logger.error(f"Failed to read cache key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """Cache a JSON-serializable value for ``ttl`` seconds."""
        if not self._client:
            return False

        try:
            await self._client.setex(f"{self.prefix}{key}", ttl, json.dumps(value))
            return True
        except RedisError as e:
            logger.error(f"Failed to write cache key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if not self._client:
            return False

        try:
            return bool(await self._client.delete(f"{self.prefix}{key}"))
        except RedisError as e:
            logger.error(f"Failed to delete cache key {key}: {e}")
            return False

    # ==================== Rate limit counters ====================

    async def incr_window(self, key: str, window_seconds: int) -> tuple[int, int]:
        """Atomically increment a fixed-window counter.

        INCR, EXPIRE NX and TTL run in one MULTI/EXEC transaction so the
        window starts with the first hit and concurrent callers each see a
        distinct count.

        Args:
            key: Counter key (unprefixed)
            window_seconds: Window length

        Returns:
            Tuple of (count after increment, seconds until the window resets)
        """
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, window_seconds, nx=True)
            pipe.ttl(key)
            count, _, ttl = await pipe.execute()
        return int(count), int(ttl) if ttl and ttl > 0 else window_seconds

    # ==================== Statistics ====================

    async def get_stats(self) -> dict[str, Any]:
        """Get Redis statistics.

        Returns:
            Dictionary with Redis stats
        """
        if not self._client:
            return {"backend": "redis", "connected": False}

        try:
            info = await self._client.info("stats")
            memory = await self._client.info("memory")
            return {
                "backend": "redis",
                "connected": True,
                "total_connections_received": info.get("total_connections_received"),
                "keyspace_hits": info.get("keyspace_hits"),
                "keyspace_misses": info.get("keyspace_misses"),
                "used_memory_human": memory.get("used_memory_human"),
            }
        except RedisError as e:
            logger.error(f"Failed to get Redis stats: {e}")
            return {"backend": "redis", "connected": True, "error": str(e)}
