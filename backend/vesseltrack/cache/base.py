"""Cache service interface shared by the in-memory and Redis backends."""

from typing import Any, Optional, Protocol


class CacheBackend(Protocol):
    """JSON-value cache with per-key TTL."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def health_check(self) -> bool:
        ...

    async def get_stats(self) -> dict[str, Any]:
        ...
