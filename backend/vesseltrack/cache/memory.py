"""In-process TTL cache with LRU eviction."""

import asyncio
import copy
import time
from collections import OrderedDict
from typing import Any, Callable, Optional


class MemoryCache:
    """Bounded TTL cache owned by the application lifespan.

    Entries expire after their TTL; once ``max_entries`` is reached the least
    recently used entry is evicted.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                self._misses += 1
                return None

            self._entries.move_to_end(key)
            self._hits += 1
            return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        async with self._lock:
            self._entries[key] = (self._clock() + ttl, copy.deepcopy(value))
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
                self._evictions += 1
        return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def health_check(self) -> bool:
        return True

    async def get_stats(self) -> dict[str, Any]:
        return {
            "backend": "memory",
            "entries": len(self._entries),
            "max_entries": self.max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
        }
