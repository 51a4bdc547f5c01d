"""Abstract base class for AIS provider adapters.

Defines the identifier-based query contract every vendor adapter implements,
plus the shared plumbing around it: identifier validation before any network
call, response caching and fetch statistics.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from vesseltrack.ais.models import (
    BoundingBox,
    IdentifierType,
    ProviderPosition,
    normalize_identifier,
)
from vesseltrack.cache.base import CacheBackend
from vesseltrack.errors import (
    ProviderError,
    ProviderNotConfiguredError,
    VesselNotFoundError,
)

logger = logging.getLogger(__name__)

POSITION_CACHE_TTL = 60
ZONE_CACHE_TTL = 300


@dataclass
class SourceInfo:
    """Metadata about a provider adapter."""

    name: str
    source_type: str
    is_configured: bool
    is_started: bool
    last_successful_fetch: Optional[datetime] = None
    error_count: int = 0
    total_positions_received: int = 0
    average_latency_seconds: float = 0.0
    extra_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "type": self.source_type,
            "is_configured": self.is_configured,
            "is_started": self.is_started,
            "last_successful_fetch": (
                self.last_successful_fetch.isoformat()
                if self.last_successful_fetch
                else None
            ),
            "error_count": self.error_count,
            "total_positions_received": self.total_positions_received,
            "average_latency_seconds": self.average_latency_seconds,
            "extra_info": self.extra_info,
        }


class ProviderAdapter(ABC):
    """Abstract base class for all AIS providers.

    Implementations must provide:
    - is_configured(): Whether credentials are present
    - _fetch_position(): Query one vessel by normalized identifier
    - _fetch_zone(): Query vessels inside a bounding box
    """

    source_type = "abstract"

    def __init__(
        self,
        config: dict[str, Any],
        cache: Optional[CacheBackend] = None,
    ):
        """Initialize adapter with configuration.

        Args:
            config: Adapter-specific configuration dictionary
            cache: Optional response cache shared across adapters
        """
        self.config = config
        self.name = config.get("name", self.source_type)
        self.cache = cache
        self.position_cache_ttl = int(config.get("position_cache_ttl", POSITION_CACHE_TTL))
        self.zone_cache_ttl = int(config.get("zone_cache_ttl", ZONE_CACHE_TTL))
        self._error_count = 0
        self._total_positions = 0
        self._last_fetch_time: Optional[datetime] = None
        self._latency_samples: list[float] = []
        self._is_started = False

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the adapter has the credentials it needs."""

    @abstractmethod
    async def _fetch_position(
        self, identifier: str, id_type: IdentifierType
    ) -> ProviderPosition:
        """Query the vendor for one vessel.

        Args:
            identifier: Already normalized MMSI or IMO digits
            id_type: Identifier kind

        Raises:
            VesselNotFoundError: If the vendor has no position for the vessel
            InvalidCredentialsError: If the vendor rejects the credentials
            ProviderError: For any other vendor failure
        """

    @abstractmethod
    async def _fetch_zone(self, bbox: BoundingBox) -> list[ProviderPosition]:
        """Query the vendor for vessels inside ``bbox``."""

    async def fetch_by_identifier(
        self,
        identifier: Any,
        id_type: IdentifierType = IdentifierType.MMSI,
    ) -> ProviderPosition:
        """Fetch the latest position of one vessel.

        The identifier is validated before the configuration check and before
        any network call.

        Raises:
            InvalidIdentifierError: If the identifier is malformed
            ProviderNotConfiguredError: If credentials are missing
            VesselNotFoundError: If no position is available
            InvalidCredentialsError: If credentials are rejected
            ProviderError: On any other provider failure
        """
        id_type = IdentifierType(id_type)
        normalized = normalize_identifier(identifier, id_type)
        self._require_configured()

        cache_key = self._position_cache_key(normalized, id_type)
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return ProviderPosition.from_dict(cached)

        started = time.monotonic()
        try:
            position = await self._fetch_position(normalized, id_type)
        except VesselNotFoundError:
            raise
        except ProviderError:
            self._record_error()
            raise

        self._record_success(1, time.monotonic() - started)
        await self._cache_set(cache_key, position.to_dict(), self.position_cache_ttl)
        return position

    async def cached_by_identifier(
        self,
        identifier: Any,
        id_type: IdentifierType = IdentifierType.MMSI,
    ) -> Optional[ProviderPosition]:
        """Return the cached provider response for one vessel, if any.

        Never calls the provider. Positions are public AIS data, so the cache
        is keyed by provider and identifier only and is shared by every tenant
        tracking the same vessel.

        Raises:
            InvalidIdentifierError: If the identifier is malformed
        """
        id_type = IdentifierType(id_type)
        normalized = normalize_identifier(identifier, id_type)
        cached = await self._cache_get(self._position_cache_key(normalized, id_type))
        if cached is None:
            return None
        return ProviderPosition.from_dict(cached)

    async def fetch_in_zone(self, bbox: BoundingBox) -> list[ProviderPosition]:
        """Fetch every vessel the provider reports inside ``bbox``."""
        self._require_configured()

        cache_key = f"zone:{self.name}:{bbox.cache_key()}"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return [ProviderPosition.from_dict(item) for item in cached]

        started = time.monotonic()
        try:
            positions = await self._fetch_zone(bbox)
        except ProviderError:
            self._record_error()
            raise

        self._record_success(len(positions), time.monotonic() - started)
        await self._cache_set(
            cache_key, [p.to_dict() for p in positions], self.zone_cache_ttl
        )
        return positions

    async def health_check(self) -> bool:
        """Check if the provider is usable.

        Returns:
            True if configured and started
        """
        return self.is_configured() and self._is_started

    def get_source_info(self) -> SourceInfo:
        return SourceInfo(
            name=self.name,
            source_type=self.source_type,
            is_configured=self.is_configured(),
            is_started=self._is_started,
            last_successful_fetch=self._last_fetch_time,
            error_count=self._error_count,
            total_positions_received=self._total_positions,
            average_latency_seconds=self._get_average_latency(),
        )

    async def start(self) -> None:
        """Initialize the adapter (e.g., open HTTP connections).

        Override in subclasses that need initialization.
        """
        self._is_started = True
        logger.info(f"Provider '{self.name}' started")

    async def stop(self) -> None:
        """Cleanup the adapter (e.g., close HTTP connections).

        Override in subclasses that need cleanup.
        """
        self._is_started = False
        logger.info(f"Provider '{self.name}' stopped")

    def _require_configured(self) -> None:
        if not self.is_configured():
            raise ProviderNotConfiguredError(
                "Provider credentials are not configured", provider=self.name
            )

    def _position_cache_key(self, normalized: str, id_type: IdentifierType) -> str:
        return f"position:{self.name}:{id_type.value}:{normalized}"

    async def _cache_get(self, key: str) -> Optional[Any]:
        if self.cache is None:
            return None
        return await self.cache.get(key)

    async def _cache_set(self, key: str, value: Any, ttl: int) -> None:
        if self.cache is not None:
            await self.cache.set(key, value, ttl)

    def _record_success(self, position_count: int, latency_seconds: float = 0.0) -> None:
        """Record a successful fetch operation.

        Args:
            position_count: Number of positions received
            latency_seconds: Time taken to fetch data
        """
        self._last_fetch_time = datetime.now(timezone.utc)
        self._error_count = 0
        self._total_positions += position_count

        # Track latency (keep last 100 samples)
        self._latency_samples.append(latency_seconds)
        if len(self._latency_samples) > 100:
            self._latency_samples.pop(0)

    def _record_error(self) -> None:
        """Record a failed fetch operation."""
        self._error_count += 1

    def _get_average_latency(self) -> float:
        if not self._latency_samples:
            return 0.0
        return sum(self._latency_samples) / len(self._latency_samples)

    @property
    def is_started(self) -> bool:
        return self._is_started

    @property
    def error_count(self) -> int:
        """Get current consecutive error count."""
        return self._error_count

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, configured={self.is_configured()})>"
