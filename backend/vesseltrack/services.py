"""Runtime service container.

Everything with connections or process state (database engine, cache,
rate limiter, provider adapter) is built here once and owned by whoever
started it: the FastAPI lifespan or a Celery worker process.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from vesseltrack.ais.adapters.base import ProviderAdapter
from vesseltrack.ais.config import create_provider, provider_config_from_settings
from vesseltrack.cache.base import CacheBackend
from vesseltrack.cache.memory import MemoryCache
from vesseltrack.cache.redis_client import RedisClient
from vesseltrack.config import Settings
from vesseltrack.database.connection import Database
from vesseltrack.events.log import OperationLogStore
from vesseltrack.fleet import PortCallRepository, VesselRepository, ZoneRepository
from vesseltrack.geofence.engine import GeofenceEngine
from vesseltrack.orchestrator import PositionRefreshOrchestrator
from vesseltrack.positions.store import PositionStore
from vesseltrack.ratelimit.limiter import (
    InMemoryRateLimiter,
    RateLimiter,
    RateLimitRule,
    RedisRateLimiter,
)
from vesseltrack.ratelimit.throttle import ProviderThrottle

logger = logging.getLogger(__name__)


def rate_limit_rules(settings: Settings) -> tuple[dict[str, RateLimitRule], RateLimitRule]:
    """Per-provider rules and the default rule from settings."""
    window = settings.ais_rate_limit_window_seconds
    rules = {
        provider: RateLimitRule(limit=limit, window_seconds=window)
        for provider, limit in settings.ais_rate_limits.items()
    }
    return rules, RateLimitRule(limit=settings.ais_rate_limit_default, window_seconds=window)


@dataclass
class TrackingServices:
    """Wired components shared by the API and the scheduled refresh."""

    settings: Settings
    database: Database
    cache: CacheBackend
    limiter: RateLimiter
    provider: ProviderAdapter
    throttle: ProviderThrottle
    vessels: VesselRepository
    positions: PositionStore
    port_calls: PortCallRepository
    zones: ZoneRepository
    events: OperationLogStore
    orchestrator: PositionRefreshOrchestrator
    redis: Optional[RedisClient] = None
    _started: bool = field(default=False, repr=False)

    async def start(self) -> None:
        """Open connections. Redis failures are fatal only when Redis is selected."""
        if self._started:
            return

        await self.database.init(create_all=self.settings.database_create_all)
        if self.redis is not None:
            await self.redis.connect()
        await self.provider.start()
        self._started = True
        logger.info(
            f"Tracking services started (provider={self.provider.name}, "
            f"cache={self.settings.cache_backend}, rate_limit={self.settings.rate_limit_backend})"
        )

    async def close(self) -> None:
        await self.provider.stop()
        await self.limiter.close()
        if self.redis is not None:
            await self.redis.disconnect()
        await self.database.dispose()
        self._started = False
        logger.info("Tracking services closed")

    async def health(self) -> dict[str, Any]:
        database_ok = await self.database.check_connection()
        cache_ok = await self.cache.health_check()
        provider_ok = await self.provider.health_check()
        return {
            "database": database_ok,
            "cache": cache_ok,
            "provider": provider_ok,
        }


def build_services(
    settings: Settings,
    database: Optional[Database] = None,
    provider: Optional[ProviderAdapter] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TrackingServices:
    """Wire all components from settings.

    Args:
        settings: Application settings
        database: Pre-built database (tests pass an SQLite one)
        provider: Pre-built provider adapter, bypassing settings
        transport: httpx transport handed to HTTP adapters

    Returns:
        An unstarted TrackingServices
    """
    database = database or Database(settings.database_url, echo=settings.debug)

    redis_client: Optional[RedisClient] = None
    if "redis" in (settings.cache_backend, settings.rate_limit_backend):
        redis_client = RedisClient(settings.redis_url)

    cache: CacheBackend
    if settings.cache_backend == "redis" and redis_client is not None:
        cache = redis_client
    else:
        cache = MemoryCache(max_entries=settings.cache_max_entries)

    limiter: RateLimiter
    if settings.rate_limit_backend == "redis" and redis_client is not None:
        limiter = RedisRateLimiter(redis_client)
    else:
        limiter = InMemoryRateLimiter(max_entries=settings.cache_max_entries)

    rules, default_rule = rate_limit_rules(settings)
    throttle = ProviderThrottle(limiter, rules=rules, default_rule=default_rule)

    if provider is None:
        provider = create_provider(
            provider_config_from_settings(settings), cache=cache, transport=transport
        )

    vessels = VesselRepository(database)
    positions = PositionStore(
        database,
        retention_limit=settings.position_retention_limit,
        default_history_limit=settings.position_history_default_limit,
        max_history_limit=settings.position_history_max_limit,
    )
    port_calls = PortCallRepository(database)
    zones = ZoneRepository(database)
    events = OperationLogStore(database)

    orchestrator = PositionRefreshOrchestrator(
        vessels=vessels,
        positions=positions,
        port_calls=port_calls,
        zones=zones,
        events=events,
        provider=provider,
        throttle=throttle,
        engine=GeofenceEngine(),
        freshness_seconds=settings.position_freshness_seconds,
        concurrency=settings.refresh_concurrency,
        vessel_timeout=settings.refresh_vessel_timeout_seconds,
    )

    return TrackingServices(
        settings=settings,
        database=database,
        cache=cache,
        limiter=limiter,
        provider=provider,
        throttle=throttle,
        vessels=vessels,
        positions=positions,
        port_calls=port_calls,
        zones=zones,
        events=events,
        orchestrator=orchestrator,
        redis=redis_client,
    )
