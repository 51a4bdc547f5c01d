"""Position refresh orchestration.

Provides:
- PositionRefreshOrchestrator: per-tenant fleet refresh and vessel registration
- VesselSnapshot / RefreshReport result types
- DataSource capability flag

For every vessel a refresh prefers the stored position while it is fresh;
otherwise it spends one unit of the tenant's provider budget, stores what the
provider returns, derives the runtime status, evaluates geofences and writes
the resulting events. Vessel pipelines run concurrently and fail
independently.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from vesseltrack.ais.adapters.base import ProviderAdapter
from vesseltrack.ais.models import ProviderPosition, vessel_lookup_key
from vesseltrack.errors import (
    EventLogWriteError,
    InvalidCredentialsError,
    InvalidIdentifierError,
    ProviderError,
    ProviderNotConfiguredError,
    RateLimiterUnavailableError,
    StorageUnavailableError,
    VesselNotFoundError,
)
from vesseltrack.events.log import (
    LogEntry,
    OperationLogStore,
    describe_geofence_entry,
    describe_position_update,
    describe_status_change,
    describe_vessel_created,
)
from vesseltrack.fleet import PortCallRepository, VesselRepository, ZoneRepository
from vesseltrack.geofence.engine import GeofenceEngine, Zone
from vesseltrack.models.operation_log import EventType
from vesseltrack.models.port_call import PortCall
from vesseltrack.models.position_record import PositionRecord
from vesseltrack.models.vessel import Vessel
from vesseltrack.positions.store import PositionStore
from vesseltrack.ratelimit.throttle import ProviderThrottle
from vesseltrack.status import VesselRuntimeStatus, derive_status, detect_transition
from vesseltrack.tenancy import TenantId, require_tenant

logger = logging.getLogger(__name__)


class DataSource(str, Enum):
    """Whether a snapshot was served by the primary store."""

    PRIMARY = "primary"
    UNAVAILABLE = "unavailable"


class SkipReason(str, Enum):
    """Why a vessel received no position this cycle."""

    NO_IDENTIFIER = "no_identifier"
    INVALID_IDENTIFIER = "invalid_identifier"
    RATE_LIMITED = "rate_limited"
    LIMITER_UNAVAILABLE = "limiter_unavailable"
    NOT_FOUND = "not_found"
    NOT_CONFIGURED = "not_configured"
    INVALID_CREDENTIALS = "invalid_credentials"
    PROVIDER_ERROR = "provider_error"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    TIMEOUT = "timeout"
    FAILED = "failed"


@dataclass(frozen=True)
class PositionView:
    """Position as exposed in snapshots, stored or not."""

    lat: float
    lon: float
    timestamp: datetime
    sog: Optional[float] = None
    cog: Optional[float] = None
    heading: Optional[float] = None
    nav_status: Optional[str] = None
    source: str = "ais"

    @classmethod
    def from_record(cls, record: PositionRecord) -> "PositionView":
        return cls(
            lat=float(record.latitude),
            lon=float(record.longitude),
            timestamp=record.timestamp,
            sog=record.sog,
            cog=record.cog,
            heading=record.heading,
            nav_status=record.nav_status,
            source=record.source,
        )

    @classmethod
    def from_provider(cls, position: ProviderPosition) -> "PositionView":
        return cls(
            lat=position.lat,
            lon=position.lon,
            timestamp=position.timestamp,
            sog=position.sog,
            cog=position.cog,
            heading=position.heading,
            nav_status=position.nav_status,
            source=position.source,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "lat": self.lat,
            "lon": self.lon,
            "timestamp": self.timestamp.isoformat(),
            "sog": self.sog,
            "cog": self.cog,
            "heading": self.heading,
            "navStatus": self.nav_status,
            "source": self.source,
        }


@dataclass
class VesselSnapshot:
    """A vessel with whatever position this cycle produced.

    ``position`` is None when no current position could be obtained; the
    stored record, if any, is then exposed separately as ``last_known``.
    """

    vessel: Vessel
    status: VesselRuntimeStatus
    position: Optional[PositionView] = None
    last_known: Optional[PositionView] = None
    port_call: Optional[PortCall] = None
    zone_ids: frozenset[str] = frozenset()
    data_source: DataSource = DataSource.PRIMARY
    fetched: bool = False
    skip_reason: Optional[SkipReason] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "vessel": {
                "id": self.vessel.id,
                "name": self.vessel.name,
                "mmsi": self.vessel.mmsi,
                "imo": self.vessel.imo,
            },
            "status": self.status.value,
            "position": self.position.to_dict() if self.position else None,
            "lastKnownPosition": self.last_known.to_dict() if self.last_known else None,
            "portCall": self.port_call.to_summary() if self.port_call else None,
            "zoneIds": sorted(self.zone_ids),
            "dataSource": self.data_source.value,
            "fetched": self.fetched,
            "skipReason": self.skip_reason.value if self.skip_reason else None,
        }


@dataclass
class RefreshReport:
    """Outcome of one refresh cycle for a tenant."""

    tenant: TenantId
    snapshots: list[VesselSnapshot] = field(default_factory=list)
    provider_errors: dict[str, str] = field(default_factory=dict)
    storage_errors: int = 0
    limiter_errors: int = 0
    events_written: int = 0
    event_failures: int = 0

    @property
    def fetched(self) -> int:
        return sum(1 for s in self.snapshots if s.fetched)

    @property
    def rate_limited(self) -> int:
        return sum(1 for s in self.snapshots if s.skip_reason is SkipReason.RATE_LIMITED)

    @property
    def degraded(self) -> bool:
        return bool(self.provider_errors or self.storage_errors or self.limiter_errors)

    def record_provider_error(self, error: ProviderError) -> None:
        self.provider_errors.setdefault(type(error).__name__, str(error))

    def record_storage_error(self, error: StorageUnavailableError) -> None:
        self.storage_errors += 1

    def record_limiter_error(self, error: RateLimiterUnavailableError) -> None:
        self.limiter_errors += 1

    def log_summary(self) -> None:
        """Report outages once for the whole cycle."""
        for error_type, message in self.provider_errors.items():
            logger.error(f"Provider failure for tenant {self.tenant} ({error_type}): {message}")
        if self.storage_errors:
            logger.error(
                f"Storage unavailable for tenant {self.tenant}: "
                f"{self.storage_errors} operation(s) failed this cycle"
            )
        if self.limiter_errors:
            logger.error(
                f"Rate limiter unavailable for tenant {self.tenant}: "
                f"{self.limiter_errors} vessel(s) not refreshed this cycle"
            )
        if self.event_failures:
            logger.warning(
                f"{self.event_failures} event(s) for tenant {self.tenant} could not be written"
            )
        logger.info(
            f"Refreshed {len(self.snapshots)} vessel(s) for tenant {self.tenant}: "
            f"{self.fetched} fetched, {self.rate_limited} rate limited, "
            f"{self.events_written} event(s) written"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "vessels": [s.to_dict() for s in self.snapshots],
            "fetched": self.fetched,
            "rateLimited": self.rate_limited,
            "providerErrors": dict(self.provider_errors),
            "storageErrors": self.storage_errors,
            "limiterErrors": self.limiter_errors,
            "eventsWritten": self.events_written,
            "eventFailures": self.event_failures,
            "degraded": self.degraded,
        }


@dataclass
class _CycleContext:
    tenant: TenantId
    report: RefreshReport
    zones: Sequence[Zone]
    port_calls: dict[str, PortCall]
    now: datetime


_PROVIDER_SKIP_REASONS: list[tuple[type[ProviderError], SkipReason]] = [
    (ProviderNotConfiguredError, SkipReason.NOT_CONFIGURED),
    (InvalidCredentialsError, SkipReason.INVALID_CREDENTIALS),
    (ProviderError, SkipReason.PROVIDER_ERROR),
]


def _skip_reason_for(error: ProviderError) -> SkipReason:
    for error_type, reason in _PROVIDER_SKIP_REASONS:
        if isinstance(error, error_type):
            return reason
    return SkipReason.PROVIDER_ERROR


class PositionRefreshOrchestrator:
    """Coordinates store, provider, budget, geofences and event log."""

    def __init__(
        self,
        vessels: VesselRepository,
        positions: PositionStore,
        port_calls: PortCallRepository,
        zones: ZoneRepository,
        events: OperationLogStore,
        provider: ProviderAdapter,
        throttle: ProviderThrottle,
        engine: Optional[GeofenceEngine] = None,
        freshness_seconds: float = 300,
        concurrency: int = 8,
        vessel_timeout: float = 30.0,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.vessels = vessels
        self.positions = positions
        self.port_calls = port_calls
        self.zones = zones
        self.events = events
        self.provider = provider
        self.throttle = throttle
        self.engine = engine or GeofenceEngine()
        self.freshness_seconds = freshness_seconds
        self.concurrency = max(1, concurrency)
        self.vessel_timeout = vessel_timeout
        self._clock = clock

    # ==================== Public entry points ====================

    async def refresh_fleet(self, tenant: TenantId) -> RefreshReport:
        """Refresh every vessel of the tenant.

        Raises:
            MissingTenantError: If the tenant is invalid
            StorageUnavailableError: If the fleet itself cannot be listed
        """
        tenant = require_tenant(tenant)
        fleet = await self.vessels.list_fleet(tenant)
        context = await self._cycle_context(tenant, fleet)

        semaphore = asyncio.Semaphore(self.concurrency)

        async def run(vessel: Vessel) -> VesselSnapshot:
            async with semaphore:
                return await asyncio.wait_for(
                    self._refresh_vessel(context, vessel), timeout=self.vessel_timeout
                )

        results = await asyncio.gather(*(run(v) for v in fleet), return_exceptions=True)
        for vessel, result in zip(fleet, results):
            if isinstance(result, VesselSnapshot):
                context.report.snapshots.append(result)
            else:
                context.report.snapshots.append(
                    self._failed_snapshot(context, vessel, result)
                )

        context.report.log_summary()
        return context.report

    async def refresh_vessel(
        self, tenant: TenantId, vessel_id: str
    ) -> Optional[VesselSnapshot]:
        """Refresh one vessel; None if the tenant has no such vessel."""
        tenant = require_tenant(tenant)
        vessel = await self.vessels.get(tenant, vessel_id)
        if vessel is None:
            return None

        context = await self._cycle_context(tenant, [vessel])
        try:
            snapshot = await asyncio.wait_for(
                self._refresh_vessel(context, vessel), timeout=self.vessel_timeout
            )
        except asyncio.TimeoutError as e:
            snapshot = self._failed_snapshot(context, vessel, e)
        context.report.snapshots.append(snapshot)
        context.report.log_summary()
        return snapshot

    async def register_vessel(
        self,
        tenant: TenantId,
        name: str,
        mmsi: Optional[str] = None,
        imo: Optional[str] = None,
    ) -> VesselSnapshot:
        """Create a vessel, log its creation and fetch its first position.

        Raises:
            ValueError: If the name is blank or both identifiers are missing
            InvalidIdentifierError: If an identifier is malformed
            StorageUnavailableError: If the vessel cannot be stored
        """
        tenant = require_tenant(tenant)
        vessel = await self.vessels.create(tenant, name, mmsi=mmsi, imo=imo)

        report = RefreshReport(tenant=tenant)
        await self._log(
            tenant,
            report,
            LogEntry(
                event_type=EventType.VESSEL_CREATED,
                description=describe_vessel_created(vessel.name, vessel.mmsi, vessel.imo),
                vessel_id=vessel.id,
                timestamp=self._clock(),
            ),
        )

        snapshot = await self.refresh_vessel(tenant, vessel.id)
        return snapshot or VesselSnapshot(
            vessel=vessel, status=VesselRuntimeStatus.AT_SEA, skip_reason=SkipReason.FAILED
        )

    # ==================== Cycle plumbing ====================

    async def _cycle_context(self, tenant: TenantId, fleet: Sequence[Vessel]) -> _CycleContext:
        report = RefreshReport(tenant=tenant)
        zones: list[Zone] = []
        port_calls: dict[str, PortCall] = {}
        try:
            zones = [zone.to_zone() for zone in await self.zones.list_active(tenant)]
            port_calls = await self.port_calls.active_for_many(tenant, [v.id for v in fleet])
        except StorageUnavailableError as e:
            report.record_storage_error(e)
        return _CycleContext(
            tenant=tenant,
            report=report,
            zones=zones,
            port_calls=port_calls,
            now=self._clock(),
        )

    def _failed_snapshot(
        self, context: _CycleContext, vessel: Vessel, error: BaseException
    ) -> VesselSnapshot:
        if isinstance(error, asyncio.TimeoutError):
            logger.warning(f"Refresh of vessel {vessel.id} timed out after {self.vessel_timeout}s")
            reason = SkipReason.TIMEOUT
        else:
            logger.error(f"Refresh of vessel {vessel.id} failed: {error!r}")
            reason = SkipReason.FAILED
        port_call = context.port_calls.get(vessel.id)
        return VesselSnapshot(
            vessel=vessel,
            status=derive_status(port_call),
            port_call=port_call,
            skip_reason=reason,
        )

    def _is_fresh(self, record: PositionRecord, now: datetime) -> bool:
        # Report time, not storage time: a vessel that stopped transmitting goes stale.
        return (now - record.timestamp).total_seconds() <= self.freshness_seconds

    async def _refresh_vessel(self, context: _CycleContext, vessel: Vessel) -> VesselSnapshot:
        tenant = context.tenant
        port_call = context.port_calls.get(vessel.id)
        status = derive_status(port_call)

        def snapshot(**kwargs: Any) -> VesselSnapshot:
            return VesselSnapshot(vessel=vessel, status=status, port_call=port_call, **kwargs)

        try:
            previous = await self.positions.latest(tenant, vessel.id)
        except StorageUnavailableError as e:
            context.report.record_storage_error(e)
            return snapshot(
                data_source=DataSource.UNAVAILABLE,
                skip_reason=SkipReason.STORAGE_UNAVAILABLE,
            )

        if previous is not None and self._is_fresh(previous, context.now):
            return snapshot(
                position=PositionView.from_record(previous),
                zone_ids=self.engine.evaluate(*previous.point, context.zones),
            )

        last_known = PositionView.from_record(previous) if previous else None

        def skipped(reason: SkipReason) -> VesselSnapshot:
            return snapshot(last_known=last_known, skip_reason=reason)

        try:
            lookup = vessel_lookup_key(vessel.mmsi, vessel.imo)
        except InvalidIdentifierError as e:
            logger.warning(f"Vessel {vessel.id} has an invalid identifier: {e}")
            return skipped(SkipReason.INVALID_IDENTIFIER)
        if lookup is None:
            return skipped(SkipReason.NO_IDENTIFIER)
        identifier, id_type = lookup

        # A cached provider response costs no request, so it bypasses the budget.
        fetched = await self.provider.cached_by_identifier(identifier, id_type)
        if fetched is None:
            try:
                decision = await self.throttle.try_acquire(tenant, self.provider)
            except RateLimiterUnavailableError as e:
                context.report.record_limiter_error(e)
                return skipped(SkipReason.LIMITER_UNAVAILABLE)
            if not decision.allowed:
                return skipped(SkipReason.RATE_LIMITED)

            try:
                fetched = await self.provider.fetch_by_identifier(identifier, id_type)
            except VesselNotFoundError:
                logger.info(
                    f"No provider position for vessel {vessel.id} ({id_type.value} {identifier})"
                )
                return skipped(SkipReason.NOT_FOUND)
            except ProviderError as e:
                context.report.record_provider_error(e)
                return skipped(_skip_reason_for(e))

        if previous is not None and fetched.timestamp <= previous.timestamp:
            # Provider has nothing newer than the stored report.
            return snapshot(
                position=PositionView.from_record(previous),
                zone_ids=self.engine.evaluate(*previous.point, context.zones),
            )

        try:
            record = await self.positions.append(tenant, vessel.id, fetched, runtime_status=status)
        except StorageUnavailableError as e:
            context.report.record_storage_error(e)
            return snapshot(
                position=PositionView.from_provider(fetched),
                last_known=last_known,
                zone_ids=self.engine.evaluate(fetched.lat, fetched.lon, context.zones),
                data_source=DataSource.UNAVAILABLE,
                fetched=True,
            )

        zone_ids = await self._emit_events(context, vessel, previous, record, status)
        return snapshot(
            position=PositionView.from_record(record),
            zone_ids=zone_ids,
            fetched=True,
        )

    async def _emit_events(
        self,
        context: _CycleContext,
        vessel: Vessel,
        previous: Optional[PositionRecord],
        record: PositionRecord,
        status: VesselRuntimeStatus,
    ) -> frozenset[str]:
        lat, lon = record.point
        now = self._clock()
        entries = [
            LogEntry(
                event_type=EventType.POSITION_UPDATE,
                description=describe_position_update(lat, lon, record.sog),
                vessel_id=vessel.id,
                timestamp=now,
                position_lat=lat,
                position_lon=lon,
            )
        ]

        transition = detect_transition(previous, status)
        if transition is not None:
            entries.append(
                LogEntry(
                    event_type=EventType.STATUS_CHANGE,
                    description=describe_status_change(
                        vessel.name, transition.previous.value, transition.current.value
                    ),
                    vessel_id=vessel.id,
                    timestamp=now,
                    position_lat=lat,
                    position_lon=lon,
                    previous_status=transition.previous.value,
                    current_status=transition.current.value,
                )
            )

        previous_point = previous.point if previous is not None else None
        for zone in self.engine.entered(previous_point, (lat, lon), context.zones):
            entries.append(
                LogEntry(
                    event_type=EventType.GEOFENCE_ENTRY,
                    description=describe_geofence_entry(
                        vessel.name, zone.name, zone.zone_type.value
                    ),
                    vessel_id=vessel.id,
                    timestamp=now,
                    position_lat=lat,
                    position_lon=lon,
                    current_status=status.value,
                )
            )

        for entry in entries:
            await self._log(context.tenant, context.report, entry)
        return self.engine.evaluate(lat, lon, context.zones)

    async def _log(self, tenant: TenantId, report: RefreshReport, entry: LogEntry) -> None:
        try:
            log_id = await self.events.append(tenant, entry)
        except EventLogWriteError as e:
            report.event_failures += 1
            logger.warning(f"Event log write failed for tenant {tenant}: {e}")
            return
        except Exception as e:
            # The position is already stored; a lost event must not discard it.
            report.event_failures += 1
            logger.error(f"Unexpected event log failure for tenant {tenant}: {e!r}")
            return
        if log_id is not None:
            report.events_written += 1
