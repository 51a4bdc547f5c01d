"""Tenant-scoped position history.

Provides:
- append() with trim to the retention limit in the same transaction
- latest() and history() lookups, always filtered by tenant
- record_synthetic() for manual and demo positions

Same-vessel appends are serialized with a per-vessel lock; appends for
different vessels run concurrently.
"""

import asyncio
import logging
import weakref
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, select

from vesseltrack.ais.models import ProviderPosition
from vesseltrack.database.connection import Database, storage_guard
from vesseltrack.models.position_record import PositionRecord
from vesseltrack.status import VesselRuntimeStatus
from vesseltrack.tenancy import TenantId

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_LIMIT = 1000
DEFAULT_HISTORY_LIMIT = 100
MAX_HISTORY_LIMIT = 500

SYNTHETIC_SOURCES = frozenset({"manual", "demo"})


class PositionStore:
    """Append-only, bounded position history per vessel."""

    def __init__(
        self,
        database: Database,
        retention_limit: int = DEFAULT_RETENTION_LIMIT,
        default_history_limit: int = DEFAULT_HISTORY_LIMIT,
        max_history_limit: int = MAX_HISTORY_LIMIT,
    ):
        if retention_limit < 1:
            raise ValueError("retention_limit must be at least 1")
        self.database = database
        self.retention_limit = retention_limit
        self.default_history_limit = default_history_limit
        self.max_history_limit = max_history_limit
        self._locks: "weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, tenant: TenantId, vessel_id: str) -> asyncio.Lock:
        key = (tenant.value, vessel_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def append(
        self,
        tenant: TenantId,
        vessel_id: str,
        position: ProviderPosition,
        runtime_status: Optional[VesselRuntimeStatus] = None,
    ) -> PositionRecord:
        """Insert a position and trim the vessel's history.

        Args:
            tenant: Owning tenant
            vessel_id: Vessel the position belongs to
            position: Position to store; its ``source`` tags the record
            runtime_status: Status derived for the vessel at this position

        Returns:
            The stored record (its ``id`` is the record id)

        Raises:
            StorageUnavailableError: If the database rejects the write
        """
        async with self._lock_for(tenant, vessel_id):
            with storage_guard("append position"):
                async with self.database.session() as session:
                    record = PositionRecord(
                        tenant_id=tenant.value,
                        vessel_id=vessel_id,
                        latitude=position.lat,
                        longitude=position.lon,
                        timestamp=position.timestamp,
                        sog=position.sog,
                        cog=position.cog,
                        heading=position.heading,
                        nav_status=position.nav_status,
                        runtime_status=runtime_status.value if runtime_status else None,
                        source=position.source,
                    )
                    session.add(record)
                    await session.flush()
                    await session.execute(self._trim_statement(tenant, vessel_id))
                    await session.commit()

        logger.debug(
            f"Stored position for vessel {vessel_id} ({position.lat:.6f}, {position.lon:.6f}) "
            f"from {position.source}"
        )
        return record

    def _trim_statement(self, tenant: TenantId, vessel_id: str):
        keep = (
            select(PositionRecord.id)
            .where(
                PositionRecord.tenant_id == tenant.value,
                PositionRecord.vessel_id == vessel_id,
            )
            .order_by(PositionRecord.timestamp.desc(), PositionRecord.id.desc())
            .limit(self.retention_limit)
        )
        return (
            delete(PositionRecord)
            .where(
                PositionRecord.tenant_id == tenant.value,
                PositionRecord.vessel_id == vessel_id,
                PositionRecord.id.not_in(keep),
            )
            .execution_options(synchronize_session=False)
        )

    async def latest(self, tenant: TenantId, vessel_id: str) -> Optional[PositionRecord]:
        """Most recent record for the vessel within the tenant, or None."""
        with storage_guard("load latest position"):
            async with self.database.session() as session:
                result = await session.execute(
                    select(PositionRecord)
                    .where(
                        PositionRecord.tenant_id == tenant.value,
                        PositionRecord.vessel_id == vessel_id,
                    )
                    .order_by(PositionRecord.timestamp.desc(), PositionRecord.id.desc())
                    .limit(1)
                )
                return result.scalars().first()

    async def history(
        self,
        tenant: TenantId,
        vessel_id: str,
        limit: Optional[int] = None,
    ) -> list[PositionRecord]:
        """Newest-first history, clamped to the configured ceiling."""
        if limit is None:
            limit = self.default_history_limit
        limit = max(1, min(limit, self.max_history_limit))

        with storage_guard("load position history"):
            async with self.database.session() as session:
                result = await session.execute(
                    select(PositionRecord)
                    .where(
                        PositionRecord.tenant_id == tenant.value,
                        PositionRecord.vessel_id == vessel_id,
                    )
                    .order_by(PositionRecord.timestamp.desc(), PositionRecord.id.desc())
                    .limit(limit)
                )
                return list(result.scalars().all())

    async def count(self, tenant: TenantId, vessel_id: str) -> int:
        with storage_guard("count positions"):
            async with self.database.session() as session:
                result = await session.execute(
                    select(func.count())
                    .select_from(PositionRecord)
                    .where(
                        PositionRecord.tenant_id == tenant.value,
                        PositionRecord.vessel_id == vessel_id,
                    )
                )
                return int(result.scalar_one())

    async def record_synthetic(
        self,
        tenant: TenantId,
        vessel_id: str,
        lat: float,
        lon: float,
        source: str = "manual",
        timestamp: Optional[datetime] = None,
        sog: Optional[float] = None,
        cog: Optional[float] = None,
        heading: Optional[float] = None,
        nav_status: Optional[str] = None,
    ) -> PositionRecord:
        """Store a manually entered or demo position.

        Raises:
            ValueError: If the source tag is not a synthetic one or the
                coordinates are out of range
        """
        if source not in SYNTHETIC_SOURCES:
            raise ValueError(
                f"Synthetic positions must be tagged {sorted(SYNTHETIC_SOURCES)}, got {source!r}"
            )
        position = ProviderPosition(
            lat=lat,
            lon=lon,
            timestamp=timestamp or datetime.now(timezone.utc),
            sog=sog,
            cog=cog,
            heading=heading,
            nav_status=nav_status,
            source=source,
        )
        return await self.append(tenant, vessel_id, position)
