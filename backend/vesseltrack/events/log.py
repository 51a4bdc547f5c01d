"""Append-only operation log.

Provides:
- LogEntry / LogFilters value types
- OperationLogStore.append(): existence-checked, tenant-stamped writes
- OperationLogStore.query(): newest-first, filterable reads
- Description builders for each event type
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vesseltrack.database.connection import Database, storage_guard
from vesseltrack.errors import EventLogWriteError
from vesseltrack.models.operation_log import EventType, OperationLog
from vesseltrack.models.vessel import Vessel
from vesseltrack.tenancy import TenantId

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 50
MAX_QUERY_LIMIT = 500


@dataclass(frozen=True)
class LogEntry:
    """Event to be appended; the tenant is supplied by the caller context."""

    event_type: EventType
    description: str
    vessel_id: Optional[str] = None
    timestamp: Optional[datetime] = None
    position_lat: Optional[float] = None
    position_lon: Optional[float] = None
    previous_status: Optional[str] = None
    current_status: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_type", EventType(self.event_type))
        if not self.description or not self.description.strip():
            raise ValueError("description is required")


@dataclass(frozen=True)
class LogFilters:
    vessel_id: Optional[str] = None
    event_type: Optional[EventType] = None


def describe_position_update(lat: float, lon: float, sog: Optional[float]) -> str:
    text = f"Vessel position updated: {lat:.6f}, {lon:.6f}"
    if sog is not None:
        text += f" (Speed: {sog} kn)"
    return text


def describe_vessel_created(name: str, mmsi: Optional[str], imo: Optional[str]) -> str:
    text = f'New vessel "{name}" was created'
    if mmsi:
        text += f" (MMSI: {mmsi})"
    if imo:
        text += f" (IMO: {imo})"
    return text


def describe_geofence_entry(vessel_name: str, zone_name: str, zone_type: str) -> str:
    return f"{vessel_name} entered {zone_name} ({zone_type})"


def describe_status_change(vessel_name: str, previous: str, current: str) -> str:
    return f"{vessel_name} status changed from {previous} to {current}"


class OperationLogStore:
    """Tenant-scoped event log; entries are never updated or deleted here."""

    def __init__(self, database: Database):
        self.database = database

    @staticmethod
    async def _vessel_exists(session: AsyncSession, tenant: TenantId, vessel_id: str) -> bool:
        result = await session.execute(
            select(Vessel.id).where(Vessel.tenant_id == tenant.value, Vessel.id == vessel_id)
        )
        return result.first() is not None

    async def vessel_exists(self, tenant: TenantId, vessel_id: str) -> bool:
        with storage_guard("check vessel"):
            async with self.database.session() as session:
                return await self._vessel_exists(session, tenant, vessel_id)

    async def append(self, tenant: TenantId, entry: LogEntry) -> Optional[int]:
        """Write an entry for the tenant.

        Entries naming a vessel the tenant does not own are dropped without
        error.

        Returns:
            The new log id, or None when the entry was dropped

        Raises:
            EventLogWriteError: If the write fails for any other reason
        """
        try:
            async with self.database.session() as session:
                if entry.vessel_id is not None and not await self._vessel_exists(
                    session, tenant, entry.vessel_id
                ):
                    logger.debug(
                        f"Dropping {entry.event_type.value} for unknown vessel "
                        f"{entry.vessel_id} (tenant {tenant})"
                    )
                    return None

                row = OperationLog(
                    tenant_id=tenant.value,
                    vessel_id=entry.vessel_id,
                    event_type=entry.event_type.value,
                    description=entry.description,
                    timestamp=entry.timestamp or datetime.now(timezone.utc),
                    position_lat=entry.position_lat,
                    position_lon=entry.position_lon,
                    previous_status=entry.previous_status,
                    current_status=entry.current_status,
                )
                session.add(row)
                await session.commit()
                return row.id
        except (SQLAlchemyError, OSError) as e:
            raise EventLogWriteError(
                f"Failed to write {entry.event_type.value} event: {e.__class__.__name__}"
            ) from e

    async def query(
        self,
        tenant: TenantId,
        filters: Optional[LogFilters] = None,
        limit: int = DEFAULT_QUERY_LIMIT,
        offset: int = 0,
    ) -> list[OperationLog]:
        """Entries for the tenant, newest first.

        Raises:
            StorageUnavailableError: If the log cannot be read
        """
        filters = filters or LogFilters()
        limit = max(1, min(limit, MAX_QUERY_LIMIT))
        offset = max(0, offset)

        stmt = select(OperationLog).where(OperationLog.tenant_id == tenant.value)
        if filters.vessel_id:
            stmt = stmt.where(OperationLog.vessel_id == filters.vessel_id)
        if filters.event_type:
            stmt = stmt.where(OperationLog.event_type == EventType(filters.event_type).value)
        stmt = (
            stmt.order_by(OperationLog.timestamp.desc(), OperationLog.id.desc())
            .limit(limit)
            .offset(offset)
        )

        with storage_guard("query operation log"):
            async with self.database.session() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
