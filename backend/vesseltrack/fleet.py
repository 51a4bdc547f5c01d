"""Tenant-scoped repositories for vessels, port calls and geofence zones."""

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import case, select

from vesseltrack.ais.models import normalize_imo, normalize_mmsi
from vesseltrack.database.connection import Database, storage_guard
from vesseltrack.geofence.engine import ZoneType
from vesseltrack.models.geofence_zone import GeofenceZone
from vesseltrack.models.port_call import PortCall
from vesseltrack.models.vessel import Vessel
from vesseltrack.status import PortCallStatus
from vesseltrack.tenancy import TenantId, require_tenant

logger = logging.getLogger(__name__)

ACTIVE_PORT_CALL_STATUSES = (PortCallStatus.IN_PROGRESS.value, PortCallStatus.PLANNED.value)


class VesselRepository:
    def __init__(self, database: Database):
        self.database = database

    async def create(
        self,
        tenant: TenantId,
        name: str,
        mmsi: Optional[str] = None,
        imo: Optional[str] = None,
    ) -> Vessel:
        """Create a vessel with normalized identifiers.

        MMSI is stored as 9 digits, IMO as ``IMO`` followed by 7 digits.

        Raises:
            ValueError: If the name is blank or neither identifier is given
            InvalidIdentifierError: If an identifier is malformed
        """
        if not name or not name.strip():
            raise ValueError("Vessel name is required")
        if not mmsi and not imo:
            raise ValueError("At least one of MMSI or IMO is required")

        vessel = Vessel(
            tenant_id=tenant.value,
            name=name.strip(),
            mmsi=normalize_mmsi(mmsi) if mmsi else None,
            imo=f"IMO{normalize_imo(imo)}" if imo else None,
        )
        with storage_guard("create vessel"):
            async with self.database.session() as session:
                session.add(vessel)
                await session.commit()

        logger.info(f"Created vessel {vessel.id} ({vessel.name}) for tenant {tenant}")
        return vessel

    async def get(self, tenant: TenantId, vessel_id: str) -> Optional[Vessel]:
        with storage_guard("load vessel"):
            async with self.database.session() as session:
                result = await session.execute(
                    select(Vessel).where(
                        Vessel.tenant_id == tenant.value, Vessel.id == vessel_id
                    )
                )
                return result.scalars().first()

    async def list_fleet(self, tenant: TenantId) -> list[Vessel]:
        with storage_guard("list vessels"):
            async with self.database.session() as session:
                result = await session.execute(
                    select(Vessel)
                    .where(Vessel.tenant_id == tenant.value)
                    .order_by(Vessel.name, Vessel.id)
                )
                return list(result.scalars().all())

    async def exists(self, tenant: TenantId, vessel_id: str) -> bool:
        return await self.get(tenant, vessel_id) is not None

    async def list_tenants(self) -> list[TenantId]:
        """Tenants owning at least one vessel, for scheduled refreshes."""
        with storage_guard("list tenants"):
            async with self.database.session() as session:
                result = await session.execute(
                    select(Vessel.tenant_id).distinct().order_by(Vessel.tenant_id)
                )
                return [require_tenant(value) for value in result.scalars().all()]


class PortCallRepository:
    def __init__(self, database: Database):
        self.database = database

    async def create(
        self,
        tenant: TenantId,
        vessel_id: str,
        port_name: str,
        status: PortCallStatus = PortCallStatus.PLANNED,
        eta: Optional[datetime] = None,
        etd: Optional[datetime] = None,
    ) -> PortCall:
        port_call = PortCall(
            tenant_id=tenant.value,
            vessel_id=vessel_id,
            port_name=port_name,
            status=PortCallStatus(status).value,
            eta=eta,
            etd=etd,
        )
        with storage_guard("create port call"):
            async with self.database.session() as session:
                session.add(port_call)
                await session.commit()
        return port_call

    async def active_for_many(
        self, tenant: TenantId, vessel_ids: Sequence[str]
    ) -> dict[str, PortCall]:
        """Active port call per vessel.

        An IN_PROGRESS call wins over PLANNED ones; among planned calls the
        earliest ETA wins.
        """
        if not vessel_ids:
            return {}

        priority = case((PortCall.status == PortCallStatus.IN_PROGRESS.value, 0), else_=1)
        with storage_guard("load port calls"):
            async with self.database.session() as session:
                result = await session.execute(
                    select(PortCall)
                    .where(
                        PortCall.tenant_id == tenant.value,
                        PortCall.vessel_id.in_(list(vessel_ids)),
                        PortCall.status.in_(ACTIVE_PORT_CALL_STATUSES),
                    )
                    .order_by(
                        PortCall.vessel_id,
                        priority,
                        PortCall.eta.is_(None),
                        PortCall.eta,
                    )
                )
                active: dict[str, PortCall] = {}
                for port_call in result.scalars().all():
                    active.setdefault(port_call.vessel_id, port_call)
                return active

    async def active_for(self, tenant: TenantId, vessel_id: str) -> Optional[PortCall]:
        return (await self.active_for_many(tenant, [vessel_id])).get(vessel_id)


class ZoneRepository:
    def __init__(self, database: Database):
        self.database = database

    async def list_active(self, tenant: TenantId) -> list[GeofenceZone]:
        with storage_guard("list zones"):
            async with self.database.session() as session:
                result = await session.execute(
                    select(GeofenceZone)
                    .where(
                        GeofenceZone.tenant_id == tenant.value,
                        GeofenceZone.active.is_(True),
                    )
                    .order_by(GeofenceZone.name, GeofenceZone.id)
                )
                return list(result.scalars().all())

    async def create_polygon(
        self,
        tenant: TenantId,
        name: str,
        vertices: Sequence[tuple[float, float]],
        zone_type: ZoneType = ZoneType.OTHER,
        code: Optional[str] = None,
    ) -> GeofenceZone:
        return await self._add(
            GeofenceZone(
                tenant_id=tenant.value,
                name=name,
                code=code,
                zone_type=ZoneType(zone_type).value,
                shape="polygon",
                vertices=[[float(lat), float(lon)] for lat, lon in vertices],
            )
        )

    async def create_circle(
        self,
        tenant: TenantId,
        name: str,
        center: tuple[float, float],
        zone_type: ZoneType = ZoneType.OTHER,
        radius_meters: Optional[float] = None,
        code: Optional[str] = None,
    ) -> GeofenceZone:
        return await self._add(
            GeofenceZone(
                tenant_id=tenant.value,
                name=name,
                code=code,
                zone_type=ZoneType(zone_type).value,
                shape="circle",
                center_lat=float(center[0]),
                center_lon=float(center[1]),
                radius_meters=radius_meters,
            )
        )

    async def _add(self, zone: GeofenceZone) -> GeofenceZone:
        with storage_guard("create zone"):
            async with self.database.session() as session:
                session.add(zone)
                await session.commit()
        return zone
