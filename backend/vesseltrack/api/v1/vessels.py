"""Vessel API endpoints.

Provides endpoints for:
- Fleet snapshot (refreshing stale positions within the provider budget)
- Registering a vessel
- Single vessel snapshot
- Position history and synthetic position injection
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from vesseltrack.api.deps import get_services
from vesseltrack.api.v1.schemas import (
    FleetResponse,
    PositionHistoryResponse,
    PositionResponse,
    SyntheticPositionRequest,
    VesselCreateRequest,
    VesselSnapshotResponse,
)
from vesseltrack.errors import InvalidIdentifierError
from vesseltrack.services import TrackingServices
from vesseltrack.tenancy import TenantId, get_tenant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vessels", tags=["Vessels"])


async def _require_vessel(services: TrackingServices, tenant: TenantId, vessel_id: str) -> None:
    if not await services.vessels.exists(tenant, vessel_id):
        raise HTTPException(status_code=404, detail=f"Vessel {vessel_id} not found")


@router.get(
    "",
    response_model=FleetResponse,
    summary="Fleet snapshot",
    description="""
Get every vessel of the caller's fleet with its current position.

Stored positions newer than the freshness window are served as is; older
ones are refreshed from the AIS provider while the tenant's request budget
allows. A vessel without an obtainable position has `position: null`.
    """,
)
async def get_fleet(
    tenant: TenantId = Depends(get_tenant),
    services: TrackingServices = Depends(get_services),
) -> FleetResponse:
    report = await services.orchestrator.refresh_fleet(tenant)
    return FleetResponse.model_validate(report.to_dict())


@router.post(
    "",
    response_model=VesselSnapshotResponse,
    status_code=201,
    summary="Register vessel",
    responses={422: {"description": "Invalid name or identifier"}},
)
async def create_vessel(
    body: VesselCreateRequest,
    tenant: TenantId = Depends(get_tenant),
    services: TrackingServices = Depends(get_services),
) -> VesselSnapshotResponse:
    """Register a vessel and fetch its initial position.

    Example:
        POST /api/v1/vessels {"name": "NORDIC STAR", "mmsi": "710005865"}
    """
    try:
        snapshot = await services.orchestrator.register_vessel(
            tenant, body.name, mmsi=body.mmsi, imo=body.imo
        )
    except InvalidIdentifierError:
        raise
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return VesselSnapshotResponse.model_validate(snapshot.to_dict())


@router.get(
    "/{vessel_id}",
    response_model=VesselSnapshotResponse,
    summary="Get vessel snapshot",
    responses={404: {"description": "Vessel not found"}},
)
async def get_vessel(
    vessel_id: str,
    tenant: TenantId = Depends(get_tenant),
    services: TrackingServices = Depends(get_services),
) -> VesselSnapshotResponse:
    snapshot = await services.orchestrator.refresh_vessel(tenant, vessel_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail=f"Vessel {vessel_id} not found")
    return VesselSnapshotResponse.model_validate(snapshot.to_dict())


@router.get(
    "/{vessel_id}/positions",
    response_model=PositionHistoryResponse,
    summary="Get position history",
    description="""
Get stored positions of a vessel, newest first.

**Query Parameters:**
- `limit`: Maximum number of positions (default 100, capped at 500)
    """,
    responses={404: {"description": "Vessel not found"}},
)
async def get_position_history(
    vessel_id: str,
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of positions"),
    tenant: TenantId = Depends(get_tenant),
    services: TrackingServices = Depends(get_services),
) -> PositionHistoryResponse:
    await _require_vessel(services, tenant, vessel_id)

    store = services.positions
    effective = min(limit or store.default_history_limit, store.max_history_limit)
    records = await store.history(tenant, vessel_id, limit=effective)
    return PositionHistoryResponse(
        vessel_id=vessel_id,
        positions=[PositionResponse.model_validate(r.to_response()) for r in records],
        limit=effective,
    )


@router.post(
    "/{vessel_id}/positions",
    response_model=PositionResponse,
    status_code=201,
    summary="Record a manual or demo position",
    responses={404: {"description": "Vessel not found"}},
)
async def record_position(
    vessel_id: str,
    body: SyntheticPositionRequest,
    tenant: TenantId = Depends(get_tenant),
    services: TrackingServices = Depends(get_services),
) -> PositionResponse:
    await _require_vessel(services, tenant, vessel_id)

    record = await services.positions.record_synthetic(
        tenant,
        vessel_id,
        lat=body.lat,
        lon=body.lon,
        source=body.source,
        timestamp=body.timestamp,
        sog=body.sog,
        cog=body.cog,
        heading=body.heading,
        nav_status=body.nav_status,
    )
    logger.info(f"Recorded {body.source} position for vessel {vessel_id} (tenant {tenant})")
    return PositionResponse.model_validate(record.to_response())
