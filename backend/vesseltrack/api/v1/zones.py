"""Geofence zone API endpoints.

Provides endpoints for:
- Listing the caller's active zones
- Querying the AIS provider for vessels inside a bounding box
"""

import logging

from fastapi import APIRouter, Depends, Query

from vesseltrack.ais.models import BoundingBox
from vesseltrack.api.deps import get_services
from vesseltrack.api.v1.schemas import (
    ProviderPositionResponse,
    ZoneListResponse,
    ZoneResponse,
    ZoneVesselsResponse,
)
from vesseltrack.errors import RateLimitedError
from vesseltrack.services import TrackingServices
from vesseltrack.tenancy import TenantId, get_tenant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/zones", tags=["Zones"])


@router.get(
    "",
    response_model=ZoneListResponse,
    summary="List zones",
)
async def list_zones(
    tenant: TenantId = Depends(get_tenant),
    services: TrackingServices = Depends(get_services),
) -> ZoneListResponse:
    zones = await services.zones.list_active(tenant)
    return ZoneListResponse(
        zones=[ZoneResponse.model_validate(z.to_response()) for z in zones],
        total=len(zones),
    )


@router.get(
    "/vessels",
    response_model=ZoneVesselsResponse,
    summary="Vessels in a bounding box",
    description="""
Ask the AIS provider for every vessel inside a bounding box.

Each call spends one unit of the caller's provider budget; when the budget
is exhausted the response is 429 with a `Retry-After` header.

**Example:**
```
GET /api/v1/zones/vessels?min_lat=40.2&min_lon=22.5&max_lat=41.0&max_lon=23.5
```
    """,
    responses={
        422: {"description": "Invalid bounding box"},
        429: {"description": "Provider request budget exhausted"},
    },
)
async def vessels_in_zone(
    min_lat: float = Query(..., description="Southern edge"),
    min_lon: float = Query(..., description="Western edge"),
    max_lat: float = Query(..., description="Northern edge"),
    max_lon: float = Query(..., description="Eastern edge"),
    tenant: TenantId = Depends(get_tenant),
    services: TrackingServices = Depends(get_services),
) -> ZoneVesselsResponse:
    bbox = BoundingBox(min_lat=min_lat, min_lon=min_lon, max_lat=max_lat, max_lon=max_lon)

    provider = services.provider
    decision = await services.throttle.try_acquire(tenant, provider)
    if not decision.allowed:
        raise RateLimitedError(provider.name, decision.retry_after)

    positions = await provider.fetch_in_zone(bbox)
    return ZoneVesselsResponse(
        provider=provider.name,
        bbox=bbox.to_dict(),
        positions=[ProviderPositionResponse.model_validate(p.to_dict()) for p in positions],
        total=len(positions),
    )
