"""Operation log API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from vesseltrack.api.deps import get_services
from vesseltrack.api.v1.schemas import OperationLogListResponse, OperationLogResponse
from vesseltrack.events.log import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT, LogFilters
from vesseltrack.models.operation_log import EventType
from vesseltrack.services import TrackingServices
from vesseltrack.tenancy import TenantId, get_tenant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])


@router.get(
    "",
    response_model=OperationLogListResponse,
    summary="List operation log events",
    description="""
Get recent events for the caller's fleet, newest first.

**Query Parameters:**
- `vessel_id`: Only events of this vessel
- `event_type`: STATUS_CHANGE, GEOFENCE_ENTRY, POSITION_UPDATE or VESSEL_CREATED
- `limit`: Maximum number of events (default 50, max 500)
- `offset`: Pagination offset
    """,
)
async def list_events(
    vessel_id: Optional[str] = Query(None, description="Filter by vessel id"),
    event_type: Optional[EventType] = Query(None, description="Filter by event type"),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    offset: int = Query(0, ge=0),
    tenant: TenantId = Depends(get_tenant),
    services: TrackingServices = Depends(get_services),
) -> OperationLogListResponse:
    entries = await services.events.query(
        tenant,
        LogFilters(vessel_id=vessel_id, event_type=event_type),
        limit=limit,
        offset=offset,
    )
    return OperationLogListResponse(
        events=[OperationLogResponse.model_validate(e.to_response()) for e in entries],
        limit=limit,
        offset=offset,
    )
