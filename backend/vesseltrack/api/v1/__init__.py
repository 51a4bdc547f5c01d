"""API v1 router aggregation.

Combines all v1 API routers into a single router for mounting.
"""

from fastapi import APIRouter

from vesseltrack.api.v1.events import router as events_router
from vesseltrack.api.v1.vessels import router as vessels_router
from vesseltrack.api.v1.zones import router as zones_router

router = APIRouter()

router.include_router(vessels_router)
router.include_router(events_router)
router.include_router(zones_router)

__all__ = ["router"]
