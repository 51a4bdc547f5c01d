"""FastAPI dependencies shared by API routers."""

from fastapi import HTTPException, Request

from vesseltrack.services import TrackingServices


def get_services(request: Request) -> TrackingServices:
    """Services container started by the application lifespan."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Tracking services are not initialized")
    return services
