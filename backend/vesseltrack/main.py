"""Main FastAPI application entry point.

Initializes:
- FastAPI application with CORS middleware
- Tracking services (database, cache, rate limiter, AIS provider)
- Exception handlers mapping tracking errors to HTTP responses
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vesseltrack import __version__
from vesseltrack.api.routes import router as api_router
from vesseltrack.config import Settings, get_settings
from vesseltrack.errors import (
    InvalidBoundingBoxError,
    InvalidCredentialsError,
    InvalidIdentifierError,
    MissingTenantError,
    ProviderError,
    ProviderNotConfiguredError,
    RateLimitedError,
    RateLimiterUnavailableError,
    StorageUnavailableError,
    TrackingError,
    VesselNotFoundError,
)
from vesseltrack.services import TrackingServices, build_services

logger = logging.getLogger(__name__)

# Most specific first; the first matching entry wins.
ERROR_STATUS_CODES: list[tuple[type[TrackingError], int]] = [
    (MissingTenantError, 401),
    (InvalidIdentifierError, 422),
    (InvalidBoundingBoxError, 422),
    (RateLimitedError, 429),
    (RateLimiterUnavailableError, 503),
    (ProviderNotConfiguredError, 503),
    (InvalidCredentialsError, 502),
    (VesselNotFoundError, 404),
    (ProviderError, 502),
    (StorageUnavailableError, 503),
]


def status_code_for(error: TrackingError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
    status_code = status_code_for(exc)
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc}")

    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
        headers=headers,
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[TrackingServices] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to get_settings())
        services: Pre-built services; built from settings when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager for startup and shutdown events."""
        logger.info("=" * 60)
        logger.info(f"Starting {settings.app_name}")
        logger.info("=" * 60)
        logger.info(f"Environment: {settings.environment}")
        logger.info(f"Debug mode: {settings.debug}")

        tracking = services or build_services(settings)
        await tracking.start()
        app.state.services = tracking

        logger.info(f"{settings.app_name} startup complete")

        yield

        logger.info(f"Shutting down {settings.app_name}")
        await tracking.close()
        app.state.services = None
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="""
## Vessel Tracking Engine API

Multi-tenant vessel positions, port-call status and geofence events.

### Features
- **Vessels**: Fleet snapshots refreshed from the configured AIS provider
- **Positions**: Bounded per-vessel position history
- **Events**: Status changes, geofence entries and position updates
- **Zones**: Tenant geofences and provider bounding-box queries

### API Versioning
All endpoints are prefixed with `/api/v1`.

### Authentication
The tenant is taken from the authenticated request context set by the
upstream authentication layer; it is never read from query or body.
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
        openapi_tags=[
            {"name": "Vessels", "description": "Fleet snapshots and position history"},
            {"name": "Events", "description": "Tenant operation log"},
            {"name": "Zones", "description": "Geofence zones and provider zone queries"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TrackingError, tracking_error_handler)
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check(request: Request) -> dict[str, str | bool]:
        """Health check endpoint for container orchestration."""
        tracking: Optional[TrackingServices] = getattr(request.app.state, "services", None)
        checks = await tracking.health() if tracking else {}
        database_ok = bool(checks.get("database"))

        return {
            "status": "healthy" if database_ok and checks.get("provider") else "degraded",
            "service": "vesseltrack",
            "environment": settings.environment,
            "database": database_ok,
            "cache": bool(checks.get("cache")),
            "ais_provider": bool(checks.get("provider")),
        }

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "service": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "docs": "/docs" if settings.environment != "production" else "disabled",
        }

    @app.get("/status")
    async def system_status(request: Request) -> dict:
        """Detailed system status endpoint."""
        tracking: Optional[TrackingServices] = getattr(request.app.state, "services", None)
        provider_status = None
        cache_status = None
        if tracking:
            provider_status = tracking.provider.get_source_info().to_dict()
            cache_status = await tracking.cache.get_stats()

        return {
            "service": settings.app_name,
            "version": __version__,
            "environment": settings.environment,
            "ais": provider_status,
            "cache": cache_status,
            "rate_limit_backend": settings.rate_limit_backend,
        }

    return app


configure_logging(get_settings())
app = create_app()
