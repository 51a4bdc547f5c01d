"""Pydantic request and response schemas for API v1 endpoints.

Responses are serialized with camelCase keys; requests accept either
camelCase or snake_case.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Vessel Models
# =============================================================================


class VesselSummary(APIModel):
    id: str
    name: str
    mmsi: Optional[str] = None
    imo: Optional[str] = None


class PositionResponse(APIModel):
    """A vessel position, stored or freshly fetched."""

    id: Optional[int] = Field(None, description="Record id, absent for unstored positions")
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    timestamp: datetime = Field(..., description="Position report time (ISO 8601)")
    sog: Optional[float] = Field(None, description="Speed over ground (knots)")
    cog: Optional[float] = Field(None, description="Course over ground (degrees)")
    heading: Optional[float] = None
    nav_status: Optional[str] = None
    source: str = "ais"


class PortCallSummary(APIModel):
    id: str
    port: str
    eta: Optional[datetime] = None
    etd: Optional[datetime] = None
    status: str


class VesselSnapshotResponse(APIModel):
    """Vessel with its current position, status and active port call.

    Example:
        {
            "vessel": {"id": "...", "name": "NORDIC STAR", "mmsi": "710005865", "imo": null},
            "status": "AT_SEA",
            "position": {"lat": -24.481873, "lon": -44.217957, ...},
            "lastKnownPosition": null,
            "portCall": null,
            "zoneIds": [],
            "dataSource": "primary",
            "fetched": true,
            "skipReason": null
        }
    """

    vessel: VesselSummary
    status: str
    position: Optional[PositionResponse] = None
    last_known_position: Optional[PositionResponse] = None
    port_call: Optional[PortCallSummary] = None
    zone_ids: list[str] = Field(default_factory=list)
    data_source: Literal["primary", "unavailable"] = "primary"
    fetched: bool = False
    skip_reason: Optional[str] = None


class FleetResponse(APIModel):
    vessels: list[VesselSnapshotResponse]
    fetched: int = Field(..., description="Vessels refreshed from the provider this cycle")
    rate_limited: int = Field(..., description="Vessels skipped for budget exhaustion")
    provider_errors: dict[str, str] = Field(default_factory=dict)
    storage_errors: int = 0
    limiter_errors: int = 0
    events_written: int = 0
    event_failures: int = 0
    degraded: bool = False


class VesselCreateRequest(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    mmsi: Optional[str] = Field(None, description="9-digit MMSI")
    imo: Optional[str] = Field(None, description="7-digit IMO, optionally prefixed with 'IMO'")

    @model_validator(mode="after")
    def require_identifier(self) -> "VesselCreateRequest":
        if not self.mmsi and not self.imo:
            raise ValueError("At least one of mmsi or imo is required")
        return self


class PositionHistoryResponse(APIModel):
    vessel_id: str
    positions: list[PositionResponse]
    limit: int


class SyntheticPositionRequest(APIModel):
    """Manually entered or demo position."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    timestamp: Optional[datetime] = None
    sog: Optional[float] = Field(None, ge=0)
    cog: Optional[float] = Field(None, ge=0, le=360)
    heading: Optional[float] = Field(None, ge=0, le=360)
    nav_status: Optional[str] = None
    source: Literal["manual", "demo"] = "manual"


# =============================================================================
# Operation Log Models
# =============================================================================


class OperationLogResponse(APIModel):
    id: int
    vessel_id: Optional[str] = None
    event_type: str
    description: str
    timestamp: datetime
    position_lat: Optional[float] = None
    position_lon: Optional[float] = None
    previous_status: Optional[str] = None
    current_status: Optional[str] = None


class OperationLogListResponse(APIModel):
    events: list[OperationLogResponse]
    limit: int
    offset: int


# =============================================================================
# Zone Models
# =============================================================================


class ZoneCenter(APIModel):
    lat: float
    lon: float


class ZoneResponse(APIModel):
    id: str
    name: str
    code: Optional[str] = None
    type: str
    shape: Literal["polygon", "circle"]
    vertices: Optional[list[list[float]]] = None
    center: Optional[ZoneCenter] = None
    radius_meters: Optional[float] = None


class ZoneListResponse(APIModel):
    zones: list[ZoneResponse]
    total: int


class ProviderPositionResponse(APIModel):
    lat: float
    lon: float
    timestamp: datetime
    sog: Optional[float] = None
    cog: Optional[float] = None
    heading: Optional[float] = None
    nav_status: Optional[str] = None
    mmsi: Optional[str] = None
    imo: Optional[str] = None
    name: Optional[str] = None
    source: str = "ais"


class ZoneVesselsResponse(APIModel):
    """Vessels reported by the provider inside a bounding box."""

    provider: str
    bbox: dict[str, float]
    positions: list[ProviderPositionResponse]
    total: int


class ErrorResponse(APIModel):
    error: str
    detail: str
