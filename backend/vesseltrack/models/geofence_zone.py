"""GeofenceZone model for tenant operational sites."""

from typing import Any, Optional

from sqlalchemy import JSON, Boolean, Float, Index, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from vesseltrack.database.base import Base, TimestampMixin
from vesseltrack.geofence.engine import (
    CircleZone,
    PolygonZone,
    Zone,
    ZoneType,
    default_radius,
)
from vesseltrack.models.vessel import new_id


class GeofenceZone(Base, TimestampMixin):
    """Operational zone, stored as a polygon ring or a circle."""

    __tablename__ = "geofence_zones"
    __table_args__ = (
        Index("ix_geofence_zones_tenant_active", "tenant_id", "active"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # PORT, TERMINAL, BERTH, ANCHORAGE, OTHER
    zone_type: Mapped[str] = mapped_column(String(32), nullable=False, default="OTHER")

    # "polygon" or "circle"
    shape: Mapped[str] = mapped_column(String(16), nullable=False)

    # Polygon ring: [[lat, lon], ...]
    vertices: Mapped[Optional[list[list[float]]]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
    )

    center_lat: Mapped[Optional[float]] = mapped_column(
        Numeric(10, 8, asdecimal=False), nullable=True
    )
    center_lon: Mapped[Optional[float]] = mapped_column(
        Numeric(11, 8, asdecimal=False), nullable=True
    )
    radius_meters: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<GeofenceZone(id={self.id}, name={self.name}, type={self.zone_type}, shape={self.shape})>"

    def to_zone(self) -> Zone:
        """Convert to an immutable engine zone."""
        zone_type = ZoneType.parse(self.zone_type)
        if self.shape == "polygon":
            return PolygonZone(
                id=self.id,
                name=self.name,
                zone_type=zone_type,
                vertices=tuple(
                    (float(lat), float(lon)) for lat, lon in (self.vertices or [])
                ),
            )
        return CircleZone(
            id=self.id,
            name=self.name,
            zone_type=zone_type,
            center=(float(self.center_lat), float(self.center_lon)),
            radius_meters=(
                float(self.radius_meters)
                if self.radius_meters is not None
                else default_radius(zone_type)
            ),
        )

    def to_response(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "type": self.zone_type,
            "shape": self.shape,
            "vertices": self.vertices,
            "center": (
                {"lat": self.center_lat, "lon": self.center_lon}
                if self.center_lat is not None
                else None
            ),
            "radiusMeters": self.radius_meters,
        }
