"""PositionRecord model for per-vessel position history."""

from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from vesseltrack.database.base import Base, BigIntPK, UTCDateTime


class PositionRecord(Base):
    """One position report for a vessel.

    History per vessel is capped by the position store; rows are only ever
    inserted or trimmed, never updated.
    """

    __tablename__ = "vessel_position_history"
    __table_args__ = (
        Index(
            "ix_vessel_position_history_tenant_vessel_timestamp",
            "tenant_id",
            "vessel_id",
            "timestamp",
        ),
    )
    # Fetch server-generated columns at flush; records outlive their session
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    vessel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vessels.id", ondelete="CASCADE"),
        nullable=False,
    )
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)

    latitude: Mapped[float] = mapped_column(Numeric(10, 8, asdecimal=False), nullable=False)
    longitude: Mapped[float] = mapped_column(Numeric(11, 8, asdecimal=False), nullable=False)

    # Position timestamp reported by the source (UTC)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Speed / course over ground, true heading
    sog: Mapped[Optional[float]] = mapped_column(Numeric(6, 2, asdecimal=False), nullable=True)
    cog: Mapped[Optional[float]] = mapped_column(Numeric(6, 2, asdecimal=False), nullable=True)
    heading: Mapped[Optional[float]] = mapped_column(Numeric(6, 2, asdecimal=False), nullable=True)

    nav_status: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # VesselRuntimeStatus derived when this record was written
    runtime_status: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    # Provider name for fetched telemetry, "manual" / "demo" for injected data
    source: Mapped[str] = mapped_column(String(32), nullable=False, default="ais")

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=func.now(),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<PositionRecord(vessel_id={self.vessel_id}, lat={self.latitude}, lon={self.longitude}, timestamp={self.timestamp})>"

    @property
    def point(self) -> tuple[float, float]:
        return (float(self.latitude), float(self.longitude))

    def to_response(self) -> dict:
        return {
            "id": self.id,
            "lat": self.latitude,
            "lon": self.longitude,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "sog": self.sog,
            "cog": self.cog,
            "heading": self.heading,
            "navStatus": self.nav_status,
            "source": self.source,
        }
