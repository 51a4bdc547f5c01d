"""OperationLog model: append-only tenant event log."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from vesseltrack.database.base import Base, BigIntPK, UTCDateTime


class EventType(str, Enum):
    STATUS_CHANGE = "STATUS_CHANGE"
    GEOFENCE_ENTRY = "GEOFENCE_ENTRY"
    POSITION_UPDATE = "POSITION_UPDATE"
    VESSEL_CREATED = "VESSEL_CREATED"


class OperationLog(Base):
    """Immutable event recorded for a tenant, optionally tied to a vessel."""

    __tablename__ = "operation_logs"
    __table_args__ = (
        Index("ix_operation_logs_tenant_timestamp", "tenant_id", "timestamp"),
        Index("ix_operation_logs_tenant_vessel", "tenant_id", "vessel_id"),
        Index("ix_operation_logs_tenant_event_type", "tenant_id", "event_type"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)
    vessel_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("vessels.id"),
        nullable=True,
    )

    event_type: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    position_lat: Mapped[Optional[float]] = mapped_column(
        Numeric(10, 8, asdecimal=False), nullable=True
    )
    position_lon: Mapped[Optional[float]] = mapped_column(
        Numeric(11, 8, asdecimal=False), nullable=True
    )
    previous_status: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    current_status: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=func.now(),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<OperationLog(id={self.id}, type={self.event_type}, vessel_id={self.vessel_id})>"

    def to_response(self) -> dict:
        return {
            "id": self.id,
            "vesselId": self.vessel_id,
            "eventType": self.event_type,
            "description": self.description,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "positionLat": self.position_lat,
            "positionLon": self.position_lon,
            "previousStatus": self.previous_status,
            "currentStatus": self.current_status,
        }
