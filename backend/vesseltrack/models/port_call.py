"""PortCall model: a vessel's planned or in-progress port visit."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vesseltrack.database.base import Base, TimestampMixin, UTCDateTime
from vesseltrack.models.vessel import new_id

if TYPE_CHECKING:
    from vesseltrack.models.vessel import Vessel


class PortCall(Base, TimestampMixin):
    """Port call, read by status derivation.

    Status values: PLANNED, IN_PROGRESS, COMPLETED, CANCELLED.
    """

    __tablename__ = "port_calls"
    __table_args__ = (
        Index("ix_port_calls_tenant_vessel_status", "tenant_id", "vessel_id", "status"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)
    vessel_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("vessels.id", ondelete="CASCADE"),
        nullable=False,
    )

    port_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PLANNED")
    eta: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    etd: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    vessel: Mapped["Vessel"] = relationship("Vessel", back_populates="port_calls")

    def __repr__(self) -> str:
        return f"<PortCall(id={self.id}, vessel_id={self.vessel_id}, port={self.port_name}, status={self.status})>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "port": self.port_name,
            "eta": self.eta.isoformat() if self.eta else None,
            "etd": self.etd.isoformat() if self.etd else None,
            "status": self.status,
        }
