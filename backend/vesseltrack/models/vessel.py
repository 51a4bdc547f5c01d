"""Vessel model for tenant-owned fleet members."""

from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vesseltrack.database.base import Base, TimestampMixin

if TYPE_CHECKING:
    from vesseltrack.models.port_call import PortCall


def new_id() -> str:
    return str(uuid4())


class Vessel(Base, TimestampMixin):
    """Vessel identity scoped to one tenant."""

    __tablename__ = "vessels"
    __table_args__ = (
        Index("ix_vessels_tenant_id", "tenant_id"),
        Index("ix_vessels_tenant_mmsi", "tenant_id", "mmsi"),
        Index("ix_vessels_tenant_imo", "tenant_id", "imo"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    tenant_id: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # 9-digit MMSI
    mmsi: Mapped[Optional[str]] = mapped_column(String(9), nullable=True)

    # Stored as "IMO" + 7 digits
    imo: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    port_calls: Mapped[list["PortCall"]] = relationship(
        "PortCall", back_populates="vessel", lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<Vessel(id={self.id}, name={self.name}, mmsi={self.mmsi}, imo={self.imo})>"

    @property
    def has_identifier(self) -> bool:
        return bool(self.mmsi or self.imo)
