"""Tracking engine schema

Revision ID: 001
Revises:
Create Date: 2026-03-01 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
    ]


def upgrade() -> None:
    # Vessels
    op.create_table(
        "vessels",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("mmsi", sa.String(length=9), nullable=True),
        sa.Column("imo", sa.String(length=10), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_vessels")),
    )
    op.create_index("ix_vessels_tenant_id", "vessels", ["tenant_id"])
    op.create_index("ix_vessels_tenant_mmsi", "vessels", ["tenant_id", "mmsi"])
    op.create_index("ix_vessels_tenant_imo", "vessels", ["tenant_id", "imo"])

    # Port calls
    op.create_table(
        "port_calls",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=255), nullable=False),
        sa.Column("vessel_id", sa.String(length=36), nullable=False),
        sa.Column("port_name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("eta", sa.DateTime(timezone=True), nullable=True),
        sa.Column("etd", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["vessel_id"],
            ["vessels.id"],
            name=op.f("fk_port_calls_vessel_id_vessels"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_port_calls")),
    )
    op.create_index(
        "ix_port_calls_tenant_vessel_status",
        "port_calls",
        ["tenant_id", "vessel_id", "status"],
    )

    # Geofence zones
    op.create_table(
        "geofence_zones",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=True),
        sa.Column("zone_type", sa.String(length=32), nullable=False),
        sa.Column("shape", sa.String(length=16), nullable=False),
        sa.Column("vertices", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("center_lat", sa.Numeric(precision=10, scale=8), nullable=True),
        sa.Column("center_lon", sa.Numeric(precision=11, scale=8), nullable=True),
        sa.Column("radius_meters", sa.Float(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_geofence_zones")),
    )
    op.create_index(
        "ix_geofence_zones_tenant_active", "geofence_zones", ["tenant_id", "active"]
    )

    # Position history
    op.create_table(
        "vessel_position_history",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("vessel_id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=255), nullable=False),
        sa.Column("latitude", sa.Numeric(precision=10, scale=8), nullable=False),
        sa.Column("longitude", sa.Numeric(precision=11, scale=8), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sog", sa.Numeric(precision=6, scale=2), nullable=True),
        sa.Column("cog", sa.Numeric(precision=6, scale=2), nullable=True),
        sa.Column("heading", sa.Numeric(precision=6, scale=2), nullable=True),
        sa.Column("nav_status", sa.String(length=64), nullable=True),
        sa.Column("runtime_status", sa.String(length=16), nullable=True),
        sa.Column("source", sa.String(length=32), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["vessel_id"],
            ["vessels.id"],
            name=op.f("fk_vessel_position_history_vessel_id_vessels"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_vessel_position_history")),
    )
    op.create_index(
        "ix_vessel_position_history_tenant_vessel_timestamp",
        "vessel_position_history",
        ["tenant_id", "vessel_id", "timestamp"],
    )

    # Operation log
    op.create_table(
        "operation_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("tenant_id", sa.String(length=255), nullable=False),
        sa.Column("vessel_id", sa.String(length=36), nullable=True),
        sa.Column("event_type", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("position_lat", sa.Numeric(precision=10, scale=8), nullable=True),
        sa.Column("position_lon", sa.Numeric(precision=11, scale=8), nullable=True),
        sa.Column("previous_status", sa.String(length=16), nullable=True),
        sa.Column("current_status", sa.String(length=16), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["vessel_id"],
            ["vessels.id"],
            name=op.f("fk_operation_logs_vessel_id_vessels"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_operation_logs")),
    )
    op.create_index(
        "ix_operation_logs_tenant_timestamp", "operation_logs", ["tenant_id", "timestamp"]
    )
    op.create_index(
        "ix_operation_logs_tenant_vessel", "operation_logs", ["tenant_id", "vessel_id"]
    )
    op.create_index(
        "ix_operation_logs_tenant_event_type", "operation_logs", ["tenant_id", "event_type"]
    )


def downgrade() -> None:
    op.drop_table("operation_logs")
    op.drop_table("vessel_position_history")
    op.drop_table("geofence_zones")
    op.drop_table("port_calls")
    op.drop_table("vessels")
