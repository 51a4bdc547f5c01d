"""Vessel position history."""

from vesseltrack.positions.store import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_RETENTION_LIMIT,
    MAX_HISTORY_LIMIT,
    SYNTHETIC_SOURCES,
    PositionStore,
)

__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_RETENTION_LIMIT",
    "MAX_HISTORY_LIMIT",
    "SYNTHETIC_SOURCES",
    "PositionStore",
]
