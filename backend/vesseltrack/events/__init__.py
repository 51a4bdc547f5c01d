"""Operation log of vessel events."""

from vesseltrack.events.log import (
    LogEntry,
    LogFilters,
    OperationLogStore,
    describe_geofence_entry,
    describe_position_update,
    describe_status_change,
    describe_vessel_created,
)
from vesseltrack.models.operation_log import EventType

__all__ = [
    "EventType",
    "LogEntry",
    "LogFilters",
    "OperationLogStore",
    "describe_geofence_entry",
    "describe_position_update",
    "describe_status_change",
    "describe_vessel_created",
]
