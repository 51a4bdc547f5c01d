"""Database models for the tracking engine."""

from vesseltrack.models.geofence_zone import GeofenceZone
from vesseltrack.models.operation_log import EventType, OperationLog
from vesseltrack.models.port_call import PortCall
from vesseltrack.models.position_record import PositionRecord
from vesseltrack.models.vessel import Vessel

__all__ = [
    "Vessel",
    "PortCall",
    "PositionRecord",
    "GeofenceZone",
    "OperationLog",
    "EventType",
]
