"""Geofence zones and containment tests."""

from vesseltrack.geofence.engine import (
    EARTH_RADIUS_M,
    CircleZone,
    GeofenceEngine,
    PolygonZone,
    Zone,
    ZoneType,
    default_radius,
    evaluate,
    haversine_meters,
    point_in_circle,
    point_in_polygon,
)

__all__ = [
    "EARTH_RADIUS_M",
    "CircleZone",
    "GeofenceEngine",
    "PolygonZone",
    "Zone",
    "ZoneType",
    "default_radius",
    "evaluate",
    "haversine_meters",
    "point_in_circle",
    "point_in_polygon",
]
