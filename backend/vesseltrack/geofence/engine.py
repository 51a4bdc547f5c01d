"""Geofence containment engine.

Provides:
- Polygon and circle zone shapes
- Ray-casting polygon containment
- Haversine circular containment (boundary inclusive)
- Zone set evaluation and entry detection

Everything here is pure and synchronous; zones are immutable values.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

EARTH_RADIUS_M = 6_371_000.0


class ZoneType(str, Enum):
    """Operational site categories."""

    PORT = "PORT"
    TERMINAL = "TERMINAL"
    BERTH = "BERTH"
    ANCHORAGE = "ANCHORAGE"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ZoneType":
        if value is None:
            return cls.OTHER
        try:
            return cls(value.upper())
        except ValueError:
            return cls.OTHER


DEFAULT_RADIUS_METERS = {
    ZoneType.PORT: 5000.0,
    ZoneType.TERMINAL: 2000.0,
    ZoneType.BERTH: 500.0,
}
FALLBACK_RADIUS_METERS = 10000.0


def default_radius(zone_type: ZoneType) -> float:
    """Radius used for circular zones that do not declare one."""
    return DEFAULT_RADIUS_METERS.get(zone_type, FALLBACK_RADIUS_METERS)


@dataclass(frozen=True)
class PolygonZone:
    """Zone bounded by an ordered ring of (lat, lon) vertices."""

    id: str
    name: str
    zone_type: ZoneType
    vertices: tuple[tuple[float, float], ...]

    def contains(self, lat: float, lon: float) -> bool:
        return point_in_polygon(lat, lon, self.vertices)


@dataclass(frozen=True)
class CircleZone:
    """Zone covering every point within radius_meters of its center."""

    id: str
    name: str
    zone_type: ZoneType
    center: tuple[float, float]
    radius_meters: float

    def contains(self, lat: float, lon: float) -> bool:
        return point_in_circle(lat, lon, self.center, self.radius_meters)


Zone = Union[PolygonZone, CircleZone]


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters between two WGS84 points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def point_in_polygon(
    lat: float, lon: float, vertices: Sequence[tuple[float, float]]
) -> bool:
    """Ray-casting containment test.

    Casts a horizontal ray from the point and counts edge crossings; an odd
    count means the point is inside. Fewer than three vertices never contain.

    Args:
        lat: Point latitude
        lon: Point longitude
        vertices: Polygon ring as (lat, lon) pairs, closing edge implied

    Returns:
        True if the point lies inside the polygon
    """
    if len(vertices) < 3:
        return False

    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        yi, xi = vertices[i]
        yj, xj = vertices[j]
        if (yi > lat) != (yj > lat):
            crossing_lon = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lon < crossing_lon:
                inside = not inside
        j = i
    return inside


def point_in_circle(
    lat: float, lon: float, center: tuple[float, float], radius_meters: float
) -> bool:
    """Circular containment; a point exactly on the radius is inside."""
    return haversine_meters(lat, lon, center[0], center[1]) <= radius_meters


def evaluate(lat: float, lon: float, zones: Iterable[Zone]) -> frozenset[str]:
    """Return the ids of every zone containing the point."""
    return frozenset(zone.id for zone in zones if zone.contains(lat, lon))


class GeofenceEngine:
    """Evaluates positions against a tenant's zone set."""

    def evaluate(self, lat: float, lon: float, zones: Iterable[Zone]) -> frozenset[str]:
        return evaluate(lat, lon, zones)

    def entered(
        self,
        previous: Optional[tuple[float, float]],
        current: tuple[float, float],
        zones: Sequence[Zone],
    ) -> list[Zone]:
        """Zones containing the current point but not the previous one.

        With no previous point every containing zone counts as entered.
        Result order follows the order of ``zones``.
        """
        inside_now = evaluate(current[0], current[1], zones)
        inside_before = (
            evaluate(previous[0], previous[1], zones) if previous else frozenset()
        )
        new_ids = inside_now - inside_before
        return [zone for zone in zones if zone.id in new_ids]
