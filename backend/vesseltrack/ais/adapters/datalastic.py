"""Datalastic provider adapter.

Documentation: https://datalastic.com/api-reference/
The API key travels as the ``api-key`` query parameter. Zone queries are
radius based, so a bounding box is converted to its centre plus the distance
to a corner (capped at 50 NM) and results are clipped back to the box.
"""

from typing import Any, Optional

import httpx

from vesseltrack.ais.adapters.http import HttpProviderAdapter
from vesseltrack.ais.models import BoundingBox, IdentifierType, ProviderPosition
from vesseltrack.cache.base import CacheBackend
from vesseltrack.errors import VesselNotFoundError
from vesseltrack.geofence.engine import haversine_meters

API_BASE_URL = "https://api.datalastic.com/api/v0/"

METERS_PER_NAUTICAL_MILE = 1852.0
MAX_RADIUS_NM = 50.0


def radius_from_bounds(bbox: BoundingBox) -> float:
    """Distance in NM from the box centre to its north-east corner, capped."""
    center_lat, center_lon = bbox.center
    distance = haversine_meters(center_lat, center_lon, bbox.max_lat, bbox.max_lon)
    return min(distance / METERS_PER_NAUTICAL_MILE, MAX_RADIUS_NM)


class DatalasticAdapter(HttpProviderAdapter):
    source_type = "datalastic"

    def __init__(
        self,
        config: dict[str, Any],
        cache: Optional[CacheBackend] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = {"name": "datalastic", "base_url": API_BASE_URL, **config}
        super().__init__(config, cache=cache, transport=transport)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _auth_headers(self) -> dict[str, str]:
        return {}

    def _auth_params(self) -> dict[str, str]:
        return {"api-key": self.api_key}

    async def _fetch_position(
        self, identifier: str, id_type: IdentifierType
    ) -> ProviderPosition:
        payload = await self._get("vessel", {id_type.value: identifier})
        data = payload.get("data") if isinstance(payload, dict) else None
        if isinstance(data, dict) and isinstance(data.get("vessel"), dict):
            data = data["vessel"]
        position = self._parse_position(data)
        if position is None:
            raise VesselNotFoundError(
                f"No position for {id_type.value.upper()} {identifier}", provider=self.name
            )
        return position

    async def _fetch_zone(self, bbox: BoundingBox) -> list[ProviderPosition]:
        center_lat, center_lon = bbox.center
        payload = await self._get(
            "vessel_inradius",
            {
                "lat": round(center_lat, 6),
                "lon": round(center_lon, 6),
                "radius": round(radius_from_bounds(bbox), 2),
            },
        )
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"].get("vessels")
        return [p for p in self._parse_positions(payload) if bbox.contains(p.lat, p.lon)]
