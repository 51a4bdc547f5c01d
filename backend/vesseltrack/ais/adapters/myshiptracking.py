"""MyShipTracking provider adapter.

Documentation: https://api.myshiptracking.com
Authenticates with a Bearer API key; the account secret must also be
configured for the adapter to count as configured.
"""

from typing import Any, Optional

import httpx

from vesseltrack.ais.adapters.http import HttpProviderAdapter
from vesseltrack.ais.models import BoundingBox, IdentifierType, ProviderPosition
from vesseltrack.cache.base import CacheBackend
from vesseltrack.errors import VesselNotFoundError

API_BASE_URL = "https://api.myshiptracking.com/api/v2/"


class MyShipTrackingAdapter(HttpProviderAdapter):
    source_type = "myshiptracking"

    def __init__(
        self,
        config: dict[str, Any],
        cache: Optional[CacheBackend] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = {"name": "myshiptracking", "base_url": API_BASE_URL, **config}
        super().__init__(config, cache=cache, transport=transport)
        self.secret_key = config.get("secret_key", "")

    def is_configured(self) -> bool:
        return bool(self.api_key and self.secret_key)

    async def _fetch_position(
        self, identifier: str, id_type: IdentifierType
    ) -> ProviderPosition:
        payload = await self._get("vessel", {id_type.value: identifier})
        data = payload.get("data") if isinstance(payload, dict) else None
        position = self._parse_position(data)
        if position is None:
            raise VesselNotFoundError(
                f"No position for {id_type.value.upper()} {identifier}", provider=self.name
            )
        return position

    async def _fetch_zone(self, bbox: BoundingBox) -> list[ProviderPosition]:
        payload = await self._get(
            "vessel/zone",
            {
                "minlat": bbox.min_lat,
                "minlon": bbox.min_lon,
                "maxlat": bbox.max_lat,
                "maxlon": bbox.max_lon,
            },
        )
        return self._parse_positions(payload)
