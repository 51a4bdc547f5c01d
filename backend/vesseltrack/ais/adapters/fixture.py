"""Fixture adapter serving canned positions.

Used for development environments without vendor credentials and in tests.
Positions are registered in code or loaded from a YAML file.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from vesseltrack.ais.adapters.base import ProviderAdapter
from vesseltrack.ais.models import (
    BoundingBox,
    IdentifierType,
    ProviderPosition,
    normalize_imo,
    normalize_mmsi,
    parse_timestamp,
)
from vesseltrack.cache.base import CacheBackend
from vesseltrack.errors import VesselNotFoundError

logger = logging.getLogger(__name__)


class FixtureLoadError(Exception):
    """Exception raised when a positions file cannot be loaded."""


def load_fixture_positions(path: str) -> list[ProviderPosition]:
    """Load positions from a YAML file.

    Expected layout::

        positions:
          - mmsi: "710005865"
            lat: -24.481873
            lon: -44.217957
            timestamp: "2025-12-12T20:50:19Z"

    Raises:
        FixtureLoadError: If the file is missing or malformed
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FixtureLoadError(f"Positions file not found: {path}")

    try:
        with open(file_path) as f:
            content = yaml.safe_load(f) or {}
        return [
            ProviderPosition(
                lat=float(item["lat"]),
                lon=float(item["lon"]),
                timestamp=parse_timestamp(item["timestamp"]),
                sog=item.get("sog"),
                cog=item.get("cog"),
                heading=item.get("heading"),
                nav_status=item.get("nav_status"),
                mmsi=str(item["mmsi"]) if item.get("mmsi") else None,
                imo=str(item["imo"]) if item.get("imo") else None,
                name=item.get("name"),
                source="fixture",
            )
            for item in content.get("positions", [])
        ]
    except (yaml.YAMLError, KeyError, TypeError, ValueError) as e:
        raise FixtureLoadError(f"Invalid positions file {path}: {e}") from e


class FixtureAdapter(ProviderAdapter):
    """In-process provider keyed by MMSI and IMO.

    Config options:
        name: Adapter name (default "fixture")
        positions_file: YAML file loaded on start (optional)
    """

    source_type = "fixture"

    def __init__(
        self,
        config: Optional[dict[str, Any]] = None,
        cache: Optional[CacheBackend] = None,
    ):
        super().__init__({"name": "fixture", **(config or {})}, cache=cache)
        self.positions_file: Optional[str] = self.config.get("positions_file")
        self._by_mmsi: dict[str, ProviderPosition] = {}
        self._by_imo: dict[str, ProviderPosition] = {}
        self.request_count = 0

    def is_configured(self) -> bool:
        return True

    async def start(self) -> None:
        if self.positions_file:
            for position in load_fixture_positions(self.positions_file):
                self.add_position(position)
            logger.info(
                f"Loaded {len(self._by_mmsi) + len(self._by_imo)} fixture positions "
                f"from {self.positions_file}"
            )
        await super().start()

    def add_position(self, position: ProviderPosition) -> None:
        """Register (or replace) the position served for a vessel."""
        if position.mmsi:
            self._by_mmsi[normalize_mmsi(position.mmsi)] = position
        if position.imo:
            self._by_imo[normalize_imo(position.imo)] = position

    def clear(self) -> None:
        self._by_mmsi.clear()
        self._by_imo.clear()

    async def _fetch_position(
        self, identifier: str, id_type: IdentifierType
    ) -> ProviderPosition:
        self.request_count += 1
        index = self._by_imo if id_type is IdentifierType.IMO else self._by_mmsi
        position = index.get(identifier)
        if position is None:
            raise VesselNotFoundError(
                f"No fixture position for {id_type.value.upper()} {identifier}",
                provider=self.name,
            )
        return position

    async def _fetch_zone(self, bbox: BoundingBox) -> list[ProviderPosition]:
        self.request_count += 1
        unique = {id(p): p for p in [*self._by_mmsi.values(), *self._by_imo.values()]}
        return [p for p in unique.values() if bbox.contains(p.lat, p.lon)]
