"""Internal AIS data representation models.

Source-agnostic data structures for provider positions, identifiers and
zone queries.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from vesseltrack.errors import InvalidBoundingBoxError, InvalidIdentifierError

_MMSI_RE = re.compile(r"[0-9]{9}")
_IMO_RE = re.compile(r"[0-9]{7}")
_IMO_PREFIX_RE = re.compile(r"^imo", re.IGNORECASE)


class IdentifierType(str, Enum):
    MMSI = "mmsi"
    IMO = "imo"


def normalize_mmsi(value: Any) -> str:
    """Validate an MMSI and return its 9-digit form.

    Raises:
        InvalidIdentifierError: If the value is not exactly 9 digits
    """
    text = str(value).strip() if value is not None else ""
    if not _MMSI_RE.fullmatch(text):
        raise InvalidIdentifierError(
            f"Invalid MMSI format: {value!r}. MMSI must be exactly 9 digits.",
            identifier=text,
        )
    return text


def normalize_imo(value: Any) -> str:
    """Strip an optional "IMO" prefix and return the 7-digit IMO number.

    Raises:
        InvalidIdentifierError: If the remaining value is not exactly 7 digits
    """
    text = str(value).strip() if value is not None else ""
    digits = _IMO_PREFIX_RE.sub("", text).strip()
    if not _IMO_RE.fullmatch(digits):
        raise InvalidIdentifierError(
            f"Invalid IMO format: {value!r}. IMO must be exactly 7 digits.",
            identifier=text,
        )
    return digits


def normalize_identifier(value: Any, id_type: IdentifierType) -> str:
    if IdentifierType(id_type) is IdentifierType.IMO:
        return normalize_imo(value)
    return normalize_mmsi(value)


def vessel_lookup_key(
    mmsi: Optional[str], imo: Optional[str]
) -> Optional[tuple[str, IdentifierType]]:
    """Pick the identifier used to query a provider; MMSI wins over IMO.

    Returns None when the vessel carries neither.

    Raises:
        InvalidIdentifierError: If the chosen identifier is malformed
    """
    if mmsi:
        return normalize_mmsi(mmsi), IdentifierType.MMSI
    if imo:
        return normalize_imo(imo), IdentifierType.IMO
    return None


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box for zone queries."""

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    def __post_init__(self) -> None:
        for name in ("min_lat", "min_lon", "max_lat", "max_lon"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidBoundingBoxError(f"{name} must be a number")
        if not (-90 <= self.min_lat <= 90 and -90 <= self.max_lat <= 90):
            raise InvalidBoundingBoxError("Latitude must be between -90 and 90")
        if not (-180 <= self.min_lon <= 180 and -180 <= self.max_lon <= 180):
            raise InvalidBoundingBoxError("Longitude must be between -180 and 180")
        if self.min_lat >= self.max_lat:
            raise InvalidBoundingBoxError("min_lat must be less than max_lat")
        if self.min_lon >= self.max_lon:
            raise InvalidBoundingBoxError("min_lon must be less than max_lon")
        if self.max_lat - self.min_lat > 90:
            raise InvalidBoundingBoxError("Latitude range must not exceed 90 degrees")
        if self.max_lon - self.min_lon > 180:
            raise InvalidBoundingBoxError("Longitude range must not exceed 180 degrees")

    @property
    def center(self) -> tuple[float, float]:
        return ((self.min_lat + self.max_lat) / 2, (self.min_lon + self.max_lon) / 2)

    def contains(self, lat: float, lon: float) -> bool:
        """Check if a point is within this bounding box."""
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lon <= lon <= self.max_lon
        )

    def cache_key(self) -> str:
        return (
            f"{self.min_lat:.4f}:{self.min_lon:.4f}:"
            f"{self.max_lat:.4f}:{self.max_lon:.4f}"
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "min_lat": self.min_lat,
            "min_lon": self.min_lon,
            "max_lat": self.max_lat,
            "max_lon": self.max_lon,
        }


def parse_timestamp(value: Any) -> datetime:
    """Parse a provider timestamp into an aware UTC datetime.

    Accepts ISO 8601 strings (with ``Z`` or an offset, or naive meaning UTC),
    epoch seconds and datetimes.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Unrecognized timestamp: {value!r}") from e
    else:
        raise ValueError(f"Unrecognized timestamp: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class ProviderPosition:
    """Position report returned by a provider, independent of vendor format."""

    lat: float
    lon: float
    timestamp: datetime
    sog: Optional[float] = None
    cog: Optional[float] = None
    heading: Optional[float] = None
    nav_status: Optional[str] = None
    mmsi: Optional[str] = None
    imo: Optional[str] = None
    name: Optional[str] = None
    source: str = "ais"
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not -90 <= self.lat <= 90:
            raise ValueError(f"Latitude must be between -90 and 90, got {self.lat}")
        if not -180 <= self.lon <= 180:
            raise ValueError(f"Longitude must be between -180 and 180, got {self.lon}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "lat": self.lat,
            "lon": self.lon,
            "timestamp": self.timestamp.isoformat(),
            "sog": self.sog,
            "cog": self.cog,
            "heading": self.heading,
            "navStatus": self.nav_status,
            "mmsi": self.mmsi,
            "imo": self.imo,
            "name": self.name,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProviderPosition":
        """Rebuild from to_dict() output (used by the response cache)."""
        return cls(
            lat=float(data["lat"]),
            lon=float(data["lon"]),
            timestamp=parse_timestamp(data["timestamp"]),
            sog=data.get("sog"),
            cog=data.get("cog"),
            heading=data.get("heading"),
            nav_status=data.get("navStatus"),
            mmsi=data.get("mmsi"),
            imo=data.get("imo"),
            name=data.get("name"),
            source=data.get("source", "ais"),
        )
