"""AIS provider access for the tracking engine.

This module provides:
- Source-agnostic position and bounding box models
- MMSI / IMO normalization
- Adapter pattern over external vessel-tracking vendors
- Provider construction from settings
"""

from vesseltrack.ais.adapters.base import ProviderAdapter, SourceInfo
from vesseltrack.ais.config import (
    ProviderConfigError,
    create_provider,
    provider_config_from_settings,
)
from vesseltrack.ais.models import (
    BoundingBox,
    IdentifierType,
    ProviderPosition,
    normalize_identifier,
    normalize_imo,
    normalize_mmsi,
    vessel_lookup_key,
)

__all__ = [
    # Models
    "BoundingBox",
    "IdentifierType",
    "ProviderPosition",
    "normalize_identifier",
    "normalize_imo",
    "normalize_mmsi",
    "vessel_lookup_key",
    # Adapters
    "ProviderAdapter",
    "SourceInfo",
    # Config
    "ProviderConfigError",
    "create_provider",
    "provider_config_from_settings",
]
