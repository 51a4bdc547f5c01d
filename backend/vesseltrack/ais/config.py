"""AIS provider configuration.

Builds the active provider adapter from application settings, optionally
overridden by a YAML file (``AIS_CONFIG_FILE``) such as::

    provider:
      type: myshiptracking
      api_key: ${MYSHIPTRACKING_API_KEY}
      secret_key: ${MYSHIPTRACKING_SECRET_KEY}
      timeout: 10
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from vesseltrack.ais.adapters.base import ProviderAdapter
from vesseltrack.ais.adapters.datalastic import DatalasticAdapter
from vesseltrack.ais.adapters.fixture import FixtureAdapter
from vesseltrack.ais.adapters.http import HttpProviderAdapter
from vesseltrack.ais.adapters.myshiptracking import MyShipTrackingAdapter
from vesseltrack.cache.base import CacheBackend
from vesseltrack.config import Settings

logger = logging.getLogger(__name__)


class ProviderConfigError(Exception):
    """Exception raised when provider configuration loading fails."""


PROVIDER_TYPES: dict[str, type[ProviderAdapter]] = {
    "myshiptracking": MyShipTrackingAdapter,
    "datalastic": DatalasticAdapter,
    "http": HttpProviderAdapter,
    "fixture": FixtureAdapter,
}


def _substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in string values.

    Supports ${VAR_NAME} syntax.
    """
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1], "")
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    return value


def load_provider_file(config_file: str) -> dict[str, Any]:
    """Read the ``provider`` section of a YAML config file.

    Raises:
        ProviderConfigError: If the file is missing or malformed
    """
    path = Path(config_file)
    if not path.exists():
        raise ProviderConfigError(f"Config file not found: {config_file}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ProviderConfigError(f"Invalid YAML in {config_file}: {e}") from e

    section = content.get("provider")
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ProviderConfigError(f"'provider' section in {config_file} must be a mapping")
    return _substitute_env_vars(section)


def provider_config_from_settings(settings: Settings) -> dict[str, Any]:
    """Assemble the adapter config for ``settings.ais_provider``."""
    provider_type = settings.ais_provider
    config: dict[str, Any] = {
        "type": provider_type,
        "timeout": settings.ais_http_timeout_seconds,
        "position_cache_ttl": settings.position_cache_ttl_seconds,
        "zone_cache_ttl": settings.zone_cache_ttl_seconds,
    }

    if provider_type == "myshiptracking":
        config.update(
            api_key=settings.myshiptracking_api_key,
            secret_key=settings.myshiptracking_secret_key,
            base_url=settings.myshiptracking_api_url,
        )
    elif provider_type == "datalastic":
        config.update(
            api_key=settings.datalastic_api_key,
            base_url=settings.datalastic_api_url,
        )
    elif provider_type == "http":
        config.update(
            api_key=settings.ais_http_api_key,
            base_url=settings.ais_http_api_url,
        )

    if settings.ais_config_file:
        config.update(load_provider_file(settings.ais_config_file))
    return config


def create_provider(
    config: dict[str, Any],
    cache: Optional[CacheBackend] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderAdapter:
    """Create a provider adapter from a config dict.

    Raises:
        ProviderConfigError: If the provider type is unknown
    """
    provider_type = config.get("type", "datalastic")
    adapter_cls = PROVIDER_TYPES.get(provider_type)
    if adapter_cls is None:
        raise ProviderConfigError(f"Unknown provider type: {provider_type}")

    options = {k: v for k, v in config.items() if k != "type"}
    if adapter_cls is FixtureAdapter:
        adapter = FixtureAdapter(options, cache=cache)
    else:
        adapter = adapter_cls(options, cache=cache, transport=transport)

    if not adapter.is_configured():
        logger.warning(
            f"AIS provider '{adapter.name}' has no credentials configured; "
            "position fetches will fail until they are set"
        )
    return adapter
