"""HTTP provider adapter.

Provides:
- HttpProviderAdapter implementing the vendor-neutral REST contract
  (``GET position?id=&type=`` and ``GET zone?minlat&maxlat&minlon&maxlon``)
- Status code to error mapping shared by the vendor adapters
- Payload coercion helpers
"""

import logging
from typing import Any, Optional

import httpx

from vesseltrack.ais.adapters.base import ProviderAdapter
from vesseltrack.ais.models import (
    BoundingBox,
    IdentifierType,
    ProviderPosition,
    parse_timestamp,
)
from vesseltrack.cache.base import CacheBackend
from vesseltrack.errors import (
    InvalidCredentialsError,
    ProviderError,
    VesselNotFoundError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0

# Vendor error codes that may arrive inside a 200 response body
_CREDENTIAL_ERROR_CODES = {"ERR_NO_KEY", "ERR_INVALID_KEY"}
_NOT_FOUND_ERROR_CODES = {"ERR_NOT_FOUND", "ERR_INVALID_ROUTE"}


def to_float(value: Any) -> Optional[float]:
    """Coerce a numeric payload field, treating blanks as missing."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def first_present(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body.get("code") or body)
    return str(body)[:200]


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """Map a non-2xx provider response to the error taxonomy.

    Raises:
        InvalidCredentialsError: On 401/403
        VesselNotFoundError: On 404
        ProviderError: On any other non-2xx, keeping the status code
    """
    if response.is_success:
        return

    status = response.status_code
    detail = _error_detail(response)
    if status in (401, 403):
        raise InvalidCredentialsError(
            f"Credentials rejected (HTTP {status}): {detail}",
            provider=provider,
            status_code=status,
        )
    if status == 404:
        raise VesselNotFoundError(
            f"Not found: {detail}", provider=provider, status_code=status
        )
    raise ProviderError(f"HTTP {status}: {detail}", provider=provider, status_code=status)


def raise_for_error_body(payload: Any, provider: str) -> None:
    """Raise for vendor payloads shaped ``{"status": "error", "code": ...}``."""
    if not isinstance(payload, dict) or payload.get("status") != "error":
        return

    code = str(payload.get("code") or "")
    message = str(payload.get("message") or code or "Provider returned an error")
    if code in _CREDENTIAL_ERROR_CODES:
        raise InvalidCredentialsError(message, provider=provider)
    if code in _NOT_FOUND_ERROR_CODES:
        raise VesselNotFoundError(message, provider=provider)
    raise ProviderError(message, provider=provider)


class HttpProviderAdapter(ProviderAdapter):
    """Adapter for providers exposing the vendor-neutral REST contract.

    Config keys:
        name: Provider name used for budgets and logs (default "http")
        base_url: API root; endpoints are resolved relative to it
        api_key: Sent as a Bearer token
        timeout: Request timeout in seconds
    """

    source_type = "http"

    def __init__(
        self,
        config: dict[str, Any],
        cache: Optional[CacheBackend] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config, cache=cache)
        self.base_url = config.get("base_url", "")
        self.api_key = config.get("api_key", "")
        self.timeout = float(config.get("timeout", DEFAULT_TIMEOUT_SECONDS))
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    async def start(self) -> None:
        self._get_client()
        await super().start()

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        await super().stop()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _auth_params(self) -> dict[str, str]:
        return {}

    async def _get(self, endpoint: str, params: dict[str, Any]) -> Any:
        """GET an endpoint and return the decoded JSON body."""
        client = self._get_client()
        query = {**self._auth_params(), **{k: v for k, v in params.items() if v is not None}}
        try:
            response = await client.get(endpoint, params=query, headers=self._auth_headers())
        except httpx.TimeoutException as e:
            raise ProviderError(f"Request to {endpoint} timed out", provider=self.name) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Network error on {endpoint}: {e}", provider=self.name) from e

        raise_for_provider_status(response, self.name)
        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(
                f"Non-JSON response from {endpoint}",
                provider=self.name,
                status_code=response.status_code,
            ) from e

        raise_for_error_body(payload, self.name)
        return payload

    def _parse_position(self, data: Any) -> Optional[ProviderPosition]:
        """Build a ProviderPosition from one payload object.

        Returns None when coordinates or timestamp are missing or invalid.
        """
        if not isinstance(data, dict):
            return None

        lat = to_float(first_present(data, "lat", "latitude"))
        lon = to_float(first_present(data, "lon", "lng", "longitude"))
        raw_timestamp = first_present(data, "timestamp", "received", "last_position_time")
        if lat is None or lon is None or raw_timestamp is None:
            return None

        try:
            nav_status = first_present(data, "navStatus", "nav_status", "navigational_status")
            return ProviderPosition(
                lat=lat,
                lon=lon,
                timestamp=parse_timestamp(raw_timestamp),
                sog=to_float(first_present(data, "sog", "speed")),
                cog=to_float(first_present(data, "cog", "course")),
                heading=to_float(data.get("heading")),
                nav_status=str(nav_status) if nav_status is not None else None,
                mmsi=str(data["mmsi"]) if data.get("mmsi") else None,
                imo=str(data["imo"]) if data.get("imo") else None,
                name=first_present(data, "name", "vessel_name"),
                source=self.name,
            )
        except ValueError as e:
            logger.warning(f"[{self.name}] Discarding malformed position: {e}")
            return None

    async def _fetch_position(
        self, identifier: str, id_type: IdentifierType
    ) -> ProviderPosition:
        payload = await self._get("position", {"id": identifier, "type": id_type.value})
        position = self._parse_position(payload)
        if position is None:
            raise VesselNotFoundError(
                f"No position for {id_type.value.upper()} {identifier}", provider=self.name
            )
        return position

    async def _fetch_zone(self, bbox: BoundingBox) -> list[ProviderPosition]:
        payload = await self._get(
            "zone",
            {
                "minlat": bbox.min_lat,
                "maxlat": bbox.max_lat,
                "minlon": bbox.min_lon,
                "maxlon": bbox.max_lon,
            },
        )
        return self._parse_positions(payload)

    def _parse_positions(self, payload: Any) -> list[ProviderPosition]:
        if isinstance(payload, dict):
            payload = payload.get("data")
        if not isinstance(payload, list):
            return []
        positions = [self._parse_position(item) for item in payload]
        return [p for p in positions if p is not None]
