"""Tenant guard.

Provides:
- TenantId value type threaded through every tracking operation
- require_tenant() validation for identifiers taken from the authenticated context
- FastAPI dependency resolving the tenant from request state
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Request

from vesseltrack.errors import MissingTenantError


@dataclass(frozen=True)
class TenantId:
    """Validated tenant identifier.

    Build instances through require_tenant(); components accept this type
    rather than raw strings so an unvalidated value cannot reach storage.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise MissingTenantError()

    def __str__(self) -> str:
        return self.value


def require_tenant(value: Any) -> TenantId:
    """Validate a raw tenant identifier.

    Args:
        value: Identifier from the authenticated request context

    Returns:
        TenantId wrapping the trimmed identifier

    Raises:
        MissingTenantError: If the value is missing, not a string or blank
    """
    if isinstance(value, TenantId):
        return value
    if value is None:
        raise MissingTenantError()
    if not isinstance(value, str):
        raise MissingTenantError(
            f"Tenant identifier must be a string, got {type(value).__name__}"
        )
    if not value.strip():
        raise MissingTenantError()
    return TenantId(value.strip())


def get_tenant(request: Request) -> TenantId:
    """FastAPI dependency returning the caller's tenant.

    The authentication layer is expected to set ``request.state.tenant_id``;
    payload fields and query parameters are never consulted.
    """
    return require_tenant(getattr(request.state, "tenant_id", None))
