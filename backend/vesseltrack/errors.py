"""Error taxonomy for the tracking engine.

Every error raised by tracking components derives from TrackingError so the
HTTP layer and the refresh orchestrator can decide, per type, whether to abort,
skip a vessel or degrade.
"""

from typing import Optional


class TrackingError(Exception):
    """Base class for all tracking engine errors."""


class MissingTenantError(TrackingError):
    """Raised when an operation is invoked without a usable tenant identifier."""

    def __init__(self, message: str = "Tenant identifier is required"):
        super().__init__(message)


class InvalidIdentifierError(TrackingError, ValueError):
    """Raised when an MMSI or IMO value fails validation."""

    def __init__(self, message: str, identifier: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message)


class InvalidBoundingBoxError(TrackingError, ValueError):
    """Raised when a zone query bounding box is malformed."""


class RateLimitedError(TrackingError):
    """Raised when the provider request budget for a tenant is exhausted."""

    def __init__(self, provider: str, retry_after: int):
        self.provider = provider
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for provider '{provider}', retry after {retry_after}s"
        )


class ProviderError(TrackingError):
    """Raised when an AIS provider request fails.

    Attributes:
        provider: Name of the provider that failed
        status_code: Upstream HTTP status code, when one was received
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"[{provider}] {message}" if provider else message)


class ProviderNotConfiguredError(ProviderError):
    """Raised when the active provider has no credentials configured."""


class InvalidCredentialsError(ProviderError):
    """Raised when the provider rejects the configured credentials (401/403)."""


class VesselNotFoundError(ProviderError):
    """Raised when the provider has no position for the requested vessel."""


class StorageUnavailableError(TrackingError):
    """Raised when the relational store cannot serve a request."""


class EventLogWriteError(TrackingError):
    """Raised when an operation log entry cannot be written."""


class RateLimiterUnavailableError(TrackingError):
    """Raised when the shared request budget cannot be read.

    Callers treat the budget as unknown and do not call the provider.
    """
