"""Vessel runtime status derivation.

Provides:
- VesselRuntimeStatus and PortCallStatus enums
- derive_status() from the active port call
- implied_status() for a stored position
- detect_transition() comparing against the previous stored position
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Optional


class VesselRuntimeStatus(str, Enum):
    """Coarse operational status, recomputed on every evaluation."""

    AT_SEA = "AT_SEA"
    INBOUND = "INBOUND"
    IN_PORT = "IN_PORT"


class PortCallStatus(str, Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class NavigationStatus(IntEnum):
    """AIS navigation status codes relevant to berth/anchor detection."""

    UNDERWAY_ENGINE = 0
    AT_ANCHOR = 1
    MOORED = 5
    UNDERWAY_SAILING = 8
    NOT_DEFINED = 15


# Free-text nav statuses (as returned by vendors) that imply a vessel is alongside
_IN_PORT_NAV_TEXT = {"moored", "at berth", "berthed", "alongside"}


@dataclass(frozen=True)
class StatusTransition:
    previous: VesselRuntimeStatus
    current: VesselRuntimeStatus


def derive_status(port_call: Optional[Any]) -> VesselRuntimeStatus:
    """Derive the status from a vessel's active port call.

    Args:
        port_call: Active port call (anything with a ``status`` attribute), or None

    Returns:
        AT_SEA without a port call, INBOUND for a planned call,
        IN_PORT for a call in progress
    """
    if port_call is None:
        return VesselRuntimeStatus.AT_SEA

    status = getattr(port_call, "status", None)
    if status == PortCallStatus.IN_PROGRESS.value:
        return VesselRuntimeStatus.IN_PORT
    if status == PortCallStatus.PLANNED.value:
        return VesselRuntimeStatus.INBOUND
    return VesselRuntimeStatus.AT_SEA


def status_from_nav_status(nav_status: Optional[str]) -> Optional[VesselRuntimeStatus]:
    """Map a stored nav status to a runtime status, if it implies one."""
    if nav_status is None:
        return None

    text = str(nav_status).strip()
    try:
        return VesselRuntimeStatus(text.upper())
    except ValueError:
        pass

    if text.isdigit():
        return (
            VesselRuntimeStatus.IN_PORT
            if int(text) == NavigationStatus.MOORED
            else None
        )
    if text.lower() in _IN_PORT_NAV_TEXT:
        return VesselRuntimeStatus.IN_PORT
    return None


def implied_status(record: Optional[Any]) -> VesselRuntimeStatus:
    """Status implied by a stored position record.

    Uses the status stamped on the record when it was written, falls back to
    its AIS nav status and finally to AT_SEA.
    """
    if record is None:
        return VesselRuntimeStatus.AT_SEA

    stamped = getattr(record, "runtime_status", None)
    if stamped:
        try:
            return VesselRuntimeStatus(stamped)
        except ValueError:
            pass

    return (
        status_from_nav_status(getattr(record, "nav_status", None))
        or VesselRuntimeStatus.AT_SEA
    )


def detect_transition(
    previous_record: Optional[Any], current: VesselRuntimeStatus
) -> Optional[StatusTransition]:
    """Return the transition from the previous record's status, if any."""
    previous = implied_status(previous_record)
    if previous == current:
        return None
    return StatusTransition(previous=previous, current=current)
