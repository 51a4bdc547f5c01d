"""Tests for runtime status derivation and transitions."""

from types import SimpleNamespace

import pytest

from vesseltrack.status import (
    PortCallStatus,
    StatusTransition,
    VesselRuntimeStatus,
    derive_status,
    detect_transition,
    implied_status,
    status_from_nav_status,
)


def port_call(status: PortCallStatus) -> SimpleNamespace:
    return SimpleNamespace(status=status.value)


def record(runtime_status=None, nav_status=None) -> SimpleNamespace:
    return SimpleNamespace(runtime_status=runtime_status, nav_status=nav_status)


class TestDeriveStatus:
    def test_no_port_call_is_at_sea(self):
        assert derive_status(None) is VesselRuntimeStatus.AT_SEA

    def test_in_progress_is_in_port(self):
        assert derive_status(port_call(PortCallStatus.IN_PROGRESS)) is VesselRuntimeStatus.IN_PORT

    def test_planned_is_inbound(self):
        assert derive_status(port_call(PortCallStatus.PLANNED)) is VesselRuntimeStatus.INBOUND

    @pytest.mark.parametrize("status", [PortCallStatus.COMPLETED, PortCallStatus.CANCELLED])
    def test_closed_calls_are_at_sea(self, status):
        assert derive_status(port_call(status)) is VesselRuntimeStatus.AT_SEA


class TestNavStatus:
    @pytest.mark.parametrize("value", ["5", "Moored", "at berth", "IN_PORT"])
    def test_in_port_values(self, value):
        assert status_from_nav_status(value) is VesselRuntimeStatus.IN_PORT

    @pytest.mark.parametrize("value", [None, "0", "Under way using engine", ""])
    def test_values_without_implication(self, value):
        assert status_from_nav_status(value) is None


class TestImpliedStatus:
    def test_no_record_is_at_sea(self):
        assert implied_status(None) is VesselRuntimeStatus.AT_SEA

    def test_stamped_status_wins(self):
        assert implied_status(record("INBOUND", "Moored")) is VesselRuntimeStatus.INBOUND

    def test_nav_status_fallback(self):
        assert implied_status(record(None, "Moored")) is VesselRuntimeStatus.IN_PORT

    def test_unknown_stamp_falls_back(self):
        assert implied_status(record("SUNK", None)) is VesselRuntimeStatus.AT_SEA


class TestDetectTransition:
    def test_first_position_at_sea_is_not_a_change(self):
        assert detect_transition(None, VesselRuntimeStatus.AT_SEA) is None

    def test_first_position_in_port_is_a_change(self):
        assert detect_transition(None, VesselRuntimeStatus.IN_PORT) == StatusTransition(
            previous=VesselRuntimeStatus.AT_SEA, current=VesselRuntimeStatus.IN_PORT
        )

    def test_same_status_twice_is_not_a_change(self):
        previous = record(VesselRuntimeStatus.IN_PORT.value)
        assert detect_transition(previous, VesselRuntimeStatus.IN_PORT) is None

    def test_departure(self):
        previous = record(VesselRuntimeStatus.IN_PORT.value)
        transition = detect_transition(previous, VesselRuntimeStatus.AT_SEA)
        assert transition.previous is VesselRuntimeStatus.IN_PORT
        assert transition.current is VesselRuntimeStatus.AT_SEA
