"""Tests for geofence containment and entry detection."""

import pytest

from vesseltrack.geofence import (
    CircleZone,
    GeofenceEngine,
    PolygonZone,
    ZoneType,
    default_radius,
    haversine_meters,
    point_in_circle,
    point_in_polygon,
)

SQUARE = ((0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0))

# "C" shape opening east: the notch between lat 0.4 and 0.6, lon 0.5 to 1.0 is outside
C_SHAPE = (
    (0.0, 0.0),
    (0.0, 1.0),
    (0.4, 1.0),
    (0.4, 0.5),
    (0.6, 0.5),
    (0.6, 1.0),
    (1.0, 1.0),
    (1.0, 0.0),
)


class TestPolygon:
    def test_point_inside(self):
        assert point_in_polygon(0.5, 0.5, SQUARE)

    @pytest.mark.parametrize("lat,lon", [(1.5, 0.5), (0.5, -0.1), (-0.5, -0.5), (0.5, 2.0)])
    def test_point_outside(self, lat, lon):
        assert not point_in_polygon(lat, lon, SQUARE)

    def test_concave_notch_is_outside(self):
        assert not point_in_polygon(0.5, 0.8, C_SHAPE)
        assert point_in_polygon(0.5, 0.2, C_SHAPE)
        assert point_in_polygon(0.2, 0.8, C_SHAPE)

    def test_degenerate_polygon_never_contains(self):
        assert not point_in_polygon(0.0, 0.0, ((0.0, 0.0), (1.0, 1.0)))
        assert not point_in_polygon(0.0, 0.0, ())


class TestCircle:
    def test_boundary_is_inside(self):
        center = (-24.0, -44.0)
        radius = haversine_meters(-24.0, -43.99, -24.0, -44.0)
        assert point_in_circle(-24.0, -43.99, center, radius)

    def test_just_outside_boundary(self):
        center = (-24.0, -44.0)
        radius = haversine_meters(-24.0, -43.99, -24.0, -44.0)
        assert not point_in_circle(-24.0, -43.9899, center, radius)

    def test_haversine_known_distance(self):
        # One degree of latitude is roughly 111.2 km
        assert haversine_meters(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=1e-3)

    def test_default_radius_by_zone_type(self):
        assert default_radius(ZoneType.PORT) == 5000.0
        assert default_radius(ZoneType.TERMINAL) == 2000.0
        assert default_radius(ZoneType.BERTH) == 500.0
        assert default_radius(ZoneType.ANCHORAGE) == 10000.0


class TestGeofenceEngine:
    @pytest.fixture
    def zones(self):
        return [
            PolygonZone(id="square", name="Square Port", zone_type=ZoneType.PORT, vertices=SQUARE),
            CircleZone(
                id="berth",
                name="Berth 7",
                zone_type=ZoneType.BERTH,
                center=(0.5, 0.5),
                radius_meters=500.0,
            ),
        ]

    def test_evaluate_returns_all_containing_zones(self, zones):
        engine = GeofenceEngine()
        assert engine.evaluate(0.5, 0.5, zones) == frozenset({"square", "berth"})
        assert engine.evaluate(0.1, 0.1, zones) == frozenset({"square"})
        assert engine.evaluate(5.0, 5.0, zones) == frozenset()

    def test_entered_without_previous_point(self, zones):
        entered = GeofenceEngine().entered(None, (0.5, 0.5), zones)
        assert [z.id for z in entered] == ["square", "berth"]

    def test_entered_only_reports_new_zones(self, zones):
        entered = GeofenceEngine().entered((0.1, 0.1), (0.5, 0.5), zones)
        assert [z.id for z in entered] == ["berth"]

    def test_staying_inside_reports_nothing(self, zones):
        assert GeofenceEngine().entered((0.5, 0.5), (0.5, 0.5), zones) == []

    def test_leaving_reports_nothing(self, zones):
        assert GeofenceEngine().entered((0.5, 0.5), (5.0, 5.0), zones) == []
