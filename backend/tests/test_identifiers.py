"""Tests for identifier normalization, bounding boxes and timestamps."""

from datetime import datetime, timezone

import pytest

from vesseltrack.ais.models import (
    BoundingBox,
    IdentifierType,
    ProviderPosition,
    normalize_imo,
    normalize_mmsi,
    parse_timestamp,
    vessel_lookup_key,
)
from vesseltrack.errors import InvalidBoundingBoxError, InvalidIdentifierError


class TestMMSI:
    def test_valid_mmsi(self):
        assert normalize_mmsi("710005865") == "710005865"

    def test_surrounding_whitespace_is_ignored(self):
        assert normalize_mmsi(" 710005865\n") == "710005865"

    @pytest.mark.parametrize(
        "value", ["71000586", "7100058650", "71000586a", "", None, "710 005 865"]
    )
    def test_invalid_mmsi(self, value):
        with pytest.raises(InvalidIdentifierError):
            normalize_mmsi(value)


class TestIMO:
    @pytest.mark.parametrize("value", ["9074729", "IMO9074729", "imo 9074729", " IMO9074729 "])
    def test_prefix_and_whitespace_are_stripped(self, value):
        assert normalize_imo(value) == "9074729"

    @pytest.mark.parametrize("value", ["907472", "90747290", "IMO", "IMO90747AB", None])
    def test_invalid_imo(self, value):
        with pytest.raises(InvalidIdentifierError):
            normalize_imo(value)

    def test_invalid_identifier_is_a_value_error(self):
        with pytest.raises(ValueError):
            normalize_imo("nope")


class TestLookupKey:
    def test_mmsi_preferred_over_imo(self):
        assert vessel_lookup_key("710005865", "IMO9074729") == (
            "710005865",
            IdentifierType.MMSI,
        )

    def test_imo_used_without_mmsi(self):
        assert vessel_lookup_key(None, "IMO9074729") == ("9074729", IdentifierType.IMO)

    def test_no_identifier(self):
        assert vessel_lookup_key(None, None) is None
        assert vessel_lookup_key("", "") is None

    def test_malformed_identifier_raises(self):
        with pytest.raises(InvalidIdentifierError):
            vessel_lookup_key("12345", None)


class TestBoundingBox:
    def test_valid_box(self):
        bbox = BoundingBox(min_lat=40.2, min_lon=22.5, max_lat=41.0, max_lon=23.5)
        assert bbox.contains(40.6, 23.0)
        assert bbox.contains(40.2, 22.5)
        assert not bbox.contains(39.9, 23.0)
        assert bbox.center == pytest.approx((40.6, 23.0))

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_lat": 41.0, "min_lon": 22.5, "max_lat": 40.2, "max_lon": 23.5},
            {"min_lat": 40.0, "min_lon": 22.5, "max_lat": 40.0, "max_lon": 23.5},
            {"min_lat": -91.0, "min_lon": 22.5, "max_lat": 40.0, "max_lon": 23.5},
            {"min_lat": 10.0, "min_lon": -181.0, "max_lat": 40.0, "max_lon": 23.5},
            {"min_lat": -60.0, "min_lon": 0.0, "max_lat": 40.0, "max_lon": 10.0},
            {"min_lat": 0.0, "min_lon": -100.0, "max_lat": 10.0, "max_lon": 100.0},
            {"min_lat": "0", "min_lon": 0.0, "max_lat": 10.0, "max_lon": 10.0},
        ],
    )
    def test_invalid_box(self, kwargs):
        with pytest.raises(InvalidBoundingBoxError):
            BoundingBox(**kwargs)

    def test_cache_key_is_rounded(self):
        bbox = BoundingBox(min_lat=40.123456, min_lon=22.5, max_lat=41.0, max_lon=23.5)
        assert bbox.cache_key() == "40.1235:22.5000:41.0000:23.5000"


class TestTimestamps:
    def test_zulu_string(self):
        assert parse_timestamp("2025-12-12T20:50:19Z") == datetime(
            2025, 12, 12, 20, 50, 19, tzinfo=timezone.utc
        )

    def test_naive_string_is_utc(self):
        parsed = parse_timestamp("2025-12-12 20:50:19")
        assert parsed.tzinfo is not None
        assert parsed.hour == 20

    def test_epoch_seconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["", "yesterday", None, True])
    def test_unrecognized(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)


class TestProviderPosition:
    def test_out_of_range_latitude(self):
        with pytest.raises(ValueError):
            ProviderPosition(lat=91.0, lon=0.0, timestamp=datetime.now(timezone.utc))

    def test_dict_round_trip_keeps_fields(self):
        position = ProviderPosition(
            lat=-24.481873,
            lon=-44.217957,
            timestamp=datetime(2025, 12, 12, 20, 50, 19, tzinfo=timezone.utc),
            sog=0.1,
            nav_status="Under way using engine",
            mmsi="710005865",
        )
        data = position.to_dict()
        assert data["navStatus"] == "Under way using engine"
        assert ProviderPosition.from_dict(data) == position
