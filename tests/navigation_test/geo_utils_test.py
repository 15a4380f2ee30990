import math
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from navigation.guidance.geo_utils import (
    EARTH_RADIUS_M,
    angle_diff_signed,
    bearing_degrees,
    destination_point,
    distance_meters,
    format_distance,
    normalize_angle,
    relative_direction,
)
from navigation.guidance.models import Coord


BOGOTA = Coord(4.661000, -74.059700)
LIBRARY = Coord(4.661226, -74.059538)

ORIGINS = [
    BOGOTA,
    Coord(0.0, 0.0),
    Coord(60.17, 24.94),
    Coord(-33.86, 151.21),
    Coord(10.0, 179.9999),
]

PAIRS = [
    (BOGOTA, LIBRARY),
    (Coord(0.0, 0.0), Coord(0.0, 1.0)),
    (Coord(51.5, -0.12), Coord(48.85, 2.35)),
    (Coord(-33.86, 151.21), Coord(35.68, 139.69)),
    (Coord(10.0, 179.9), Coord(10.0, -179.9)),
]


class TestAngles:

    def test_normalize_wraps_into_range(self):
        assert normalize_angle(370.0) == pytest.approx(10.0)
        assert normalize_angle(-90.0) == pytest.approx(270.0)
        assert normalize_angle(720.0) == 0.0

    def test_normalize_tiny_negative_is_not_360(self):
        result = normalize_angle(-1e-17)
        assert 0.0 <= result < 360.0

    def test_signed_difference_takes_short_path(self):
        assert angle_diff_signed(1.0, 359.0) == pytest.approx(2.0)
        assert angle_diff_signed(359.0, 1.0) == pytest.approx(-2.0)
        assert angle_diff_signed(90.0, 270.0) in (180.0, -180.0)

    @pytest.mark.parametrize("bearing, heading, expected", [
        (10.0, 0.0, "Go straight"),
        (30.0, 0.0, "Bear right"),
        (90.0, 0.0, "Turn right"),
        (330.0, 0.0, "Bear left"),
        (270.0, 0.0, "Turn left"),
        (180.0, 0.0, "Turn around"),
        (5.0, 350.0, "Go straight"),
    ])
    def test_relative_direction(self, bearing, heading, expected):
        assert relative_direction(bearing, heading) == expected


class TestDistance:

    @pytest.mark.parametrize("a, b", PAIRS)
    def test_symmetric(self, a, b):
        assert distance_meters(a, b) == pytest.approx(distance_meters(b, a))

    @pytest.mark.parametrize("a", ORIGINS)
    def test_zero_for_identical_points(self, a):
        assert distance_meters(a, a) == 0.0

    def test_antipodes_do_not_raise(self):
        d = distance_meters(Coord(0.0, 0.0), Coord(0.0, 180.0))
        assert d == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-9)

        d = distance_meters(Coord(45.0, 30.0), Coord(-45.0, -150.0))
        assert d == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-6)

    def test_one_degree_of_longitude_on_equator(self):
        d = distance_meters(Coord(0.0, 0.0), Coord(0.0, 1.0))
        assert d == pytest.approx(EARTH_RADIUS_M * math.radians(1.0))

    def test_campus_regression_baseline(self):
        assert distance_meters(BOGOTA, LIBRARY) == pytest.approx(30.9, abs=0.2)


class TestBearing:

    @pytest.mark.parametrize("a, b", PAIRS)
    def test_in_range(self, a, b):
        for x, y in ((a, b), (b, a)):
            bearing = bearing_degrees(x, y)
            assert 0.0 <= bearing < 360.0

    def test_cardinal_directions(self):
        origin = Coord(0.0, 0.0)
        assert bearing_degrees(origin, Coord(1.0, 0.0)) == pytest.approx(0.0)
        assert bearing_degrees(origin, Coord(0.0, 1.0)) == pytest.approx(90.0)
        assert bearing_degrees(origin, Coord(-1.0, 0.0)) == pytest.approx(180.0)
        assert bearing_degrees(origin, Coord(0.0, -1.0)) == pytest.approx(270.0)

    def test_campus_regression_baseline(self):
        assert bearing_degrees(BOGOTA, LIBRARY) == pytest.approx(35.5, abs=0.5)


class TestDestinationPoint:

    @pytest.mark.parametrize("origin", ORIGINS)
    @pytest.mark.parametrize("bearing", [0.0, 45.0, 90.0, 135.0, 180.0, 270.0, 359.5])
    @pytest.mark.parametrize("distance", [1.0, 10.0, 250.0, 5000.0])
    def test_recovers_bearing_and_distance(self, origin, bearing, distance):
        target = destination_point(origin, bearing, distance)

        assert distance_meters(origin, target) == pytest.approx(distance, rel=1e-6)
        assert abs(angle_diff_signed(bearing_degrees(origin, target), bearing)) <= 1e-6

    def test_longitude_normalized_across_date_line(self):
        target = destination_point(Coord(0.0, 179.9999), 90.0, 100.0)
        assert -180.0 < target.lon <= 180.0
        assert target.lon < 0

    def test_longitude_minus_180_becomes_plus_180(self):
        target = destination_point(Coord(0.0, -180.0), 0.0, 0.0)
        assert target.lon == 180.0

    def test_zero_distance_returns_origin(self):
        target = destination_point(BOGOTA, 123.0, 0.0)
        assert target.lat == pytest.approx(BOGOTA.lat)
        assert target.lon == pytest.approx(BOGOTA.lon)


class TestFormatting:

    def test_metres_below_one_km(self):
        assert format_distance(28.4) == "28 m"
        assert format_distance(0.0) == "0 m"

    def test_kilometres_above(self):
        assert format_distance(1234.0) == "1.2 km"
