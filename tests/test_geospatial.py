import math

import pytest

from wastezone.errors import ValidationError
from wastezone.services.geospatial import (
    bearing_degrees,
    haversine_km,
    haversine_m,
    is_valid_coordinate,
    point_in_polygon,
    travel_minutes,
    validate_coordinate,
)


def test_haversine_one_degree_of_longitude_at_equator():
    assert haversine_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(111.195, abs=1e-3)
    assert haversine_m(0.0, 0.0, 0.0, 1.0) == pytest.approx(111195.0, abs=1.0)


def test_haversine_is_symmetric_and_zero_for_same_point():
    assert haversine_km(9.99, 76.53, 9.98, 76.52) == pytest.approx(haversine_km(9.98, 76.52, 9.99, 76.53))
    assert haversine_km(9.99, 76.53, 9.99, 76.53) == 0.0


def test_bearing_cardinal_directions():
    assert bearing_degrees(0, 0, 1, 0) == pytest.approx(0.0)
    assert bearing_degrees(0, 0, 0, 1) == pytest.approx(90.0)
    assert bearing_degrees(0, 0, -1, 0) == pytest.approx(180.0)


def test_travel_minutes_rounds_up():
    # 1 km at 24 km/h is 2.5 minutes.
    assert travel_minutes(1.0, 24.0) == 3
    assert travel_minutes(0.4, 24.0) == 1
    assert travel_minutes(0.0, 24.0) == 0


@pytest.mark.parametrize(
    "lat, lon",
    [(math.nan, 0.0), (0.0, math.inf), (90.5, 0.0), (0.0, -180.1), ("abc", 1.0), (None, 1.0)],
)
def test_invalid_coordinates_are_rejected(lat, lon):
    assert not is_valid_coordinate(lat, lon)
    with pytest.raises(ValidationError):
        validate_coordinate(lat, lon)


def test_validate_coordinate_returns_floats():
    assert validate_coordinate("9.5", 76) == (9.5, 76.0)


def test_point_in_polygon_includes_boundary():
    square = [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0)]
    assert point_in_polygon(0.5, 0.5, square)
    assert point_in_polygon(0.0, 0.5, square)
    assert not point_in_polygon(1.5, 0.5, square)
