"""Tests for geo helpers."""

import pytest

from field_runs.domain.geo import (
    Cardinal,
    bearing_deg,
    cardinal_for_bearing,
    haversine_m,
)


def test_haversine_one_degree_of_latitude() -> None:
    distance = haversine_m(0.0, 0.0, 1.0, 0.0)
    assert distance == pytest.approx(111_195, rel=1e-3)


def test_haversine_same_point_is_zero() -> None:
    assert haversine_m(51.5, -0.12, 51.5, -0.12) == 0.0


@pytest.mark.parametrize(
    ("lat2", "lon2", "expected"),
    [
        (1.0, 0.0, 0.0),
        (0.0, 1.0, 90.0),
        (-1.0, 0.0, 180.0),
        (0.0, -1.0, 270.0),
    ],
)
def test_bearing_cardinal_points(lat2: float, lon2: float, expected: float) -> None:
    assert bearing_deg(0.0, 0.0, lat2, lon2) == pytest.approx(expected)


def test_bearing_is_normalized() -> None:
    bearing = bearing_deg(0.0, 0.0, 1.0, -0.01)
    assert 0.0 <= bearing < 360.0
    assert bearing > 359.0


@pytest.mark.parametrize(
    ("bearing", "expected"),
    [
        (0.0, Cardinal.NORTH),
        (10.0, Cardinal.NORTH),
        (22.4999, Cardinal.NORTH),
        (22.5, Cardinal.EAST),
        (95.0, Cardinal.EAST),
        (112.5, Cardinal.SOUTH),
        (170.0, Cardinal.SOUTH),
        (202.5, Cardinal.WEST),
        (260.0, Cardinal.WEST),
        (337.4999, Cardinal.WEST),
        (337.5, Cardinal.NORTH),
        (359.99, Cardinal.NORTH),
        (360.0, Cardinal.NORTH),
    ],
)
def test_cardinal_ranges_are_half_open(bearing: float, expected: Cardinal) -> None:
    assert cardinal_for_bearing(bearing) is expected
