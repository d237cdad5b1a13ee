"""
Unit tests for geo and clock math
"""
from datetime import datetime

import pytest

from transit_assist.core.geo_utils import (
    angle_difference,
    calculate_bearing,
    calculate_distance,
    day_of_week,
    format_time,
    heading_from_magnetometer,
    is_heading_towards,
    is_time_in_range,
    is_within_radius,
    normalize_degrees,
)
from tests.factories import TRENTON, offset_east, offset_north


def test_distance_two_km_east():
    target = offset_east(TRENTON, 2000)
    assert calculate_distance(TRENTON, target) == pytest.approx(2000, abs=1.0)


def test_distance_is_zero_for_same_point():
    assert calculate_distance(TRENTON, TRENTON) == 0


def test_bearing_cardinal_directions():
    assert calculate_bearing(TRENTON, offset_north(TRENTON, 500)) == pytest.approx(0, abs=0.01)
    assert calculate_bearing(TRENTON, offset_east(TRENTON, 500)) == pytest.approx(90, abs=0.05)
    assert calculate_bearing(TRENTON, offset_north(TRENTON, -500)) == pytest.approx(180, abs=0.01)
    assert calculate_bearing(TRENTON, offset_east(TRENTON, -500)) == pytest.approx(270, abs=0.05)


@pytest.mark.parametrize("a,b,expected", [
    (0, 0, 0),
    (10, 350, 20),
    (350, 10, 20),
    (0, 180, 180),
    (90, 270, 180),
    (45, 200, 155),
])
def test_angle_difference(a, b, expected):
    assert angle_difference(a, b) == pytest.approx(expected)


def test_normalize_degrees():
    assert normalize_degrees(-90) == 270
    assert normalize_degrees(720) == 0
    assert 0 <= normalize_degrees(-1e-15) < 360


def test_is_within_radius_is_inclusive():
    inside = offset_north(TRENTON, 49)
    outside = offset_north(TRENTON, 51)
    assert is_within_radius(TRENTON, inside, 50)
    assert not is_within_radius(TRENTON, outside, 50)


def test_is_heading_towards_default_tolerance():
    assert is_heading_towards(90, 130)
    assert is_heading_towards(350, 20)
    assert not is_heading_towards(90, 140)


@pytest.mark.parametrize("x,y,expected", [
    (1, 0, 90),
    (0, 1, 180),
    (-1, 0, 270),
    (0, -1, 0),
])
def test_heading_from_magnetometer(x, y, expected):
    assert heading_from_magnetometer(x, y, 0.5) == expected


def test_day_of_week_starts_on_sunday():
    assert day_of_week(datetime(2024, 1, 7)) == 0  # Sunday
    assert day_of_week(datetime(2024, 1, 8)) == 1  # Monday
    assert day_of_week(datetime(2024, 1, 13)) == 6  # Saturday


def test_format_time():
    assert format_time(datetime(2024, 1, 7, 8, 5)) == "08:05"


def test_same_day_window_is_inclusive():
    assert is_time_in_range("08:00", "08:00", "09:00")
    assert is_time_in_range("09:00", "08:00", "09:00")
    assert not is_time_in_range("09:01", "08:00", "09:00")


def test_window_wraps_past_midnight():
    assert is_time_in_range("23:30", "22:00", "02:00")
    assert is_time_in_range("01:00", "22:00", "02:00")
    assert not is_time_in_range("10:00", "22:00", "02:00")
