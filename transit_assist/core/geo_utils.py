"""Geo and clock math shared by the presence tracker and the recommendation engine."""

import math
from datetime import datetime
from typing import Protocol

EARTH_RADIUS_M = 6371000.0


class HasCoordinates(Protocol):
    latitude: float
    longitude: float


def calculate_distance(a: HasCoordinates, b: HasCoordinates) -> float:
    """Great-circle distance in meters (haversine)."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    s = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(s), math.sqrt(1 - s))


def calculate_bearing(a: HasCoordinates, b: HasCoordinates) -> float:
    """Initial bearing from a to b in degrees, 0 = north, range [0, 360)."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return normalize_degrees(math.degrees(math.atan2(y, x)))


def normalize_degrees(angle: float) -> float:
    angle = angle % 360.0
    # -1e-15 % 360 gives 360.0
    return 0.0 if angle >= 360.0 else angle


def angle_difference(angle1: float, angle2: float) -> float:
    """Smallest absolute difference between two headings, in [0, 180]."""
    diff = abs(angle1 - angle2) % 360.0
    if diff > 180:
        diff = 360 - diff
    return diff


def is_within_radius(center: HasCoordinates, point: HasCoordinates, radius_m: float) -> bool:
    return calculate_distance(center, point) <= radius_m


def is_heading_towards(user_heading: float, bearing_to_destination: float, tolerance: float = 45.0) -> bool:
    return angle_difference(user_heading, bearing_to_destination) <= tolerance


def heading_from_magnetometer(x: float, y: float, z: float) -> int:
    """
    Convert a raw magnetometer vector to an integer geographic azimuth.

    atan2(y, x) in degrees is normalized to [0, 360) and rotated by +90 so
    that 0 points north. The z component does not contribute.
    """
    angle = normalize_degrees(math.degrees(math.atan2(y, x)))
    angle = (angle + 90) % 360
    return int(math.floor(angle + 0.5)) % 360


def time_to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def format_time(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def day_of_week(moment: datetime) -> int:
    """Day index with 0 = Sunday through 6 = Saturday."""
    return (moment.weekday() + 1) % 7


def is_time_in_range(current: str, start: str, end: str) -> bool:
    """
    Check whether an "HH:MM" clock time falls inside [start, end].

    When start > end the window wraps past midnight and matches times at or
    after start or at or before end.
    """
    now_m = time_to_minutes(current)
    start_m = time_to_minutes(start)
    end_m = time_to_minutes(end)

    if start_m <= end_m:
        return start_m <= now_m <= end_m
    return now_m >= start_m or now_m <= end_m


def is_time_in_slot(moment: datetime, start: str, end: str) -> bool:
    return is_time_in_range(format_time(moment), start, end)
