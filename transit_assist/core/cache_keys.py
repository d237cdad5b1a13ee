"""
Cache key namespaces and builders.

Keys are "<namespace>:<parts...>" joined with ":". The shapes below are a
contract shared with invalidation; changing one means changing both.
"""

from typing import Iterable

TRANSIT_ARRIVALS = "transit_arrivals"
TRAVEL_RECOMMENDATIONS = "travel_recommendations"
ROUTE_PLANS = "route_plans"
WAITING_SPOTS = "waiting_spots"
USER_LOCATIONS = "user_locations"

# Seconds
DEFAULT_TTL = {
    TRANSIT_ARRIVALS: 60,
    TRAVEL_RECOMMENDATIONS: 300,
    ROUTE_PLANS: 1800,
    WAITING_SPOTS: 3600,
    USER_LOCATIONS: 30,
}

LOCATION_PRECISION = 3
AREA_PRECISION = 2


def create_location_hash(latitude: float, longitude: float, precision: int = LOCATION_PRECISION) -> str:
    """Fixed-precision "lat,lng" bucket; precision 3 is roughly a 111m grid."""
    return f"{latitude:.{precision}f},{longitude:.{precision}f}"


def transit_arrivals_key(stop_id: str) -> str:
    return f"{TRANSIT_ARRIVALS}:{stop_id}"


def plan_set_id(plan_ids: Iterable[str]) -> str:
    return ",".join(sorted(plan_ids))


def recommendations_key(plan_ids: Iterable[str], location_hash: str) -> str:
    return f"{TRAVEL_RECOMMENDATIONS}:{plan_set_id(plan_ids)}:{location_hash}"


def route_plans_key(user_id: str) -> str:
    return f"{ROUTE_PLANS}:{user_id}"


def waiting_spots_key(area_hash: str) -> str:
    return f"{WAITING_SPOTS}:{area_hash}"


def user_locations_key(user_id: str) -> str:
    return f"{USER_LOCATIONS}:{user_id}"
