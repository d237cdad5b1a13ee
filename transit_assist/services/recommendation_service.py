"""
Transit recommendation engine.

Merges the travel plans that are current at a moment with the arrivals at the
active waiting spot, filters arrivals by heading relevance and ranks them per
plan. Both the arrivals and the merged result go through the cache store.
"""

import functools
import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pydantic import TypeAdapter

from transit_assist.config.settings import CacheSettings, RecommendationSettings
from transit_assist.core import cache_keys
from transit_assist.core.cache_store import CacheStore
from transit_assist.core.geo_utils import (
    angle_difference,
    calculate_bearing,
    calculate_distance,
    is_heading_towards,
)
from transit_assist.models.domain import (
    Destination,
    Location,
    TransitArrival,
    TransitOption,
    TransitType,
    TravelPlan,
    WaitingSpot,
)
from transit_assist.services.transit_data import TransitDataProvider

logger = logging.getLogger(__name__)

Recommendations = Dict[str, List[TransitOption]]

_recommendations_adapter = TypeAdapter(Recommendations)
_arrivals_adapter = TypeAdapter(List[TransitArrival])


class TransitRecommendationService:
    """Produces ranked transit options per current travel plan."""

    def __init__(
        self,
        cache: CacheStore,
        transit_data: TransitDataProvider,
        settings: Optional[RecommendationSettings] = None,
        cache_settings: Optional[CacheSettings] = None,
    ):
        self.cache = cache
        self.transit_data = transit_data
        self.settings = settings or RecommendationSettings()
        self.cache_settings = cache_settings or cache.settings

    async def get_recommendations(
        self,
        location: Location,
        heading: float,
        active_waiting_spot: WaitingSpot,
        travel_plans: Sequence[TravelPlan],
        now: Optional[datetime] = None,
    ) -> Recommendations:
        """
        Compute (or reuse) recommendations for the plans current at now.

        Args:
            location: User location, bucketed into the cache key
            heading: User heading in degrees, 0 = north
            active_waiting_spot: Spot whose stops are considered
            travel_plans: All of the user's plans
            now: Moment used for time-slot matching (defaults to local now)

        Returns:
            Mapping of plan id to ranked options; empty when no plan is current
        """
        now = now or datetime.now()

        active_plans = self.get_active_travel_plans(travel_plans, now)
        if not active_plans:
            return {}

        location_hash = cache_keys.create_location_hash(
            location.latitude, location.longitude, self.cache_settings.location_precision
        )
        cache_key = cache_keys.recommendations_key([p.id for p in active_plans], location_hash)

        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Returning cached recommendations for {cache_key}")
            return _recommendations_adapter.validate_python(cached)

        arrivals = await self._get_nearby_arrivals(active_waiting_spot)

        recommendations: Recommendations = {}
        for plan in active_plans:
            recommendations[plan.id] = self.get_recommendations_for_plan(
                plan, heading, active_waiting_spot, arrivals, now
            )

        await self.cache.set(cache_key, recommendations, ttl=self.cache_settings.recommendations_ttl_seconds)
        return recommendations

    async def refresh_recommendations(
        self,
        location: Location,
        heading: float,
        active_waiting_spot: WaitingSpot,
        travel_plans: Sequence[TravelPlan],
    ) -> Recommendations:
        return await self.get_recommendations(location, heading, active_waiting_spot, travel_plans)

    def get_active_travel_plans(self, travel_plans: Sequence[TravelPlan], now: datetime) -> List[TravelPlan]:
        return [plan for plan in travel_plans if plan.is_current(now)]

    def get_current_destinations(self, plan: TravelPlan, now: datetime) -> List[Destination]:
        """Destinations referenced by any of the plan's slots matching now."""
        destination_ids = set()
        for slot in plan.matching_time_slots(now):
            destination_ids.update(slot.destination_ids)
        return [dest for dest in plan.destinations if dest.id in destination_ids]

    def get_recommendations_for_plan(
        self,
        plan: TravelPlan,
        heading: float,
        waiting_spot: WaitingSpot,
        arrivals: Sequence[TransitArrival],
        now: datetime,
    ) -> List[TransitOption]:
        destinations = self.get_current_destinations(plan, now)
        if not destinations:
            return []

        options = []
        for arrival in arrivals:
            option = self.create_transit_option(arrival, waiting_spot, destinations, plan.id)
            if option is not None and self.is_relevant_direction(option.heading_degrees, heading):
                options.append(option)

        return sorted(options, key=functools.cmp_to_key(self._comparator(heading)))

    def create_transit_option(
        self,
        arrival: TransitArrival,
        waiting_spot: WaitingSpot,
        destinations: Sequence[Destination],
        plan_id: str,
    ) -> Optional[TransitOption]:
        """Build an option for an arrival, or None when its stop is not in the spot."""
        stop = waiting_spot.find_stop(arrival.stop_id)
        if stop is None:
            return None

        nearest, distance_m = min(
            ((dest, calculate_distance(stop.location, dest.location)) for dest in destinations),
            key=lambda pair: pair[1],
        )
        transit_heading = self.estimate_transit_heading(stop.location, nearest.location)
        arrival_ms = int(arrival.arrival_time.timestamp() * 1000)

        return TransitOption(
            id=f"{arrival.route_id}-{arrival.stop_id}-{arrival_ms}",
            type=stop.type,
            line=arrival.route_id,
            direction=arrival.destination_label,
            stop_name=stop.name,
            arrival_time=arrival.arrival_time,
            destination_label=nearest.name,
            estimated_travel_minutes=self.estimate_travel_time(distance_m, stop.type),
            matching_plan_ids=[plan_id],
            distance_to_destination_meters=distance_m,
            heading_degrees=transit_heading,
        )

    def estimate_travel_time(self, distance_m: float, transit_type: TransitType) -> int:
        """Minutes: distance / average speed plus a fixed boarding overhead."""
        speed_kmh = (
            self.settings.train_speed_kmh
            if transit_type == TransitType.TRAIN
            else self.settings.bus_speed_kmh
        )
        minutes = (distance_m / 1000) / speed_kmh * 60 + self.settings.boarding_overhead_minutes
        return int(math.floor(minutes + 0.5))

    def estimate_transit_heading(self, origin: Location, target: Location) -> int:
        return int(math.floor(calculate_bearing(origin, target) + 0.5)) % 360

    def calculate_heading_score(self, transit_heading: float, user_heading: float) -> float:
        """1.0 when aligned, 0.0 when opposite."""
        return 1 - angle_difference(transit_heading, user_heading) / 180

    def is_relevant_direction(self, transit_heading: float, user_heading: float) -> bool:
        """Relevant iff the headings differ by less than relevance_max_angle_degrees (108 by default)."""
        return angle_difference(transit_heading, user_heading) < self.settings.relevance_max_angle_degrees

    def is_heading_towards_destination(self, option: TransitOption, user_heading: float) -> bool:
        """Stricter check than is_relevant_direction, using the general heading tolerance."""
        return is_heading_towards(user_heading, option.heading_degrees, self.settings.heading_tolerance_degrees)

    def _comparator(self, user_heading: float):
        tolerance = self.settings.score_tie_tolerance

        def compare(a: TransitOption, b: TransitOption) -> int:
            score_a = self.calculate_heading_score(a.heading_degrees, user_heading)
            score_b = self.calculate_heading_score(b.heading_degrees, user_heading)
            if abs(score_a - score_b) > tolerance:
                return -1 if score_a > score_b else 1
            if a.arrival_time == b.arrival_time:
                return 0
            return -1 if a.arrival_time < b.arrival_time else 1

        return compare

    async def _get_nearby_arrivals(self, waiting_spot: WaitingSpot) -> List[TransitArrival]:
        async def fetch() -> List[TransitArrival]:
            logger.info(f"Fetching fresh transit arrivals for waiting spot {waiting_spot.id}")
            return await self.transit_data.fetch_arrivals(waiting_spot)

        arrivals = await self.cache.get_or_set(
            cache_keys.transit_arrivals_key(waiting_spot.id),
            fetch,
            ttl=self.cache_settings.transit_arrivals_ttl_seconds,
        )
        return _arrivals_adapter.validate_python(arrivals)
