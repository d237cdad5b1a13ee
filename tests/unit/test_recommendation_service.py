"""
Unit tests for the transit recommendation engine
"""
from datetime import timedelta
from typing import List

import pytest

from transit_assist.config.settings import CacheSettings
from transit_assist.core.cache_store import CacheStore
from transit_assist.core.exceptions import TransitDataUnavailableError
from transit_assist.models.domain import TransitArrival, TransitOption, TransitType, WaitingSpot
from transit_assist.services.recommendation_service import TransitRecommendationService
from transit_assist.services.transit_data import ScheduledArrivalProvider, TransitDataProvider
from tests.factories import (
    SUNDAY_MORNING,
    TRENTON,
    make_plan,
    make_spot,
    make_stop,
    offset_north,
)


class CountingProvider(TransitDataProvider):
    def __init__(self, arrivals: List[TransitArrival]):
        self.arrivals = arrivals
        self.calls = 0

    async def fetch_arrivals(self, waiting_spot: WaitingSpot) -> List[TransitArrival]:
        self.calls += 1
        return list(self.arrivals)


class FailingProvider(TransitDataProvider):
    async def fetch_arrivals(self, waiting_spot: WaitingSpot) -> List[TransitArrival]:
        raise TransitDataUnavailableError("upstream down")


def arrival(stop_id: str, route: str, minutes: int) -> TransitArrival:
    return TransitArrival(
        route_id=route,
        stop_id=stop_id,
        arrival_time=SUNDAY_MORNING + timedelta(minutes=minutes),
        destination_label=f"{route} terminus",
    )


@pytest.fixture
def scheduled_engine(local_cache):
    provider = ScheduledArrivalProvider(clock=lambda: SUNDAY_MORNING)
    return TransitRecommendationService(local_cache, provider)


@pytest.mark.asyncio
async def test_end_to_end_bus_recommendations(scheduled_engine, local_cache):
    """One spot, one bus stop with 3 lines, destination 2km due east, heading east"""
    plan = make_plan()

    result = await scheduled_engine.get_recommendations(
        TRENTON, 90, make_spot(), [plan], now=SUNDAY_MORNING
    )

    options = result["plan-1"]
    assert len(options) == 9
    assert all(o.type == TransitType.BUS for o in options)
    assert all(o.estimated_travel_minutes == 10 for o in options)
    assert all(o.heading_degrees == 90 for o in options)
    assert all(o.matching_plan_ids == ["plan-1"] for o in options)
    assert options[0].destination_label == "Office"
    assert options[0].direction.endswith("terminus")
    assert options[0].distance_to_destination_meters == pytest.approx(2000, abs=1)
    arrival_times = [o.arrival_time for o in options]
    assert arrival_times == sorted(arrival_times)

    keys = local_cache.get_stats().local_keys
    assert "transit_arrivals:spot-1" in keys
    assert "travel_recommendations:plan-1:40.221,-74.756" in keys


@pytest.mark.asyncio
async def test_no_current_plan_returns_empty_without_fetching(local_cache):
    provider = CountingProvider([arrival("stop-1", "601", 5)])
    engine = TransitRecommendationService(local_cache, provider)

    result = await engine.get_recommendations(
        TRENTON, 90, make_spot(), [make_plan(day=3), make_plan("p2", is_active=False)], now=SUNDAY_MORNING
    )

    assert result == {}
    assert provider.calls == 0
    assert local_cache.get_stats().local_size == 0


@pytest.mark.asyncio
async def test_cached_recommendations_skip_fetch(local_cache):
    provider = CountingProvider([arrival("stop-1", "601", 5)])
    engine = TransitRecommendationService(local_cache, provider)
    plan = make_plan()

    first = await engine.get_recommendations(TRENTON, 90, make_spot(), [plan], now=SUNDAY_MORNING)
    await local_cache.delete("transit_arrivals:spot-1")
    second = await engine.get_recommendations(TRENTON, 90, make_spot(), [plan], now=SUNDAY_MORNING)

    assert second == first
    assert provider.calls == 1


@pytest.mark.asyncio
async def test_arrivals_reused_within_ttl_across_location_buckets(local_cache):
    provider = CountingProvider([arrival("stop-1", "601", 5)])
    engine = TransitRecommendationService(local_cache, provider)
    plan = make_plan()

    await engine.get_recommendations(TRENTON, 90, make_spot(), [plan], now=SUNDAY_MORNING)
    await engine.get_recommendations(offset_north(TRENTON, 300), 90, make_spot(), [plan], now=SUNDAY_MORNING)

    assert provider.calls == 1


@pytest.mark.asyncio
async def test_arrivals_at_unknown_stops_are_skipped(local_cache):
    provider = CountingProvider([arrival("elsewhere", "601", 5), arrival("stop-1", "606", 7)])
    engine = TransitRecommendationService(local_cache, provider)

    result = await engine.get_recommendations(TRENTON, 90, make_spot(), [make_plan()], now=SUNDAY_MORNING)

    assert [o.line for o in result["plan-1"]] == ["606"]


@pytest.mark.asyncio
async def test_opposite_heading_filters_everything(scheduled_engine):
    result = await scheduled_engine.get_recommendations(
        TRENTON, 270, make_spot(), [make_plan()], now=SUNDAY_MORNING
    )
    assert result == {"plan-1": []}


@pytest.mark.asyncio
async def test_sort_by_relevance_then_arrival(local_cache):
    aligned = make_stop("aligned", location=TRENTON, lines=["A"])
    skewed = make_stop("skewed", location=offset_north(TRENTON, -1150), lines=["S"])
    near = make_stop("near", location=offset_north(TRENTON, -200), lines=["N"])
    spot = make_spot(stops=[aligned, skewed, near], radius=2000)
    provider = CountingProvider([
        arrival("skewed", "S", 1),
        arrival("aligned", "A", 9),
        arrival("near", "N", 4),
    ])
    engine = TransitRecommendationService(local_cache, provider)

    result = await engine.get_recommendations(TRENTON, 90, spot, [make_plan()], now=SUNDAY_MORNING)

    # "near" is within the tie tolerance of "aligned" and arrives earlier;
    # "skewed" scores more than 0.1 lower and goes last despite arriving first
    assert [o.line for o in result["plan-1"]] == ["N", "A", "S"]


@pytest.mark.asyncio
async def test_multiple_plans_share_one_cache_entry(local_cache):
    provider = CountingProvider([arrival("stop-1", "601", 5)])
    engine = TransitRecommendationService(local_cache, provider)

    result = await engine.get_recommendations(
        TRENTON, 90, make_spot(), [make_plan("p2"), make_plan("p1")], now=SUNDAY_MORNING
    )

    assert set(result) == {"p1", "p2"}
    assert "travel_recommendations:p1,p2:40.221,-74.756" in local_cache.get_stats().local_keys


@pytest.mark.asyncio
async def test_plan_without_current_destinations_gets_empty_list(local_cache):
    provider = CountingProvider([arrival("stop-1", "601", 5)])
    engine = TransitRecommendationService(local_cache, provider)
    plan = make_plan()
    plan.time_slots[0].destination_ids = []

    result = await engine.get_recommendations(TRENTON, 90, make_spot(), [plan], now=SUNDAY_MORNING)

    assert result == {"plan-1": []}


@pytest.mark.asyncio
async def test_fetch_failure_propagates_and_caches_nothing(local_cache):
    engine = TransitRecommendationService(local_cache, FailingProvider())

    with pytest.raises(TransitDataUnavailableError):
        await engine.get_recommendations(TRENTON, 90, make_spot(), [make_plan()], now=SUNDAY_MORNING)

    assert local_cache.get_stats().local_size == 0


@pytest.mark.asyncio
async def test_recommendations_read_back_from_remote_tier(remote, clock):
    """A fresh process reading the remote tier gets typed options back"""
    settings = CacheSettings(remote_timeout_seconds=0.05)
    writer = TransitRecommendationService(
        CacheStore(remote=remote, settings=settings, clock=clock),
        ScheduledArrivalProvider(clock=lambda: SUNDAY_MORNING),
    )
    provider = CountingProvider([])
    reader = TransitRecommendationService(CacheStore(remote=remote, settings=settings, clock=clock), provider)

    written = await writer.get_recommendations(TRENTON, 90, make_spot(), [make_plan()], now=SUNDAY_MORNING)
    read = await reader.get_recommendations(TRENTON, 90, make_spot(), [make_plan()], now=SUNDAY_MORNING)

    assert provider.calls == 0
    assert all(isinstance(o, TransitOption) for o in read["plan-1"])
    assert [o.id for o in read["plan-1"]] == [o.id for o in written["plan-1"]]


@pytest.mark.parametrize("diff,expected", [
    (0, True),
    (107.9, True),
    (108, False),
    (108.1, False),
    (180, False),
])
def test_heading_relevance_boundaries(local_cache, diff, expected):
    engine = TransitRecommendationService(local_cache, CountingProvider([]))
    assert engine.is_relevant_direction(diff, 0) is expected


def test_heading_score():
    engine = TransitRecommendationService(CacheStore(), CountingProvider([]))
    assert engine.calculate_heading_score(90, 90) == 1.0
    assert engine.calculate_heading_score(180, 0) == 0.0
    assert engine.calculate_heading_score(107.9, 0) == pytest.approx(0.4006, abs=1e-4)


def test_travel_time_by_mode():
    engine = TransitRecommendationService(CacheStore(), CountingProvider([]))
    assert engine.estimate_travel_time(2000, TransitType.BUS) == 10
    assert engine.estimate_travel_time(2000, TransitType.LIGHTRAIL) == 10
    assert engine.estimate_travel_time(2000, TransitType.TRAIN) == 7
    assert engine.estimate_travel_time(0, TransitType.BUS) == 5


def test_heading_towards_destination_uses_general_tolerance():
    engine = TransitRecommendationService(CacheStore(), CountingProvider([]))
    option = TransitOption(
        id="o", type=TransitType.BUS, line="601", direction="d", stop_name="s",
        arrival_time=SUNDAY_MORNING, destination_label="Office",
        estimated_travel_minutes=10, distance_to_destination_meters=2000, heading_degrees=90,
    )
    assert engine.is_heading_towards_destination(option, 130)
    assert not engine.is_heading_towards_destination(option, 140)
    # Relevant for ranking even though not "heading towards"
    assert engine.is_relevant_direction(option.heading_degrees, 140)
