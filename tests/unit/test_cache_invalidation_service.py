"""
Unit tests for the cache invalidation coordinator
"""
import pytest

from transit_assist.core import cache_keys
from transit_assist.core.cache_store import CacheStore
from transit_assist.services.cache_invalidation_service import CacheInvalidationService
from tests.factories import TRENTON, make_spot


@pytest.fixture
def invalidation(cache):
    return CacheInvalidationService(cache)


@pytest.mark.asyncio
async def test_invalidate_transit_arrivals_deletes_single_key(cache, remote, invalidation):
    await cache.set("transit_arrivals:s1", [1])
    await cache.set("transit_arrivals:s10", [2])

    await invalidation.invalidate_transit_arrivals("s1")

    assert await cache.get("transit_arrivals:s1") is None
    assert await cache.get("transit_arrivals:s10") == [2]
    assert "transit_arrivals:s1" not in remote.store


@pytest.mark.asyncio
async def test_invalidate_recommendations_over_matches_prefix_ids(local_cache):
    invalidation = CacheInvalidationService(local_cache)
    await local_cache.set("travel_recommendations:p1:1.000,2.000", 1)
    await local_cache.set("travel_recommendations:p12:1.000,2.000", 2)
    await local_cache.set("travel_recommendations:p3:1.000,2.000", 3)

    await invalidation.invalidate_recommendations("p1")

    assert local_cache.get_stats().local_keys == ["travel_recommendations:p3:1.000,2.000"]


@pytest.mark.asyncio
async def test_invalidate_waiting_spots_and_route_plans(local_cache):
    invalidation = CacheInvalidationService(local_cache)
    await local_cache.set("waiting_spots:40.22,-74.76", [])
    await local_cache.set("route_plans:u1", [])

    await invalidation.invalidate_waiting_spots("40.22,-74.76")
    await invalidation.invalidate_route_plans("u1")

    assert local_cache.get_stats().local_size == 0


@pytest.mark.asyncio
async def test_invalidate_user_data_composes_route_plans_and_locations(local_cache):
    invalidation = CacheInvalidationService(local_cache)
    await local_cache.set("route_plans:u", 1)
    await local_cache.set("user_locations:u", 2)
    await local_cache.set("user_locations:u:history", 3)
    await local_cache.set("user_locations:v", 4)

    await invalidation.invalidate_user_data("u")

    keys = local_cache.get_stats().local_keys
    assert "route_plans:u" not in keys
    assert not any("user_locations:u" in key for key in keys)
    assert keys == ["user_locations:v"]


@pytest.mark.asyncio
async def test_invalidate_location_data_matches_fine_and_coarse_buckets(local_cache):
    invalidation = CacheInvalidationService(local_cache)
    fine = cache_keys.create_location_hash(TRENTON.latitude, TRENTON.longitude, 3)
    coarse = cache_keys.create_location_hash(TRENTON.latitude, TRENTON.longitude, 2)

    await local_cache.set(cache_keys.recommendations_key(["p1"], fine), 1)
    await local_cache.set(cache_keys.waiting_spots_key(coarse), 2)
    await local_cache.set(cache_keys.recommendations_key(["p1"], "1.000,2.000"), 3)
    await local_cache.set(cache_keys.transit_arrivals_key(fine), 4)

    removed = await invalidation.invalidate_location_data(TRENTON.latitude, TRENTON.longitude)

    assert removed == 2
    assert sorted(local_cache.get_stats().local_keys) == sorted([
        cache_keys.recommendations_key(["p1"], "1.000,2.000"),
        cache_keys.transit_arrivals_key(fine),
    ])


@pytest.mark.asyncio
async def test_invalidate_waiting_spot_edit(local_cache):
    invalidation = CacheInvalidationService(local_cache)
    spot = make_spot("spot-9")
    await local_cache.set("transit_arrivals:spot-9", [])
    await local_cache.set("waiting_spots:40.22,-74.76", [])

    await invalidation.invalidate_waiting_spot(spot)

    assert local_cache.get_stats().local_size == 0


@pytest.mark.asyncio
async def test_invalidate_travel_plans(local_cache):
    invalidation = CacheInvalidationService(local_cache)
    await local_cache.set("travel_recommendations:a,b:1.000,2.000", 1)
    await local_cache.set("travel_recommendations:c:1.000,2.000", 2)

    await invalidation.invalidate_travel_plans(["a"])

    assert local_cache.get_stats().local_keys == ["travel_recommendations:c:1.000,2.000"]


@pytest.mark.asyncio
async def test_emergency_clear_sweeps_major_namespaces(local_cache):
    invalidation = CacheInvalidationService(local_cache)
    await local_cache.set("transit_arrivals:s", 1)
    await local_cache.set("travel_recommendations:p:1.000,2.000", 2)
    await local_cache.set("waiting_spots:1.00,2.00", 3)
    await local_cache.set("route_plans:u", 4)

    await invalidation.emergency_cache_clear()

    assert local_cache.get_stats().local_keys == ["route_plans:u"]


@pytest.mark.asyncio
async def test_warmup_reports_missing_stops_without_fetching(local_cache):
    invalidation = CacheInvalidationService(local_cache)
    await local_cache.set("transit_arrivals:s1", [])

    missing = await invalidation.warmup_cache("u", TRENTON, ["s1", "s2"])

    assert missing == ["s2"]
    assert local_cache.get_stats().local_keys == ["transit_arrivals:s1"]


@pytest.mark.asyncio
async def test_health_check_passes_with_local_tier(local_cache):
    invalidation = CacheInvalidationService(local_cache)
    await local_cache.set("k", 1)

    report = await invalidation.health_check()

    assert report.is_healthy is True
    assert report.errors == []
    assert report.local_cache_size == 1
    assert await local_cache.get("health_check_test") is None


@pytest.mark.asyncio
async def test_health_check_passes_when_remote_down(cache, remote, invalidation):
    remote.fail = True
    report = await invalidation.health_check()
    assert report.is_healthy is True


class BrokenStore(CacheStore):
    async def get(self, key):
        return None


@pytest.mark.asyncio
async def test_health_check_collects_errors(clock):
    invalidation = CacheInvalidationService(BrokenStore(clock=clock))

    report = await invalidation.health_check()

    assert report.is_healthy is False
    assert report.errors == ["Cache get operation failed"]


@pytest.mark.asyncio
async def test_periodic_cleanup_is_diagnostics_only(local_cache, clock):
    invalidation = CacheInvalidationService(local_cache)
    await local_cache.set("k", 1, ttl=1)
    clock.advance(5)

    invalidation.start_periodic_cleanup()
    await invalidation._cleanup_task.run_once()
    await invalidation.stop_periodic_cleanup()

    # Expired entry is not evicted by the diagnostics pass
    assert local_cache.get_stats().local_keys == ["k"]
