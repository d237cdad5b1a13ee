"""
Cache invalidation coordinator.

Named invalidations tied to domain events (stop updated, plan updated, spot
edited, user moved), a periodic diagnostics pass, an emergency clear and a
synthetic health check, all on top of CacheStore.
"""

import logging
import time
from typing import Iterable, Optional

from transit_assist.config.settings import CacheSettings
from transit_assist.core import cache_keys
from transit_assist.core.cache_store import CacheStore
from transit_assist.core.scheduling import PeriodicTask
from transit_assist.models.cache_models import CacheHealthReport
from transit_assist.models.domain import Location, WaitingSpot

logger = logging.getLogger(__name__)

HEALTH_CHECK_KEY = "health_check_test"
HEALTH_CHECK_TTL_SECONDS = 10


class CacheInvalidationService:
    """Domain-level invalidation policy over a CacheStore."""

    def __init__(self, cache: CacheStore, settings: Optional[CacheSettings] = None):
        self.cache = cache
        self.settings = settings or cache.settings
        self._cleanup_task: Optional[PeriodicTask] = None

    async def invalidate_transit_arrivals(self, stop_id: str) -> None:
        await self.cache.delete(cache_keys.transit_arrivals_key(stop_id))
        logger.info(f"Invalidated transit arrivals cache for stop: {stop_id}")

    async def invalidate_recommendations(self, plan_id: str) -> None:
        """
        Drop recommendation entries mentioning plan_id.

        Substring match: also removes entries whose plan-set merely starts
        with plan_id (e.g. "p1" matches "p12").
        """
        await self.cache.invalidate_pattern(f"{cache_keys.TRAVEL_RECOMMENDATIONS}:{plan_id}")
        logger.info(f"Invalidated recommendations cache for plan: {plan_id}")

    async def invalidate_waiting_spots(self, area_id: str) -> None:
        await self.cache.delete(cache_keys.waiting_spots_key(area_id))
        logger.info(f"Invalidated waiting spots cache for area: {area_id}")

    async def invalidate_route_plans(self, user_id: str) -> None:
        await self.cache.delete(cache_keys.route_plans_key(user_id))
        logger.info(f"Invalidated route plans cache for user: {user_id}")

    async def invalidate_user_data(self, user_id: str) -> None:
        await self.invalidate_route_plans(user_id)
        await self.cache.invalidate_pattern(cache_keys.user_locations_key(user_id))
        logger.info(f"Invalidated all cache data for user: {user_id}")

    async def invalidate_location_data(self, latitude: float, longitude: float) -> int:
        """
        Drop recommendation and waiting-spot entries bucketed at this location.

        Both the fine (recommendation) and coarse (area) location hashes are
        matched against keys of both namespaces.

        Returns:
            Number of keys removed
        """
        location_hash = cache_keys.create_location_hash(latitude, longitude, self.settings.location_precision)
        area_hash = cache_keys.create_location_hash(latitude, longitude, self.settings.area_precision)
        hashes = {location_hash, area_hash}

        removed = 0
        for key in self.cache.get_stats().local_keys:
            namespace, _, rest = key.partition(":")
            if namespace not in (cache_keys.TRAVEL_RECOMMENDATIONS, cache_keys.WAITING_SPOTS):
                continue
            bucket = rest.rsplit(":", 1)[-1]
            if bucket in hashes:
                await self.cache.delete(key)
                removed += 1

        logger.info(f"Invalidated location-based cache data for: {location_hash} ({removed} keys)")
        return removed

    async def invalidate_waiting_spot(self, spot: WaitingSpot) -> None:
        """Invalidate caches affected by an edit of a waiting spot."""
        await self.invalidate_transit_arrivals(spot.id)
        area_hash = cache_keys.create_location_hash(
            spot.center.latitude, spot.center.longitude, self.settings.area_precision
        )
        await self.invalidate_waiting_spots(area_hash)

    async def invalidate_travel_plans(self, plan_ids: Iterable[str]) -> None:
        for plan_id in plan_ids:
            await self.invalidate_recommendations(plan_id)

    def start_periodic_cleanup(self) -> None:
        """
        Schedule a diagnostics pass every cleanup interval.

        This only logs cache statistics; eviction is left to TTLs and the
        cache store's own sweep.
        """
        if self._cleanup_task is None:
            self._cleanup_task = PeriodicTask(
                "cache-diagnostics", self.settings.cleanup_interval_seconds, self._log_cache_stats
            )
        self._cleanup_task.start()

    async def stop_periodic_cleanup(self) -> None:
        if self._cleanup_task is not None:
            await self._cleanup_task.stop()

    def _log_cache_stats(self) -> None:
        stats = self.cache.get_stats()
        logger.info(
            f"Running periodic cache cleanup, local size {stats.local_size}",
            extra={"local_keys": stats.local_keys},
        )

    async def emergency_cache_clear(self) -> None:
        logger.warning("Performing emergency cache clear")
        await self.cache.invalidate_pattern(cache_keys.TRANSIT_ARRIVALS)
        await self.cache.invalidate_pattern(cache_keys.TRAVEL_RECOMMENDATIONS)
        await self.cache.invalidate_pattern(cache_keys.WAITING_SPOTS)
        logger.info("Emergency cache clear completed")

    async def warmup_cache(self, user_id: str, location: Location, critical_stop_ids: Iterable[str]) -> list[str]:
        """
        Report which critical stops have no cached arrivals.

        No data is fetched here; callers populate the returned stops through
        the transit-data path.

        Returns:
            Stop ids that need warming
        """
        logger.info(f"Starting cache warmup for user {user_id}")
        missing = []
        try:
            for stop_id in critical_stop_ids:
                if not await self.cache.exists(cache_keys.transit_arrivals_key(stop_id)):
                    logger.info(f"Warming up cache for stop: {stop_id}")
                    missing.append(stop_id)
            logger.info(f"Cache warmup completed, {len(missing)} stops need data")
        except Exception as e:
            logger.error(f"Cache warmup failed: {e}", exc_info=True)
        return missing

    async def health_check(self) -> CacheHealthReport:
        """Run a set/get/delete cycle and collect failures as strings."""
        errors: list[str] = []

        try:
            test_data = {"timestamp": int(time.time() * 1000)}

            if not await self.cache.set(HEALTH_CHECK_KEY, test_data, ttl=HEALTH_CHECK_TTL_SECONDS):
                errors.append("Cache set operation failed")

            if not await self.cache.get(HEALTH_CHECK_KEY):
                errors.append("Cache get operation failed")

            if not await self.cache.delete(HEALTH_CHECK_KEY):
                errors.append("Cache delete operation failed")

            stats = self.cache.get_stats()
            return CacheHealthReport(
                is_healthy=not errors,
                local_cache_size=stats.local_size,
                errors=errors,
            )

        except Exception as e:
            errors.append(f"Health check exception: {e}")
            return CacheHealthReport(is_healthy=False, local_cache_size=0, errors=errors)
