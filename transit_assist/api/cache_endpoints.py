"""
Cache introspection and invalidation endpoints.
"""

from fastapi import APIRouter, Depends
import logging

from transit_assist.core.cache_store import CacheStore
from transit_assist.core.dependencies import get_cache_store, get_invalidation_service
from transit_assist.models.api_models import (
    InvalidationResponse,
    LocationInvalidationRequest,
    WarmupRequest,
    WarmupResponse,
)
from transit_assist.models.cache_models import CacheStats
from transit_assist.services import CacheInvalidationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/cache", tags=["cache"])


@router.get("/stats", response_model=CacheStats)
async def get_cache_stats(cache: CacheStore = Depends(get_cache_store)) -> CacheStats:
    return cache.get_stats()


@router.post("/invalidate/stops/{stop_id}", response_model=InvalidationResponse)
async def invalidate_transit_arrivals(
    stop_id: str,
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> InvalidationResponse:
    await invalidation.invalidate_transit_arrivals(stop_id)
    return InvalidationResponse(message=f"Transit arrivals invalidated for stop {stop_id}")


@router.post("/invalidate/plans/{plan_id}", response_model=InvalidationResponse)
async def invalidate_recommendations(
    plan_id: str,
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> InvalidationResponse:
    await invalidation.invalidate_recommendations(plan_id)
    return InvalidationResponse(message=f"Recommendations invalidated for plan {plan_id}")


@router.post("/invalidate/areas/{area_id}", response_model=InvalidationResponse)
async def invalidate_waiting_spots(
    area_id: str,
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> InvalidationResponse:
    await invalidation.invalidate_waiting_spots(area_id)
    return InvalidationResponse(message=f"Waiting spots invalidated for area {area_id}")


@router.post("/invalidate/users/{user_id}", response_model=InvalidationResponse)
async def invalidate_user_data(
    user_id: str,
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> InvalidationResponse:
    """Drop the user's route plans and location entries."""
    await invalidation.invalidate_user_data(user_id)
    return InvalidationResponse(message=f"Cache data invalidated for user {user_id}")


@router.post("/invalidate/location", response_model=InvalidationResponse)
async def invalidate_location_data(
    body: LocationInvalidationRequest,
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> InvalidationResponse:
    removed = await invalidation.invalidate_location_data(body.latitude, body.longitude)
    return InvalidationResponse(
        message=f"Location data invalidated near {body.latitude},{body.longitude}",
        removed=removed,
    )


@router.post("/emergency-clear", response_model=InvalidationResponse)
async def emergency_clear(
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> InvalidationResponse:
    await invalidation.emergency_cache_clear()
    return InvalidationResponse(message="Emergency cache clear completed")


@router.post("/warmup", response_model=WarmupResponse)
async def warmup_cache(
    body: WarmupRequest,
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> WarmupResponse:
    """
    Report which critical stops have no cached arrivals.

    Nothing is fetched; clients request recommendations to populate them.
    """
    missing = await invalidation.warmup_cache(body.user_id, body.location, body.critical_stop_ids)
    return WarmupResponse(stops_to_warm=missing)
