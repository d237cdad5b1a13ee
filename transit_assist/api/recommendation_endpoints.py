"""
Recommendation and travel-plan endpoints.

POST /api/v1/recommendations computes recommendations for an explicit
location/heading; waiting spot and plans fall back to the tracker's active
spot and the refresher's stored plans.
"""

from datetime import datetime
from fastapi import APIRouter, Depends
import logging

from transit_assist.core.dependencies import (
    get_invalidation_service,
    get_presence_tracker,
    get_recommendation_service,
    get_refresher,
)
from transit_assist.core.exceptions import NoActiveWaitingSpotError
from transit_assist.models.api_models import (
    InvalidationResponse,
    RecommendationRequest,
    RecommendationResponse,
    TravelPlansRequest,
)
from transit_assist.services import (
    CacheInvalidationService,
    PresenceTracker,
    RecommendationRefresher,
    TransitRecommendationService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["recommendations"])


@router.post("/recommendations", response_model=RecommendationResponse)
async def get_recommendations(
    body: RecommendationRequest,
    engine: TransitRecommendationService = Depends(get_recommendation_service),
    tracker: PresenceTracker = Depends(get_presence_tracker),
    refresher: RecommendationRefresher = Depends(get_refresher),
) -> RecommendationResponse:
    """
    Compute ranked transit options per current travel plan.

    Raises:
        NoActiveWaitingSpotError: No spot given and the tracker has none active
    """
    spot = body.waiting_spot or tracker.active_waiting_spot
    if spot is None:
        raise NoActiveWaitingSpotError()

    plans = body.travel_plans if body.travel_plans is not None else refresher.travel_plans
    recommendations = await engine.get_recommendations(
        body.location,
        body.heading,
        spot,
        plans,
        now=body.now or datetime.now(),
    )
    return RecommendationResponse(recommendations=recommendations, waiting_spot_id=spot.id)


@router.get("/recommendations/latest", response_model=RecommendationResponse)
async def get_latest_recommendations(
    tracker: PresenceTracker = Depends(get_presence_tracker),
    refresher: RecommendationRefresher = Depends(get_refresher),
) -> RecommendationResponse:
    """Last result published by the background refresh."""
    spot = tracker.active_waiting_spot
    if spot is None:
        raise NoActiveWaitingSpotError()
    return RecommendationResponse(recommendations=refresher.latest, waiting_spot_id=spot.id)


@router.put("/travel-plans", response_model=InvalidationResponse)
async def replace_travel_plans(
    body: TravelPlansRequest,
    refresher: RecommendationRefresher = Depends(get_refresher),
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> InvalidationResponse:
    """Store the user's plans and drop recommendations cached for them."""
    plan_ids = [plan.id for plan in body.travel_plans]
    refresher.set_travel_plans(body.travel_plans)
    await invalidation.invalidate_travel_plans(plan_ids)
    return InvalidationResponse(message=f"Stored {len(plan_ids)} travel plans")
