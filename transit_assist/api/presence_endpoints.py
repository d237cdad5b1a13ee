"""
Presence endpoints: waiting spots, location samples and magnetometer readings.
"""

from typing import Optional
from fastapi import APIRouter, Depends
import logging

from transit_assist.core.dependencies import get_invalidation_service, get_presence_tracker
from transit_assist.models.api_models import (
    MagnetometerReading,
    PresenceResponse,
    WaitingSpotsRequest,
)
from transit_assist.models.domain import Location
from transit_assist.models.internal_models import WaitingSpotTransition
from transit_assist.services import CacheInvalidationService, PresenceTracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/presence", tags=["presence"])


def _to_response(tracker: PresenceTracker, transition: Optional[WaitingSpotTransition] = None) -> PresenceResponse:
    state = tracker.get_current_state()
    label = None
    if transition is not None:
        label = "entered" if transition.entered else "left"
    return PresenceResponse(
        location=state.current,
        heading=state.heading,
        is_in_waiting_spot=state.is_in_waiting_spot,
        active_waiting_spot_id=state.active_waiting_spot.id if state.active_waiting_spot else None,
        transition=label,
        last_update=state.last_update,
    )


@router.get("", response_model=PresenceResponse)
async def get_presence(tracker: PresenceTracker = Depends(get_presence_tracker)) -> PresenceResponse:
    return _to_response(tracker)


@router.put("/waiting-spots", response_model=PresenceResponse)
async def set_waiting_spots(
    body: WaitingSpotsRequest,
    tracker: PresenceTracker = Depends(get_presence_tracker),
    invalidation: CacheInvalidationService = Depends(get_invalidation_service),
) -> PresenceResponse:
    """
    Replace the tracked waiting spots.

    Every submitted spot is treated as edited and its cached arrivals and area
    list are invalidated before presence is re-evaluated.
    """
    for spot in body.waiting_spots:
        await invalidation.invalidate_waiting_spot(spot)
    transition = await tracker.set_waiting_spots(body.waiting_spots)
    return _to_response(tracker, transition)


@router.post("/location", response_model=PresenceResponse)
async def submit_location(
    location: Location,
    tracker: PresenceTracker = Depends(get_presence_tracker),
) -> PresenceResponse:
    transition = tracker.update_location(location)
    return _to_response(tracker, transition)


@router.post("/heading", response_model=PresenceResponse)
async def submit_magnetometer(
    reading: MagnetometerReading,
    tracker: PresenceTracker = Depends(get_presence_tracker),
) -> PresenceResponse:
    tracker.update_heading_from_magnetometer(reading.x, reading.y, reading.z)
    return _to_response(tracker)
