"""
Test doubles and domain builders: a controllable clock, an in-memory remote
cache operation and waiting spot / travel plan factories.
"""

import asyncio
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from transit_assist.core.cache_client import RemoteCacheOperation
from transit_assist.models.cache_models import CacheAction, CacheRequest, CacheResponse
from transit_assist.models.domain import (
    Destination,
    Location,
    TimeSlot,
    TransitStop,
    TransitType,
    TravelPlan,
    WaitingSpot,
)

# Sunday 2024-01-07 08:30, day_of_week == 0
SUNDAY_MORNING = datetime(2024, 1, 7, 8, 30)

TRENTON = Location(latitude=40.2206, longitude=-74.7563)


class FakeClock:
    """Epoch-seconds clock advanced by hand."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemoteCache(RemoteCacheOperation):
    """In-memory remote tier; can be switched to fail or hang."""

    def __init__(self):
        self.store: Dict[str, Any] = {}
        self.requests: List[CacheRequest] = []
        self.fail = False
        self.hang = False
        self.closed = False

    async def execute(self, request: CacheRequest) -> CacheResponse:
        self.requests.append(request)
        if self.hang:
            await asyncio.sleep(3600)
        if self.fail:
            raise ConnectionError("remote unreachable")

        if request.action == CacheAction.GET:
            return CacheResponse(success=True, data=self.store.get(request.key))
        if request.action == CacheAction.SET:
            if request.value is None:
                return CacheResponse(success=False, error="Value is required for set operation")
            self.store[request.key] = request.value
            return CacheResponse(success=True)
        if request.action == CacheAction.DEL:
            return CacheResponse(success=True, data=int(self.store.pop(request.key, None) is not None))
        if request.action == CacheAction.EXISTS:
            return CacheResponse(success=True, data=request.key in self.store)
        return CacheResponse(success=False, error=f"Unsupported action: {request.action.value}")

    async def close(self) -> None:
        self.closed = True

    def actions(self, action: CacheAction) -> List[CacheRequest]:
        return [r for r in self.requests if r.action == action]


def offset_east(origin: Location, meters: float) -> Location:
    dlon = math.degrees(meters / (6371000.0 * math.cos(math.radians(origin.latitude))))
    return Location(latitude=origin.latitude, longitude=origin.longitude + dlon)


def offset_north(origin: Location, meters: float) -> Location:
    dlat = math.degrees(meters / 6371000.0)
    return Location(latitude=origin.latitude + dlat, longitude=origin.longitude)


def make_stop(
    stop_id: str = "stop-1",
    location: Location = TRENTON,
    lines: Optional[List[str]] = None,
    transit_type: TransitType = TransitType.BUS,
) -> TransitStop:
    return TransitStop(
        id=stop_id,
        name=f"Stop {stop_id}",
        type=transit_type,
        location=location,
        lines=lines if lines is not None else ["601", "606", "609"],
    )


def make_spot(
    spot_id: str = "spot-1",
    center: Location = TRENTON,
    radius: float = 50.0,
    stops: Optional[List[TransitStop]] = None,
    is_active: bool = True,
) -> WaitingSpot:
    return WaitingSpot(
        id=spot_id,
        owner_id="user-1",
        name=f"Spot {spot_id}",
        center=center,
        radius=radius,
        transit_stops=stops if stops is not None else [make_stop()],
        is_active=is_active,
    )


def east_destination(dest_id: str = "dest-east", meters: float = 2000.0) -> Destination:
    return Destination(id=dest_id, name="Office", location=offset_east(TRENTON, meters))


def make_plan(
    plan_id: str = "plan-1",
    destinations: Optional[List[Destination]] = None,
    day: int = 0,
    start: str = "08:00",
    end: str = "09:00",
    is_active: bool = True,
) -> TravelPlan:
    destinations = destinations if destinations is not None else [east_destination()]
    return TravelPlan(
        id=plan_id,
        owner_id="user-1",
        name=f"Plan {plan_id}",
        time_slots=[TimeSlot(
            id=f"{plan_id}-slot",
            day_of_week=day,
            start_time=start,
            end_time=end,
            destination_ids=[d.id for d in destinations],
        )],
        destinations=destinations,
        is_active=is_active,
    )
