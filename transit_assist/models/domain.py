"""
Domain models for waiting spots, travel plans and transit data.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from transit_assist.core.geo_utils import day_of_week, is_time_in_slot

_HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class TransitType(str, Enum):
    """Transit modes served by a stop"""
    BUS = "bus"
    TRAIN = "train"
    LIGHTRAIL = "lightrail"


class Location(BaseModel):
    """WGS84 coordinate in degrees"""
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    model_config = {"frozen": True}


class TransitStop(BaseModel):
    """A stop attached to a waiting spot. Each spot holds its own copy."""
    id: str
    name: str
    type: TransitType = TransitType.BUS
    location: Location
    lines: List[str] = Field(default_factory=list)
    stop_code: Optional[str] = None


class WaitingSpot(BaseModel):
    """User-defined circle in which nearby transit is surveilled"""
    id: str
    owner_id: str
    name: str
    center: Location
    radius: float = Field(default=50.0, gt=0, description="Radius in meters")
    transit_stops: List[TransitStop] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def find_stop(self, stop_id: str) -> Optional[TransitStop]:
        for stop in self.transit_stops:
            if stop.id == stop_id:
                return stop
        return None


class Destination(BaseModel):
    id: str
    name: str
    location: Location
    address: str = ""
    category: Optional[str] = None

    model_config = {"frozen": True}


class TimeSlot(BaseModel):
    """
    Weekly time window of a travel plan.

    day_of_week uses 0 = Sunday. destination_ids must reference destinations
    of the owning plan; this is a caller contract and is not enforced here.
    """
    id: str
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: str = Field(..., pattern=_HHMM_PATTERN)
    end_time: str = Field(..., pattern=_HHMM_PATTERN)
    destination_ids: List[str] = Field(default_factory=list)

    @field_validator('destination_ids')
    @classmethod
    def dedupe_destination_ids(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    def matches(self, moment: datetime) -> bool:
        """Check day-of-week and clock time of a moment against this slot"""
        return (
            self.day_of_week == day_of_week(moment)
            and is_time_in_slot(moment, self.start_time, self.end_time)
        )


class TravelPlan(BaseModel):
    id: str
    owner_id: str
    name: str
    time_slots: List[TimeSlot] = Field(default_factory=list)
    destinations: List[Destination] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def matching_time_slots(self, moment: datetime) -> List[TimeSlot]:
        return [slot for slot in self.time_slots if slot.matches(moment)]

    def is_current(self, moment: datetime) -> bool:
        """A plan is current when active and at least one slot matches"""
        return self.is_active and any(slot.matches(moment) for slot in self.time_slots)


class TransitArrival(BaseModel):
    """Arrival reported by the transit-data collaborator"""
    route_id: str
    stop_id: str
    arrival_time: datetime
    destination_label: str
    delay_minutes: Optional[int] = None


class TransitOption(BaseModel):
    """Ranked recommendation produced for a travel plan"""
    id: str
    type: TransitType
    line: str
    direction: str
    stop_name: str
    arrival_time: datetime
    destination_label: str
    estimated_travel_minutes: int
    matching_plan_ids: List[str] = Field(default_factory=list)
    distance_to_destination_meters: float
    heading_degrees: int = Field(..., ge=0, lt=360)
