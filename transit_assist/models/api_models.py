"""
Request and response schemas for the HTTP surface.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .domain import Location, TransitOption, TravelPlan, WaitingSpot


class StandardErrorResponse(BaseModel):
    """Standardized error response format"""
    error_code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('error_code')
    @classmethod
    def validate_error_code(cls, v):
        if not v or not v.isupper():
            raise ValueError("error_code must be a non-empty uppercase string")
        return v


class RecommendationRequest(BaseModel):
    """Explicit recommendation query; plans default to the stored ones"""
    location: Location
    heading: float = Field(default=0.0, ge=0.0, lt=360.0)
    waiting_spot: Optional[WaitingSpot] = Field(
        default=None, description="Defaults to the tracker's active waiting spot"
    )
    travel_plans: Optional[List[TravelPlan]] = None
    now: Optional[datetime] = None


class RecommendationResponse(BaseModel):
    recommendations: Dict[str, List[TransitOption]]
    waiting_spot_id: str
    generated_at: datetime = Field(default_factory=datetime.utcnow)


class WaitingSpotsRequest(BaseModel):
    waiting_spots: List[WaitingSpot]


class TravelPlansRequest(BaseModel):
    travel_plans: List[TravelPlan]


class TicketPurchaseRequest(BaseModel):
    option: TransitOption
    waiting_spot_id: Optional[str] = Field(
        default=None,
        description="Waiting spot the option was recommended at; its transit_arrivals:<id> entry is dropped after a successful purchase",
    )


class TicketPurchaseResponse(BaseModel):
    ticket_id: Optional[str] = None
    option_id: str
    purchased_at: datetime = Field(default_factory=datetime.utcnow)


class MagnetometerReading(BaseModel):
    x: float
    y: float
    z: float = 0.0


class PresenceResponse(BaseModel):
    """Tracker state after a sample or on request"""
    location: Optional[Location] = None
    heading: int = 0
    is_in_waiting_spot: bool = False
    active_waiting_spot_id: Optional[str] = None
    transition: Optional[str] = Field(default=None, description="'entered', 'left' or None")
    last_update: Optional[datetime] = None


class LocationInvalidationRequest(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class WarmupRequest(BaseModel):
    user_id: str
    location: Location
    critical_stop_ids: List[str] = Field(default_factory=list)


class WarmupResponse(BaseModel):
    stops_to_warm: List[str]


class InvalidationResponse(BaseModel):
    success: bool = True
    message: str
    removed: Optional[int] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    version: str
    remote_cache_enabled: bool
    local_cache_size: int
    errors: List[str] = Field(default_factory=list)
