"""
Models package.

Domain models (waiting spots, travel plans, transit data), cache request and
response models, internal bookkeeping structures and HTTP schemas.
"""

from .domain import (
    TransitType,
    Location,
    TransitStop,
    WaitingSpot,
    Destination,
    TimeSlot,
    TravelPlan,
    TransitArrival,
    TransitOption,
)
from .cache_models import (
    CacheAction,
    CacheRequest,
    CacheResponse,
    CacheStats,
    CacheHealthReport,
)
from .internal_models import (
    CacheEntry,
    RemoteResult,
    WaitingSpotTransition,
    PresenceState,
    RecommendationUpdate,
    PurchaseResult,
)

__all__ = [
    "TransitType",
    "Location",
    "TransitStop",
    "WaitingSpot",
    "Destination",
    "TimeSlot",
    "TravelPlan",
    "TransitArrival",
    "TransitOption",
    "CacheAction",
    "CacheRequest",
    "CacheResponse",
    "CacheStats",
    "CacheHealthReport",
    "CacheEntry",
    "RemoteResult",
    "WaitingSpotTransition",
    "PresenceState",
    "RecommendationUpdate",
    "PurchaseResult",
]
