# Services module

from .cache_invalidation_service import CacheInvalidationService
from .presence_tracker import PresenceTracker
from .recommendation_refresher import RecommendationRefresher
from .recommendation_service import TransitRecommendationService
from .ticket_booking import TicketBookingService, TicketPurchaser
from .transit_data import (
    HttpTransitDataProvider,
    ScheduledArrivalProvider,
    TransitDataProvider,
    create_transit_data_provider,
)

__all__ = [
    "CacheInvalidationService",
    "PresenceTracker",
    "RecommendationRefresher",
    "TransitRecommendationService",
    "TicketBookingService",
    "TicketPurchaser",
    "TransitDataProvider",
    "ScheduledArrivalProvider",
    "HttpTransitDataProvider",
    "create_transit_data_provider",
]
