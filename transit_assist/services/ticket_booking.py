"""
Ticket booking hook.

Purchasing is delegated to a TicketPurchaser. A successful purchase invalidates
the arrivals cached for the stop.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from transit_assist.models.domain import TransitOption
from transit_assist.models.internal_models import PurchaseResult
from transit_assist.services.cache_invalidation_service import CacheInvalidationService

logger = logging.getLogger(__name__)


class TicketPurchaser(ABC):
    """Payment/ticketing collaborator contract"""

    @abstractmethod
    async def purchase(self, option: TransitOption) -> PurchaseResult:
        raise NotImplementedError


class TicketBookingService:
    def __init__(self, purchaser: TicketPurchaser, invalidation: CacheInvalidationService):
        self.purchaser = purchaser
        self.invalidation = invalidation

    async def purchase(self, option: TransitOption, waiting_spot_id: Optional[str] = None) -> PurchaseResult:
        """
        Buy a ticket for an option.

        Args:
            option: Recommended option being booked
            waiting_spot_id: Waiting spot whose arrivals entry is invalidated on
                success. Arrivals are cached per waiting spot, not per stop

        Returns:
            The purchaser's result, unchanged
        """
        logger.info(f"Purchasing ticket for option {option.id}")
        result = await self.purchaser.purchase(option)

        if result.success:
            logger.info(f"Ticket {result.ticket_id} purchased for option {option.id}")
            if waiting_spot_id:
                await self.invalidation.invalidate_transit_arrivals(waiting_spot_id)
        else:
            logger.warning(f"Ticket purchase failed for option {option.id}: {result.error}")

        return result
