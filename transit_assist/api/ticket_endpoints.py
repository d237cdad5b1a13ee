"""
Ticket booking endpoint.

Only served when the application was built with a ticket purchaser; otherwise
requests answer 503.
"""

from fastapi import APIRouter, Depends
import logging

from transit_assist.core.dependencies import get_ticket_booking_service
from transit_assist.core.exceptions import TicketPurchaseError
from transit_assist.models.api_models import TicketPurchaseRequest, TicketPurchaseResponse
from transit_assist.services import TicketBookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["tickets"])


@router.post("/tickets", response_model=TicketPurchaseResponse)
async def purchase_ticket(
    body: TicketPurchaseRequest,
    booking: TicketBookingService = Depends(get_ticket_booking_service),
) -> TicketPurchaseResponse:
    """
    Book a recommended transit option.

    Raises:
        TicketPurchaseError: The purchaser declined the purchase
    """
    result = await booking.purchase(body.option, waiting_spot_id=body.waiting_spot_id)
    if not result.success:
        raise TicketPurchaseError(result.error or "Ticket purchase failed", result.error_code)
    return TicketPurchaseResponse(ticket_id=result.ticket_id, option_id=body.option.id)
