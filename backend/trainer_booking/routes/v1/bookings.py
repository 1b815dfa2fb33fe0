# backend/trainer_booking/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
Business logic lives in the services; routes only translate HTTP.

Endpoints:
    POST /checkout-session/{trainer_id} - Start hosted checkout for one slot
    POST /webhook - Stripe checkout webhook (signature-verified)
    GET /me - Current client's bookings
    GET /reconciliation-conflicts - Admin queue of flagged paid bookings
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query, Request

from ...api.dependencies import (
    Caller,
    get_booking_service,
    get_checkout_service,
    get_current_client,
    get_reconciliation_service,
    require_admin,
)
from ...models.user import User
from ...schemas.booking import BookingListResponse, BookingResponse
from ...schemas.payment_schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    WebhookAck,
)
from ...services.booking_service import BookingService
from ...services.checkout_service import CheckoutService
from ...services.reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


@router.post(
    "/checkout-session/{trainer_id}",
    response_model=CheckoutSessionResponse,
)
async def create_checkout_session(
    trainer_id: str,
    payload: CheckoutSessionRequest,
    current_user: User = Depends(get_current_client),
    checkout_service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutSessionResponse:
    """
    Start a hosted checkout for a trainer slot on a date.

    No booking exists until Stripe confirms payment via the webhook.
    """
    result = await asyncio.to_thread(
        checkout_service.create_checkout_intent,
        trainer_id,
        current_user.id,
        payload.booking_date,
        payload.time_slot.model_dump(),
    )
    return CheckoutSessionResponse(
        redirect_url=result["redirect_url"],
        external_session_id=result["session_id"],
    )


@router.post("/webhook", response_model=WebhookAck)
async def handle_checkout_webhook(
    request: Request,
    reconciliation_service: ReconciliationService = Depends(get_reconciliation_service),
) -> WebhookAck:
    """
    Receive Stripe checkout events.

    The raw body is passed through untouched so the signature can be
    checked over the exact bytes Stripe signed.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    result = await asyncio.to_thread(
        reconciliation_service.handle_provider_event, payload, signature
    )
    return WebhookAck(**result)


@router.get("/me", response_model=BookingListResponse)
async def list_my_bookings(
    current_user: User = Depends(get_current_client),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    bookings = await asyncio.to_thread(booking_service.list_user_bookings, current_user.id)
    items = [BookingResponse.from_booking(b) for b in bookings]
    return BookingListResponse(bookings=items, total=len(items))


@router.get("/reconciliation-conflicts", response_model=BookingListResponse)
async def list_reconciliation_conflicts(
    limit: int = Query(100, ge=1, le=500),
    admin: Caller = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """Paid bookings flagged for manual resolution, newest first."""
    bookings = await asyncio.to_thread(booking_service.list_reconciliation_conflicts, limit)
    items = [BookingResponse.from_booking(b) for b in bookings]
    return BookingListResponse(bookings=items, total=len(items))
