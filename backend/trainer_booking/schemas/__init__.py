# backend/trainer_booking/schemas/__init__.py
"""Pydantic request/response models."""

from .booking import (
    AvailableDatesResponse,
    BookingListResponse,
    BookingResponse,
    TimeSlotIn,
    TimeSlotOut,
)
from .payment_schemas import CheckoutSessionRequest, CheckoutSessionResponse, WebhookAck

__all__ = [
    "AvailableDatesResponse",
    "BookingListResponse",
    "BookingResponse",
    "CheckoutSessionRequest",
    "CheckoutSessionResponse",
    "TimeSlotIn",
    "TimeSlotOut",
    "WebhookAck",
]
