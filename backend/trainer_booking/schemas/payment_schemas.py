"""
Payment-related Pydantic schemas.

Request/response models for starting a hosted checkout and acknowledging
Stripe webhook deliveries.
"""

from datetime import date

from pydantic import ConfigDict, Field, field_validator

from ._strict_base import StrictModel, StrictRequestModel
from .booking import TimeSlotIn, ensure_date_only

# ========== Request Models ==========


class CheckoutSessionRequest(StrictRequestModel):
    """Request to start checkout for one trainer slot on one date."""

    time_slot: TimeSlotIn = Field(..., alias="timeSlot", description="Trainer slot to book")
    booking_date: date = Field(..., alias="bookingDate", description="Date of the session")

    @field_validator("booking_date", mode="before")
    @classmethod
    def _date_only(cls, value: object) -> object:
        return ensure_date_only(value, "bookingDate")


# ========== Response Models ==========


class CheckoutSessionResponse(StrictModel):
    """Where to send the client to pay."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    redirect_url: str = Field(..., alias="redirectUrl", description="Hosted checkout URL")
    external_session_id: str = Field(
        ..., alias="externalSessionId", description="Stripe Checkout Session ID"
    )


class WebhookAck(StrictModel):
    """Response for webhook processing."""

    received: bool = Field(default=True, description="Delivery was authenticated")
    status: str = Field(..., description="created, duplicate, conflict or ignored")
    event_type: str = Field(..., description="Stripe event type")
