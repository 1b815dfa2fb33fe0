# backend/trainer_booking/schemas/booking.py
"""
Booking schemas for the trainer booking service.

Bookings are self-contained: the slot and price shown here are the snapshot
copied into the ledger row, not the trainer's current values.
"""

from datetime import date, datetime
import re
from typing import Any, List, Optional

from pydantic import ConfigDict, Field

from ._strict_base import StrictModel, StrictRequestModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def ensure_date_only(value: object, field_name: str) -> object:
    if isinstance(value, str):
        candidate = value.strip()
        if not DATE_ONLY_REGEX.fullmatch(candidate):
            raise ValueError(f"{field_name} must be a YYYY-MM-DD date-only string")
        return candidate
    return value


class TimeSlotIn(StrictRequestModel):
    """
    Slot as submitted by the web client.

    Values are validated against the trainer's slots by the service, so a
    malformed slot surfaces as INVALID_SLOT rather than a schema error.
    """

    day: str = Field(..., description="Weekday name, e.g. monday")
    starting_time: str = Field(..., alias="startingTime", description="HH:MM, 24h")
    ending_time: str = Field(..., alias="endingTime", description="HH:MM, 24h")


class TimeSlotOut(StrictModel):
    day: str
    starting_time: str
    ending_time: str


class BookingResponse(StrictModel):
    """Ledger row as returned to clients, trainers and admins."""

    model_config = ConfigDict(extra="forbid", from_attributes=True)

    id: str
    trainer_id: str
    user_id: str
    booking_date: date
    time_slot: TimeSlotOut
    ticket_price: float
    currency: str
    status: str
    is_paid: bool
    session_id: str
    is_reconciliation_conflict: bool = False
    conflicting_booking_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: Any) -> "BookingResponse":
        return cls(
            id=booking.id,
            trainer_id=booking.trainer_id,
            user_id=booking.user_id,
            booking_date=booking.booking_date,
            time_slot=TimeSlotOut(**booking.slot_snapshot()),
            ticket_price=float(booking.ticket_price),
            currency=booking.currency,
            status=booking.status,
            is_paid=bool(booking.is_paid),
            session_id=booking.session_id,
            is_reconciliation_conflict=bool(booking.is_reconciliation_conflict),
            conflicting_booking_id=booking.conflicting_booking_id,
            created_at=booking.created_at,
        )


class BookingListResponse(StrictModel):
    bookings: List[BookingResponse]
    total: int


class AvailableDatesResponse(StrictModel):
    """Concrete bookable dates resolved from a trainer's weekly slots."""

    trainer_id: str
    time_slots: List[TimeSlotOut]
    dates: List[date] = Field(default_factory=list)
