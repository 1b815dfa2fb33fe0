# backend/trainer_booking/models/booking.py
"""
Booking model (the booking ledger).

A booking row is only ever written once payment has been confirmed by the
payment provider. Rows are self-contained: the trainer's time slot and price
are copied in at write time, so later edits to the trainer's slot list or
rate never touch existing bookings.

Uniqueness rules enforced by the database:
- session_id is unique, which makes webhook replays no-ops.
- at most one unflagged active booking per (trainer, user, date, slot).
  A second paid booking for the same tuple is stored with
  is_reconciliation_conflict set, which the partial index ignores.
"""

from enum import Enum
import logging
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Reserved for a future pre-payment hold
    APPROVED = "approved"  # Paid and confirmed
    CANCELLED = "cancelled"


ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.APPROVED.value)


class Booking(Base):
    """Paid reservation of a trainer's weekly slot on a concrete date."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    trainer_id = Column(String(26), ForeignKey("trainers.id"), nullable=False)
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False)

    booking_date = Column(Date, nullable=False, index=True)

    # Slot snapshot
    slot_day = Column(String(9), nullable=False)
    slot_start_time = Column(String(5), nullable=False)
    slot_end_time = Column(String(5), nullable=False)

    ticket_price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.APPROVED.value, index=True)
    is_paid = Column(Boolean, nullable=False, default=False)

    # Stripe references
    session_id = Column(String(255), nullable=False)
    payment_intent_id = Column(String(255), nullable=True)

    # Manual reconciliation marker
    is_reconciliation_conflict = Column(Boolean, nullable=False, default=False)
    conflicting_booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    trainer = relationship("Trainer", back_populates="bookings")
    user = relationship("User", back_populates="bookings")
    conflicting_booking = relationship("Booking", remote_side=[id], uselist=False)

    __table_args__ = (
        UniqueConstraint("session_id", name="uq_bookings_session_id"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint("ticket_price >= 0", name="check_price_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: user={self.user_id}, trainer={self.trainer_id}, "
            f"date={self.booking_date}, slot={self.slot_day} "
            f"{self.slot_start_time}-{self.slot_end_time}, status={self.status}, "
            f"session={self.session_id}>"
        )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    def slot_snapshot(self) -> dict[str, Any]:
        return {
            "day": self.slot_day,
            "starting_time": self.slot_start_time,
            "ending_time": self.slot_end_time,
        }


_SLOT_COLUMNS = (
    Booking.trainer_id,
    Booking.user_id,
    Booking.booking_date,
    Booking.slot_day,
    Booking.slot_start_time,
    Booking.slot_end_time,
)

Index("ix_bookings_slot_lookup", *_SLOT_COLUMNS)

_ACTIVE_UNFLAGGED = Booking.status.in_(ACTIVE_BOOKING_STATUSES) & Booking.is_reconciliation_conflict.is_(
    False
)

Index(
    "uq_bookings_active_slot",
    *_SLOT_COLUMNS,
    unique=True,
    postgresql_where=_ACTIVE_UNFLAGGED,
    sqlite_where=_ACTIVE_UNFLAGGED,
)
