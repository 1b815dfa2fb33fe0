# backend/trainer_booking/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository

Answers "does this client already hold an active booking for this trainer,
date and slot?" against the booking ledger. Active means pending or approved.

At checkout time the answer is advisory: two checkouts for the same slot may
race past it. The authoritative check happens when the paid booking is
written, through the ledger's unique index (see BookingRepository).
"""

from datetime import date
import logging
from typing import Any, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_BOOKING_STATUSES, Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[Booking]):
    """Repository for conflict checking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _active_slot_query(
        self,
        trainer_id: str,
        user_id: str,
        booking_date: date,
        slot: Any,
        exclude_session_id: Optional[str] = None,
    ) -> Query:
        query = self.db.query(Booking).filter(
            Booking.trainer_id == trainer_id,
            Booking.user_id == user_id,
            Booking.booking_date == booking_date,
            Booking.slot_day == slot.day.value,
            Booking.slot_start_time == slot.starting_time,
            Booking.slot_end_time == slot.ending_time,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        if exclude_session_id:
            query = query.filter(Booking.session_id != exclude_session_id)
        return query

    def find_active_booking(
        self,
        trainer_id: str,
        user_id: str,
        booking_date: date,
        slot: Any,
        exclude_session_id: Optional[str] = None,
    ) -> Optional[Booking]:
        """
        Return the booking currently holding the slot, if any.

        Unflagged holders are preferred over rows already marked as
        reconciliation conflicts.

        Args:
            trainer_id: Trainer being booked
            user_id: Client making the booking
            booking_date: Concrete calendar date
            slot: TimeSlot (day, starting_time, ending_time)
            exclude_session_id: Ignore bookings from this checkout session

        Returns:
            The holding Booking, or None
        """
        try:
            result = (
                self._active_slot_query(
                    trainer_id, user_id, booking_date, slot, exclude_session_id
                )
                .order_by(Booking.is_reconciliation_conflict.asc(), Booking.created_at.asc())
                .first()
            )
            return cast(Optional[Booking], result)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict bookings: {str(e)}")

    def has_active_conflict(
        self,
        trainer_id: str,
        user_id: str,
        booking_date: date,
        slot: Any,
        exclude_session_id: Optional[str] = None,
    ) -> bool:
        """True when an active booking exists for the (trainer, user, date, slot) tuple."""
        return (
            self.find_active_booking(trainer_id, user_id, booking_date, slot, exclude_session_id)
            is not None
        )
