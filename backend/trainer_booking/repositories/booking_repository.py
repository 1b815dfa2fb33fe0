# backend/trainer_booking/repositories/booking_repository.py
"""
Booking Repository (the booking ledger)

Owns every write of a paid booking. The write is a single savepointed
INSERT; the database decides between the three outcomes:

- created: the row went in as an unflagged active booking
- duplicate: a row with the same session_id already exists (webhook replay)
- conflict: another unflagged active booking holds the same
  (trainer, user, date, slot); the row is stored flagged and linked to it

Nothing here reads-then-writes without a constraint backing it, so two
concurrent deliveries can never both land as unflagged bookings.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
import logging
from typing import Any, List, Optional, Tuple, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.booking import Booking, BookingStatus
from .base_repository import BaseRepository
from .conflict_checker_repository import ConflictCheckerRepository

logger = logging.getLogger(__name__)


class LedgerWriteOutcome(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking ledger reads and the paid-booking write."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.conflict_checker = ConflictCheckerRepository(db)

    def get_by_session_id(self, session_id: str) -> Optional[Booking]:
        """Return the booking created from a checkout session, if any."""
        try:
            result = self.db.query(Booking).filter(Booking.session_id == session_id).first()
            return cast(Optional[Booking], result)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking by session {session_id}: {str(e)}")
            raise RepositoryException(f"Failed to get booking by session: {str(e)}")

    def _insert_in_savepoint(self, values: dict[str, Any]) -> Booking:
        # Rolls back only the savepoint on failure; the outer transaction survives
        with self.db.begin_nested():
            booking = Booking(**values)
            self.db.add(booking)
            self.db.flush()
        return booking

    def insert_paid_booking(
        self,
        *,
        session_id: str,
        trainer_id: str,
        user_id: str,
        booking_date: date,
        slot: Any,
        ticket_price: Decimal,
        currency: str,
        payment_intent_id: Optional[str] = None,
    ) -> Tuple[Booking, LedgerWriteOutcome]:
        """
        Record a paid booking exactly once per checkout session.

        Args:
            session_id: Provider checkout session id (idempotency key)
            trainer_id: Trainer being booked
            user_id: Client who paid
            booking_date: Concrete calendar date
            slot: TimeSlot snapshot copied into the row
            ticket_price: Captured amount in major units
            currency: ISO currency code of the captured amount
            payment_intent_id: Provider payment reference, when present

        Returns:
            (booking, outcome). For duplicates the booking is the existing row.

        Raises:
            RepositoryException: For storage failures other than the two
                uniqueness rules above
        """
        existing = self.get_by_session_id(session_id)
        if existing is not None:
            return existing, LedgerWriteOutcome.DUPLICATE

        values: dict[str, Any] = {
            "session_id": session_id,
            "trainer_id": trainer_id,
            "user_id": user_id,
            "booking_date": booking_date,
            "slot_day": slot.day.value,
            "slot_start_time": slot.starting_time,
            "slot_end_time": slot.ending_time,
            "ticket_price": ticket_price,
            "currency": currency.lower(),
            "status": BookingStatus.APPROVED.value,
            "is_paid": True,
            "payment_intent_id": payment_intent_id,
            "is_reconciliation_conflict": False,
        }

        try:
            return self._insert_in_savepoint(values), LedgerWriteOutcome.CREATED
        except IntegrityError as exc:
            self.logger.info(
                "Paid booking insert for session %s hit a uniqueness rule: %s",
                session_id,
                exc.orig,
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting paid booking for session {session_id}: {str(e)}")
            raise RepositoryException(f"Failed to insert paid booking: {str(e)}")

        # Concurrent replay of the same session
        existing = self.get_by_session_id(session_id)
        if existing is not None:
            return existing, LedgerWriteOutcome.DUPLICATE

        holder = self.conflict_checker.find_active_booking(
            trainer_id, user_id, booking_date, slot, exclude_session_id=session_id
        )
        values["is_reconciliation_conflict"] = True
        values["conflicting_booking_id"] = holder.id if holder is not None else None

        try:
            return self._insert_in_savepoint(values), LedgerWriteOutcome.CONFLICT
        except IntegrityError as exc:
            existing = self.get_by_session_id(session_id)
            if existing is not None:
                return existing, LedgerWriteOutcome.DUPLICATE
            self.logger.error(
                "Flagged booking insert for session %s failed: %s", session_id, exc.orig
            )
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting flagged booking for session {session_id}: {str(e)}")
            raise RepositoryException(f"Failed to insert flagged booking: {str(e)}")

    def list_for_user(self, user_id: str) -> List[Booking]:
        """Bookings made by a client, most recent date first."""
        query = (
            self._build_query()
            .options(joinedload(Booking.trainer))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.booking_date.desc(), Booking.slot_start_time.desc())
        )
        return self._execute_query(query)

    def list_for_trainer(self, trainer_id: str) -> List[Booking]:
        """Bookings made with a trainer, soonest date first."""
        query = (
            self._build_query()
            .options(joinedload(Booking.user))
            .filter(Booking.trainer_id == trainer_id)
            .order_by(Booking.booking_date.asc(), Booking.slot_start_time.asc())
        )
        return self._execute_query(query)

    def list_reconciliation_conflicts(self, limit: int = 100) -> List[Booking]:
        """Flagged bookings awaiting manual resolution, newest first."""
        query = (
            self._build_query()
            .filter(Booking.is_reconciliation_conflict.is_(True))
            .order_by(Booking.created_at.desc())
            .limit(limit)
        )
        return self._execute_query(query)
