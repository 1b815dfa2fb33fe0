# backend/trainer_booking/services/checkout_service.py
"""
Checkout intent issuer.

Validates a client's booking request and hands back a hosted checkout URL.
No booking row is written here: the ledger only learns about a booking once
the provider confirms payment through the webhook.

The price is fixed from the trainer's rate at this moment and travels with
the checkout session, so a later price change cannot alter a checkout that
is already in flight.
"""

from datetime import date, timedelta
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    BookingConflictException,
    DateUnavailableException,
    InvalidSlotException,
    NotFoundException,
    PaymentProviderException,
    ValidationException,
)
from ..core.timezone_utils import get_booking_today
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .availability_service import TimeSlot, find_matching_slot, is_date_available
from .base import BaseService
from .stripe_service import StripeService

logger = logging.getLogger(__name__)


def build_checkout_metadata(
    trainer_id: str, user_id: str, booking_date: date, slot: TimeSlot
) -> Dict[str, str]:
    """Opaque metadata the webhook needs to rebuild the booking."""
    return {
        "trainer_id": trainer_id,
        "user_id": user_id,
        "booking_date": booking_date.isoformat(),
        "slot_day": slot.day.value,
        "slot_start_time": slot.starting_time,
        "slot_end_time": slot.ending_time,
    }


class CheckoutService(BaseService):
    """Issues provider checkout sessions for single trainer bookings."""

    def __init__(self, db: Session, stripe_service: Optional[StripeService] = None):
        super().__init__(db)
        self.trainer_repository = RepositoryFactory.create_trainer_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.conflict_checker = RepositoryFactory.create_conflict_checker_repository(db)
        self.stripe_service = stripe_service or StripeService(db)

    @BaseService.measure_operation("create_checkout_intent")
    def create_checkout_intent(
        self,
        trainer_id: str,
        user_id: str,
        booking_date: date,
        slot: Any,
        today: Optional[date] = None,
    ) -> Dict[str, str]:
        """
        Validate a booking request and create the provider checkout session.

        Args:
            trainer_id: Trainer to book
            user_id: Authenticated client
            booking_date: Requested calendar date
            slot: Requested slot (TimeSlot or mapping with day/start/end)
            today: Override for the booking-timezone "today"

        Returns:
            {"redirect_url": ..., "session_id": ...}

        Raises:
            NotFoundException: Unknown trainer or user
            InvalidSlotException: Slot malformed or not offered by the trainer
            DateUnavailableException: Date not in the future, past the booking horizon,
                or not on the slot's day
            ValidationException: Trainer has no usable ticket price
            BookingConflictException: Client already holds this slot
            PaymentProviderException: Provider unavailable or rejected the request
        """
        trainer = self.trainer_repository.get_by_id(trainer_id)
        if trainer is None:
            raise NotFoundException("Trainer not found", code="TRAINER_NOT_FOUND")
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found", code="USER_NOT_FOUND")

        matched = find_matching_slot(slot, trainer.raw_time_slots)
        if matched is None:
            raise InvalidSlotException(
                details={"trainer_id": trainer_id, "requested_slot": _describe_slot(slot)}
            )

        reference = today or get_booking_today()
        if booking_date <= reference:
            raise DateUnavailableException(booking_date.isoformat(), "date must be in the future")
        if booking_date > reference + timedelta(days=settings.booking_horizon_days):
            raise DateUnavailableException(
                booking_date.isoformat(), "date is beyond the booking horizon"
            )
        if not is_date_available(booking_date, [matched]):
            raise DateUnavailableException(
                booking_date.isoformat(), f"date is not a {matched.day.value}"
            )

        price = trainer.current_price
        if price is None or price <= 0:
            raise ValidationException(
                "Trainer has not set a ticket price",
                code="TRAINER_PRICE_UNSET",
                details={"trainer_id": trainer_id},
            )

        if self.conflict_checker.has_active_conflict(trainer_id, user_id, booking_date, matched):
            raise BookingConflictException(
                details={
                    "trainer_id": trainer_id,
                    "booking_date": booking_date.isoformat(),
                    "slot": matched.to_snapshot(),
                }
            )

        metadata = build_checkout_metadata(trainer_id, user_id, booking_date, matched)
        try:
            session = self.stripe_service.create_checkout_session(
                amount_minor=StripeService.to_minor_units(price),
                currency=settings.stripe_currency,
                product_name=trainer.name,
                product_description=trainer.product_description(),
                product_image=trainer.photo,
                customer_email=user.email,
                client_reference_id=trainer_id,
                metadata=metadata,
                success_url=settings.checkout_success_url(),
                cancel_url=settings.checkout_cancel_url(trainer_id),
            )
        except PaymentProviderException:
            prometheus_metrics.record_checkout_session("provider_error")
            raise

        prometheus_metrics.record_checkout_session("created")
        self.log_operation(
            "create_checkout_intent",
            trainer_id=trainer_id,
            user_id=user_id,
            session_id=session.id,
        )
        return {"redirect_url": session.url, "session_id": session.id}


def _describe_slot(slot: Any) -> Any:
    if isinstance(slot, TimeSlot):
        return slot.to_snapshot()
    if isinstance(slot, dict):
        return {str(k): str(v) for k, v in slot.items()}
    return str(slot)
