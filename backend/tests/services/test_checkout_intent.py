"""
Tests for CheckoutService: validation order, provider call, and no ledger writes.
"""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import Text
from sqlalchemy.orm import Session
import stripe

from trainer_booking.core.config import settings
from trainer_booking.core.exceptions import (
    BookingConflictException,
    DateUnavailableException,
    InvalidSlotException,
    NotFoundException,
    PaymentProviderException,
    ValidationException,
)
from trainer_booking.models.booking import Booking
from trainer_booking.models.trainer import Trainer
from trainer_booking.models.user import User
from trainer_booking.repositories.booking_repository import BookingRepository
from trainer_booking.services.availability_service import parse_time_slot, resolve_available_dates
from trainer_booking.services.checkout_service import CheckoutService

from tests.helpers.stripe_events import MONDAY_SLOT, next_weekday


def _fake_session(session_id: str = "cs_test_123") -> MagicMock:
    session = MagicMock()
    session.id = session_id
    session.url = f"https://checkout.stripe.com/c/pay/{session_id}"
    return session


@pytest.fixture
def checkout_service(db: Session) -> CheckoutService:
    return CheckoutService(db)


class TestCreateCheckoutIntent:
    @patch("stripe.checkout.Session.create")
    def test_creates_session_with_metadata_and_price(
        self,
        mock_create,
        checkout_service: CheckoutService,
        trainer: Trainer,
        client_user: User,
        next_monday: date,
        db: Session,
    ):
        mock_create.return_value = _fake_session()

        result = checkout_service.create_checkout_intent(
            trainer.id, client_user.id, next_monday, MONDAY_SLOT
        )

        assert result == {
            "redirect_url": "https://checkout.stripe.com/c/pay/cs_test_123",
            "session_id": "cs_test_123",
        }
        kwargs = mock_create.call_args.kwargs
        assert kwargs["metadata"] == {
            "trainer_id": trainer.id,
            "user_id": client_user.id,
            "booking_date": next_monday.isoformat(),
            "slot_day": "monday",
            "slot_start_time": "09:00",
            "slot_end_time": "10:00",
        }
        price_data = kwargs["line_items"][0]["price_data"]
        assert price_data["unit_amount"] == 5000
        assert price_data["currency"] == "aud"
        assert kwargs["customer_email"] == client_user.email
        assert kwargs["client_reference_id"] == trainer.id
        assert kwargs["success_url"].endswith("/checkout-success")
        assert kwargs["cancel_url"].endswith(f"/trainers/{trainer.id}")

        # Issuing a checkout never writes to the ledger
        assert db.query(Booking).count() == 0

    @patch("stripe.checkout.Session.create")
    def test_price_is_fixed_at_issuance(
        self,
        mock_create,
        checkout_service: CheckoutService,
        trainer: Trainer,
        client_user: User,
        next_monday: date,
        db: Session,
    ):
        trainer.ticket_price = Decimal("72.35")
        db.commit()
        mock_create.return_value = _fake_session()

        checkout_service.create_checkout_intent(trainer.id, client_user.id, next_monday, MONDAY_SLOT)

        assert mock_create.call_args.kwargs["line_items"][0]["price_data"]["unit_amount"] == 7235

    @patch("stripe.checkout.Session.create")
    def test_full_bio_is_the_product_description(
        self, mock_create, checkout_service, trainer, client_user, next_monday, db
    ):
        assert isinstance(Trainer.__table__.c.bio.type, Text)
        bio = "Strength and conditioning coach with ten years of competitive rowing. " * 5
        trainer.bio = bio
        db.commit()
        mock_create.return_value = _fake_session()

        checkout_service.create_checkout_intent(trainer.id, client_user.id, next_monday, MONDAY_SLOT)

        product_data = mock_create.call_args.kwargs["line_items"][0]["price_data"]["product_data"]
        assert product_data["description"] == bio

    def test_unknown_trainer(self, checkout_service, client_user, next_monday):
        with pytest.raises(NotFoundException) as exc_info:
            checkout_service.create_checkout_intent(
                "01HZZZZZZZZZZZZZZZZZZZZZZZ", client_user.id, next_monday, MONDAY_SLOT
            )
        assert exc_info.value.code == "TRAINER_NOT_FOUND"

    def test_unknown_user(self, checkout_service, trainer, next_monday):
        with pytest.raises(NotFoundException) as exc_info:
            checkout_service.create_checkout_intent(
                trainer.id, "01HZZZZZZZZZZZZZZZZZZZZZZZ", next_monday, MONDAY_SLOT
            )
        assert exc_info.value.code == "USER_NOT_FOUND"

    @pytest.mark.parametrize(
        "slot",
        [
            {"day": "monday", "starting_time": "11:00", "ending_time": "12:00"},
            {"day": "caturday", "starting_time": "09:00", "ending_time": "10:00"},
            {"day": "monday", "starting_time": "10:00", "ending_time": "09:00"},
        ],
    )
    def test_invalid_slot(self, checkout_service, trainer, client_user, next_monday, slot):
        with pytest.raises(InvalidSlotException):
            checkout_service.create_checkout_intent(trainer.id, client_user.id, next_monday, slot)

    def test_past_date_is_unavailable(self, checkout_service, trainer, client_user):
        today = date(2026, 3, 4)
        with pytest.raises(DateUnavailableException) as exc_info:
            checkout_service.create_checkout_intent(
                trainer.id, client_user.id, date(2026, 3, 2), MONDAY_SLOT, today=today
            )
        assert exc_info.value.code == "DATE_UNAVAILABLE"

    def test_today_is_unavailable(self, checkout_service, trainer, client_user):
        monday = date(2026, 3, 2)
        with pytest.raises(DateUnavailableException):
            checkout_service.create_checkout_intent(
                trainer.id, client_user.id, monday, MONDAY_SLOT, today=monday
            )

    @patch("stripe.checkout.Session.create")
    def test_date_beyond_horizon_is_unavailable(
        self, mock_create, checkout_service, trainer, client_user, monkeypatch
    ):
        monkeypatch.setattr(settings, "booking_horizon_days", 28)
        sunday = date(2026, 3, 1)
        far_monday = sunday + timedelta(days=settings.booking_horizon_days + 8)
        assert far_monday.weekday() == 0
        assert far_monday not in resolve_available_dates(
            [MONDAY_SLOT], settings.booking_horizon_days, sunday
        )

        with pytest.raises(DateUnavailableException) as exc_info:
            checkout_service.create_checkout_intent(
                trainer.id, client_user.id, far_monday, MONDAY_SLOT, today=sunday
            )

        assert exc_info.value.details["reason"] == "date is beyond the booking horizon"
        mock_create.assert_not_called()

    @patch("stripe.checkout.Session.create")
    def test_last_day_of_horizon_is_bookable(
        self, mock_create, checkout_service, trainer, client_user, monkeypatch
    ):
        monkeypatch.setattr(settings, "booking_horizon_days", 28)
        monday = date(2026, 3, 2)
        last_monday = monday + timedelta(days=settings.booking_horizon_days)
        assert last_monday.weekday() == 0
        mock_create.return_value = _fake_session("cs_edge")

        result = checkout_service.create_checkout_intent(
            trainer.id, client_user.id, last_monday, MONDAY_SLOT, today=monday
        )

        assert result["session_id"] == "cs_edge"
        assert last_monday in resolve_available_dates(
            [MONDAY_SLOT], settings.booking_horizon_days, monday
        )

    def test_date_must_fall_on_slot_day(self, checkout_service, trainer, client_user, next_monday):
        tuesday = next_monday + timedelta(days=1)
        with pytest.raises(DateUnavailableException):
            checkout_service.create_checkout_intent(trainer.id, client_user.id, tuesday, MONDAY_SLOT)

    def test_missing_price(self, checkout_service, trainer, client_user, next_monday, db):
        trainer.ticket_price = None
        db.commit()
        with pytest.raises(ValidationException) as exc_info:
            checkout_service.create_checkout_intent(
                trainer.id, client_user.id, next_monday, MONDAY_SLOT
            )
        assert exc_info.value.code == "TRAINER_PRICE_UNSET"

    @patch("stripe.checkout.Session.create")
    def test_existing_active_booking_is_a_conflict(
        self, mock_create, checkout_service, trainer, client_user, next_monday, db
    ):
        BookingRepository(db).insert_paid_booking(
            session_id="cs_existing",
            trainer_id=trainer.id,
            user_id=client_user.id,
            booking_date=next_monday,
            slot=parse_time_slot(MONDAY_SLOT),
            ticket_price=Decimal("50.00"),
            currency="aud",
        )
        db.commit()

        with pytest.raises(BookingConflictException):
            checkout_service.create_checkout_intent(
                trainer.id, client_user.id, next_monday, MONDAY_SLOT
            )
        mock_create.assert_not_called()

    @patch("stripe.checkout.Session.create")
    def test_provider_failure_is_retryable(
        self, mock_create, checkout_service, trainer, client_user, next_monday, db
    ):
        mock_create.side_effect = stripe.APIConnectionError("network down")

        with pytest.raises(PaymentProviderException) as exc_info:
            checkout_service.create_checkout_intent(
                trainer.id, client_user.id, next_monday, MONDAY_SLOT
            )

        assert exc_info.value.details["retryable"] is True
        assert exc_info.value.status_code == 502
        assert db.query(Booking).count() == 0
