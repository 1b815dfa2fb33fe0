# backend/trainer_booking/services/reconciliation_service.py
"""
Webhook verifier and reconciler.

Turns an authenticated "payment succeeded" notification from Stripe into
exactly one booking ledger row. Deliveries are at-least-once and may arrive
in any order or concurrently, so every path through here is idempotent:

- replays of a session already in the ledger are acknowledged as duplicates
- a paid session whose slot is already held is stored flagged for manual
  resolution; the payment is never dropped
- any other event type is acknowledged and ignored
"""

from datetime import date
from decimal import Decimal
from enum import Enum
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import (
    RepositoryException,
    ServiceException,
    WebhookAuthenticationException,
    WebhookPayloadException,
)
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import LedgerWriteOutcome
from ..repositories.factory import RepositoryFactory
from .availability_service import TimeSlot, parse_time_slot
from .base import BaseService
from .stripe_service import StripeService

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
CHECKOUT_ASYNC_SUCCEEDED = "checkout.session.async_payment_succeeded"
PAYMENT_EVENT_TYPES = (CHECKOUT_COMPLETED, CHECKOUT_ASYNC_SUCCEEDED)


class ReconciliationOutcome(str, Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"
    IGNORED = "ignored"


_LEDGER_OUTCOMES = {
    LedgerWriteOutcome.CREATED: ReconciliationOutcome.CREATED,
    LedgerWriteOutcome.DUPLICATE: ReconciliationOutcome.DUPLICATE,
    LedgerWriteOutcome.CONFLICT: ReconciliationOutcome.CONFLICT,
}


def is_payment_success(event_type: str, session: Dict[str, Any]) -> bool:
    """True for events that confirm the checkout was paid."""
    if event_type == CHECKOUT_ASYNC_SUCCEEDED:
        return True
    return event_type == CHECKOUT_COMPLETED and session.get("payment_status") == "paid"


class PaidSession:
    """The fields of a paid checkout session needed to write a booking."""

    def __init__(
        self,
        session_id: str,
        trainer_id: str,
        user_id: str,
        booking_date: date,
        slot: TimeSlot,
        amount: Decimal,
        currency: str,
        payment_intent_id: Optional[str],
    ) -> None:
        self.session_id = session_id
        self.trainer_id = trainer_id
        self.user_id = user_id
        self.booking_date = booking_date
        self.slot = slot
        self.amount = amount
        self.currency = currency
        self.payment_intent_id = payment_intent_id

    @classmethod
    def from_session_object(cls, session: Dict[str, Any]) -> "PaidSession":
        """
        Extract booking fields from a checkout session payload.

        Raises:
            WebhookPayloadException: If any required field is missing or malformed
        """
        session_id = session.get("id")
        if not isinstance(session_id, str) or not session_id:
            raise WebhookPayloadException("Checkout session id missing")

        metadata = session.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise WebhookPayloadException("Checkout session metadata is malformed")

        missing = [
            key
            for key in (
                "trainer_id",
                "user_id",
                "booking_date",
                "slot_day",
                "slot_start_time",
                "slot_end_time",
            )
            if not metadata.get(key)
        ]
        if missing:
            raise WebhookPayloadException(
                "Checkout session metadata incomplete",
                details={"session_id": session_id, "missing": missing},
            )

        try:
            booking_date = date.fromisoformat(str(metadata["booking_date"]))
        except ValueError:
            raise WebhookPayloadException(
                "Checkout session booking_date is not a date",
                details={"session_id": session_id},
            )

        slot = parse_time_slot(
            {
                "day": metadata["slot_day"],
                "starting_time": metadata["slot_start_time"],
                "ending_time": metadata["slot_end_time"],
            }
        )
        if slot is None:
            raise WebhookPayloadException(
                "Checkout session slot is malformed", details={"session_id": session_id}
            )

        amount_total = session.get("amount_total")
        if isinstance(amount_total, bool) or not isinstance(amount_total, int) or amount_total < 0:
            raise WebhookPayloadException(
                "Checkout session amount_total missing or invalid",
                details={"session_id": session_id},
            )

        currency = session.get("currency")
        if not isinstance(currency, str) or len(currency) != 3:
            raise WebhookPayloadException(
                "Checkout session currency missing or invalid",
                details={"session_id": session_id},
            )

        payment_intent = session.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")

        return cls(
            session_id=session_id,
            trainer_id=str(metadata["trainer_id"]),
            user_id=str(metadata["user_id"]),
            booking_date=booking_date,
            slot=slot,
            amount=(Decimal(amount_total) / Decimal(100)).quantize(Decimal("0.01")),
            currency=currency.lower(),
            payment_intent_id=payment_intent if isinstance(payment_intent, str) else None,
        )


class ReconciliationService(BaseService):
    """Processes Stripe checkout webhooks into the booking ledger."""

    def __init__(self, db: Session, stripe_service: Optional[StripeService] = None):
        super().__init__(db)
        self.stripe_service = stripe_service or StripeService(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.trainer_repository = RepositoryFactory.create_trainer_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("handle_provider_event")
    def handle_provider_event(self, raw_body: bytes, signature_header: Optional[str]) -> Dict[str, Any]:
        """
        Authenticate, filter and reconcile one webhook delivery.

        Args:
            raw_body: Exact request bytes as received
            signature_header: Value of the Stripe-Signature header

        Returns:
            {"received": True, "status": <outcome>, "event_type": <type>}

        Raises:
            WebhookAuthenticationException: Signature check failed; nothing was written
            WebhookPayloadException: Authentic event with unusable data; nothing was written
            ServiceException: Storage failure; the provider should retry
        """
        try:
            event = self.stripe_service.construct_webhook_event(raw_body, signature_header)
        except WebhookAuthenticationException:
            prometheus_metrics.record_webhook_event("unknown", "rejected")
            raise
        except WebhookPayloadException:
            prometheus_metrics.record_webhook_event("unknown", "invalid")
            raise

        event_type = event["type"]
        data = event.get("data")
        session = data.get("object") if isinstance(data, dict) else None
        if event_type in PAYMENT_EVENT_TYPES and not isinstance(session, dict):
            self.logger.warning(
                f"Rejecting webhook event {event.get('id')}: {event_type} without a session object"
            )
            prometheus_metrics.record_webhook_event(event_type, "invalid")
            raise WebhookPayloadException(
                "Checkout event has no session object", details={"event_type": event_type}
            )
        if not isinstance(session, dict) or not is_payment_success(event_type, session):
            self.logger.info(f"Ignoring webhook event {event.get('id')} of type {event_type}")
            prometheus_metrics.record_webhook_event(event_type, ReconciliationOutcome.IGNORED.value)
            return self._ack(ReconciliationOutcome.IGNORED, event_type)

        try:
            paid = PaidSession.from_session_object(session)
            self._ensure_parties_exist(paid)
        except WebhookPayloadException as e:
            self.logger.warning(f"Rejecting webhook event {event.get('id')}: {e.message}")
            prometheus_metrics.record_webhook_event(event_type, "invalid")
            raise

        outcome = self._commit_paid_session(paid)
        prometheus_metrics.record_webhook_event(event_type, outcome.value)
        return self._ack(outcome, event_type)

    def _ensure_parties_exist(self, paid: PaidSession) -> None:
        if self.trainer_repository.get_by_id(paid.trainer_id) is None:
            raise WebhookPayloadException(
                "Checkout session references an unknown trainer",
                details={"session_id": paid.session_id, "trainer_id": paid.trainer_id},
            )
        if self.user_repository.get_by_id(paid.user_id) is None:
            raise WebhookPayloadException(
                "Checkout session references an unknown user",
                details={"session_id": paid.session_id, "user_id": paid.user_id},
            )

    def _commit_paid_session(self, paid: PaidSession) -> ReconciliationOutcome:
        try:
            with self.transaction():
                booking, ledger_outcome = self.booking_repository.insert_paid_booking(
                    session_id=paid.session_id,
                    trainer_id=paid.trainer_id,
                    user_id=paid.user_id,
                    booking_date=paid.booking_date,
                    slot=paid.slot,
                    ticket_price=paid.amount,
                    currency=paid.currency,
                    payment_intent_id=paid.payment_intent_id,
                )
        except RepositoryException as e:
            self.logger.error(f"Failed to record paid session {paid.session_id}: {str(e)}")
            raise ServiceException(
                "Failed to record paid booking", code="LEDGER_WRITE_FAILED"
            ) from e

        outcome = _LEDGER_OUTCOMES[ledger_outcome]
        if outcome is ReconciliationOutcome.CONFLICT:
            prometheus_metrics.record_reconciliation_conflict()
            self.logger.error(
                "Reconciliation conflict: paid session %s overlaps booking %s",
                paid.session_id,
                booking.conflicting_booking_id,
                extra={
                    "booking_id": booking.id,
                    "session_id": paid.session_id,
                    "conflicting_booking_id": booking.conflicting_booking_id,
                    "trainer_id": paid.trainer_id,
                    "user_id": paid.user_id,
                    "booking_date": paid.booking_date.isoformat(),
                },
            )
        elif outcome is ReconciliationOutcome.DUPLICATE:
            self.logger.info(f"Webhook replay for session {paid.session_id}; booking {booking.id}")
        else:
            self.log_operation(
                "record_paid_booking", booking_id=booking.id, session_id=paid.session_id
            )
        return outcome

    @staticmethod
    def _ack(outcome: ReconciliationOutcome, event_type: str) -> Dict[str, Any]:
        return {"received": True, "status": outcome.value, "event_type": event_type}
