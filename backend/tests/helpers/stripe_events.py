"""Builders for signed Stripe checkout webhook deliveries and test dates."""

from datetime import date, timedelta
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional

import ulid

from trainer_booking.core.timezone_utils import get_booking_today

WEBHOOK_SECRET = "whsec_test_trainer_booking"

MONDAY_SLOT = {"day": "monday", "starting_time": "09:00", "ending_time": "10:00"}
WEDNESDAY_SLOT = {"day": "wednesday", "starting_time": "18:00", "ending_time": "19:00"}


def next_weekday(weekday: int, after: Optional[date] = None) -> date:
    """First date strictly after `after` (default: booking today) with the given weekday."""
    start = after or get_booking_today()
    days_ahead = (weekday - start.weekday()) % 7 or 7
    return start + timedelta(days=days_ahead)


def sign_payload(body: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header value for body."""
    ts = int(time.time()) if timestamp is None else timestamp
    signed_payload = f"{ts}.{body.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


def raw_payload(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def checkout_event(
    *,
    session_id: str,
    trainer_id: str,
    user_id: str,
    booking_date: date,
    slot: Optional[Dict[str, str]] = None,
    amount_total: int = 5000,
    currency: str = "aud",
    event_type: str = "checkout.session.completed",
    payment_status: str = "paid",
) -> Dict[str, Any]:
    """A Stripe checkout webhook event shaped like the real thing."""
    slot = slot or MONDAY_SLOT
    return {
        "id": f"evt_{ulid.ULID()}",
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": payment_status,
                "amount_total": amount_total,
                "currency": currency,
                "payment_intent": f"pi_{session_id}",
                "client_reference_id": trainer_id,
                "metadata": {
                    "trainer_id": trainer_id,
                    "user_id": user_id,
                    "booking_date": booking_date.isoformat(),
                    "slot_day": slot["day"],
                    "slot_start_time": slot["starting_time"],
                    "slot_end_time": slot["ending_time"],
                },
            }
        },
    }
