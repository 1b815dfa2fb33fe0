# backend/trainer_booking/services/stripe_service.py
"""
Stripe gateway for the trainer booking service.

Wraps the two provider touch points the booking core needs:
- creating a hosted Checkout Session for a single booking
- authenticating and decoding an inbound webhook delivery

Callers never see stripe exceptions; they get PaymentProviderException or
WebhookAuthenticationException / WebhookPayloadException instead.
"""

from decimal import ROUND_HALF_UP, Decimal
import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session
import stripe

from ..core.config import settings
from ..core.exceptions import (
    PaymentProviderException,
    WebhookAuthenticationException,
    WebhookPayloadException,
)
from .base import BaseService

logger = logging.getLogger(__name__)


class StripeService(BaseService):
    """Thin, configured access to Stripe Checkout and webhook signing."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.stripe_configured = False
        if settings.stripe_configured:
            stripe.api_key = settings.stripe_secret_key.get_secret_value()
            # Network timeout and retry budget for every API call
            stripe.default_http_client = stripe.RequestsClient(
                timeout=settings.stripe_timeout_seconds
            )
            stripe.max_network_retries = settings.stripe_max_network_retries
            self.stripe_configured = True
        else:
            self.logger.warning("Stripe secret key not configured - checkout is unavailable")

    @staticmethod
    def to_minor_units(amount: Any) -> int:
        """Convert a major-unit amount (e.g. 49.50) into cents."""
        return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @BaseService.measure_operation("stripe_create_checkout_session")
    def create_checkout_session(
        self,
        *,
        amount_minor: int,
        currency: str,
        product_name: str,
        product_description: Optional[str],
        product_image: Optional[str],
        customer_email: Optional[str],
        client_reference_id: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> Any:
        """
        Create a one-line-item hosted Checkout Session.

        Returns:
            The Stripe Session object (id, url)

        Raises:
            PaymentProviderException: If Stripe is not configured or the call fails
        """
        if not self.stripe_configured:
            raise PaymentProviderException(
                "Payment provider is not configured",
                details={"retryable": False},
            )

        product_data: Dict[str, Any] = {"name": product_name}
        if product_description:
            product_data["description"] = product_description
        if product_image:
            product_data["images"] = [product_image]

        params: Dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": client_reference_id,
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "unit_amount": amount_minor,
                        "product_data": product_data,
                    },
                    "quantity": 1,
                }
            ],
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error creating checkout session: {str(e)}")
            raise PaymentProviderException(
                "Could not start checkout with the payment provider",
                details={"provider_error": type(e).__name__},
            ) from e

        self.logger.info(
            f"Created checkout session {session.id} for reference {client_reference_id}"
        )
        return session

    def construct_webhook_event(
        self, payload: bytes, signature: Optional[str]
    ) -> Dict[str, Any]:
        """
        Authenticate a webhook delivery and decode its JSON body.

        The signature is checked over the exact raw bytes before any parsing.

        Raises:
            WebhookAuthenticationException: Missing/invalid signature or stale timestamp
            WebhookPayloadException: Authentic body that is not a JSON event object
        """
        secret = settings.webhook_secret
        if not secret:
            self.logger.error("Webhook secret not configured; rejecting delivery")
            raise WebhookAuthenticationException("Webhook secret not configured")
        if not signature:
            raise WebhookAuthenticationException("Missing Stripe-Signature header")

        try:
            payload_text = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise WebhookAuthenticationException("Webhook payload is not valid UTF-8")

        try:
            stripe.WebhookSignature.verify_header(
                payload_text,
                signature,
                secret,
                settings.stripe_webhook_tolerance_seconds,
            )
        except stripe.SignatureVerificationError as e:
            self.logger.warning(f"Invalid webhook signature: {str(e)}")
            raise WebhookAuthenticationException()

        try:
            event = json.loads(payload_text)
        except json.JSONDecodeError as e:
            raise WebhookPayloadException("Webhook body is not valid JSON") from e
        if not isinstance(event, dict) or not isinstance(event.get("type"), str):
            raise WebhookPayloadException("Webhook body is not an event object")
        return event
