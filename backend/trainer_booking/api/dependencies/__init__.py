# backend/trainer_booking/api/dependencies/__init__.py
"""FastAPI dependency providers for routes."""

from .auth import Caller, get_current_caller, get_current_client, require_admin
from .services import (
    get_availability_service,
    get_booking_service,
    get_checkout_service,
    get_reconciliation_service,
    get_stripe_service,
)

__all__ = [
    "Caller",
    "get_availability_service",
    "get_booking_service",
    "get_checkout_service",
    "get_current_caller",
    "get_current_client",
    "get_reconciliation_service",
    "get_stripe_service",
    "require_admin",
]
