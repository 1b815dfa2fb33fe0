# backend/trainer_booking/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.checkout_service import CheckoutService
from ...services.reconciliation_service import ReconciliationService
from ...services.stripe_service import StripeService


def get_stripe_service(db: Session = Depends(get_db)) -> StripeService:
    """Get StripeService instance."""
    return StripeService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_checkout_service(
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service),
) -> CheckoutService:
    return CheckoutService(db, stripe_service=stripe_service)


def get_reconciliation_service(
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service),
) -> ReconciliationService:
    return ReconciliationService(db, stripe_service=stripe_service)
