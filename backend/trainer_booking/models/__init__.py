# backend/trainer_booking/models/__init__.py
"""
SQLAlchemy models.

Importing this package registers every mapper on Base.metadata, which
init_db and the test fixtures rely on.
"""

from .booking import ACTIVE_BOOKING_STATUSES, Booking, BookingStatus
from .trainer import Trainer
from .user import User, UserRole

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "Booking",
    "BookingStatus",
    "Trainer",
    "User",
    "UserRole",
]
