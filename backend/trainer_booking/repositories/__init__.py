# backend/trainer_booking/repositories/__init__.py
"""
Repository layer for data access.

Key Components:
- BaseRepository: Foundation for all repositories with common operations
- RepositoryFactory: Factory for creating repository instances
- BookingRepository: The booking ledger, including the paid-booking write
- ConflictCheckerRepository: Active-slot lookups

Usage:
    from trainer_booking.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    booking, outcome = repository.insert_paid_booking(...)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository, LedgerWriteOutcome
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ConflictCheckerRepository",
    "LedgerWriteOutcome",
    "RepositoryFactory",
]
