# backend/trainer_booking/repositories/factory.py
"""
Repository Factory for the trainer booking service

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from ..models.trainer import Trainer
    from ..models.user import User
    from .booking_repository import BookingRepository
    from .conflict_checker_repository import ConflictCheckerRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for the booking ledger."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for slot conflict checks."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_trainer_repository(db: Session) -> "BaseRepository[Trainer]":
        """Create a read repository for trainer profiles."""
        from ..models.trainer import Trainer

        return BaseRepository(db, Trainer)

    @staticmethod
    def create_user_repository(db: Session) -> "BaseRepository[User]":
        """Create a read repository for users."""
        from ..models.user import User

        return BaseRepository(db, User)
