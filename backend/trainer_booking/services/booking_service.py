# backend/trainer_booking/services/booking_service.py
"""
Read side of the booking ledger.

Lists bookings for the three audiences that look at them: the client who
paid, the trainer being booked, and admins working the manual
reconciliation queue. Writes only ever happen in ReconciliationService.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..core.exceptions import ForbiddenException, NotFoundException
from ..models.booking import Booking
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.trainer_repository = RepositoryFactory.create_trainer_repository(db)

    @BaseService.measure_operation("list_user_bookings")
    def list_user_bookings(self, user_id: str) -> List[Booking]:
        return self.booking_repository.list_for_user(user_id)

    @BaseService.measure_operation("list_trainer_bookings")
    def list_trainer_bookings(
        self, trainer_id: str, caller_id: str, caller_is_admin: bool = False
    ) -> List[Booking]:
        """
        Bookings for a trainer's dashboard.

        Raises:
            NotFoundException: Unknown trainer
            ForbiddenException: Caller is neither the trainer nor an admin
        """
        if self.trainer_repository.get_by_id(trainer_id) is None:
            raise NotFoundException("Trainer not found", code="TRAINER_NOT_FOUND")
        if caller_id != trainer_id and not caller_is_admin:
            raise ForbiddenException(
                "You can only view your own bookings", code="TRAINER_BOOKINGS_FORBIDDEN"
            )
        return self.booking_repository.list_for_trainer(trainer_id)

    @BaseService.measure_operation("list_reconciliation_conflicts")
    def list_reconciliation_conflicts(self, limit: int = 100) -> List[Booking]:
        return self.booking_repository.list_reconciliation_conflicts(limit=limit)
