# backend/trainer_booking/models/trainer.py
"""
Trainer model.

Trainer profiles are maintained by the profile service; this service only
reads the fields it needs to price and validate a checkout: the current
ticket price and the live list of recurring weekly time slots.
"""

from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import JSON, Column, DateTime, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Trainer(Base):
    """Trainer record as seen by the booking core."""

    __tablename__ = "trainers"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    specialization = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    photo = Column(Text, nullable=True)
    ticket_price = Column(Numeric(10, 2), nullable=True)

    # List of {"day": "monday", "starting_time": "09:00", "ending_time": "10:00"}
    time_slots = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    bookings = relationship("Booking", back_populates="trainer")

    def __repr__(self) -> str:
        return f"<Trainer {self.id}: {self.name}>"

    @property
    def raw_time_slots(self) -> List[Any]:
        return list(self.time_slots or [])

    @property
    def current_price(self) -> Optional[Decimal]:
        if self.ticket_price is None:
            return None
        return Decimal(str(self.ticket_price))

    def product_description(self) -> str:
        if self.bio:
            return str(self.bio)
        if self.specialization:
            return f"{self.specialization} training session"
        return "Personal training session"
