# backend/trainer_booking/models/user.py
"""User (client) model as read by the booking core."""

from enum import Enum

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class UserRole(str, Enum):
    CLIENT = "client"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.CLIENT.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bookings = relationship("Booking", back_populates="user")

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
