# backend/tests/conftest.py
"""
Pytest configuration for the trainer booking service.

Runs every test against an in-memory SQLite database. Environment is set
BEFORE any application import so settings, the engine and Stripe pick up
test values.
"""

import os
import sys

# CRITICAL: Set testing mode BEFORE any app imports!
os.environ["IS_TESTING"] = "true"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_trainer_booking"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_trainer_booking"
os.environ["BOOKING_TIMEZONE"] = "UTC"

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

from datetime import date
from typing import Callable, Dict

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session
import ulid

from trainer_booking.auth import create_access_token
from trainer_booking.database import Base, SessionLocal, engine, get_db
from trainer_booking.main import app
from trainer_booking.models.trainer import Trainer
from trainer_booking.models.user import User, UserRole

from tests.helpers.stripe_events import MONDAY_SLOT, WEDNESDAY_SLOT, next_weekday


@pytest.fixture(scope="function")
def db():
    """Create a fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session):
    """Create a test client bound to the test session."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    # Don't use context manager - create directly
    test_client = TestClient(app)

    yield test_client

    # Cleanup
    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def trainer(db: Session) -> Trainer:
    trainer = Trainer(
        id=str(ulid.ULID()),
        email=f"trainer_{ulid.ULID()}@example.com",
        name="Sam Trainer",
        specialization="Strength",
        bio="Strength and conditioning",
        photo="https://example.com/sam.jpg",
        ticket_price=50,
        time_slots=[MONDAY_SLOT, WEDNESDAY_SLOT],
    )
    db.add(trainer)
    db.commit()
    return trainer


@pytest.fixture
def client_user(db: Session) -> User:
    user = User(
        id=str(ulid.ULID()),
        email=f"client_{ulid.ULID()}@example.com",
        name="Casey Client",
        role=UserRole.CLIENT.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_user(db: Session) -> User:
    user = User(
        id=str(ulid.ULID()),
        email=f"other_{ulid.ULID()}@example.com",
        name="Oli Other",
        role=UserRole.CLIENT.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin_user(db: Session) -> User:
    user = User(
        id=str(ulid.ULID()),
        email=f"admin_{ulid.ULID()}@example.com",
        name="Ada Admin",
        role=UserRole.ADMIN.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def make_auth_headers() -> Callable[[str], Dict[str, str]]:
    def _headers(subject: str) -> Dict[str, str]:
        token = create_access_token(data={"sub": subject})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def auth_headers_client(client_user: User, make_auth_headers) -> Dict[str, str]:
    return make_auth_headers(client_user.id)


@pytest.fixture
def next_monday() -> date:
    return next_weekday(0)

