# backend/trainer_booking/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")
    is_testing: bool = False
    log_level: str = "INFO"

    # Request-scoped bearer tokens (identity itself is issued elsewhere)
    secret_key: SecretStr = Field(
        default=SecretStr("dev-secret-key-change-me"),
        description="Secret key for JWT tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    database_url: str = Field(
        default="sqlite:///./trainer_booking.db",
        description="SQLAlchemy database URL for the booking ledger",
    )

    # Stripe Configuration
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret key for backend API calls",
    )
    stripe_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Signing secret of the checkout webhook endpoint",
    )
    stripe_webhook_tolerance_seconds: int = Field(
        default=300, description="Maximum age of a signed webhook timestamp"
    )
    stripe_currency: str = Field(default="aud", description="Default currency for payments")
    stripe_timeout_seconds: int = 8
    stripe_max_network_retries: int = 1

    # Redirect targets handed to Stripe Checkout
    frontend_url: str = "http://localhost:5173"
    checkout_success_path: str = "/checkout-success"

    # Availability
    booking_horizon_days: int = Field(
        default=28, ge=1, description="How many days ahead clients may book"
    )
    booking_timezone: str = Field(
        default="UTC", description="Timezone used to decide what 'today' is"
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("booking_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @field_validator("stripe_currency")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        return value.strip().lower()

    def get_database_url(self) -> str:
        return self.database_url

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key.get_secret_value())

    @property
    def webhook_secret(self) -> Optional[str]:
        value = self.stripe_webhook_secret.get_secret_value()
        return value or None

    def checkout_success_url(self) -> str:
        return f"{self.frontend_url.rstrip('/')}{self.checkout_success_path}"

    def checkout_cancel_url(self, trainer_id: str) -> str:
        return f"{self.frontend_url.rstrip('/')}/trainers/{trainer_id}"


settings = Settings()
