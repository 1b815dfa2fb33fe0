# backend/trainer_booking/core/timezone_utils.py
"""
Timezone helpers.

All "is this date in the future" decisions go through get_booking_today so
that the resolver and the checkout validation agree on the same calendar day.
"""

from datetime import date, datetime
from typing import Optional

import pytz

from .config import settings


def get_booking_timezone(tz_name: Optional[str] = None) -> pytz.BaseTzInfo:
    return pytz.timezone(tz_name or settings.booking_timezone)


def get_booking_today(now: Optional[datetime] = None, tz_name: Optional[str] = None) -> date:
    """
    Return today's date in the booking timezone.

    Args:
        now: Optional aware datetime to evaluate instead of the current time
        tz_name: Optional override of the configured timezone

    Returns:
        The calendar date at `now` in the booking timezone
    """
    tz = get_booking_timezone(tz_name)
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = pytz.UTC.localize(now)
    return now.astimezone(tz).date()
