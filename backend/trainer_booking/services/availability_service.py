# backend/trainer_booking/services/availability_service.py
"""
Availability resolution for trainers.

Trainers publish recurring weekly slots ({day, starting_time, ending_time}).
This module turns those templates into concrete bookable dates and answers
the single-date question used to validate a checkout request.

resolve_available_dates and is_date_available share one membership test, so
a date is listed by the resolver exactly when the predicate accepts it and
it falls inside the horizon window.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
import logging
import re
from typing import Any, FrozenSet, Iterable, Iterator, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundException, ValidationException
from ..core.timezone_utils import get_booking_today
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def weekday(self) -> int:
        """Python weekday index (Monday == 0)."""
        return list(DayOfWeek).index(self)

    @classmethod
    def parse(cls, raw: Any) -> Optional["DayOfWeek"]:
        if isinstance(raw, DayOfWeek):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class TimeSlot:
    """A recurring weekly slot. Times are normalized 24h HH:MM strings."""

    day: DayOfWeek
    starting_time: str
    ending_time: str

    def to_snapshot(self) -> dict[str, str]:
        return {
            "day": self.day.value,
            "starting_time": self.starting_time,
            "ending_time": self.ending_time,
        }


def normalize_time(raw: Any) -> Optional[str]:
    """Return HH:MM for a valid 24h time string, None otherwise."""
    if not isinstance(raw, str):
        return None
    match = _TIME_PATTERN.match(raw.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def _get_field(raw: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in raw:
            return raw[name]
    return None


def parse_time_slot(raw: Any) -> Optional[TimeSlot]:
    """
    Build a TimeSlot from a stored or submitted slot.

    Accepts TimeSlot instances and mappings using either snake_case or the
    camelCase keys sent by the web client. Returns None for anything
    malformed: unknown day, unparseable times, or start not before end.
    """
    if isinstance(raw, TimeSlot):
        return raw
    if not isinstance(raw, Mapping):
        return None

    day = DayOfWeek.parse(_get_field(raw, "day", "day_of_week"))
    start = normalize_time(_get_field(raw, "starting_time", "startingTime", "start_time"))
    end = normalize_time(_get_field(raw, "ending_time", "endingTime", "end_time"))
    if day is None or start is None or end is None:
        return None
    if start >= end:
        return None
    return TimeSlot(day=day, starting_time=start, ending_time=end)


def normalize_slots(slots: Iterable[Any]) -> List[TimeSlot]:
    """Parse slots, silently dropping malformed entries."""
    parsed: List[TimeSlot] = []
    for raw in slots or []:
        slot = parse_time_slot(raw)
        if slot is None:
            logger.debug(f"Skipping malformed time slot: {raw!r}")
            continue
        parsed.append(slot)
    return parsed


def _slot_weekdays(slots: Iterable[Any]) -> FrozenSet[int]:
    return frozenset(slot.day.weekday for slot in normalize_slots(slots))


def is_date_available(candidate: date, slots: Iterable[Any]) -> bool:
    """True when candidate falls on the weekday of at least one well-formed slot."""
    if isinstance(candidate, datetime):
        candidate = candidate.date()
    return candidate.weekday() in _slot_weekdays(slots)


def find_matching_slot(candidate: Any, slots: Iterable[Any]) -> Optional[TimeSlot]:
    """Return the trainer slot equal to candidate after normalization, if any."""
    wanted = parse_time_slot(candidate)
    if wanted is None:
        return None
    for slot in normalize_slots(slots):
        if slot == wanted:
            return slot
    return None


class AvailableDates:
    """
    Lazy, finite, restartable sequence of bookable dates.

    Every call to iter() starts again from the first date of the window.
    """

    def __init__(self, slots: Iterable[Any], first_day: date, last_day: date) -> None:
        self._slots = normalize_slots(slots)
        self.first_day = first_day
        self.last_day = last_day

    def __iter__(self) -> Iterator[date]:
        current = self.first_day
        while current <= self.last_day:
            if is_date_available(current, self._slots):
                yield current
            current += timedelta(days=1)

    def __contains__(self, candidate: object) -> bool:
        if not isinstance(candidate, date):
            return False
        if isinstance(candidate, datetime):
            candidate = candidate.date()
        return self.first_day <= candidate <= self.last_day and is_date_available(
            candidate, self._slots
        )

    def __repr__(self) -> str:
        return f"<AvailableDates {self.first_day}..{self.last_day}>"


def resolve_available_dates(slots: Iterable[Any], horizon_days: int, now: date) -> AvailableDates:
    """
    Resolve recurring weekly slots into concrete dates.

    Args:
        slots: Trainer's recurring slots (malformed entries are ignored)
        horizon_days: How many days ahead to look; <= 0 yields nothing
        now: Reference date; the window is [now + 1 day, now + horizon_days]

    Returns:
        AvailableDates over the window
    """
    if isinstance(now, datetime):
        now = now.date()
    first_day = now + timedelta(days=1)
    if horizon_days <= 0:
        # Empty window: last day before first day
        return AvailableDates([], first_day, now)
    return AvailableDates(slots, first_day, now + timedelta(days=horizon_days))


class AvailabilityService(BaseService):
    """Read-side availability for a trainer's public booking panel."""

    def __init__(self, db: Session) -> None:
        super().__init__(db)
        self.trainer_repository = RepositoryFactory.create_trainer_repository(db)

    @BaseService.measure_operation("get_available_dates")
    def get_available_dates(
        self, trainer_id: str, horizon_days: Optional[int] = None, today: Optional[date] = None
    ) -> dict[str, Any]:
        trainer = self.trainer_repository.get_by_id(trainer_id)
        if trainer is None:
            raise NotFoundException("Trainer not found", code="TRAINER_NOT_FOUND")

        horizon = settings.booking_horizon_days if horizon_days is None else horizon_days
        if horizon > settings.booking_horizon_days:
            raise ValidationException(
                f"horizon_days cannot exceed {settings.booking_horizon_days}",
                code="HORIZON_TOO_LARGE",
                details={"max_horizon_days": settings.booking_horizon_days},
            )

        reference = today or get_booking_today()
        slots = normalize_slots(trainer.raw_time_slots)
        dates = resolve_available_dates(slots, horizon, reference)
        return {
            "trainer_id": trainer.id,
            "time_slots": [slot.to_snapshot() for slot in slots],
            "dates": list(dates),
        }
