"""
Tests for availability resolution: recurring weekly slots to concrete dates.
"""

from datetime import date, timedelta

import pytest
from sqlalchemy.orm import Session

from trainer_booking.core.exceptions import NotFoundException, ValidationException
from trainer_booking.models.trainer import Trainer
from trainer_booking.services.availability_service import (
    AvailabilityService,
    DayOfWeek,
    TimeSlot,
    find_matching_slot,
    is_date_available,
    parse_time_slot,
    resolve_available_dates,
)

SUNDAY = date(2026, 3, 1)
MONDAY_SLOT = {"day": "monday", "starting_time": "09:00", "ending_time": "10:00"}
FRIDAY_SLOT = {"day": "Friday", "startingTime": "7:30", "endingTime": "08:15"}


class TestParseTimeSlot:
    def test_accepts_snake_case(self):
        slot = parse_time_slot(MONDAY_SLOT)
        assert slot == TimeSlot(DayOfWeek.MONDAY, "09:00", "10:00")

    def test_accepts_camel_case_and_normalizes(self):
        slot = parse_time_slot(FRIDAY_SLOT)
        assert slot == TimeSlot(DayOfWeek.FRIDAY, "07:30", "08:15")

    @pytest.mark.parametrize(
        "raw",
        [
            {"day": "funday", "starting_time": "09:00", "ending_time": "10:00"},
            {"day": "monday", "starting_time": "25:00", "ending_time": "26:00"},
            {"day": "monday", "starting_time": "10:00", "ending_time": "09:00"},
            {"day": "monday", "starting_time": "09:00"},
            "monday 09:00",
            None,
        ],
    )
    def test_rejects_malformed(self, raw):
        assert parse_time_slot(raw) is None


class TestResolveAvailableDates:
    def test_monday_slot_from_sunday_returns_next_monday(self):
        dates = list(resolve_available_dates([MONDAY_SLOT], 7, SUNDAY))
        assert dates == [date(2026, 3, 2)]

    def test_empty_slots_yield_nothing(self):
        assert list(resolve_available_dates([], 28, SUNDAY)) == []

    @pytest.mark.parametrize("horizon", [0, -5])
    def test_non_positive_horizon_yields_nothing(self, horizon):
        assert list(resolve_available_dates([MONDAY_SLOT], horizon, SUNDAY)) == []

    def test_malformed_days_are_filtered_not_fatal(self):
        slots = [
            {"day": "someday", "starting_time": "09:00", "ending_time": "10:00"},
            MONDAY_SLOT,
        ]
        dates = list(resolve_available_dates(slots, 14, SUNDAY))
        assert dates == [date(2026, 3, 2), date(2026, 3, 9)]

    def test_today_is_never_included(self):
        monday = date(2026, 3, 2)
        dates = list(resolve_available_dates([MONDAY_SLOT], 7, monday))
        assert dates == [date(2026, 3, 9)]

    def test_sequence_is_restartable(self):
        dates = resolve_available_dates([MONDAY_SLOT, FRIDAY_SLOT], 21, SUNDAY)
        first = list(dates)
        second = list(dates)
        assert first == second
        assert len(first) == 6

    def test_agrees_with_single_date_predicate(self):
        slots = [MONDAY_SLOT, FRIDAY_SLOT, {"day": "sunday", "starting_time": "06:00", "ending_time": "07:00"}]
        horizon = 30
        resolved = set(resolve_available_dates(slots, horizon, SUNDAY))
        for offset in range(-3, horizon + 5):
            candidate = SUNDAY + timedelta(days=offset)
            in_window = SUNDAY < candidate <= SUNDAY + timedelta(days=horizon)
            expected = in_window and is_date_available(candidate, slots)
            assert (candidate in resolved) is expected, candidate

    def test_membership_matches_iteration(self):
        dates = resolve_available_dates([MONDAY_SLOT], 14, SUNDAY)
        assert date(2026, 3, 9) in dates
        assert date(2026, 3, 16) not in dates
        assert date(2026, 3, 3) not in dates


class TestFindMatchingSlot:
    def test_matches_after_normalization(self):
        slots = [MONDAY_SLOT]
        requested = {"day": "Monday", "startingTime": "9:00", "endingTime": "10:00"}
        assert find_matching_slot(requested, slots) == TimeSlot(DayOfWeek.MONDAY, "09:00", "10:00")

    def test_unknown_slot_returns_none(self):
        requested = {"day": "monday", "starting_time": "11:00", "ending_time": "12:00"}
        assert find_matching_slot(requested, [MONDAY_SLOT]) is None


class TestAvailabilityService:
    def test_returns_dates_for_trainer(self, db: Session, trainer: Trainer):
        service = AvailabilityService(db)
        result = service.get_available_dates(trainer.id, horizon_days=7, today=SUNDAY)

        assert result["trainer_id"] == trainer.id
        # Trainer fixture publishes Monday and Wednesday slots
        assert result["dates"] == [date(2026, 3, 2), date(2026, 3, 4)]
        assert {s["day"] for s in result["time_slots"]} == {"monday", "wednesday"}

    def test_unknown_trainer(self, db: Session):
        with pytest.raises(NotFoundException):
            AvailabilityService(db).get_available_dates("01HZZZZZZZZZZZZZZZZZZZZZZZ")

    def test_horizon_is_capped_by_configuration(self, db: Session, trainer: Trainer):
        with pytest.raises(ValidationException) as exc_info:
            AvailabilityService(db).get_available_dates(trainer.id, horizon_days=10_000)
        assert exc_info.value.code == "HORIZON_TOO_LARGE"
