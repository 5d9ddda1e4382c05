"""Shared test fixtures and helpers."""

import itertools
from datetime import date, datetime, timedelta, timezone

import pytest

from scheduling.models import AvailabilityWindow, MeetingType
from scheduling.rules import AvailabilityRule, Window
from scheduling.services import GuestInfo
from scheduling.timeconv import parse_time_of_day


# Saturday morning; 2025-06-16 is the following Monday.
NOW = datetime(2025, 6, 14, 9, 0, tzinfo=timezone.utc)
MONDAY = date(2025, 6, 16)

_names = itertools.count(1)


def make_rule(
    windows=(("09:00", "17:00", "UTC"),),
    slot_duration: int = 30,
    **kwargs,
) -> AvailabilityRule:
    """Helper to create an AvailabilityRule with sensible defaults."""
    kwargs.setdefault("canonical_timezone", "UTC")
    kwargs.setdefault("weekday_mask", {1, 2, 3, 4, 5})
    kwargs.setdefault("rule_id", 1)
    return AvailabilityRule(
        windows=tuple(Window(start=s, end=e, timezone=tz) for s, e, tz in windows),
        slot_duration=slot_duration,
        **kwargs,
    )


def make_meeting_type(windows=(("09:00", "17:00", ""),), **overrides) -> MeetingType:
    """Helper to persist a MeetingType and its windows."""
    fields = {
        "name": f"Meeting type {next(_names)}",
        "duration": 30,
        "timezone": "UTC",
        "available_days": [1, 2, 3, 4, 5],
        "minimum_notice_hours": 24,
        "advance_booking_days": 30,
        "max_bookings_per_day": 20,
    }
    fields.update(overrides)
    meeting_type = MeetingType.objects.create(**fields)
    for position, (start, end, tz) in enumerate(windows):
        AvailabilityWindow.objects.create(
            meeting_type=meeting_type,
            start_time=parse_time_of_day(start),
            end_time=parse_time_of_day(end),
            timezone=tz,
            position=position,
        )
    return meeting_type


def next_weekday(start: date, weekdays=(0, 1, 2, 3, 4)) -> date:
    """First date on or after ``start`` whose Python weekday() is in ``weekdays``."""
    day = start
    while day.weekday() not in weekdays:
        day += timedelta(days=1)
    return day


@pytest.fixture
def rule():
    return make_rule()


@pytest.fixture
def meeting_type(db):
    return make_meeting_type()


@pytest.fixture
def guest():
    return GuestInfo(name="Ada Lovelace", email="ada@example.com")
