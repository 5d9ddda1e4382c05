"""Model validation and the rule built from stored meeting types."""

from datetime import time

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError

from scheduling.models import AvailabilityWindow, Booking, BookingStatus

from tests.conftest import MONDAY, make_meeting_type


pytestmark = pytest.mark.django_db


def test_window_must_end_after_start(meeting_type):
    window = AvailabilityWindow(meeting_type=meeting_type, start_time=time(12, 0), end_time=time(9, 0))
    with pytest.raises(ValidationError):
        window.full_clean()


def test_unknown_timezone_fails_validation(meeting_type):
    meeting_type.timezone = "Mars/Olympus_Mons"
    with pytest.raises(ValidationError) as excinfo:
        meeting_type.full_clean()
    assert "timezone" in excinfo.value.message_dict


def test_weekdays_must_be_in_range(meeting_type):
    meeting_type.available_days = [1, 7]
    with pytest.raises(ValidationError) as excinfo:
        meeting_type.full_clean()
    assert "available_days" in excinfo.value.message_dict


def test_windows_inherit_meeting_type_zone():
    meeting_type = make_meeting_type(
        windows=(("09:00", "12:00", ""), ("14:00", "16:00", "Asia/Tokyo")),
        timezone="Europe/Berlin",
    )
    rule = meeting_type.to_rule()
    assert [w.timezone for w in rule.windows] == ["Europe/Berlin", "Asia/Tokyo"]
    assert rule.canonical_timezone == "Europe/Berlin"
    assert rule.weekday_mask == frozenset({1, 2, 3, 4, 5})


def _booking(meeting_type, status=BookingStatus.CONFIRMED, **extra):
    return Booking.objects.create(
        meeting_type=meeting_type,
        canonical_date=MONDAY,
        canonical_time=time(9, 0),
        starts_at="2025-06-16T09:00:00Z",
        duration=30,
        original_date=MONDAY,
        original_time=time(9, 0),
        requester_timezone="UTC",
        guest_name="Ada",
        guest_email="ada@example.com",
        status=status,
        **extra,
    )


def test_constraint_rejects_second_active_booking(meeting_type):
    _booking(meeting_type)
    with pytest.raises(IntegrityError):
        _booking(meeting_type, status=BookingStatus.COMPLETED)


def test_constraint_ignores_cancelled_rows(meeting_type):
    _booking(meeting_type, status=BookingStatus.CANCELLED)
    _booking(meeting_type, status=BookingStatus.CANCELLED)
    _booking(meeting_type)
    assert Booking.objects.filter(meeting_type=meeting_type).count() == 3


def test_constraint_tells_repeated_wall_times_apart(meeting_type):
    _booking(meeting_type, canonical_fold=0)
    _booking(meeting_type, canonical_fold=1)
    with pytest.raises(IntegrityError):
        _booking(meeting_type, canonical_fold=1)
