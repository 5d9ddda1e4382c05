"""Tests for the default meeting type seed."""

from io import StringIO

import pytest
from django.core.management import call_command

from scheduling.models import AvailabilityWindow, MeetingType
from scheduling.seed import DEFAULT_MEETING_TYPES, seed_default_meeting_types


pytestmark = pytest.mark.django_db


def test_seed_creates_types_and_windows():
    result = seed_default_meeting_types()
    assert result == {"created": len(DEFAULT_MEETING_TYPES), "updated": 0, "skipped": 0}

    consultation = MeetingType.objects.get(name="30 Minute Consultation")
    assert consultation.windows.count() == 2
    assert consultation.to_rule().slot_duration == 30


def test_seed_is_idempotent():
    seed_default_meeting_types()
    result = seed_default_meeting_types()
    assert result["created"] == 0
    assert result["skipped"] == len(DEFAULT_MEETING_TYPES)
    assert AvailabilityWindow.objects.count() == sum(len(mt.windows) for mt in DEFAULT_MEETING_TYPES)


def test_seed_keeps_edits_unless_asked():
    seed_default_meeting_types()
    MeetingType.objects.filter(name="15 Minute Intro Call").update(duration=20)

    seed_default_meeting_types()
    assert MeetingType.objects.get(name="15 Minute Intro Call").duration == 20

    result = seed_default_meeting_types(update_existing=True)
    assert result["updated"] == len(DEFAULT_MEETING_TYPES)
    assert MeetingType.objects.get(name="15 Minute Intro Call").duration == 15
    assert AvailabilityWindow.objects.count() == sum(len(mt.windows) for mt in DEFAULT_MEETING_TYPES)


def test_seed_command():
    out = StringIO()
    call_command("seed_meeting_types", stdout=out)
    assert "created=3" in out.getvalue()
