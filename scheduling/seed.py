from __future__ import annotations

from dataclasses import dataclass, field

from django.db import transaction

from .models import AvailabilityWindow, MeetingType
from .timeconv import parse_time_of_day


@dataclass(frozen=True)
class WindowSeed:
    start: str
    end: str
    timezone: str = ""


@dataclass(frozen=True)
class MeetingTypeSeed:
    name: str
    duration: int
    windows: list[WindowSeed]
    display_order: int
    description: str = ""
    buffer_minutes: int = 0
    available_days: list[int] = field(default_factory=lambda: [1, 2, 3, 4, 5])
    timezone: str = "UTC"
    color: str = "#006bff"


DEFAULT_MEETING_TYPES: list[MeetingTypeSeed] = [
    MeetingTypeSeed(
        name="15 Minute Intro Call",
        duration=15,
        buffer_minutes=5,
        windows=[WindowSeed("09:00", "12:00")],
        display_order=10,
        description="A quick introduction to see if we are a good fit.",
        color="#00a2ff",
    ),
    MeetingTypeSeed(
        name="30 Minute Consultation",
        duration=30,
        windows=[WindowSeed("09:00", "12:00"), WindowSeed("13:00", "17:00")],
        display_order=20,
        description="A focused consultation on one topic.",
    ),
    MeetingTypeSeed(
        name="60 Minute Strategy Session",
        duration=60,
        buffer_minutes=15,
        windows=[WindowSeed("10:00", "16:00")],
        available_days=[2, 4],
        display_order=30,
        description="A longer working session for planning and review.",
        color="#8247f5",
    ),
]


def seed_default_meeting_types(*, update_existing: bool = False) -> dict[str, int]:
    """
    Idempotently seed default meeting types and their availability windows.

    - If update_existing is False: creates missing meeting types only (does not overwrite edits).
    - If update_existing is True: updates existing meeting types and replaces their windows.
    """
    created = 0
    updated = 0
    skipped = 0

    with transaction.atomic():
        for mt in DEFAULT_MEETING_TYPES:
            defaults = {
                "duration": mt.duration,
                "buffer_minutes": mt.buffer_minutes,
                "available_days": mt.available_days,
                "timezone": mt.timezone,
                "color": mt.color,
                "display_order": mt.display_order,
                "description": mt.description,
                "is_active": True,
            }

            if update_existing:
                meeting_type, was_created = MeetingType.objects.update_or_create(name=mt.name, defaults=defaults)
                if was_created:
                    created += 1
                else:
                    updated += 1
                meeting_type.windows.all().delete()
            else:
                meeting_type, was_created = MeetingType.objects.get_or_create(name=mt.name, defaults=defaults)
                if was_created:
                    created += 1
                else:
                    skipped += 1
                    continue

            AvailabilityWindow.objects.bulk_create(
                AvailabilityWindow(
                    meeting_type=meeting_type,
                    start_time=parse_time_of_day(w.start),
                    end_time=parse_time_of_day(w.end),
                    timezone=w.timezone,
                    position=index,
                )
                for index, w in enumerate(mt.windows)
            )

    return {"created": created, "updated": updated, "skipped": skipped}
