from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time

from .errors import InvalidRule, InvalidTimezone
from .timeconv import format_time, get_zone, parse_time_of_day


# 0 = Sunday ... 6 = Saturday
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
DEFAULT_WEEKDAYS = frozenset({1, 2, 3, 4, 5})

MIN_SLOT_DURATION = 5
MAX_SLOT_DURATION = 480
MAX_BUFFER_MINUTES = 60


def weekday_number(value) -> int:
    """Weekday of a date in the 0 = Sunday convention."""
    return value.isoweekday() % 7


def _validate_zone(name: str, label: str) -> None:
    try:
        get_zone(name)
    except InvalidTimezone as exc:
        raise InvalidRule(f"{label}: unknown timezone {name!r}.") from exc


@dataclass(frozen=True)
class Window:
    start: time
    end: time
    timezone: str

    def __post_init__(self):
        object.__setattr__(self, "start", parse_time_of_day(self.start))
        object.__setattr__(self, "end", parse_time_of_day(self.end))
        if self.end <= self.start:
            raise InvalidRule(
                f"Window end {format_time(self.end)} must be after start {format_time(self.start)}."
            )
        _validate_zone(self.timezone, "Window")

    @property
    def start_minutes(self) -> int:
        return self.start.hour * 60 + self.start.minute

    @property
    def end_minutes(self) -> int:
        return self.end.hour * 60 + self.end.minute

    def __str__(self) -> str:  # pragma: no cover
        return f"{format_time(self.start)}–{format_time(self.end)} {self.timezone}"


@dataclass(frozen=True)
class AvailabilityRule:
    """
    Immutable definition of when a meeting type can be booked.
    """

    rule_id: int | None
    windows: tuple[Window, ...]
    slot_duration: int
    canonical_timezone: str = "UTC"
    weekday_mask: frozenset[int] = DEFAULT_WEEKDAYS
    buffer_minutes: int = 0
    max_bookings_per_day: int = 10
    advance_booking_days: int = 30
    minimum_notice_hours: int = 24
    name: str = field(default="", compare=False)

    def __post_init__(self):
        object.__setattr__(self, "windows", tuple(self.windows))
        object.__setattr__(self, "weekday_mask", frozenset(int(d) for d in self.weekday_mask))

        if any(d < 0 or d > 6 for d in self.weekday_mask):
            raise InvalidRule("Weekdays must be between 0 (Sunday) and 6 (Saturday).")
        if not MIN_SLOT_DURATION <= self.slot_duration <= MAX_SLOT_DURATION:
            raise InvalidRule(
                f"Slot duration must be between {MIN_SLOT_DURATION} and {MAX_SLOT_DURATION} minutes."
            )
        if not 0 <= self.buffer_minutes <= MAX_BUFFER_MINUTES:
            raise InvalidRule(f"Buffer must be between 0 and {MAX_BUFFER_MINUTES} minutes.")
        if self.max_bookings_per_day < 1:
            raise InvalidRule("Max bookings per day must be at least 1.")
        if self.advance_booking_days < 1:
            raise InvalidRule("Advance booking days must be at least 1.")
        if self.minimum_notice_hours < 0:
            raise InvalidRule("Minimum notice cannot be negative.")
        _validate_zone(self.canonical_timezone, "Canonical timezone")

    @property
    def step_minutes(self) -> int:
        return self.slot_duration + self.buffer_minutes

    def is_weekday_enabled(self, day_number: int) -> bool:
        return day_number in self.weekday_mask
