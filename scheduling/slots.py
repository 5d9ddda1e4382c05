"""
Slot generation.

Windows are walked in their own timezone, then mapped into the requester's
timezone. A listing is advisory: admission re-validates every request.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date as date_type
from datetime import datetime, time, timedelta, timezone as dt_timezone
from typing import Iterable, Iterator

from .rules import AvailabilityRule, Window, weekday_number
from .timeconv import format_time, get_zone, instant_to_wall, parse_date, parse_time_of_day, wall_time_exists


# UTC offsets span 26 hours, so a requester day can touch a window's day +-2.
SOURCE_DAY_OFFSETS = (-2, -1, 0, 1, 2)


@dataclass(frozen=True)
class Slot:
    date: date_type
    start: time
    end: time
    timezone: str
    starts_at: datetime
    canonical_date: date_type
    canonical_time: time
    canonical_fold: int = 0

    @property
    def canonical_key(self) -> tuple[date_type, time, int]:
        return (self.canonical_date, self.canonical_time, self.canonical_fold)

    def as_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "start": format_time(self.start),
            "end": format_time(self.end),
            "timezone": self.timezone,
            "starts_at": self.starts_at.isoformat(),
        }


def _canonical_key(item) -> tuple[date_type, time, int]:
    """
    Normalize a booked entry to (date, time, fold). Plain (date, time) pairs
    mean the first occurrence of that wall time.
    """
    if isinstance(item, Slot):
        return item.canonical_key
    if len(item) == 3:
        date_value, time_value, fold = item
    else:
        date_value, time_value = item
        fold = 0
    return parse_date(date_value), parse_time_of_day(time_value).replace(fold=0), int(fold)


def _window_starts(rule: AvailabilityRule, window: Window, source_day: date_type) -> Iterator[datetime]:
    """
    Candidate start instants of one window occurrence, in window order.
    """
    zone = get_zone(window.timezone)
    minute = window.start_minutes
    while minute + rule.slot_duration <= window.end_minutes:
        start = time(hour=minute // 60, minute=minute % 60)
        if wall_time_exists(source_day, start, zone):
            yield datetime.combine(source_day, start, tzinfo=zone).astimezone(dt_timezone.utc)
        minute += rule.step_minutes


def candidate_instants(rule: AvailabilityRule, target_date, requester_tz) -> list[datetime]:
    """
    Sorted start instants of every window occurrence that begins on
    ``target_date`` as seen from ``requester_tz``, ignoring bookings.

    The weekday mask is applied to each window occurrence's own day in the
    window's timezone, not to ``target_date``: a Monday-only 22:00 UTC window
    shows up on Tuesday morning for a requester in Tokyo.
    """
    target = parse_date(target_date)
    requester_zone = get_zone(requester_tz)
    instants = set()
    for window in rule.windows:
        for offset in SOURCE_DAY_OFFSETS:
            source_day = target + timedelta(days=offset)
            if not rule.is_weekday_enabled(weekday_number(source_day)):
                continue
            for instant in _window_starts(rule, window, source_day):
                if instant.astimezone(requester_zone).date() == target:
                    instants.add(instant)
    return sorted(instants)


def generate_slots(
    rule: AvailabilityRule,
    target_date,
    booked_canonical_slots: Iterable = (),
    requester_tz="UTC",
) -> list[Slot]:
    """
    Open slots for ``target_date`` (a calendar day in ``requester_tz``).

    ``booked_canonical_slots`` holds (date, time) or (date, time, fold)
    entries in the rule's canonical timezone, or Slot objects. ``fold``
    tells apart the two occurrences of a wall time on a fall-back day. The
    result is chronological and expressed in ``requester_tz``.
    """
    target = parse_date(target_date)
    requester_zone = get_zone(requester_tz)
    booked = {_canonical_key(item) for item in booked_canonical_slots or ()}
    duration = timedelta(minutes=rule.slot_duration)

    slots = []
    for instant in candidate_instants(rule, target, requester_zone):
        canonical_date, canonical_time = instant_to_wall(instant, rule.canonical_timezone)
        canonical_fold = canonical_time.fold
        if (canonical_date, canonical_time.replace(fold=0), canonical_fold) in booked:
            continue
        local_date, local_start = instant_to_wall(instant, requester_zone)
        _, local_end = instant_to_wall(instant + duration, requester_zone)
        slots.append(
            Slot(
                date=local_date,
                start=local_start,
                end=local_end,
                timezone=requester_zone.key,
                starts_at=instant,
                canonical_date=canonical_date,
                canonical_time=canonical_time.replace(fold=0),
                canonical_fold=canonical_fold,
            )
        )
    return slots


def next_available_dates(
    rule: AvailabilityRule,
    start_date,
    count: int = 30,
    requester_tz="UTC",
    max_days: int = 366,
) -> list[date_type]:
    """
    The next ``count`` requester-local dates from ``start_date`` on which the
    rule offers at least one slot. Searches at most ``max_days`` days.
    """
    start = parse_date(start_date)
    dates: list[date_type] = []
    if not rule.windows:
        return dates
    for offset in range(max_days):
        day = start + timedelta(days=offset)
        if candidate_instants(rule, day, requester_tz):
            dates.append(day)
            if len(dates) >= count:
                break
    return dates
