"""
Timezone conversion helpers.

Every conversion goes through the IANA database (``zoneinfo``), so daylight
saving rules are honored for past and future dates alike. Wall times are
always (date, time) pairs; an absolute instant is an aware ``datetime``.
"""
from __future__ import annotations

import re
from datetime import date as date_type
from datetime import datetime, time, timedelta, timezone as dt_timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones

from .errors import InvalidDate, InvalidTimeOfDay, InvalidTimezone


TIME_OF_DAY_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


@lru_cache(maxsize=512)
def _load_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def get_zone(name) -> ZoneInfo:
    if isinstance(name, ZoneInfo):
        return name
    if not isinstance(name, str) or not name.strip():
        raise InvalidTimezone("Timezone is required.")
    try:
        return _load_zone(name.strip())
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimezone(f"Unknown timezone: {name}") from exc


def parse_time_of_day(value) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if not isinstance(value, str):
        raise InvalidTimeOfDay()
    match = TIME_OF_DAY_RE.match(value.strip())
    if not match:
        raise InvalidTimeOfDay(f"Invalid time: {value!r}. Expected HH:MM.")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def parse_date(value) -> date_type:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_type):
        return value
    if not isinstance(value, str):
        raise InvalidDate()
    try:
        return date_type.fromisoformat(value.strip())
    except ValueError as exc:
        raise InvalidDate(f"Invalid date: {value!r}. Expected YYYY-MM-DD.") from exc


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def wall_time_exists(date_value: date_type, time_value: time, tz) -> bool:
    """
    False for wall times skipped by a spring-forward transition.
    """
    zone = get_zone(tz)
    local = datetime.combine(date_value, time_value, tzinfo=zone)
    round_trip = local.astimezone(dt_timezone.utc).astimezone(zone)
    return round_trip.replace(tzinfo=None) == local.replace(tzinfo=None)


def to_instant(date_value, time_value, tz) -> datetime:
    """
    Absolute (aware) instant of a wall time in ``tz``.

    Ambiguous wall times resolve to their first occurrence; wall times that do
    not exist in the zone raise InvalidTimeOfDay.
    """
    zone = get_zone(tz)
    d = parse_date(date_value)
    t = parse_time_of_day(time_value)
    if not wall_time_exists(d, t, zone):
        raise InvalidTimeOfDay(f"{format_time(t)} does not exist on {d.isoformat()} in {zone.key}.")
    return datetime.combine(d, t, tzinfo=zone).astimezone(dt_timezone.utc)


def instant_to_wall(instant: datetime, tz) -> tuple[date_type, time]:
    """
    Wall (date, time) of ``instant`` in ``tz``. The time keeps ``fold``, which
    is 1 for the second occurrence of a wall time repeated by a fall-back
    transition.
    """
    local = instant.astimezone(get_zone(tz))
    return local.date(), local.time().replace(second=0, microsecond=0, tzinfo=None)


def to_canonical(date_value, time_value, source_tz, canonical_tz) -> tuple[date_type, time]:
    """
    Express a wall time given in ``source_tz`` in ``canonical_tz``.
    The calendar date may shift across midnight.
    """
    return instant_to_wall(to_instant(date_value, time_value, source_tz), canonical_tz)


def from_canonical(date_value, time_value, canonical_tz, target_tz) -> tuple[date_type, time]:
    return instant_to_wall(to_instant(date_value, time_value, canonical_tz), target_tz)


def format_offset(offset: timedelta | None) -> str:
    total = int((offset or timedelta()).total_seconds() // 60)
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


def list_timezones(at: datetime | None = None) -> list[dict]:
    """
    All known zones with their UTC offset at ``at`` (defaults to now).
    """
    at = at or datetime.now(dt_timezone.utc)
    zones = []
    for name in sorted(available_timezones()):
        offset = format_offset(at.astimezone(_load_zone(name)).utcoffset())
        zones.append(
            {
                "value": name,
                "label": f"{name.replace('_', ' ')} (UTC{offset})",
                "offset": offset,
                "region": name.split("/")[0],
            }
        )
    return zones


def group_timezones(zones: list[dict]) -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {}
    for zone in zones:
        grouped.setdefault(zone["region"], []).append(zone)
    return grouped
