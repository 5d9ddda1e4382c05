from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date as date_type
from datetime import datetime, time, timedelta

from django.conf import settings
from django.db import IntegrityError, InterfaceError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from .emails import BookingEmailPayload, send_booking_email
from .errors import (
    BeyondHorizon,
    BookingNotFound,
    DailyCapacityExceeded,
    DayUnavailable,
    InvalidStatusTransition,
    MeetingTypeNotFound,
    PastOrTooSoon,
    SlotAlreadyTaken,
    SlotNotOffered,
    StoreUnavailable,
)
from .models import Booking, BookingStatus, MeetingType
from .rules import AvailabilityRule
from .slots import Slot, candidate_instants, generate_slots, next_available_dates
from .timeconv import format_time, get_zone, instant_to_wall, parse_date, parse_time_of_day, to_instant


logger = logging.getLogger(__name__)

# A requester's calendar day can cover canonical dates up to two days away.
CANONICAL_DAY_SPREAD = 2


@dataclass(frozen=True)
class GuestInfo:
    name: str
    email: str
    phone: str = ""
    notes: str = ""


@dataclass(frozen=True)
class AdmissionTicket:
    """A request that passed every rule check and is ready to be reserved."""

    starts_at: datetime
    canonical_date: date_type
    canonical_time: time
    canonical_fold: int
    original_date: date_type
    original_time: time
    requester_timezone: str


@dataclass
class BookingConfirmation:
    booking: Booking
    notification_sent: bool
    warnings: list[str] = field(default_factory=list)


@contextmanager
def _store_guard(operation: str):
    """
    Surface store failures (timeouts, lost connections) as StoreUnavailable.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.warning("Booking store failure during %s: %s", operation, exc)
        raise StoreUnavailable() from exc


def get_meeting_type(meeting_type_id: int, *, for_update: bool = False) -> MeetingType:
    with _store_guard("get_meeting_type"):
        queryset = MeetingType.objects.filter(is_active=True)
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(id=meeting_type_id)
        except MeetingType.DoesNotExist as exc:
            raise MeetingTypeNotFound(f"Meeting type not found for ID: {meeting_type_id}") from exc


def booked_canonical_slots(meeting_type_id: int, around: date_type) -> set[tuple[date_type, time, int]]:
    """
    Canonical (date, time, fold) keys held by non-cancelled bookings near ``around``.
    """
    spread = timedelta(days=CANONICAL_DAY_SPREAD)
    rows = (
        Booking.objects.filter(
            meeting_type_id=meeting_type_id,
            canonical_date__gte=around - spread,
            canonical_date__lte=around + spread,
        )
        .exclude(status=BookingStatus.CANCELLED)
        .values_list("canonical_date", "canonical_time", "canonical_fold")
    )
    return {(d, t.replace(second=0, microsecond=0), fold) for d, t, fold in rows}


def list_slots(meeting_type_id: int, date_value, requester_tz) -> list[Slot]:
    """
    Open slots on ``date_value`` (a day in ``requester_tz``). Advisory only:
    a listed slot can still be lost to a concurrent booking.
    """
    target = parse_date(date_value)
    zone = get_zone(requester_tz)
    with _store_guard("list_slots"):
        meeting_type = get_meeting_type(meeting_type_id)
        rule = meeting_type.to_rule()
        booked = booked_canonical_slots(meeting_type.id, target)
    return generate_slots(rule, target, booked, zone)


def list_available_dates(meeting_type_id: int, requester_tz, count: int | None = None, today=None) -> list[date_type]:
    zone = get_zone(requester_tz)
    count = count or settings.SCHEDULING_LISTED_DATES
    with _store_guard("list_available_dates"):
        rule = get_meeting_type(meeting_type_id).to_rule()
    start = parse_date(today) if today is not None else timezone.now().astimezone(zone).date()
    return next_available_dates(rule, start, count=count, requester_tz=zone, max_days=rule.advance_booking_days + 1)


def check_admission(rule: AvailabilityRule, requested_date, requested_time, requester_tz, now: datetime) -> AdmissionTicket:
    """
    Validate a request against the rule, in order: notice, horizon, day,
    offered time. Pure; capacity and uniqueness need the store.
    """
    zone = get_zone(requester_tz)
    original_date = parse_date(requested_date)
    original_time = parse_time_of_day(requested_time)
    starts_at = to_instant(original_date, original_time, zone)

    if starts_at - now < timedelta(hours=rule.minimum_notice_hours):
        raise PastOrTooSoon(
            f"Bookings need at least {rule.minimum_notice_hours} hour(s) notice."
        )

    canonical_date, canonical_time = instant_to_wall(starts_at, rule.canonical_timezone)
    today = now.astimezone(get_zone(rule.canonical_timezone)).date()
    if (canonical_date - today).days > rule.advance_booking_days:
        raise BeyondHorizon(f"Bookings can be made at most {rule.advance_booking_days} day(s) ahead.")

    candidates = candidate_instants(rule, original_date, zone)
    if not candidates:
        raise DayUnavailable()
    if starts_at not in candidates:
        raise SlotNotOffered(f"{format_time(original_time)} is not an offered start time on {original_date.isoformat()}.")

    return AdmissionTicket(
        starts_at=starts_at,
        canonical_date=canonical_date,
        canonical_time=canonical_time.replace(fold=0),
        canonical_fold=canonical_time.fold,
        original_date=original_date,
        original_time=original_time,
        requester_timezone=zone.key,
    )


def admit(
    *,
    meeting_type_id: int,
    requested_date,
    requested_time,
    requester_tz,
    guest: GuestInfo,
    now: datetime | None = None,
) -> Booking:
    """
    Reserve a canonical slot, all-or-nothing:
    - Locks the meeting type row so daily capacity is counted serially.
    - Inserts the booking; the conditional unique constraint on
      (meeting type, canonical date, canonical time) is the only guard
      against double booking.
    """
    now = now or timezone.now()
    # Input errors surface before touching the store.
    requested_date = parse_date(requested_date)
    requested_time = parse_time_of_day(requested_time)
    get_zone(requester_tz)

    try:
        with _store_guard("admit"), transaction.atomic():
            meeting_type = get_meeting_type(meeting_type_id, for_update=True)
            rule = meeting_type.to_rule()
            ticket = check_admission(rule, requested_date, requested_time, requester_tz, now)

            active_that_day = (
                Booking.objects.filter(meeting_type=meeting_type, canonical_date=ticket.canonical_date)
                .exclude(status=BookingStatus.CANCELLED)
                .count()
            )
            if active_that_day >= rule.max_bookings_per_day:
                raise DailyCapacityExceeded(
                    f"{meeting_type.name} accepts at most {rule.max_bookings_per_day} booking(s) per day."
                )

            booking = Booking.objects.create(
                meeting_type=meeting_type,
                canonical_date=ticket.canonical_date,
                canonical_time=ticket.canonical_time,
                canonical_fold=ticket.canonical_fold,
                starts_at=ticket.starts_at,
                duration=rule.slot_duration,
                original_date=ticket.original_date,
                original_time=ticket.original_time,
                requester_timezone=ticket.requester_timezone,
                guest_name=guest.name,
                guest_email=guest.email,
                guest_phone=guest.phone,
                guest_notes=guest.notes,
                status=BookingStatus.CONFIRMED,
            )
            MeetingType.objects.filter(pk=meeting_type.pk).update(total_bookings=F("total_bookings") + 1)
    except IntegrityError as exc:
        logger.info(
            "Slot already taken: meeting_type=%s date=%s time=%s tz=%s",
            meeting_type_id,
            requested_date,
            format_time(requested_time),
            requester_tz,
        )
        raise SlotAlreadyTaken("That time slot was just booked. Please pick another.") from exc

    logger.info(
        "Booking %s admitted: meeting_type=%s canonical=%s %s",
        booking.id,
        meeting_type_id,
        booking.canonical_date,
        format_time(booking.canonical_time),
    )
    return booking


def create_booking(
    *,
    meeting_type_id: int,
    date,
    time,
    requester_tz,
    guest: GuestInfo,
    now: datetime | None = None,
) -> BookingConfirmation:
    """
    Admit a booking, then send the confirmation e-mail. A failed e-mail is
    reported as a warning and never undoes the booking.
    """
    booking = admit(
        meeting_type_id=meeting_type_id,
        requested_date=date,
        requested_time=time,
        requester_tz=requester_tz,
        guest=guest,
        now=now,
    )
    sent = send_booking_email(BookingEmailPayload.from_booking(booking, event="confirmed"))
    warnings = [] if sent else ["The booking is confirmed, but the confirmation e-mail could not be sent."]
    return BookingConfirmation(booking=booking, notification_sent=sent, warnings=warnings)


def _locked_booking(booking_id: int) -> Booking:
    try:
        return Booking.objects.select_for_update().select_related("meeting_type").get(id=booking_id)
    except Booking.DoesNotExist as exc:
        raise BookingNotFound() from exc


def update_booking_status(booking_id: int, status: str) -> Booking:
    """
    Move a confirmed booking to a terminal status. Cancelling frees its slot.
    """
    if status not in BookingStatus.values:
        raise InvalidStatusTransition(f"Unknown booking status: {status!r}.")

    with _store_guard("update_booking_status"), transaction.atomic():
        booking = _locked_booking(booking_id)
        booking.transition_to(status)
        booking.save(update_fields=["status", "cancelled_at", "updated_at"])

    logger.info("Booking %s is now %s", booking.id, booking.status)
    if status == BookingStatus.CANCELLED:
        send_booking_email(BookingEmailPayload.from_booking(booking, event="cancelled"))
    return booking


def cancel_booking(booking_id: int) -> Booking:
    return update_booking_status(booking_id, BookingStatus.CANCELLED)
