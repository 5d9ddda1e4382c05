from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .errors import InvalidStatusTransition, InvalidTimezone
from .rules import (
    MAX_BUFFER_MINUTES,
    MAX_SLOT_DURATION,
    MIN_SLOT_DURATION,
    AvailabilityRule,
    Window,
)
from .timeconv import format_time, get_zone


def default_available_days() -> list[int]:
    return [1, 2, 3, 4, 5]


def validate_timezone_name(value: str) -> None:
    try:
        get_zone(value)
    except InvalidTimezone as exc:
        raise ValidationError(str(exc)) from exc


class MeetingType(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(max_length=500, blank=True)
    color = models.CharField(
        max_length=7,
        default="#006bff",
        validators=[RegexValidator(r"^#([0-9A-Fa-f]{3}){1,2}$", "Color must be a valid hex color code.")],
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="meeting_types",
    )
    is_active = models.BooleanField(default=True)
    duration = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_SLOT_DURATION), MaxValueValidator(MAX_SLOT_DURATION)],
        help_text="Slot length in minutes.",
    )
    buffer_minutes = models.PositiveSmallIntegerField(
        default=0,
        validators=[MaxValueValidator(MAX_BUFFER_MINUTES)],
    )
    available_days = models.JSONField(
        default=default_available_days,
        blank=True,
        help_text="Weekday numbers, 0 = Sunday ... 6 = Saturday.",
    )
    timezone = models.CharField(
        max_length=64,
        default="UTC",
        validators=[validate_timezone_name],
        help_text="Canonical timezone bookings are stored in.",
    )
    max_bookings_per_day = models.PositiveSmallIntegerField(default=10, validators=[MinValueValidator(1)])
    advance_booking_days = models.PositiveSmallIntegerField(default=30, validators=[MinValueValidator(1)])
    minimum_notice_hours = models.PositiveSmallIntegerField(default=24)
    total_bookings = models.PositiveIntegerField(default=0)
    display_order = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["display_order", "name"]

    def __str__(self) -> str:  # pragma: no cover
        return self.name

    def clean(self) -> None:
        super().clean()
        days = self.available_days or []
        if not isinstance(days, list) or any(not isinstance(d, int) or d < 0 or d > 6 for d in days):
            raise ValidationError({"available_days": "Use weekday numbers between 0 (Sunday) and 6 (Saturday)."})

    def to_rule(self) -> AvailabilityRule:
        """
        Immutable availability rule for this meeting type.
        Windows without their own timezone use the meeting type's timezone.
        """
        windows = tuple(
            Window(start=w.start_time, end=w.end_time, timezone=w.timezone or self.timezone)
            for w in self.windows.all()
        )
        return AvailabilityRule(
            rule_id=self.pk,
            name=self.name,
            windows=windows,
            slot_duration=self.duration,
            buffer_minutes=self.buffer_minutes,
            canonical_timezone=self.timezone,
            weekday_mask=frozenset(self.available_days or []),
            max_bookings_per_day=self.max_bookings_per_day,
            advance_booking_days=self.advance_booking_days,
            minimum_notice_hours=self.minimum_notice_hours,
        )


class AvailabilityWindow(models.Model):
    meeting_type = models.ForeignKey(MeetingType, on_delete=models.CASCADE, related_name="windows")
    start_time = models.TimeField()
    end_time = models.TimeField()
    timezone = models.CharField(
        max_length=64,
        blank=True,
        validators=[validate_timezone_name],
        help_text="Leave blank to use the meeting type's timezone.",
    )
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ["position", "start_time"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{format_time(self.start_time)}–{format_time(self.end_time)} {self.timezone or ''}".strip()

    def clean(self) -> None:
        super().clean()
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({"end_time": "End time must be after start time."})


class BookingStatus(models.TextChoices):
    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"
    COMPLETED = "completed", "Completed"
    NO_SHOW = "no-show", "No-show"


ALLOWED_TRANSITIONS = {
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW},
}


class Booking(models.Model):
    meeting_type = models.ForeignKey(MeetingType, on_delete=models.PROTECT, related_name="bookings")
    canonical_date = models.DateField()
    canonical_time = models.TimeField()
    canonical_fold = models.PositiveSmallIntegerField(
        default=0,
        help_text="1 for the repeated wall time after a fall-back transition.",
    )
    starts_at = models.DateTimeField()
    duration = models.PositiveSmallIntegerField()
    original_date = models.DateField()
    original_time = models.TimeField()
    requester_timezone = models.CharField(max_length=64)
    guest_name = models.CharField(max_length=120)
    guest_email = models.EmailField()
    guest_phone = models.CharField(max_length=32, blank=True)
    guest_notes = models.TextField(blank=True)
    status = models.CharField(max_length=16, choices=BookingStatus.choices, default=BookingStatus.CONFIRMED)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["meeting_type", "canonical_date", "canonical_time", "canonical_fold"],
                condition=~Q(status="cancelled"),
                name="unique_active_booking_slot",
            )
        ]
        indexes = [
            models.Index(fields=["meeting_type", "canonical_date"], name="idx_booking_type_date"),
            models.Index(fields=["starts_at"], name="idx_booking_starts_at"),
        ]
        ordering = ["starts_at", "created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.meeting_type} · {self.canonical_date} {format_time(self.canonical_time)} · {self.guest_name}"

    def end_datetime(self):
        return self.starts_at + timedelta(minutes=self.duration)

    def is_future(self) -> bool:
        return self.end_datetime() >= timezone.now()

    @property
    def occupies_slot(self) -> bool:
        return self.status != BookingStatus.CANCELLED

    @property
    def is_terminal(self) -> bool:
        return self.status not in ALLOWED_TRANSITIONS

    def transition_to(self, status: str) -> None:
        """
        Move to ``status``. confirmed is the only state with exits; every
        other state is terminal.
        """
        allowed = ALLOWED_TRANSITIONS.get(self.status, set())
        if status not in allowed:
            raise InvalidStatusTransition(f"Cannot change booking status from {self.status} to {status}.")
        self.status = status
        if status == BookingStatus.CANCELLED:
            self.cancelled_at = timezone.now()

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "meeting_type_id": self.meeting_type_id,
            "status": self.status,
            "starts_at": self.starts_at.isoformat(),
            "duration": self.duration,
            "canonical": {
                "date": self.canonical_date.isoformat(),
                "time": format_time(self.canonical_time),
                "timezone": self.meeting_type.timezone,
            },
            "original": {
                "date": self.original_date.isoformat(),
                "time": format_time(self.original_time),
                "timezone": self.requester_timezone,
            },
            "guest": {"name": self.guest_name, "email": self.guest_email},
        }
