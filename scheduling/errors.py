from __future__ import annotations


class SchedulingError(Exception):
    """Base error type for scheduling domain errors."""

    code = "scheduling_error"
    default_message = "Scheduling error."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class InputError(SchedulingError):
    """Malformed caller input."""


class InvalidTimezone(InputError):
    code = "invalid_timezone"
    default_message = "Unknown timezone."


class InvalidTimeOfDay(InputError):
    code = "invalid_time_of_day"
    default_message = "Invalid time. Expected HH:MM."


class InvalidDate(InputError):
    code = "invalid_date"
    default_message = "Invalid date. Expected YYYY-MM-DD."


class InvalidRule(InputError, ValueError):
    code = "invalid_rule"
    default_message = "Invalid availability rule."


class AdmissionError(SchedulingError):
    """A booking request rejected by a business rule. Safe to retry with different input."""


class PastOrTooSoon(AdmissionError):
    code = "past_or_too_soon"
    default_message = "That time is in the past or too soon to book."


class BeyondHorizon(AdmissionError):
    code = "beyond_horizon"
    default_message = "That date is too far in the future to book."


class DayUnavailable(AdmissionError):
    code = "day_unavailable"
    default_message = "This meeting type is not available on that day."


class SlotNotOffered(AdmissionError):
    code = "slot_not_offered"
    default_message = "That time is not one of the offered slots."


class DailyCapacityExceeded(AdmissionError):
    code = "daily_capacity_exceeded"
    default_message = "No more bookings are accepted for that day."


class SlotAlreadyTaken(AdmissionError):
    code = "slot_already_taken"
    default_message = "That time slot is already booked."


class MeetingTypeNotFound(SchedulingError):
    code = "meeting_type_not_found"
    default_message = "Meeting type not found."


class BookingNotFound(SchedulingError):
    code = "booking_not_found"
    default_message = "Booking not found."


class InvalidStatusTransition(SchedulingError):
    code = "invalid_status_transition"
    default_message = "That status change is not allowed."


class StoreUnavailable(SchedulingError):
    """The booking store failed or timed out. Retryable with backoff."""

    code = "store_unavailable"
    default_message = "The booking store is temporarily unavailable. Please retry."
