from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_type
from datetime import time

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string

from .timeconv import format_time


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingEmailPayload:
    to_email: str
    event: str  # confirmed|cancelled
    guest_name: str
    meeting_name: str
    date: date_type
    time: time
    timezone: str
    duration: int

    @classmethod
    def from_booking(cls, booking, *, event: str) -> "BookingEmailPayload":
        # Guests see the date and time they picked, in their own timezone.
        return cls(
            to_email=booking.guest_email,
            event=event,
            guest_name=booking.guest_name,
            meeting_name=booking.meeting_type.name,
            date=booking.original_date,
            time=booking.original_time,
            timezone=booking.requester_timezone,
            duration=booking.duration,
        )


def send_booking_email(payload: BookingEmailPayload) -> bool:
    """
    Send a booking e-mail. Returns True if sent, False if skipped or failed.
    Never raises (logs on failure).
    """
    if not payload.to_email:
        return False

    context = {
        "guest_name": payload.guest_name,
        "meeting_name": payload.meeting_name,
        "date": payload.date,
        "time_label": format_time(payload.time),
        "timezone": payload.timezone,
        "duration": payload.duration,
    }

    try:
        subject = render_to_string(f"emails/booking_{payload.event}_subject.txt", context).strip()
        text_body = render_to_string(f"emails/booking_{payload.event}.txt", context)
        html_body = render_to_string(f"emails/booking_{payload.event}.html", context)

        msg = EmailMultiAlternatives(
            subject=subject,
            body=text_body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[payload.to_email],
        )
        if html_body:
            msg.attach_alternative(html_body, "text/html")
        msg.send(fail_silently=False)
        return True
    except Exception:
        logger.exception("Failed to send booking email (%s) to %s", payload.event, payload.to_email)
        return False
