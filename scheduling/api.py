from __future__ import annotations

import json

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .errors import (
    AdmissionError,
    BeyondHorizon,
    BookingNotFound,
    DayUnavailable,
    InputError,
    InvalidStatusTransition,
    MeetingTypeNotFound,
    PastOrTooSoon,
    SchedulingError,
    SlotNotOffered,
    StoreUnavailable,
)
from .services import (
    GuestInfo,
    cancel_booking,
    create_booking,
    get_meeting_type,
    list_available_dates,
    list_slots,
    update_booking_status,
)
from .timeconv import group_timezones, list_timezones


# Rejections that depend on the request itself rather than on other bookings.
REQUEST_REJECTIONS = (PastOrTooSoon, BeyondHorizon, DayUnavailable, SlotNotOffered)


def _error_response(exc: SchedulingError) -> JsonResponse:
    if isinstance(exc, InputError) or isinstance(exc, REQUEST_REJECTIONS):
        status = 400
    elif isinstance(exc, (MeetingTypeNotFound, BookingNotFound)):
        status = 404
    elif isinstance(exc, (AdmissionError, InvalidStatusTransition)):
        status = 409
    elif isinstance(exc, StoreUnavailable):
        status = 503
    else:  # pragma: no cover
        status = 400
    return JsonResponse({"error": str(exc), "code": exc.code}, status=status)


def _load_json(request):
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def _requester_timezone(request) -> str:
    return (request.GET.get("timezone") or "").strip() or settings.SCHEDULING_DEFAULT_TIMEZONE


@require_GET
def meeting_type_api(request, meeting_type_id: int):
    """
    GET /api/meeting-types/<id>/[?timezone=Zone]

    Public summary of a meeting type plus the next dates with open slots.
    """
    tz_name = _requester_timezone(request)
    try:
        meeting_type = get_meeting_type(meeting_type_id)
        dates = list_available_dates(meeting_type_id, tz_name)
    except SchedulingError as exc:
        return _error_response(exc)

    return JsonResponse(
        {
            "meeting_type": {
                "id": meeting_type.id,
                "name": meeting_type.name,
                "description": meeting_type.description,
                "duration": meeting_type.duration,
                "color": meeting_type.color,
                "timezone": meeting_type.timezone,
            },
            "timezone": tz_name,
            "available_dates": [d.isoformat() for d in dates],
        }
    )


@require_GET
def slots_api(request, meeting_type_id: int):
    """
    GET /api/meeting-types/<id>/slots/?date=YYYY-MM-DD[&timezone=Zone]

    Returns open slots for the date, expressed in the requested timezone.
    """
    date_str = request.GET.get("date", "").strip()
    if not date_str:
        return JsonResponse({"error": "Missing required query param: date"}, status=400)

    tz_name = _requester_timezone(request)
    try:
        slots = list_slots(meeting_type_id, date_str, tz_name)
    except SchedulingError as exc:
        return _error_response(exc)

    return JsonResponse(
        {
            "date": date_str,
            "timezone": tz_name,
            "slots": [slot.as_dict() for slot in slots],
        }
    )


@csrf_exempt
@require_POST
def create_booking_api(request, meeting_type_id: int):
    """
    POST /api/meeting-types/<id>/bookings/
    Payload (JSON):
      - date: YYYY-MM-DD (guest's calendar)
      - time: HH:MM (guest's clock)
      - timezone: IANA zone name of the guest
      - guest: {name, email, phone?, notes?}
    """
    payload = _load_json(request)
    if payload is None:
        return JsonResponse({"error": "Invalid JSON payload."}, status=400)

    date_str = payload.get("date")
    time_str = payload.get("time")
    tz_name = payload.get("timezone") or settings.SCHEDULING_DEFAULT_TIMEZONE
    guest = payload.get("guest")

    if not isinstance(date_str, str) or not date_str.strip():
        return JsonResponse({"error": "date is required."}, status=400)
    if not isinstance(time_str, str) or not time_str.strip():
        return JsonResponse({"error": "time is required."}, status=400)
    if not isinstance(guest, dict) or not guest.get("name") or not guest.get("email"):
        return JsonResponse({"error": "guest requires name and email."}, status=400)

    try:
        confirmation = create_booking(
            meeting_type_id=meeting_type_id,
            date=date_str,
            time=time_str,
            requester_tz=tz_name,
            guest=GuestInfo(
                name=str(guest["name"]).strip(),
                email=str(guest["email"]).strip().lower(),
                phone=str(guest.get("phone") or "").strip(),
                notes=str(guest.get("notes") or "").strip(),
            ),
        )
    except SchedulingError as exc:
        return _error_response(exc)

    return JsonResponse(
        {
            "success": True,
            "message": "Meeting booked successfully.",
            "booking": confirmation.booking.as_dict(),
            "confirmation_sent": confirmation.notification_sent,
            "warnings": confirmation.warnings,
        },
        status=201,
    )


@csrf_exempt
@require_POST
def cancel_booking_api(request, booking_id: int):
    """
    POST /api/bookings/<id>/cancel/
    """
    try:
        booking = cancel_booking(booking_id)
    except SchedulingError as exc:
        return _error_response(exc)

    return JsonResponse({"success": True, "message": "Booking cancelled.", "booking": booking.as_dict()})


@csrf_exempt
@require_POST
def booking_status_api(request, booking_id: int):
    """
    POST /api/bookings/<id>/status/
    Payload (JSON):
      - status: cancelled|completed|no-show
    """
    payload = _load_json(request)
    if payload is None:
        return JsonResponse({"error": "Invalid JSON payload."}, status=400)

    status = payload.get("status")
    if not isinstance(status, str):
        return JsonResponse({"error": "status must be a string."}, status=400)

    try:
        booking = update_booking_status(booking_id, status)
    except SchedulingError as exc:
        return _error_response(exc)

    return JsonResponse({"success": True, "message": "Booking status updated.", "booking": booking.as_dict()})


@require_GET
def timezones_api(request):
    """
    GET /api/timezones/
    """
    zones = list_timezones()
    return JsonResponse({"timezones": group_timezones(zones), "all": zones})
