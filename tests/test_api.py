"""Tests for the public JSON endpoints."""

import json
from datetime import timedelta
from unittest import mock

import pytest
from django.db import OperationalError
from django.urls import reverse
from django.utils import timezone

from scheduling.models import Booking, BookingStatus, MeetingType

from tests.conftest import make_meeting_type, next_weekday


pytestmark = pytest.mark.django_db


@pytest.fixture
def bookable_day():
    return next_weekday(timezone.now().date() + timedelta(days=3))


def post_json(client, url, payload):
    return client.post(url, data=json.dumps(payload), content_type="application/json")


def booking_payload(day, time="10:00", tz="UTC", **guest):
    return {
        "date": day.isoformat(),
        "time": time,
        "timezone": tz,
        "guest": {"name": "Grace Hopper", "email": "Grace@Example.com", **guest},
    }


class TestSlotsApi:
    def test_lists_slots_in_requested_zone(self, client, meeting_type, bookable_day):
        url = reverse("scheduling:slots_api", args=[meeting_type.id])
        response = client.get(url, {"date": bookable_day.isoformat(), "timezone": "America/New_York"})
        assert response.status_code == 200
        body = response.json()
        assert body["timezone"] == "America/New_York"
        assert len(body["slots"]) == 16
        assert body["slots"][0]["start"] in ("04:00", "05:00")  # EST or EDT
        assert body["slots"][0]["date"] == bookable_day.isoformat()

    def test_missing_date(self, client, meeting_type):
        response = client.get(reverse("scheduling:slots_api", args=[meeting_type.id]))
        assert response.status_code == 400

    def test_bad_timezone(self, client, meeting_type, bookable_day):
        url = reverse("scheduling:slots_api", args=[meeting_type.id])
        response = client.get(url, {"date": bookable_day.isoformat(), "timezone": "Nope/Nope"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_timezone"

    def test_bad_date(self, client, meeting_type):
        url = reverse("scheduling:slots_api", args=[meeting_type.id])
        response = client.get(url, {"date": "16/06/2025"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_date"

    def test_unknown_meeting_type(self, client, bookable_day):
        url = reverse("scheduling:slots_api", args=[987654])
        response = client.get(url, {"date": bookable_day.isoformat()})
        assert response.status_code == 404

    def test_store_unavailable(self, client, meeting_type, bookable_day):
        url = reverse("scheduling:slots_api", args=[meeting_type.id])
        with mock.patch("scheduling.services.get_meeting_type", side_effect=OperationalError("timeout")):
            response = client.get(url, {"date": bookable_day.isoformat()})
        assert response.status_code == 503
        assert response.json()["code"] == "store_unavailable"


class TestMeetingTypeApi:
    def test_summary_and_dates(self, client, meeting_type):
        response = client.get(reverse("scheduling:meeting_type_api", args=[meeting_type.id]))
        assert response.status_code == 200
        body = response.json()
        assert body["meeting_type"]["name"] == meeting_type.name
        assert body["meeting_type"]["duration"] == 30
        assert body["available_dates"]
        assert len(body["available_dates"]) <= 30

    def test_store_unavailable(self, client, meeting_type):
        with mock.patch.object(MeetingType.objects, "filter", side_effect=OperationalError("connection refused")):
            response = client.get(reverse("scheduling:meeting_type_api", args=[meeting_type.id]))
        assert response.status_code == 503
        assert response.json()["code"] == "store_unavailable"


class TestCreateBookingApi:
    def test_books_and_returns_both_representations(self, client, meeting_type, bookable_day):
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        response = post_json(client, url, booking_payload(bookable_day, time="12:00", tz="Europe/London"))
        assert response.status_code == 201, response.content
        body = response.json()
        assert body["success"] is True
        assert body["confirmation_sent"] is True
        assert body["warnings"] == []
        booking = body["booking"]
        assert booking["status"] == "confirmed"
        assert booking["original"] == {
            "date": bookable_day.isoformat(),
            "time": "12:00",
            "timezone": "Europe/London",
        }
        assert booking["canonical"]["timezone"] == "UTC"
        assert booking["guest"]["email"] == "grace@example.com"

    def test_second_booking_conflicts(self, client, meeting_type, bookable_day):
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        assert post_json(client, url, booking_payload(bookable_day)).status_code == 201
        response = post_json(client, url, booking_payload(bookable_day))
        assert response.status_code == 409
        assert response.json()["code"] == "slot_already_taken"

    def test_too_soon(self, client):
        meeting_type = make_meeting_type(available_days=[0, 1, 2, 3, 4, 5, 6], minimum_notice_hours=24 * 20)
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        day = timezone.now().date() + timedelta(days=3)
        response = post_json(client, url, booking_payload(day))
        assert response.status_code == 400
        assert response.json()["code"] == "past_or_too_soon"

    def test_beyond_horizon(self, client, meeting_type):
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        day = next_weekday(timezone.now().date() + timedelta(days=45))
        response = post_json(client, url, booking_payload(day))
        assert response.status_code == 400
        assert response.json()["code"] == "beyond_horizon"

    def test_weekend(self, client, meeting_type):
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        day = next_weekday(timezone.now().date() + timedelta(days=3), weekdays=(5,))
        response = post_json(client, url, booking_payload(day))
        assert response.status_code == 400
        assert response.json()["code"] == "day_unavailable"

    def test_capacity(self, client, bookable_day):
        meeting_type = make_meeting_type(max_bookings_per_day=1)
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        assert post_json(client, url, booking_payload(bookable_day, time="10:00")).status_code == 201
        response = post_json(client, url, booking_payload(bookable_day, time="11:00"))
        assert response.status_code == 409
        assert response.json()["code"] == "daily_capacity_exceeded"

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"date": "2030-01-01", "time": "10:00"},
            {"date": "2030-01-01", "guest": {"name": "A", "email": "a@example.com"}},
            {"time": "10:00", "guest": {"name": "A", "email": "a@example.com"}},
            {"date": "2030-01-01", "time": "10:00", "guest": {"name": "A"}},
        ],
    )
    def test_incomplete_payload(self, client, meeting_type, payload):
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        assert post_json(client, url, payload).status_code == 400

    def test_invalid_json(self, client, meeting_type):
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        response = client.post(url, data="{not json", content_type="application/json")
        assert response.status_code == 400

    def test_malformed_time(self, client, meeting_type, bookable_day):
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        response = post_json(client, url, booking_payload(bookable_day, time="25:00"))
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_time_of_day"

    def test_get_not_allowed(self, client, meeting_type):
        response = client.get(reverse("scheduling:create_booking_api", args=[meeting_type.id]))
        assert response.status_code == 405

    def test_email_failure_is_a_warning(self, client, meeting_type, bookable_day):
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        with mock.patch("scheduling.emails.EmailMultiAlternatives.send", side_effect=OSError("smtp down")):
            response = post_json(client, url, booking_payload(bookable_day))
        assert response.status_code == 201
        assert response.json()["confirmation_sent"] is False
        assert response.json()["warnings"]


class TestBookingStatusApi:
    @pytest.fixture
    def booking_id(self, client, meeting_type, bookable_day):
        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        return post_json(client, url, booking_payload(bookable_day)).json()["booking"]["id"]

    def test_cancel_then_rebook(self, client, meeting_type, bookable_day, booking_id):
        response = client.post(reverse("scheduling:cancel_booking_api", args=[booking_id]))
        assert response.status_code == 200
        assert response.json()["booking"]["status"] == "cancelled"

        url = reverse("scheduling:create_booking_api", args=[meeting_type.id])
        assert post_json(client, url, booking_payload(bookable_day)).status_code == 201

    def test_cancel_twice(self, client, booking_id):
        url = reverse("scheduling:cancel_booking_api", args=[booking_id])
        assert client.post(url).status_code == 200
        response = client.post(url)
        assert response.status_code == 409
        assert response.json()["code"] == "invalid_status_transition"

    def test_mark_completed(self, client, booking_id):
        url = reverse("scheduling:booking_status_api", args=[booking_id])
        response = post_json(client, url, {"status": "completed"})
        assert response.status_code == 200
        assert Booking.objects.get(id=booking_id).status == BookingStatus.COMPLETED

    def test_status_must_be_string(self, client, booking_id):
        url = reverse("scheduling:booking_status_api", args=[booking_id])
        assert post_json(client, url, {"status": 3}).status_code == 400

    def test_unknown_booking(self, client):
        response = client.post(reverse("scheduling:cancel_booking_api", args=[555555]))
        assert response.status_code == 404


def test_timezones(client):
    response = client.get(reverse("scheduling:timezones_api"))
    assert response.status_code == 200
    body = response.json()
    assert "America/New_York" in [z["value"] for z in body["timezones"]["America"]]
    assert len(body["all"]) > 300
