from django.urls import path

from .api import (
    booking_status_api,
    cancel_booking_api,
    create_booking_api,
    meeting_type_api,
    slots_api,
    timezones_api,
)


app_name = "scheduling"

urlpatterns = [
    path("api/meeting-types/<int:meeting_type_id>/", meeting_type_api, name="meeting_type_api"),
    path("api/meeting-types/<int:meeting_type_id>/slots/", slots_api, name="slots_api"),
    path("api/meeting-types/<int:meeting_type_id>/bookings/", create_booking_api, name="create_booking_api"),
    path("api/bookings/<int:booking_id>/cancel/", cancel_booking_api, name="cancel_booking_api"),
    path("api/bookings/<int:booking_id>/status/", booking_status_api, name="booking_status_api"),
    path("api/timezones/", timezones_api, name="timezones_api"),
]
