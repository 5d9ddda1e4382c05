from django.contrib import admin, messages
from django.db.models import Q
from django.utils import timezone
from django.utils.html import format_html

from .errors import SchedulingError
from .models import AvailabilityWindow, Booking, BookingStatus, MeetingType
from .rules import WEEKDAY_NAMES
from .services import update_booking_status
from .timeconv import format_time


admin.site.site_header = "Meeting Scheduling Admin"
admin.site.site_title = "Meeting Scheduling Admin"
admin.site.index_title = "Meeting Scheduling Controls"


STATUS_COLORS = {
    BookingStatus.CONFIRMED: "#2e7d32",
    BookingStatus.CANCELLED: "#9e9e9e",
    BookingStatus.COMPLETED: "#1565c0",
    BookingStatus.NO_SHOW: "#c62828",
}


class AvailabilityWindowInline(admin.TabularInline):
    model = AvailabilityWindow
    extra = 1
    fields = ("start_time", "end_time", "timezone", "position")


class UpcomingFilter(admin.SimpleListFilter):
    title = "when"
    parameter_name = "when"

    def lookups(self, request, model_admin):
        return (("upcoming", "Upcoming"), ("past", "Past"))

    def queryset(self, request, queryset):
        value = self.value()
        now = timezone.now()
        if value == "upcoming":
            return queryset.filter(starts_at__gte=now)
        if value == "past":
            return queryset.filter(starts_at__lt=now)
        return queryset


@admin.register(MeetingType)
class MeetingTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "duration", "buffer_minutes", "weekdays", "timezone", "is_active", "total_bookings")
    list_filter = ("is_active", "timezone")
    search_fields = ("name",)
    ordering = ("display_order", "name")
    readonly_fields = ("total_bookings", "created_at", "updated_at")
    inlines = [AvailabilityWindowInline]

    @admin.display(description="Days")
    def weekdays(self, obj: MeetingType) -> str:
        days = sorted(obj.available_days or [])
        return ", ".join(WEEKDAY_NAMES[d][:3] for d in days if 0 <= d <= 6) or "—"


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "guest_email", "meeting_type", "canonical_slot", "guest_slot", "status_badge", "created_at")
    list_filter = ("meeting_type", "status", UpcomingFilter)
    search_fields = ("guest_email", "guest_name")
    ordering = ("-starts_at",)
    list_select_related = ("meeting_type",)
    actions = ["mark_cancelled", "mark_completed", "mark_no_show"]
    readonly_fields = (
        "meeting_type",
        "canonical_date",
        "canonical_time",
        "canonical_fold",
        "starts_at",
        "duration",
        "original_date",
        "original_time",
        "requester_timezone",
        "status",
        "cancelled_at",
        "created_at",
        "updated_at",
    )

    @admin.display(description="Canonical slot", ordering="starts_at")
    def canonical_slot(self, obj: Booking) -> str:
        return f"{obj.canonical_date} {format_time(obj.canonical_time)} ({obj.meeting_type.timezone})"

    @admin.display(description="Guest slot")
    def guest_slot(self, obj: Booking) -> str:
        return f"{obj.original_date} {format_time(obj.original_time)} ({obj.requester_timezone})"

    @admin.display(description="Status", ordering="status")
    def status_badge(self, obj: Booking) -> str:
        return format_html(
            '<span style="padding:3px 8px;border-radius:999px;'
            "border: 1px solid {};"
            "color: {};"
            'font-weight: 600; font-size: 11px; letter-spacing: 0.3px;">{}</span>',
            STATUS_COLORS.get(obj.status, "#7e8571"),
            STATUS_COLORS.get(obj.status, "#7e8571"),
            obj.get_status_display(),
        )

    def has_add_permission(self, request):
        # Bookings are only created through admission.
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def _apply_status(self, request, queryset, status: str) -> None:
        updated = 0
        for booking_id in queryset.filter(~Q(status=status)).values_list("id", flat=True):
            try:
                update_booking_status(booking_id, status)
            except SchedulingError as exc:
                self.message_user(request, f"Booking {booking_id}: {exc}", level=messages.WARNING)
            else:
                updated += 1
        if updated:
            self.message_user(request, f"{updated} booking(s) marked {status}.", level=messages.SUCCESS)

    @admin.action(description="Cancel selected bookings")
    def mark_cancelled(self, request, queryset):
        self._apply_status(request, queryset, BookingStatus.CANCELLED)

    @admin.action(description="Mark selected bookings completed")
    def mark_completed(self, request, queryset):
        self._apply_status(request, queryset, BookingStatus.COMPLETED)

    @admin.action(description="Mark selected bookings no-show")
    def mark_no_show(self, request, queryset):
        self._apply_status(request, queryset, BookingStatus.NO_SHOW)
