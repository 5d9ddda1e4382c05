# Generated manually (initial migration).
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion

import scheduling.models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="MeetingType",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.TextField(blank=True, max_length=500)),
                (
                    "color",
                    models.CharField(
                        default="#006bff",
                        max_length=7,
                        validators=[
                            django.core.validators.RegexValidator(
                                "^#([0-9A-Fa-f]{3}){1,2}$", "Color must be a valid hex color code."
                            )
                        ],
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                (
                    "duration",
                    models.PositiveSmallIntegerField(
                        help_text="Slot length in minutes.",
                        validators=[
                            django.core.validators.MinValueValidator(5),
                            django.core.validators.MaxValueValidator(480),
                        ],
                    ),
                ),
                (
                    "buffer_minutes",
                    models.PositiveSmallIntegerField(
                        default=0, validators=[django.core.validators.MaxValueValidator(60)]
                    ),
                ),
                (
                    "available_days",
                    models.JSONField(
                        blank=True,
                        default=scheduling.models.default_available_days,
                        help_text="Weekday numbers, 0 = Sunday ... 6 = Saturday.",
                    ),
                ),
                (
                    "timezone",
                    models.CharField(
                        default="UTC",
                        help_text="Canonical timezone bookings are stored in.",
                        max_length=64,
                        validators=[scheduling.models.validate_timezone_name],
                    ),
                ),
                (
                    "max_bookings_per_day",
                    models.PositiveSmallIntegerField(
                        default=10, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "advance_booking_days",
                    models.PositiveSmallIntegerField(
                        default=30, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("minimum_notice_hours", models.PositiveSmallIntegerField(default=24)),
                ("total_bookings", models.PositiveIntegerField(default=0)),
                ("display_order", models.PositiveSmallIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="meeting_types",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["display_order", "name"],
            },
        ),
        migrations.CreateModel(
            name="AvailabilityWindow",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                (
                    "timezone",
                    models.CharField(
                        blank=True,
                        help_text="Leave blank to use the meeting type's timezone.",
                        max_length=64,
                        validators=[scheduling.models.validate_timezone_name],
                    ),
                ),
                ("position", models.PositiveSmallIntegerField(default=0)),
                (
                    "meeting_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="windows",
                        to="scheduling.meetingtype",
                    ),
                ),
            ],
            options={
                "ordering": ["position", "start_time"],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("canonical_date", models.DateField()),
                ("canonical_time", models.TimeField()),
                ("starts_at", models.DateTimeField()),
                ("duration", models.PositiveSmallIntegerField()),
                ("original_date", models.DateField()),
                ("original_time", models.TimeField()),
                ("requester_timezone", models.CharField(max_length=64)),
                ("guest_name", models.CharField(max_length=120)),
                ("guest_email", models.EmailField(max_length=254)),
                ("guest_phone", models.CharField(blank=True, max_length=32)),
                ("guest_notes", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                            ("no-show", "No-show"),
                        ],
                        default="confirmed",
                        max_length=16,
                    ),
                ),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "meeting_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="scheduling.meetingtype",
                    ),
                ),
            ],
            options={
                "ordering": ["starts_at", "created_at"],
            },
        ),
        migrations.AddIndex(
            model_name="booking",
            index=models.Index(fields=["meeting_type", "canonical_date"], name="idx_booking_type_date"),
        ),
        migrations.AddIndex(
            model_name="booking",
            index=models.Index(fields=["starts_at"], name="idx_booking_starts_at"),
        ),
        migrations.AddConstraint(
            model_name="booking",
            constraint=models.UniqueConstraint(
                condition=models.Q(("status", "cancelled"), _negated=True),
                fields=("meeting_type", "canonical_date", "canonical_time"),
                name="unique_active_booking_slot",
            ),
        ),
    ]
