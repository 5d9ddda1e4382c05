from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("scheduling", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="booking",
            name="canonical_fold",
            field=models.PositiveSmallIntegerField(
                default=0,
                help_text="1 for the repeated wall time after a fall-back transition.",
            ),
        ),
        migrations.RemoveConstraint(
            model_name="booking",
            name="unique_active_booking_slot",
        ),
        migrations.AddConstraint(
            model_name="booking",
            constraint=models.UniqueConstraint(
                condition=models.Q(("status", "cancelled"), _negated=True),
                fields=("meeting_type", "canonical_date", "canonical_time", "canonical_fold"),
                name="unique_active_booking_slot",
            ),
        ),
    ]
