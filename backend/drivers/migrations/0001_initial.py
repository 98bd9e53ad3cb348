from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("events", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="DriverAssignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("car_description", models.CharField(blank=True, default="", max_length=120)),
                ("is_active", models.BooleanField(default=True)),
                ("last_activity_change_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("last_active_at", models.DateTimeField(blank=True, null=True)),
                ("last_inactive_at", models.DateTimeField(blank=True, null=True)),
                ("inactive_toggles", models.PositiveIntegerField(default=0)),
                ("toggle_window_started_at", models.DateTimeField(blank=True, null=True)),
                ("toggle_alert_sent", models.BooleanField(default=False)),
                ("inactivity_alerted_at", models.DateTimeField(blank=True, null=True)),
                ("total_rides_completed", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "driver",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dd_assignments",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="driver_assignments",
                        to="events.event",
                    ),
                ),
            ],
            options={
                "db_table": "driver_assignments",
                "ordering": ["event_id", "driver_id"],
            },
        ),
        migrations.AddConstraint(
            model_name="driverassignment",
            constraint=models.UniqueConstraint(fields=("event", "driver"), name="unique_event_driver"),
        ),
    ]
