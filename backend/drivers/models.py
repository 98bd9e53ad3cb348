from django.db import models
from django.utils import timezone
from django.conf import settings

User = settings.AUTH_USER_MODEL


class DriverAssignment(models.Model):
    """One DD's participation in one event, plus activity-monitoring state"""

    driver = models.ForeignKey(User, on_delete=models.CASCADE, related_name='dd_assignments')
    event = models.ForeignKey('events.Event', on_delete=models.CASCADE, related_name='driver_assignments')

    car_description = models.CharField(max_length=120, blank=True, default='')

    # Availability
    is_active = models.BooleanField(default=True)
    last_activity_change_at = models.DateTimeField(default=timezone.now)
    last_active_at = models.DateTimeField(null=True, blank=True)
    last_inactive_at = models.DateTimeField(null=True, blank=True)

    # Toggle-abuse window (only meaningful while toggle_window_started_at is set)
    inactive_toggles = models.PositiveIntegerField(default=0)
    toggle_window_started_at = models.DateTimeField(null=True, blank=True)
    toggle_alert_sent = models.BooleanField(default=False)

    # Set once per inactivity episode
    inactivity_alerted_at = models.DateTimeField(null=True, blank=True)

    total_rides_completed = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'driver_assignments'
        ordering = ['event_id', 'driver_id']
        constraints = [
            models.UniqueConstraint(
                fields=['event', 'driver'],
                name='unique_event_driver'
            )
        ]

    def __str__(self):
        state = "active" if self.is_active else "inactive"
        return f"DD {self.driver_id} @ event {self.event_id} ({state})"
