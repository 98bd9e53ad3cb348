from django.db import models
from django.conf import settings
from django.utils import timezone


class AlertKind(models.TextChoices):
    DD_TOGGLE_ABUSE = 'dd_toggle_abuse', 'DD toggled inactive too often'
    DD_PROLONGED_INACTIVITY = 'dd_prolonged_inactivity', 'DD inactive too long'
    EMERGENCY_REQUEST = 'emergency_request', 'Emergency ride requested'
    EMERGENCY_UNASSIGNED = 'emergency_unassigned', 'Emergency ride still unassigned'


class AdminAlert(models.Model):
    """Operational alert shown to chapter admins. Only ever marked read, never deleted."""

    chapter = models.ForeignKey(
        'events.Chapter',
        on_delete=models.CASCADE,
        related_name='admin_alerts'
    )
    event = models.ForeignKey(
        'events.Event',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='admin_alerts'
    )

    kind = models.CharField(max_length=40, choices=AlertKind.choices)
    message = models.TextField()

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='admin_alerts'
    )
    ride = models.ForeignKey(
        'rides.Ride',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='admin_alerts'
    )

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'admin_alerts'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['chapter', 'is_read'], name='alert_chapter_read_idx'),
        ]

    def __str__(self):
        return f"[{self.kind}] {self.message[:60]}"
