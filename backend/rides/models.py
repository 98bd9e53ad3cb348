from django.db import models
from django.conf import settings
from django.utils import timezone


class RideStatus(models.TextChoices):
    QUEUED = 'queued', 'Queued'
    ASSIGNED = 'assigned', 'Assigned'
    ENROUTE = 'enroute', 'En Route'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


# Rides that still compete for a place in the event queue
RANKABLE_STATUSES = (RideStatus.QUEUED, RideStatus.ASSIGNED)

# Rides that still occupy a driver (or will)
ACTIVE_STATUSES = (RideStatus.QUEUED, RideStatus.ASSIGNED, RideStatus.ENROUTE)

TERMINAL_STATUSES = (RideStatus.COMPLETED, RideStatus.CANCELLED)

ALLOWED_TRANSITIONS = {
    RideStatus.QUEUED: {RideStatus.ASSIGNED, RideStatus.CANCELLED},
    RideStatus.ASSIGNED: {RideStatus.ENROUTE, RideStatus.CANCELLED},
    RideStatus.ENROUTE: {RideStatus.COMPLETED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}


def can_transition(current, target) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def source_statuses(target):
    """Statuses a ride may legally move to ``target`` from."""
    return [status for status in ALLOWED_TRANSITIONS if can_transition(status, target)]


class Ride(models.Model):
    """One rider's request for a DD during an event"""

    # Foreign keys
    rider = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='rides'
    )

    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='driven_rides'
    )

    event = models.ForeignKey(
        'events.Event',
        on_delete=models.CASCADE,
        related_name='rides'
    )

    # Rider's own chapter, which may differ from the event's
    chapter = models.ForeignKey(
        'events.Chapter',
        on_delete=models.CASCADE,
        related_name='rides'
    )

    status = models.CharField(max_length=20, choices=RideStatus.choices, default=RideStatus.QUEUED)

    # Priority inputs snapshotted from the roster at request time
    class_rank = models.PositiveSmallIntegerField(default=0)
    is_same_chapter = models.BooleanField(default=True)
    priority = models.FloatField(default=0.0)

    # Emergency
    is_emergency = models.BooleanField(default=False)
    emergency_reason = models.TextField(blank=True, default='')
    emergency_escalated_at = models.DateTimeField(null=True, blank=True)

    pickup_address = models.TextField(blank=True, default='')
    dropoff_address = models.TextField(blank=True, default='')
    notes = models.TextField(blank=True, default='')

    estimated_wait_minutes = models.FloatField(null=True, blank=True)

    # Timestamps
    requested_at = models.DateTimeField(default=timezone.now)
    assigned_at = models.DateTimeField(null=True, blank=True)
    enroute_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    cancellation_reason = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'rides'
        ordering = ['-requested_at']
        indexes = [
            models.Index(fields=['event', 'status'], name='ride_event_status_idx'),
        ]

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def __str__(self):
        return f"Ride #{self.id} - {self.rider} - {self.status}"
