"""
Ride assignment.

``assign_ride`` is the only place a ride gains a driver. It is a
compare-and-set: the driver's assignment row is locked and checked, then the
ride is updated only if it is still ``queued`` with no driver. Losing a race
is an ordinary result, not an exception.

The dispatch cycle repeatedly pairs the highest-priority queued ride with the
least-loaded active DD until one of them runs out.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.utils import timezone

from drivers.models import DriverAssignment
from events.models import Event
from rides.models import Ride, RideStatus, ACTIVE_STATUSES
from services.config import DispatchConfig, get_dispatch_config
from services.queue import rank_rides, refresh_priorities
from .driver_selection import select_best_driver

logger = logging.getLogger(__name__)

RIDE_NOT_FOUND = "ride_not_found"
RIDE_NOT_QUEUED = "ride_not_queued"
DRIVER_NOT_ACTIVE = "driver_not_active"
NO_DRIVER_AVAILABLE = "no_driver_available"
NO_QUEUED_RIDES = "no_queued_rides"

# Outcomes that mean the snapshot was stale; selection is retried
RETRYABLE_ERRORS = (RIDE_NOT_FOUND, RIDE_NOT_QUEUED, DRIVER_NOT_ACTIVE)


@dataclass
class AssignmentResult:
    """Result object for assignment attempts."""
    success: bool
    ride: Optional[Ride] = None
    message: str = ""
    error_code: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None


@dataclass
class DispatchCycleReport:
    event_id: int
    assigned_ride_ids: List[int] = field(default_factory=list)
    priorities_refreshed: int = 0
    stop_reason: Optional[str] = None

    @property
    def assigned_count(self) -> int:
        return len(self.assigned_ride_ids)


def assign_ride(
    ride_id: int,
    driver_id: int,
    now: Optional[datetime] = None,
    estimated_wait_minutes: Optional[float] = None,
) -> AssignmentResult:
    """
    Atomically give a queued ride to an active DD.

    Args:
        ride_id: Ride to assign
        driver_id: User id of the DD
        now: Assignment timestamp (defaults to timezone.now())
        estimated_wait_minutes: The DD's load at selection time, stored on the ride

    Returns:
        AssignmentResult; on failure error_code is one of
        ride_not_found, ride_not_queued, driver_not_active
    """
    now = now or timezone.now()

    with transaction.atomic():
        event_id = Ride.objects.filter(pk=ride_id).values_list('event_id', flat=True).first()
        if event_id is None:
            return AssignmentResult(
                success=False,
                message="Ride not found",
                error_code=RIDE_NOT_FOUND,
            )

        assignment = (
            DriverAssignment.objects
            .select_for_update()
            .filter(event_id=event_id, driver_id=driver_id)
            .first()
        )
        if assignment is None or not assignment.is_active:
            return AssignmentResult(
                success=False,
                message="Driver is not an active DD for this event",
                error_code=DRIVER_NOT_ACTIVE,
            )

        updated = Ride.objects.filter(
            pk=ride_id,
            status=RideStatus.QUEUED,
            driver__isnull=True,
        ).update(
            status=RideStatus.ASSIGNED,
            driver_id=driver_id,
            assigned_at=now,
            estimated_wait_minutes=estimated_wait_minutes,
        )
        if not updated:
            return AssignmentResult(
                success=False,
                message="Ride is no longer waiting for a driver",
                error_code=RIDE_NOT_QUEUED,
            )

        ride = Ride.objects.select_related('rider', 'driver', 'event').get(pk=ride_id)
        transaction.on_commit(lambda: _notify_assignment(ride))

    logger.info("Assigned ride %s to driver %s (event %s)", ride_id, driver_id, event_id)
    return AssignmentResult(
        success=True,
        ride=ride,
        message="Ride assigned",
        extra={"driver_id": driver_id, "estimated_wait_minutes": estimated_wait_minutes},
    )


def dispatch_next_ride(
    event_id: int,
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> AssignmentResult:
    """
    Assign the top-ranked queued ride of an event to the least-loaded active DD.

    Each attempt works from a fresh snapshot. Stale-snapshot failures are
    retried up to ``max_assign_attempts`` times.
    """
    config = config or get_dispatch_config()
    now = now or timezone.now()

    result = None
    attempts = max(config.max_assign_attempts, 1)
    for attempt in range(1, attempts + 1):
        rides = list(
            Ride.objects
            .filter(event_id=event_id, status__in=ACTIVE_STATUSES)
            .iterator(chunk_size=config.max_batch_size)
        )
        queued = [ride for ride in rides if ride.status == RideStatus.QUEUED]
        if not queued:
            return AssignmentResult(
                success=False,
                message="No queued rides",
                error_code=NO_QUEUED_RIDES,
            )

        top = rank_rides(queued, now, config)[0].ride
        assignments = DriverAssignment.objects.filter(event_id=event_id, is_active=True)
        candidate = select_best_driver(event_id, assignments, rides, config)
        if candidate is None:
            logger.info("No active DD for event %s; ride %s stays queued", event_id, top.pk)
            return AssignmentResult(
                success=False,
                ride=top,
                message="No driver available",
                error_code=NO_DRIVER_AVAILABLE,
            )

        result = assign_ride(
            top.pk,
            candidate.driver_id,
            now=now,
            estimated_wait_minutes=candidate.estimated_wait_minutes,
        )
        if result.success or result.error_code not in RETRYABLE_ERRORS:
            return result

        logger.info(
            "Assignment of ride %s to driver %s failed (%s), attempt %s/%s",
            top.pk, candidate.driver_id, result.error_code, attempt, attempts,
        )

    result.extra = {**(result.extra or {}), "attempts": attempts}
    return result


def dispatch_event(
    event_id: int,
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> DispatchCycleReport:
    """
    One dispatch cycle: refresh stored priorities, then assign until the
    event runs out of queued rides or active drivers.
    """
    config = config or get_dispatch_config()
    now = now or timezone.now()

    report = DispatchCycleReport(event_id=event_id)
    report.priorities_refreshed = refresh_priorities(event_id, now=now, config=config)

    while True:
        result = dispatch_next_ride(event_id, now=now, config=config)
        if not result.success:
            report.stop_reason = result.error_code
            break
        report.assigned_ride_ids.append(result.ride.pk)

    if report.assigned_ride_ids or report.priorities_refreshed:
        from realtime.notifications import notify_queue_changed
        notify_queue_changed(event_id, now=now)

    logger.info(
        "Dispatch cycle for event %s: assigned=%s refreshed=%s stop=%s",
        event_id, report.assigned_count, report.priorities_refreshed, report.stop_reason,
    )
    return report


def dispatch_active_events(
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> List[DispatchCycleReport]:
    """Run a dispatch cycle for every event that is currently active."""
    config = config or get_dispatch_config()
    now = now or timezone.now()

    event_ids = Event.objects.filter(status='active').values_list('id', flat=True)
    return [dispatch_event(event_id, now=now, config=config) for event_id in event_ids]


def schedule_dispatch(event_id: int) -> None:
    """Queue a dispatch cycle once the current transaction commits."""
    transaction.on_commit(lambda: _enqueue_dispatch(event_id))


def _enqueue_dispatch(event_id: int) -> None:
    from rides.tasks import dispatch_event_task
    try:
        dispatch_event_task.delay(event_id)
    except Exception:
        # The periodic cycle picks the event up anyway
        logger.exception("Failed to enqueue dispatch for event %s", event_id)


def _notify_assignment(ride: Ride) -> None:
    from realtime.notifications import notify_rider_event, notify_driver_event
    notify_rider_event('ride_assigned', ride, 'A DD has been assigned to your ride.')
    notify_driver_event('ride_assigned', ride, ride.driver_id, 'You have a new ride.')
