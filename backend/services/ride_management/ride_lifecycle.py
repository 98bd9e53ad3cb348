"""
Core ride lifecycle operations.

This module contains all the business logic for requesting, cancelling and
driving rides, kept out of the views layer for testability and reuse.
Every status change is a conditional update on the current status, so a
ride that lost a race (e.g. cancelled while being assigned) is never
resurrected.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List
from dataclasses import dataclass

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import User
from accounts.services import get_roster_entry
from drivers.models import DriverAssignment
from events.models import Event
from rides.models import Ride, RideStatus, ACTIVE_STATUSES, source_statuses
from services.config import DispatchConfig, get_dispatch_config
from services.matching import schedule_dispatch
from services.queue import calculate_priority, get_queue_position
from .exceptions import (
    RideNotFoundError,
    RideNotAvailableError,
    ActiveRideExistsError,
    EventNotActiveError,
    InvalidRideRequestError,
)

logger = logging.getLogger(__name__)

VALID_CLASS_YEARS = (1, 2, 3, 4)


@dataclass
class RideResult:
    """Result object for ride operations."""
    success: bool
    ride: Optional[Ride] = None
    message: str = ""
    error_code: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None


# ===================== Rider Operations =====================

def check_active_ride(user) -> Optional[Ride]:
    """Check if user has a ride that is still in progress."""
    return Ride.objects.filter(rider=user, status__in=ACTIVE_STATUSES).first()


@transaction.atomic
def request_ride(
    rider,
    event_id: int,
    pickup_address: str = "",
    dropoff_address: str = "",
    notes: str = "",
    is_emergency: bool = False,
    emergency_reason: str = "",
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> RideResult:
    """
    Put a rider into an event's queue.

    Args:
        rider: User model instance (rider)
        event_id: Event the ride is requested for
        pickup_address: Human-readable pickup address
        dropoff_address: Human-readable dropoff address
        notes: Free text for the DD
        is_emergency: Emergency rides jump the queue and alert chapter admins
        emergency_reason: Why the ride is an emergency

    Returns:
        RideResult with the created ride and extra["queue_position"]

    Raises:
        EventNotActiveError: If the event does not exist or is not active
        InvalidRideRequestError: If the rider's roster data is unusable
        ActiveRideExistsError: If the rider already has an active ride
    """
    config = config or get_dispatch_config()
    now = now or timezone.now()

    event = Event.objects.select_related('chapter').filter(pk=event_id).first()
    if event is None or not event.is_active:
        raise EventNotActiveError("Rides can only be requested for an active event")

    entry = get_roster_entry(rider)
    if entry.chapter_id is None:
        raise InvalidRideRequestError("Rider is not a member of any chapter")
    if entry.class_year not in VALID_CLASS_YEARS:
        raise InvalidRideRequestError(f"Invalid class year: {entry.class_year}")

    # Serialise concurrent requests from the same rider
    User.objects.select_for_update().filter(pk=rider.pk).first()
    if check_active_ride(rider):
        raise ActiveRideExistsError("You already have an active ride request")

    is_same_chapter = entry.chapter_id == event.chapter_id
    priority = calculate_priority(
        class_rank=entry.class_year,
        wait_minutes=0,
        is_emergency=is_emergency,
        is_same_group=is_same_chapter,
        config=config,
    )

    ride = Ride.objects.create(
        rider=rider,
        event=event,
        chapter_id=entry.chapter_id,
        status=RideStatus.QUEUED,
        class_rank=entry.class_year,
        is_same_chapter=is_same_chapter,
        priority=priority,
        is_emergency=is_emergency,
        emergency_reason=emergency_reason if is_emergency else "",
        pickup_address=pickup_address,
        dropoff_address=dropoff_address,
        notes=notes,
        requested_at=now,
    )
    logger.info(
        "Ride %s requested by %s for event %s (priority %.1f)",
        ride.pk, rider.pk, event.pk, priority,
    )

    if is_emergency:
        from services.monitoring import raise_emergency_alert
        raise_emergency_alert(ride, now=now)
        _schedule_emergency_check(ride.pk, config)

    schedule_dispatch(event.pk)
    _queue_changed_on_commit(event.pk)

    position = get_queue_position(ride.pk, now=now, config=config)
    message = "Emergency ride requested. Admins have been alerted." if is_emergency else "You are in the queue."
    return RideResult(
        success=True,
        ride=ride,
        message=message,
        extra={"queue_position": position},
    )


def get_current_rider_ride(rider) -> Optional[Ride]:
    """Get rider's current active ride."""
    return (
        Ride.objects
        .filter(rider=rider, status__in=ACTIVE_STATUSES)
        .select_related('driver', 'event')
        .order_by('-requested_at')
        .first()
    )


@transaction.atomic
def cancel_ride(
    ride_id: int,
    rider=None,
    reason: str = "No reason provided",
    now: Optional[datetime] = None,
) -> RideResult:
    """
    Cancel a queued or assigned ride.

    Args:
        ride_id: ID of the ride to cancel
        rider: When given, the ride must belong to this user
        reason: Cancellation reason

    Returns:
        RideResult with extra["was_assigned"]
    """
    now = now or timezone.now()

    queryset = Ride.objects.filter(pk=ride_id)
    if rider is not None:
        queryset = queryset.filter(rider=rider)
    ride = queryset.first()
    if ride is None:
        raise RideNotFoundError("Ride not found")

    updated = Ride.objects.filter(
        pk=ride_id,
        status__in=source_statuses(RideStatus.CANCELLED),
    ).update(
        status=RideStatus.CANCELLED,
        cancelled_at=now,
        cancellation_reason=reason,
    )
    if not updated:
        ride.refresh_from_db(fields=['status'])
        raise RideNotAvailableError(f"Cannot cancel - ride is already {ride.status}")

    ride.refresh_from_db()
    had_driver = ride.driver_id is not None
    logger.info("Ride %s cancelled (had driver: %s)", ride.pk, had_driver)

    def _notify():
        from realtime.notifications import notify_driver_event, notify_rider_event
        notify_rider_event('ride_cancelled', ride, 'Your ride has been cancelled.')
        if had_driver:
            notify_driver_event('ride_cancelled', ride, ride.driver_id, 'Rider cancelled this ride.')

    transaction.on_commit(_notify)
    _queue_changed_on_commit(ride.event_id)
    if had_driver:
        schedule_dispatch(ride.event_id)

    return RideResult(
        success=True,
        ride=ride,
        message="Ride cancelled successfully",
        extra={"was_assigned": had_driver},
    )


# ===================== Driver Operations =====================

@transaction.atomic
def start_enroute(driver, ride_id: int, now: Optional[datetime] = None) -> RideResult:
    """
    Mark an assigned ride as picked up / on the way.

    Args:
        driver: User model instance (DD the ride is assigned to)
        ride_id: ID of the ride
    """
    now = now or timezone.now()
    ride = _transition_driver_ride(
        driver, ride_id, RideStatus.ENROUTE,
        enroute_at=now,
    )

    transaction.on_commit(lambda: _notify_ride_parties(
        ride, 'ride_enroute', 'Your DD is on the way.', 'Ride marked en route.'
    ))
    _queue_changed_on_commit(ride.event_id)

    return RideResult(success=True, ride=ride, message="Ride is en route")


@transaction.atomic
def complete_ride(driver, ride_id: int, now: Optional[datetime] = None) -> RideResult:
    """
    Complete a ride - called by the DD once the rider has been dropped off.

    Args:
        driver: User model instance (DD the ride is assigned to)
        ride_id: ID of the ride to complete
    """
    now = now or timezone.now()
    ride = _transition_driver_ride(
        driver, ride_id, RideStatus.COMPLETED,
        completed_at=now,
    )

    DriverAssignment.objects.filter(event_id=ride.event_id, driver=driver).update(
        total_rides_completed=F('total_rides_completed') + 1
    )

    transaction.on_commit(lambda: _notify_ride_parties(
        ride, 'ride_completed', 'Your ride has been completed. Get home safe!', 'Ride completed.'
    ))
    schedule_dispatch(ride.event_id)

    return RideResult(success=True, ride=ride, message="Ride completed successfully")


def get_driver_active_rides(driver, event_id: Optional[int] = None) -> List[Ride]:
    """Rides currently held by a DD (assigned or en route), oldest assignment first."""
    queryset = Ride.objects.filter(
        driver=driver,
        status__in=[RideStatus.ASSIGNED, RideStatus.ENROUTE],
    )
    if event_id is not None:
        queryset = queryset.filter(event_id=event_id)
    return list(queryset.select_related('rider', 'event').order_by('assigned_at', 'pk'))


# ===================== Helper Functions =====================

def _transition_driver_ride(driver, ride_id: int, target: str, **timestamps) -> Ride:
    """Conditionally move a DD's ride to ``target``; raise if it is not theirs or not eligible."""
    updated = Ride.objects.filter(
        pk=ride_id,
        driver=driver,
        status__in=source_statuses(target),
    ).update(status=target, **timestamps)

    if not updated:
        ride = Ride.objects.filter(pk=ride_id, driver=driver).only('status').first()
        if ride is None:
            raise RideNotFoundError("Ride not found or not assigned to you")
        if ride.is_terminal:
            raise RideNotAvailableError(f"Ride is already {ride.status}")
        raise RideNotAvailableError(f"Cannot move ride from {ride.status} to {target}")

    ride = Ride.objects.select_related('rider', 'driver', 'event').get(pk=ride_id)
    logger.info("Ride %s is now %s", ride.pk, target)
    return ride


def _notify_ride_parties(ride: Ride, event_type: str, rider_message: str, driver_message: str):
    from realtime.notifications import notify_driver_event, notify_rider_event
    notify_rider_event(event_type, ride, rider_message)
    notify_driver_event(event_type, ride, ride.driver_id, driver_message)


def _queue_changed_on_commit(event_id: int):
    from realtime.notifications import notify_queue_changed
    transaction.on_commit(lambda: notify_queue_changed(event_id))


def _schedule_emergency_check(ride_id: int, config: DispatchConfig):
    from rides.tasks import check_emergency_assignment_task

    def _enqueue():
        try:
            check_emergency_assignment_task.apply_async(
                (ride_id,), countdown=config.emergency_escalation_seconds
            )
        except Exception:
            logger.exception("Failed to schedule emergency escalation for ride %s", ride_id)

    transaction.on_commit(_enqueue)
