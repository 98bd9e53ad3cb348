"""
Emergency ride handling.

An emergency request alerts the event's chapter admins right away. If the
ride is still waiting for a DD after EMERGENCY_ESCALATION_SECONDS, a second
(escalation) alert is raised, once.
"""

import logging
from datetime import datetime
from typing import Optional

from django.db import transaction
from django.utils import timezone

from accounts.services import get_display_name
from monitoring.models import AdminAlert, AlertKind
from rides.models import Ride, RideStatus
from .alerts import create_admin_alert

logger = logging.getLogger(__name__)

ADDRESS_DISPLAY_LIMIT = 50


def format_address(address: str) -> str:
    if not address:
        return "Unknown location"
    if len(address) <= ADDRESS_DISPLAY_LIMIT:
        return address
    return address[:ADDRESS_DISPLAY_LIMIT - 3] + "..."


def raise_emergency_alert(ride: Ride, now: Optional[datetime] = None) -> AdminAlert:
    event = ride.event
    rider_name = get_display_name(ride.rider_id)
    message = (
        "EMERGENCY RIDE REQUEST\n"
        f"Event: {event.name}\n"
        f"Rider: {rider_name}\n"
        f"Location: {format_address(ride.pickup_address)}\n"
        f"Reason: {ride.emergency_reason or 'Not specified'}"
    )
    logger.warning("Emergency ride %s requested by %s at event %s", ride.pk, rider_name, event.pk)
    return create_admin_alert(
        kind=AlertKind.EMERGENCY_REQUEST,
        chapter_id=event.chapter_id,
        event_id=event.pk,
        ride_id=ride.pk,
        message=message,
        now=now,
    )


def check_unassigned_emergency(ride_id: int, now: Optional[datetime] = None) -> Optional[AdminAlert]:
    """Escalate an emergency ride that is still queued. Returns None when nothing was raised."""
    now = now or timezone.now()

    with transaction.atomic():
        claimed = Ride.objects.filter(
            pk=ride_id,
            is_emergency=True,
            status=RideStatus.QUEUED,
            emergency_escalated_at__isnull=True,
        ).update(emergency_escalated_at=now)
        if not claimed:
            return None

        ride = Ride.objects.select_related('event').get(pk=ride_id)
        waited = int((now - ride.requested_at).total_seconds() // 60)
        return create_admin_alert(
            kind=AlertKind.EMERGENCY_UNASSIGNED,
            chapter_id=ride.event.chapter_id,
            event_id=ride.event_id,
            ride_id=ride.pk,
            message=(
                f"Emergency ride for {get_display_name(ride.rider_id)} has had no DD "
                f"for {waited} minute(s). Location: {format_address(ride.pickup_address)}"
            ),
            now=now,
        )
