"""
Event-wide queue ordering.

Ranking is a pure function over a snapshot of ride rows: it never writes.
The ``fetch_*``/``get_*`` helpers below read a fresh snapshot from the
database and hand it to the pure functions.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from drivers.models import DriverAssignment
from rides.models import Ride, RideStatus, RANKABLE_STATUSES, ACTIVE_STATUSES
from services.config import DispatchConfig, get_dispatch_config
from .priority import priority_for_ride, wait_minutes_since

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedRide:
    ride: Ride
    priority: float
    position: int  # 1-indexed


def _sort_key(ride: Ride, priority: float):
    # Emergencies lead regardless of score; pk only separates identical timestamps
    return (not ride.is_emergency, -priority, ride.requested_at, ride.pk)


def rank_rides(
    rides: Iterable[Ride],
    now: datetime,
    config: Optional[DispatchConfig] = None,
) -> List[RankedRide]:
    """
    Order queued/assigned rides: emergencies first, then live priority (desc), then FIFO.

    Rides in any other status are ignored. Positions are distinct and start at 1.
    """
    config = config or get_dispatch_config()
    scored = [
        (ride, priority_for_ride(ride, now, config))
        for ride in rides
        if ride.status in RANKABLE_STATUSES
    ]
    scored.sort(key=lambda pair: _sort_key(*pair))
    return [
        RankedRide(ride=ride, priority=priority, position=index)
        for index, (ride, priority) in enumerate(scored, start=1)
    ]


def queue_position(
    ride_id: int,
    rides: Iterable[Ride],
    now: datetime,
    config: Optional[DispatchConfig] = None,
) -> Optional[int]:
    """1-indexed position of ``ride_id``, or None when it is not waiting in the queue."""
    for ranked in rank_rides(rides, now, config):
        if ranked.ride.pk == ride_id:
            return ranked.position
    return None


# ===================== Store-backed helpers =====================

def fetch_rankable_rides(event_id: int, config: Optional[DispatchConfig] = None) -> List[Ride]:
    """Fresh full read of the event's queued/assigned rides, in chunks."""
    config = config or get_dispatch_config()
    queryset = Ride.objects.filter(event_id=event_id, status__in=RANKABLE_STATUSES).order_by('pk')
    return list(queryset.iterator(chunk_size=config.max_batch_size))


def get_event_queue(
    event_id: int,
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> List[RankedRide]:
    config = config or get_dispatch_config()
    now = now or timezone.now()
    return rank_rides(fetch_rankable_rides(event_id, config), now, config)


def get_queue_position(
    ride_id: int,
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> Optional[int]:
    """Queue position of a ride; None for unknown rides or rides no longer waiting."""
    ride = Ride.objects.filter(pk=ride_id).only('event_id', 'status').first()
    if ride is None or ride.status not in RANKABLE_STATUSES:
        return None
    config = config or get_dispatch_config()
    now = now or timezone.now()
    return queue_position(ride_id, fetch_rankable_rides(ride.event_id, config), now, config)


def queue_stats(event_id: int, now: Optional[datetime] = None) -> Dict[str, object]:
    """Counts per status plus driver availability for an event's dashboard."""
    now = now or timezone.now()
    counts = Ride.objects.filter(event_id=event_id).aggregate(
        queued=Count('id', filter=Q(status=RideStatus.QUEUED)),
        assigned=Count('id', filter=Q(status=RideStatus.ASSIGNED)),
        enroute=Count('id', filter=Q(status=RideStatus.ENROUTE)),
        completed=Count('id', filter=Q(status=RideStatus.COMPLETED)),
        cancelled=Count('id', filter=Q(status=RideStatus.CANCELLED)),
        emergencies=Count('id', filter=Q(status__in=ACTIVE_STATUSES, is_emergency=True)),
    )

    waiting = Ride.objects.filter(event_id=event_id, status=RideStatus.QUEUED).values_list('requested_at', flat=True)
    waits = [wait_minutes_since(requested_at, now) for requested_at in waiting]

    drivers = DriverAssignment.objects.filter(event_id=event_id)
    return {
        **counts,
        'active_drivers': drivers.filter(is_active=True).count(),
        'total_drivers': drivers.count(),
        'average_wait_minutes': round(sum(waits) / len(waits), 1) if waits else 0.0,
    }


def refresh_priorities(
    event_id: int,
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> int:
    """
    Persist the live priority of every queued/assigned ride of an event.

    The stored column is a display snapshot; ranking never reads it. Writes
    are batched, and a failing batch aborts the whole pass so the next cycle
    starts again from a fresh read.
    """
    config = config or get_dispatch_config()
    now = now or timezone.now()

    changed = []
    for ranked in rank_rides(fetch_rankable_rides(event_id, config), now, config):
        if ranked.ride.priority != ranked.priority:
            ranked.ride.priority = ranked.priority
            changed.append(ranked.ride)

    if changed:
        with transaction.atomic():
            Ride.objects.bulk_update(changed, ['priority'], batch_size=config.max_batch_size)
        logger.debug("Refreshed priority of %s ride(s) for event %s", len(changed), event_id)
    return len(changed)
