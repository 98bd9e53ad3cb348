"""
Pull-based change feed over an event's queue.

``queue_snapshots`` polls the store and yields a new snapshot only when the
ordered (ride, status, driver) fingerprint changes. It is lazy and keeps no
state outside the generator, so calling it again simply starts over from a
fresh read.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from django.utils import timezone

from services.config import DispatchConfig
from services.queue import RankedRide, get_event_queue

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class QueueSnapshot:
    event_id: int
    taken_at: datetime
    rides: List[RankedRide]
    fingerprint: Tuple[Tuple[int, str, Optional[int]], ...]

    def position_of(self, ride_id: int) -> Optional[int]:
        for ranked in self.rides:
            if ranked.ride.pk == ride_id:
                return ranked.position
        return None


def queue_fingerprint(ranked_rides: Iterable[RankedRide]) -> Tuple[Tuple[int, str, Optional[int]], ...]:
    return tuple((r.ride.pk, r.ride.status, r.ride.driver_id) for r in ranked_rides)


def queue_snapshots(
    event_id: int,
    poll_interval: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
    max_snapshots: Optional[int] = None,
    clock: Callable[[], datetime] = timezone.now,
    config: Optional[DispatchConfig] = None,
) -> Iterator[QueueSnapshot]:
    """
    Yield the ranked queue of an event each time it changes.

    The first poll always yields. Between polls ``sleep(poll_interval)`` is
    called; pass a custom ``sleep`` to drive the feed from tests or an event
    loop. Stops after ``max_snapshots`` snapshots when given.
    """
    last = None
    emitted = 0
    while True:
        now = clock()
        ranked = get_event_queue(event_id, now=now, config=config)
        fingerprint = queue_fingerprint(ranked)

        if fingerprint != last:
            last = fingerprint
            emitted += 1
            logger.debug("Queue for event %s changed (%s rides)", event_id, len(ranked))
            yield QueueSnapshot(event_id=event_id, taken_at=now, rides=ranked, fingerprint=fingerprint)
            if max_snapshots is not None and emitted >= max_snapshots:
                return

        sleep(poll_interval)


def ride_position_updates(ride_id: int, snapshots: Iterable[QueueSnapshot]) -> Iterator[Optional[int]]:
    """
    Reduce a snapshot stream to one ride's position changes.

    Repeated positions are dropped. ``None`` means the ride has left the queue
    (en route or finished) and ends the stream.
    """
    previous = _UNSET
    for snapshot in snapshots:
        position = snapshot.position_of(ride_id)
        if position == previous:
            continue
        previous = position
        yield position
        if position is None:
            return
