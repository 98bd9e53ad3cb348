"""Driver workload estimate: outstanding rides times the average ride length."""

from collections import Counter
from typing import Dict, Iterable, Optional

from rides.models import ACTIVE_STATUSES
from services.config import DispatchConfig, get_dispatch_config


def estimated_wait_minutes(
    assignment,
    active_rides: Iterable,
    config: Optional[DispatchConfig] = None,
) -> float:
    """Minutes until this driver clears every queued/assigned/enroute ride they hold."""
    config = config or get_dispatch_config()
    count = sum(
        1 for ride in active_rides
        if ride.driver_id == assignment.driver_id and ride.status in ACTIVE_STATUSES
    )
    return count * config.average_ride_minutes


def estimate_driver_loads(
    assignments: Iterable,
    active_rides: Iterable,
    config: Optional[DispatchConfig] = None,
) -> Dict[int, float]:
    """Same estimate for many drivers in one pass, keyed by driver id."""
    config = config or get_dispatch_config()
    counts = Counter(
        ride.driver_id for ride in active_rides
        if ride.driver_id is not None and ride.status in ACTIVE_STATUSES
    )
    return {
        assignment.driver_id: counts.get(assignment.driver_id, 0) * config.average_ride_minutes
        for assignment in assignments
    }
