"""
Queue service - priority rule and event-wide ranking.
"""

from .priority import (
    InvalidPriorityInputError,
    calculate_priority,
    priority_for_ride,
    wait_minutes_since,
)
from .ranking import (
    RankedRide,
    rank_rides,
    queue_position,
    fetch_rankable_rides,
    get_event_queue,
    get_queue_position,
    queue_stats,
    refresh_priorities,
)

__all__ = [
    "InvalidPriorityInputError",
    "calculate_priority",
    "priority_for_ride",
    "wait_minutes_since",
    "RankedRide",
    "rank_rides",
    "queue_position",
    "fetch_rankable_rides",
    "get_event_queue",
    "get_queue_position",
    "queue_stats",
    "refresh_priorities",
]
