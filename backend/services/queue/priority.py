"""
Priority rule for waiting riders.

    emergency            -> EMERGENCY_PRIORITY (9999)
    same chapter         -> class_rank * CLASS_WEIGHT + wait_minutes * WAIT_WEIGHT
    different chapter    -> wait_minutes * WAIT_WEIGHT

Wait time is always derived from ``requested_at`` at evaluation time, so a
ride's priority keeps growing while it waits.
"""

from datetime import datetime
from typing import Optional

from services.config import DispatchConfig, get_dispatch_config


class InvalidPriorityInputError(ValueError):
    """Raised when the priority rule receives a class rank it cannot score."""
    pass


def wait_minutes_since(requested_at: datetime, now: datetime) -> float:
    """Minutes elapsed since ``requested_at``. Clock skew never yields a negative wait."""
    minutes = (now - requested_at).total_seconds() / 60.0
    return max(minutes, 0.0)


def calculate_priority(
    class_rank: int,
    wait_minutes: float,
    is_emergency: bool,
    is_same_group: bool,
    config: Optional[DispatchConfig] = None,
) -> float:
    """
    Score a ride. Higher scores are served first.

    Args:
        class_rank: Seniority of the rider (1 = freshman .. 4 = senior)
        wait_minutes: Minutes the rider has been waiting; negatives clamp to 0
        is_emergency: Emergency rides always win
        is_same_group: Whether the rider belongs to the event's chapter

    Raises:
        InvalidPriorityInputError: If class_rank is negative or not an integer
    """
    config = config or get_dispatch_config()

    if is_emergency:
        return float(config.emergency_priority)

    if isinstance(class_rank, bool) or not isinstance(class_rank, int):
        raise InvalidPriorityInputError(f"class_rank must be an integer, got {class_rank!r}")
    if class_rank < 0:
        raise InvalidPriorityInputError(f"class_rank must be non-negative, got {class_rank}")

    wait_minutes = max(float(wait_minutes), 0.0)
    wait_score = wait_minutes * config.wait_weight

    if is_same_group:
        return class_rank * config.class_weight + wait_score
    return wait_score


def priority_for_ride(ride, now: datetime, config: Optional[DispatchConfig] = None) -> float:
    """Current priority of a ride row, using its roster snapshot fields."""
    return calculate_priority(
        class_rank=ride.class_rank,
        wait_minutes=wait_minutes_since(ride.requested_at, now),
        is_emergency=ride.is_emergency,
        is_same_group=ride.is_same_chapter,
        config=config,
    )
