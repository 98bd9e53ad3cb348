"""
Driver matching and assignment service.

This module handles:
    - Estimating each DD's outstanding workload
    - Selecting the least-loaded active DD
    - Atomically assigning rides (compare-and-set on ride status)
    - Running dispatch cycles per event
"""

from .load_estimator import estimated_wait_minutes, estimate_driver_loads
from .driver_selection import DriverCandidate, select_best_driver
from .dispatcher import (
    AssignmentResult,
    DispatchCycleReport,
    assign_ride,
    dispatch_next_ride,
    dispatch_event,
    dispatch_active_events,
    schedule_dispatch,
)

__all__ = [
    "estimated_wait_minutes",
    "estimate_driver_loads",
    "DriverCandidate",
    "select_best_driver",
    "AssignmentResult",
    "DispatchCycleReport",
    "assign_ride",
    "dispatch_next_ride",
    "dispatch_event",
    "dispatch_active_events",
    "schedule_dispatch",
]
