"""Pick the least-loaded active DD for an event."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from drivers.models import DriverAssignment
from services.config import DispatchConfig
from .load_estimator import estimate_driver_loads

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriverCandidate:
    driver_id: int
    assignment: DriverAssignment
    estimated_wait_minutes: float


def select_best_driver(
    event_id: int,
    candidate_assignments: Iterable[DriverAssignment],
    active_rides: Iterable,
    config: Optional[DispatchConfig] = None,
) -> Optional[DriverCandidate]:
    """
    Return the active assignment for ``event_id`` with the smallest estimated wait.

    Ties go to the lower driver id. Inactive drivers and assignments for
    other events are never returned; None means nobody can take a ride.
    """
    eligible = [
        assignment for assignment in candidate_assignments
        if assignment.event_id == event_id and assignment.is_active
    ]
    if not eligible:
        return None

    loads = estimate_driver_loads(eligible, list(active_rides), config)
    best = min(eligible, key=lambda a: (loads[a.driver_id], a.driver_id))
    return DriverCandidate(
        driver_id=best.driver_id,
        assignment=best,
        estimated_wait_minutes=loads[best.driver_id],
    )
