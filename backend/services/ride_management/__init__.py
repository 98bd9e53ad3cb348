"""
Ride management service - Core ride lifecycle operations.

This module handles:
    - Requesting rides (queue entry, emergency escalation)
    - Cancelling rides
    - Moving rides en route and completing them
    - Querying current rides
"""

from .ride_lifecycle import (
    RideResult,
    request_ride,
    cancel_ride,
    start_enroute,
    complete_ride,
    get_current_rider_ride,
    get_driver_active_rides,
)

from .exceptions import (
    RideNotFoundError,
    RideNotAvailableError,
    ActiveRideExistsError,
    EventNotActiveError,
    InvalidRideRequestError,
    DriverAssignmentNotFoundError,
)

__all__ = [
    # Lifecycle operations
    "RideResult",
    "request_ride",
    "cancel_ride",
    "start_enroute",
    "complete_ride",
    "get_current_rider_ride",
    "get_driver_active_rides",
    # Exceptions
    "RideNotFoundError",
    "RideNotAvailableError",
    "ActiveRideExistsError",
    "EventNotActiveError",
    "InvalidRideRequestError",
    "DriverAssignmentNotFoundError",
]
