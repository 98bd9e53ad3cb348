"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP/WebSocket layer.

Modules:
    - config: Dispatch tuning knobs read from settings.RIDE_DISPATCH
    - queue: Priority rule and event-wide queue ranking
    - matching: Driver load estimation, selection and atomic assignment
    - ride_management: Core ride lifecycle operations
    - monitoring: DD activity checks, emergency escalation, admin alerts
"""

# Expose commonly used functions at package level
from .config import DispatchConfig, get_dispatch_config
from .queue import (
    calculate_priority,
    rank_rides,
    queue_position,
    get_queue_position,
    get_event_queue,
)
from .matching import (
    assign_ride,
    select_best_driver,
    estimated_wait_minutes,
    dispatch_next_ride,
    dispatch_event,
    dispatch_active_events,
)
from .ride_management import (
    request_ride,
    cancel_ride,
    start_enroute,
    complete_ride,
    get_current_rider_ride,
    get_driver_active_rides,
    RideNotFoundError,
    RideNotAvailableError,
    ActiveRideExistsError,
    EventNotActiveError,
    InvalidRideRequestError,
    DriverAssignmentNotFoundError,
)
from .monitoring import (
    record_toggle,
    check_prolonged_inactivity,
    set_driver_active,
    monitor_active_events,
)

__all__ = [
    # Config
    "DispatchConfig",
    "get_dispatch_config",
    # Queue
    "calculate_priority",
    "rank_rides",
    "queue_position",
    "get_queue_position",
    "get_event_queue",
    # Matching
    "assign_ride",
    "select_best_driver",
    "estimated_wait_minutes",
    "dispatch_next_ride",
    "dispatch_event",
    "dispatch_active_events",
    # Ride management
    "request_ride",
    "cancel_ride",
    "start_enroute",
    "complete_ride",
    "get_current_rider_ride",
    "get_driver_active_rides",
    # Monitoring
    "record_toggle",
    "check_prolonged_inactivity",
    "set_driver_active",
    "monitor_active_events",
    # Exceptions
    "RideNotFoundError",
    "RideNotAvailableError",
    "ActiveRideExistsError",
    "EventNotActiveError",
    "InvalidRideRequestError",
    "DriverAssignmentNotFoundError",
]
