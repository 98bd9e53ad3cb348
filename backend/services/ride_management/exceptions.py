"""Custom exceptions for ride management."""


class RideNotFoundError(Exception):
    """Raised when a ride cannot be found (or does not belong to the caller)."""
    pass


class RideNotAvailableError(Exception):
    """Raised when a ride is not in an available state for the operation."""
    pass


class ActiveRideExistsError(Exception):
    """Raised when user already has an active ride."""
    pass


class EventNotActiveError(Exception):
    """Raised when a ride is requested for an event that is not running."""
    pass


class InvalidRideRequestError(ValueError):
    """Raised when the rider's roster data cannot be used to queue a ride."""
    pass


class DriverAssignmentNotFoundError(Exception):
    """Raised when a user is not a DD for the given event."""
    pass
