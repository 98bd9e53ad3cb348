"""Custom exceptions for the monitoring service."""


class AlertNotFoundError(Exception):
    """Raised when an admin alert cannot be found for the caller's chapter."""
    pass
