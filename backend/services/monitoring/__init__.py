"""
Monitoring service - DD activity checks, emergency escalation and admin alerts.
"""

from .alerts import create_admin_alert, mark_alert_read, list_unread_alerts
from .activity_monitor import (
    ToggleResult,
    MonitorReport,
    record_toggle,
    check_prolonged_inactivity,
    set_driver_active,
    reset_expired_toggle_windows,
    monitor_event_drivers,
    monitor_active_events,
)
from .emergency import raise_emergency_alert, check_unassigned_emergency, format_address
from .exceptions import AlertNotFoundError

__all__ = [
    "create_admin_alert",
    "mark_alert_read",
    "list_unread_alerts",
    "ToggleResult",
    "MonitorReport",
    "record_toggle",
    "check_prolonged_inactivity",
    "set_driver_active",
    "reset_expired_toggle_windows",
    "monitor_event_drivers",
    "monitor_active_events",
    "raise_emergency_alert",
    "check_unassigned_emergency",
    "format_address",
    "AlertNotFoundError",
]
