"""
Dispatch tuning knobs.

All values come from the ``RIDE_DISPATCH`` settings dict so they can be
overridden per deployment (see ``dispatch_backend.settings``). Services take
an optional ``config`` argument and fall back to ``get_dispatch_config()``.
"""

from dataclasses import dataclass, fields, replace
from datetime import timedelta

from django.conf import settings


@dataclass(frozen=True)
class DispatchConfig:
    # Priority rule
    class_weight: float = 10.0
    wait_weight: float = 0.5
    emergency_priority: float = 9999.0

    # Load estimation
    average_ride_minutes: float = 15.0

    # Store access
    max_batch_size: int = 500
    max_assign_attempts: int = 3

    # Cadences
    priority_refresh_seconds: int = 60
    monitor_interval_seconds: int = 60
    emergency_escalation_seconds: int = 120

    # Activity monitor
    toggle_threshold: int = 5
    toggle_window_minutes: int = 30
    prolonged_inactivity_minutes: int = 15

    task_max_retries: int = 5

    @property
    def toggle_window(self) -> timedelta:
        return timedelta(minutes=self.toggle_window_minutes)

    @property
    def prolonged_inactivity(self) -> timedelta:
        return timedelta(minutes=self.prolonged_inactivity_minutes)

    @classmethod
    def from_settings(cls) -> "DispatchConfig":
        """Build a config from ``settings.RIDE_DISPATCH`` (upper-case keys)."""
        raw = getattr(settings, "RIDE_DISPATCH", {}) or {}
        overrides = {}
        for field in fields(cls):
            key = field.name.upper()
            if key in raw and raw[key] is not None:
                overrides[field.name] = type(field.default)(raw[key])
        return replace(cls(), **overrides)


def get_dispatch_config() -> DispatchConfig:
    return DispatchConfig.from_settings()
