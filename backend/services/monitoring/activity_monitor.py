"""
DD activity monitoring.

Two advisory checks, neither of which ever changes a ride or a DD's
availability:

- toggle abuse: more than TOGGLE_THRESHOLD switches to inactive inside one
  TOGGLE_WINDOW_MINUTES window. The window is fixed, anchored at the first
  inactive toggle, and raises at most one alert.
- prolonged inactivity: a DD inactive for longer than
  PROLONGED_INACTIVITY_MINUTES during an active event. One alert per
  inactivity episode (episode = one value of ``last_inactive_at``).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from django.db import transaction
from django.utils import timezone

from accounts.services import get_display_name
from drivers.models import DriverAssignment
from events.models import Event
from monitoring.models import AdminAlert, AlertKind
from services.config import DispatchConfig, get_dispatch_config
from services.ride_management.exceptions import DriverAssignmentNotFoundError
from .alerts import create_admin_alert

logger = logging.getLogger(__name__)

TOGGLE_FIELDS = ['inactive_toggles', 'toggle_window_started_at', 'toggle_alert_sent']


@dataclass
class ToggleResult:
    assignment: DriverAssignment
    changed: bool
    alert: Optional[AdminAlert] = None


@dataclass
class MonitorReport:
    windows_reset: int = 0
    alerts: List[AdminAlert] = field(default_factory=list)


def record_toggle(
    assignment: DriverAssignment,
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> Optional[AdminAlert]:
    """
    Count one switch to inactive and alert once the window's threshold is exceeded.

    The row is locked and re-read, and ``assignment`` is updated in place with
    the persisted window state.
    """
    config = config or get_dispatch_config()
    now = now or timezone.now()

    alert = None
    with transaction.atomic():
        locked = (
            DriverAssignment.objects
            .select_for_update()
            .select_related('event')
            .get(pk=assignment.pk)
        )

        started = locked.toggle_window_started_at
        if started is None or now - started >= config.toggle_window:
            locked.toggle_window_started_at = now
            locked.inactive_toggles = 0
            locked.toggle_alert_sent = False

        locked.inactive_toggles += 1

        if locked.inactive_toggles > config.toggle_threshold and not locked.toggle_alert_sent:
            locked.toggle_alert_sent = True
            alert = create_admin_alert(
                kind=AlertKind.DD_TOGGLE_ABUSE,
                chapter_id=locked.event.chapter_id,
                event_id=locked.event_id,
                driver_id=locked.driver_id,
                message=(
                    f"{get_display_name(locked.driver_id)} has toggled inactive "
                    f"{locked.inactive_toggles} times in {config.toggle_window_minutes} minutes. "
                    "This may indicate an issue."
                ),
                now=now,
            )

        locked.save(update_fields=TOGGLE_FIELDS)

    for name in TOGGLE_FIELDS:
        setattr(assignment, name, getattr(locked, name))

    logger.info(
        "DD %s toggled inactive (%s in current window) at event %s",
        assignment.driver_id, assignment.inactive_toggles, assignment.event_id,
    )
    return alert


def check_prolonged_inactivity(
    assignment: DriverAssignment,
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> Optional[AdminAlert]:
    """Alert once per episode when an inactive DD stays off too long during an active event."""
    config = config or get_dispatch_config()
    now = now or timezone.now()

    if assignment.is_active or assignment.last_inactive_at is None:
        return None
    if assignment.inactivity_alerted_at is not None:
        return None
    if not assignment.event.is_active:
        return None

    inactive_for = now - assignment.last_inactive_at
    if inactive_for <= config.prolonged_inactivity:
        return None

    with transaction.atomic():
        claimed = DriverAssignment.objects.filter(
            pk=assignment.pk,
            is_active=False,
            last_inactive_at=assignment.last_inactive_at,
            inactivity_alerted_at__isnull=True,
        ).update(inactivity_alerted_at=now)
        if not claimed:
            return None

        assignment.inactivity_alerted_at = now
        minutes = round(inactive_for.total_seconds() / 60)
        return create_admin_alert(
            kind=AlertKind.DD_PROLONGED_INACTIVITY,
            chapter_id=assignment.event.chapter_id,
            event_id=assignment.event_id,
            driver_id=assignment.driver_id,
            message=(
                f"{get_display_name(assignment.driver_id)} has been inactive for "
                f"{minutes} minutes during an active shift."
            ),
            now=now,
        )


def set_driver_active(
    driver,
    event_id: int,
    is_active: bool,
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> ToggleResult:
    """
    Flip a DD's availability for an event.

    Going inactive counts toward the toggle-abuse window; going active starts
    a dispatch cycle once committed. Requesting the current state is a no-op.

    Raises:
        DriverAssignmentNotFoundError: If the user is not a DD for this event
    """
    config = config or get_dispatch_config()
    now = now or timezone.now()

    with transaction.atomic():
        assignment = (
            DriverAssignment.objects
            .select_for_update()
            .select_related('event')
            .filter(driver=driver, event_id=event_id)
            .first()
        )
        if assignment is None:
            raise DriverAssignmentNotFoundError("You are not a DD for this event")

        if assignment.is_active == is_active:
            return ToggleResult(assignment=assignment, changed=False)

        assignment.is_active = is_active
        assignment.last_activity_change_at = now
        # Each inactivity episode gets its own prolonged-inactivity alert
        assignment.inactivity_alerted_at = None
        update_fields = ['is_active', 'last_activity_change_at', 'inactivity_alerted_at']

        if is_active:
            assignment.last_active_at = now
            update_fields.append('last_active_at')
        else:
            assignment.last_inactive_at = now
            update_fields.append('last_inactive_at')

        assignment.save(update_fields=update_fields)
        logger.info("DD %s is now %s at event %s", driver.pk, "active" if is_active else "inactive", event_id)

        alert = None
        if is_active:
            from services.matching import schedule_dispatch
            schedule_dispatch(event_id)
        else:
            alert = record_toggle(assignment, now=now, config=config)

    return ToggleResult(assignment=assignment, changed=True, alert=alert)


def reset_expired_toggle_windows(
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> int:
    """Close every toggle window older than TOGGLE_WINDOW_MINUTES in one conditional update."""
    config = config or get_dispatch_config()
    now = now or timezone.now()
    return DriverAssignment.objects.filter(
        toggle_window_started_at__isnull=False,
        toggle_window_started_at__lte=now - config.toggle_window,
    ).update(
        inactive_toggles=0,
        toggle_window_started_at=None,
        toggle_alert_sent=False,
    )


def monitor_event_drivers(
    event_id: int,
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> List[AdminAlert]:
    config = config or get_dispatch_config()
    now = now or timezone.now()

    inactive = (
        DriverAssignment.objects
        .filter(event_id=event_id, is_active=False, inactivity_alerted_at__isnull=True)
        .select_related('event')
        .order_by('pk')
    )
    alerts = []
    for assignment in inactive.iterator(chunk_size=config.max_batch_size):
        alert = check_prolonged_inactivity(assignment, now=now, config=config)
        if alert is not None:
            alerts.append(alert)
    return alerts


def monitor_active_events(
    now: Optional[datetime] = None,
    config: Optional[DispatchConfig] = None,
) -> MonitorReport:
    """Periodic pass: close stale toggle windows, then check every active event's DDs."""
    config = config or get_dispatch_config()
    now = now or timezone.now()

    report = MonitorReport(windows_reset=reset_expired_toggle_windows(now=now, config=config))
    for event_id in Event.objects.filter(status='active').values_list('id', flat=True):
        report.alerts.extend(monitor_event_drivers(event_id, now=now, config=config))

    if report.alerts or report.windows_reset:
        logger.info(
            "Activity monitor: %s window(s) reset, %s alert(s) raised",
            report.windows_reset, len(report.alerts),
        )
    return report
