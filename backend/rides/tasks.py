"""Celery tasks for ride dispatching."""

import logging

from celery import shared_task
from django.conf import settings
from django.db import OperationalError

logger = logging.getLogger(__name__)

TASK_MAX_RETRIES = int(getattr(settings, 'RIDE_DISPATCH', {}).get('TASK_MAX_RETRIES', 5))

# Transient store failures are retried with jittered exponential backoff;
# every task recomputes from a fresh read, so a retry is always safe.
RETRY_OPTIONS = dict(
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    retry_jitter=True,
    max_retries=TASK_MAX_RETRIES,
)


@shared_task(**RETRY_OPTIONS)
def dispatch_event_task(event_id: int):
    """
    Run one dispatch cycle for an event.

    Enqueued after a ride is requested or cancelled, a DD becomes active, or
    a ride completes.
    """
    from services.matching import dispatch_event

    report = dispatch_event(event_id)
    return {
        'event_id': event_id,
        'assigned': report.assigned_ride_ids,
        'stop_reason': report.stop_reason,
    }


@shared_task(**RETRY_OPTIONS)
def dispatch_active_events_task():
    """Periodic (beat) dispatch cycle over every active event."""
    from services.matching import dispatch_active_events

    reports = dispatch_active_events()
    assigned = sum(report.assigned_count for report in reports)
    logger.info("Periodic dispatch: %s event(s), %s ride(s) assigned", len(reports), assigned)
    return {'events': len(reports), 'assigned': assigned}


@shared_task(**RETRY_OPTIONS)
def check_emergency_assignment_task(ride_id: int):
    """
    Escalate an emergency ride that still has no DD.

    Scheduled EMERGENCY_ESCALATION_SECONDS after the emergency request.
    """
    from services.monitoring import check_unassigned_emergency

    alert = check_unassigned_emergency(ride_id)
    if alert is not None:
        logger.warning("Emergency ride %s escalated (alert %s)", ride_id, alert.id)
    return alert.id if alert else None
