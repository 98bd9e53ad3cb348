"""Celery tasks for DD activity monitoring."""

import logging

from celery import shared_task
from django.db import OperationalError

from rides.tasks import TASK_MAX_RETRIES

logger = logging.getLogger(__name__)


@shared_task(
    autoretry_for=(OperationalError,),
    retry_backoff=True,
    retry_jitter=True,
    max_retries=TASK_MAX_RETRIES,
)
def monitor_driver_activity_task():
    """
    Periodic (beat) activity check.

    Closes expired toggle windows and raises prolonged-inactivity alerts for
    every active event. Never changes rides or DD availability.
    """
    from services.monitoring import monitor_active_events

    report = monitor_active_events()
    return {'windows_reset': report.windows_reset, 'alerts': [alert.id for alert in report.alerts]}
