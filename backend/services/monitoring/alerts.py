"""Admin alert store helpers. Alerts are append-only apart from the read flag."""

import logging
from datetime import datetime
from typing import List, Optional

from django.db import transaction
from django.utils import timezone

from monitoring.models import AdminAlert
from .exceptions import AlertNotFoundError

logger = logging.getLogger(__name__)


def create_admin_alert(
    kind: str,
    chapter_id: int,
    message: str,
    event_id: Optional[int] = None,
    driver_id: Optional[int] = None,
    ride_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AdminAlert:
    """Persist an alert and push it to the chapter's connected admins after commit."""
    alert = AdminAlert.objects.create(
        kind=kind,
        chapter_id=chapter_id,
        event_id=event_id,
        driver_id=driver_id,
        ride_id=ride_id,
        message=message,
        created_at=now or timezone.now(),
    )
    logger.warning("Admin alert %s [%s] for chapter %s: %s", alert.pk, kind, chapter_id, message)

    def _push():
        from realtime.notifications import notify_admin_alert
        notify_admin_alert(alert)

    transaction.on_commit(_push)
    return alert


def mark_alert_read(
    alert_id: int,
    chapter_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AdminAlert:
    """
    Mark an alert read. Marking an already-read alert keeps its original read_at.

    Raises:
        AlertNotFoundError: If the alert does not exist (or belongs to another chapter)
    """
    queryset = AdminAlert.objects.filter(pk=alert_id)
    if chapter_id is not None:
        queryset = queryset.filter(chapter_id=chapter_id)

    alert = queryset.first()
    if alert is None:
        raise AlertNotFoundError("Alert not found")

    if queryset.filter(is_read=False).update(is_read=True, read_at=now or timezone.now()):
        alert.refresh_from_db(fields=['is_read', 'read_at'])
    return alert


def list_unread_alerts(chapter_id: int, limit: int = 50) -> List[AdminAlert]:
    return list(
        AdminAlert.objects
        .filter(chapter_id=chapter_id, is_read=False)
        .select_related('driver', 'ride', 'event')
        .order_by('-created_at', '-pk')[:limit]
    )
