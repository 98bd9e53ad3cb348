"""
Notification helpers for sending WebSocket messages to connected clients.

Groups:
    event_<event_id>_queue   - everyone watching an event's queue
    user_<user_id>           - a rider's personal group
    driver_<user_id>         - a DD's personal group
    chapter_<id>_admins      - chapter admins (alerts)

Every helper returns False instead of raising when delivery is impossible;
a failed push must never undo the state change that triggered it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Any, List

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def queue_group_name(event_id: int) -> str:
    return f"event_{event_id}_queue"


def admin_group_name(chapter_id: int) -> str:
    return f"chapter_{chapter_id}_admins"


def _group_send(group: str, payload: Dict[str, Any]) -> bool:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False

    try:
        logger.debug("WS -> %s: %s", group, payload)
        async_to_sync(channel_layer.group_send)(group, payload)
    except Exception:
        logger.exception("Failed to send %s to %s", payload.get("type"), group)
        return False
    return True


# ---------------------- Queue Notifications ----------------------

def serialize_queue(ranked_rides) -> List[Dict[str, Any]]:
    """Compact, JSON-safe view of a ranked queue."""
    return [
        {
            "ride_id": ranked.ride.pk,
            "rider_id": ranked.ride.rider_id,
            "position": ranked.position,
            "priority": round(ranked.priority, 2),
            "status": ranked.ride.status,
            "driver_id": ranked.ride.driver_id,
            "is_emergency": ranked.ride.is_emergency,
        }
        for ranked in ranked_rides
    ]


def notify_queue_changed(event_id: int, now: datetime | None = None) -> bool:
    """Push the freshly ranked queue of an event to its subscribers."""
    from services.queue import get_event_queue

    try:
        queue = serialize_queue(get_event_queue(event_id, now=now))
    except Exception:
        logger.exception("Failed to build queue snapshot for event %s", event_id)
        return False

    return _group_send(queue_group_name(event_id), {
        "type": "queue_updated",
        "event_id": event_id,
        "queue": queue,
    })


# ---------------------- Ride Event Notifications ----------------------

def _ride_payload(event_type: str, ride, message: str, extra: Dict[str, Any] | None) -> Dict[str, Any]:
    from rides.serializers import RideSerializer

    payload = {
        "type": event_type,
        "ride_id": ride.id,
        "status": ride.status,
        "ride_data": RideSerializer(ride).data,
        **(extra or {}),
    }
    if message:
        payload["message"] = message
    return payload


def notify_driver_event(
    event_type: str,
    ride,
    driver_id: int | None,
    message: str = "",
    extra: Dict[str, Any] = None,
) -> bool:
    """
    Send an event to a specific DD using their personal group: driver_<driver_id>

    Args:
        event_type: Handler name in consumer (ride_assigned, ride_cancelled)
        ride: Ride model instance
        driver_id: Target DD's user ID
        message: Optional message to include
        extra: Additional payload data

    Returns:
        True if sent successfully, False otherwise
    """
    if not driver_id:
        return False
    payload = _ride_payload(event_type, ride, message, {"driver_id": driver_id, **(extra or {})})
    return _group_send(f"driver_{driver_id}", payload)


def notify_rider_event(
    event_type: str,
    ride,
    message: str = "",
    extra: Dict[str, Any] = None,
) -> bool:
    """
    Send ride-related event to the rider through: user_<rider_id>

    Args:
        event_type: Handler name in consumer (ride_assigned, ride_enroute, ride_completed, ride_cancelled)
        ride: Ride model instance
        message: Optional message to include
        extra: Additional payload data

    Returns:
        True if sent successfully, False otherwise
    """
    if not ride.rider_id:
        return False
    payload = _ride_payload(event_type, ride, message, extra)
    return _group_send(f"user_{ride.rider_id}", payload)


# ---------------------- Admin Notifications ----------------------

def notify_admin_alert(alert) -> bool:
    from monitoring.serializers import AdminAlertSerializer

    return _group_send(admin_group_name(alert.chapter_id), {
        "type": "admin_alert",
        "alert": AdminAlertSerializer(alert).data,
    })
