"""Queue WebSocket consumer: live queue positions and admin alerts."""

import logging
from typing import Dict, Any, Optional

from channels.db import database_sync_to_async

from realtime.notifications import admin_group_name, queue_group_name, serialize_queue
from .base import BaseConsumer

logger = logging.getLogger(__name__)


class QueueConsumer(BaseConsumer):
    """
    WebSocket consumer for event queues.

    Client messages:
        subscribe_queue   {event_id}  - join event_<id>_queue; admins and DDs get the full
                                      queue, riders only their own position
        unsubscribe_queue {event_id}
        get_position      {ride_id}   - current position of one of your rides

    Admins additionally receive admin_alert messages for their chapter.
    """

    async def on_connect(self):
        self.subscribed_events = set()
        # Events whose full queue this user may see
        self.full_view_events = set()

        if self.role == "admin" and self.chapter_id:
            await self._join_group(admin_group_name(self.chapter_id))

        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "role": self.role,
            "message": "Queue connection established",
        })

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        if msg_type == "subscribe_queue":
            await self._handle_subscribe(data)
        elif msg_type == "unsubscribe_queue":
            await self._handle_unsubscribe(data)
        elif msg_type == "get_position":
            await self._handle_get_position(data)
        else:
            await self.send_error(f"Unknown message type: {msg_type}")

    # ---------------------- Message Handlers ----------------------

    async def _handle_subscribe(self, data: Dict[str, Any]):
        event_id = data.get("event_id")
        if event_id is None:
            await self.send_error("subscribe_queue requires event_id")
            return

        loaded = await self._load_queue(event_id)
        if loaded is None:
            await self.send_error("Event not found")
            return

        event_id, queue, full_view = loaded
        await self._join_group(queue_group_name(event_id))
        self.subscribed_events.add(event_id)
        if full_view:
            self.full_view_events.add(event_id)

        payload = {"event_id": event_id, "your_position": self._own_position(queue)}
        if full_view:
            payload["queue"] = queue
        await self.send_success("queue_subscribed", **payload)

    async def _handle_unsubscribe(self, data: Dict[str, Any]):
        event_id = _as_event_id(data.get("event_id"))
        if event_id not in self.subscribed_events:
            await self.send_error("Not subscribed to this queue")
            return

        await self._leave_group(queue_group_name(event_id))
        self.subscribed_events.discard(event_id)
        self.full_view_events.discard(event_id)
        await self.send_success("queue_unsubscribed", event_id=event_id)

    async def _handle_get_position(self, data: Dict[str, Any]):
        ride_id = data.get("ride_id")
        if ride_id is None:
            await self.send_error("get_position requires ride_id")
            return

        allowed, position = await self._ride_position(ride_id)
        if not allowed:
            await self.send_error("Ride not found")
            return

        await self.send_success("queue_position", ride_id=ride_id, position=position)

    # ---------------------- Group Event Handlers ----------------------

    async def queue_updated(self, event):
        event_id = event.get("event_id")
        queue = event.get("queue", [])
        message = {
            "type": "queue_updated",
            "event_id": event_id,
            "your_position": self._own_position(queue),
        }
        if event_id in self.full_view_events:
            message["queue"] = queue
        await self.send_json(message)

    async def admin_alert(self, event):
        await self.send_json({
            "type": "admin_alert",
            "alert": event.get("alert"),
        })

    # ---------------------- Helpers ----------------------

    def _own_position(self, queue) -> Optional[int]:
        for entry in queue:
            if entry["rider_id"] == self.user_id:
                return entry["position"]
        return None

    @database_sync_to_async
    def _load_queue(self, event_id):
        """(event_id, serialized queue, full_view) or None for an unknown event."""
        from events.models import Event
        from rides.permissions import can_view_event_queue
        from services.queue import get_event_queue

        event = Event.objects.filter(pk=_as_event_id(event_id)).first()
        if event is None:
            return None
        queue = serialize_queue(get_event_queue(event.pk))
        return event.pk, queue, can_view_event_queue(self.user, event)

    @database_sync_to_async
    def _ride_position(self, ride_id):
        from rides.models import Ride
        from services.queue import get_queue_position

        ride = Ride.objects.filter(pk=ride_id).select_related('event').first()
        if ride is None:
            return False, None
        is_chapter_admin = self.role == "admin" and ride.event.chapter_id == self.chapter_id
        if ride.rider_id != self.user_id and not is_chapter_admin:
            return False, None
        return True, get_queue_position(ride_id)


def _as_event_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
