"""WebSocket URL routing for the realtime app."""

from django.urls import re_path

from .consumers.queue_consumer import QueueConsumer

websocket_urlpatterns = [
    # Queue positions, ride events and admin alerts
    # URL: ws://localhost:8000/ws/queue/
    re_path(
        r"ws/queue/$",
        QueueConsumer.as_asgi(),
        name="queue-ws"
    ),
]
