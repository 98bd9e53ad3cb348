"""Realtime consumers for WebSocket communication."""

from .base import BaseConsumer
from .queue_consumer import QueueConsumer

__all__ = [
    "BaseConsumer",
    "QueueConsumer",
]
