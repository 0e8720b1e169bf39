"""Realtime notification helpers for the infrastructure layer."""

from .manager import NotificationConnectionManager
from .publisher import WebsocketChannelPublisher, serialize_payload
from .scheduler import DelayedEmailScheduler

__all__ = [
    "DelayedEmailScheduler",
    "NotificationConnectionManager",
    "WebsocketChannelPublisher",
    "serialize_payload",
]
