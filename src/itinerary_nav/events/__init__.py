"""Publish/subscribe event bus used by every other component."""

from .buffer import BufferedItem, EventBuffer
from .bus import EventBus, EventEnvelope, Subscription
from .namespace import NamespacedEmitter

__all__ = [
    "BufferedItem",
    "EventBuffer",
    "EventBus",
    "EventEnvelope",
    "NamespacedEmitter",
    "Subscription",
]
