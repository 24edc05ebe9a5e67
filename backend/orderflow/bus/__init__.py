"""Event bus abstraction and the in-process backend."""

from .base import EventBus, Message, Subscription
from .memory import InMemoryEventBus, InMemorySubscription

__all__ = [
    "EventBus",
    "Message",
    "Subscription",
    "InMemoryEventBus",
    "InMemorySubscription",
]
