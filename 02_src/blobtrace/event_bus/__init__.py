"""EventBus module."""

from .dispatcher import StorageEventDispatcher
from .event_bus import EventBus, IEventBus, TopicHandler

__all__ = ["EventBus", "IEventBus", "StorageEventDispatcher", "TopicHandler"]
