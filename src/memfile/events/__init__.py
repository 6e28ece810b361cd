"""Events — lifecycle notifications and their subscribers."""

from memfile.events.bus import CacheEvent, EventBus, EventType, Handler
from memfile.events.log import EventLog

__all__ = [
    "CacheEvent",
    "EventBus",
    "EventLog",
    "EventType",
    "Handler",
]
