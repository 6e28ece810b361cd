"""memfile — in-process file content cache with change, refresh and expiry policies."""

from memfile.cache.entry import ArmedPolicy, CacheEntry, PolicyKind
from memfile.cache.stats import CacheStats
from memfile.config.schema import CacheOptions
from memfile.core import FileCache
from memfile.errors.exceptions import (
    ConfigurationError,
    MemfileError,
    ReadFailure,
    SchedulerUnavailable,
    StatFailure,
)
from memfile.events.bus import CacheEvent, EventBus, EventType
from memfile.events.log import EventLog

__version__ = "0.1.0"

__all__ = [
    "ArmedPolicy",
    "CacheEntry",
    "CacheEvent",
    "CacheOptions",
    "CacheStats",
    "ConfigurationError",
    "EventBus",
    "EventLog",
    "EventType",
    "FileCache",
    "MemfileError",
    "PolicyKind",
    "ReadFailure",
    "SchedulerUnavailable",
    "StatFailure",
]
