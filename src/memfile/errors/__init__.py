"""Error handling — exception hierarchy for cache failures."""

from memfile.errors.exceptions import (
    ConfigurationError,
    MemfileError,
    ReadFailure,
    SchedulerUnavailable,
    StatFailure,
)

__all__ = [
    "MemfileError",
    "ReadFailure",
    "StatFailure",
    "ConfigurationError",
    "SchedulerUnavailable",
]
