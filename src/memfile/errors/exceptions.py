"""Custom exception hierarchy for memfile."""

from __future__ import annotations

from typing import Any


class MemfileError(Exception):
    """Base exception for all memfile errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class ReadFailure(MemfileError):
    """The file could not be read while creating or refreshing an entry.

    Examples: missing file, permission denied, path is a directory.
    """

    def __init__(
        self,
        message: str = "",
        path: str = "",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.original = original


class StatFailure(MemfileError):
    """The file could not be stat'ed during change-detection polling.

    Treated as an implicit deletion of the cached entry.
    """

    def __init__(
        self,
        message: str = "",
        path: str = "",
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.original = original


class ConfigurationError(MemfileError):
    """An option value could not be validated."""

    def __init__(self, message: str = "", option: str | None = None) -> None:
        super().__init__(message)
        self.option = option


class SchedulerUnavailable(ConfigurationError):
    """A timer policy was requested but no event loop is running."""
