"""Package-level default configuration values."""

from __future__ import annotations

from typing import Any

# Default entry settings
DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_ENCODING = "utf-8"

# Default policy settings (milliseconds; None = disabled)
DEFAULT_ON_CHANGE = False
DEFAULT_ON_CHANGE_INTERVAL_MS = 1000.0
DEFAULT_UPDATE_INTERVAL_MS: float | None = None
DEFAULT_EXPIRE_INTERVAL_MS: float | None = None

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "content_type": DEFAULT_CONTENT_TYPE,
        "encoding": DEFAULT_ENCODING,
        "on_change": DEFAULT_ON_CHANGE,
        "on_change_interval_ms": DEFAULT_ON_CHANGE_INTERVAL_MS,
        "update_interval_ms": DEFAULT_UPDATE_INTERVAL_MS,
        "expire_interval_ms": DEFAULT_EXPIRE_INTERVAL_MS,
        "log_level": DEFAULT_LOG_LEVEL,
    }
