"""Pydantic models for cache configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from memfile.config.defaults import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_ENCODING,
    DEFAULT_EXPIRE_INTERVAL_MS,
    DEFAULT_ON_CHANGE,
    DEFAULT_ON_CHANGE_INTERVAL_MS,
    DEFAULT_UPDATE_INTERVAL_MS,
)


class CacheOptions(BaseModel):
    """Options applied to a cache entry when it is created.

    Intervals are milliseconds. A missing or non-positive interval leaves the
    matching policy unarmed. Keys not listed here are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    content_type: str = DEFAULT_CONTENT_TYPE
    encoding: str = DEFAULT_ENCODING
    on_change: bool = DEFAULT_ON_CHANGE
    on_change_interval_ms: float | None = DEFAULT_ON_CHANGE_INTERVAL_MS
    update_interval_ms: float | None = DEFAULT_UPDATE_INTERVAL_MS
    expire_interval_ms: float | None = DEFAULT_EXPIRE_INTERVAL_MS

    @property
    def is_text(self) -> bool:
        return self.content_type.lower().startswith("text/")
