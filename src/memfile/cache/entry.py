"""Cache entry model and content derivation."""

from __future__ import annotations

import time
from enum import StrEnum

from pydantic import BaseModel, Field

from memfile.config.schema import CacheOptions
from memfile.errors.exceptions import ReadFailure


class PolicyKind(StrEnum):
    ON_CHANGE = "on_change"
    ON_UPDATE = "on_update"
    ON_EXPIRE = "on_expire"


class ArmedPolicy(BaseModel):
    """One timer policy armed for an entry."""

    kind: PolicyKind
    interval_ms: float


class CacheEntry(BaseModel):
    """In-memory mirror of one file's bytes and metadata."""

    path: str = Field(frozen=True)
    content: str | bytes
    content_type: str
    size: int = 0
    created: float = Field(default_factory=time.time)
    modified: float = Field(default_factory=time.time)
    accessed: float | None = None
    options: CacheOptions = Field(default_factory=CacheOptions)
    policies: list[ArmedPolicy] = Field(default_factory=list)

    @property
    def is_text(self) -> bool:
        return isinstance(self.content, str)

    def has_policy(self, kind: PolicyKind) -> bool:
        return any(p.kind == kind for p in self.policies)


def decode_content(raw: bytes, options: CacheOptions, path: str = "") -> str | bytes:
    """text/* content becomes str; everything else stays as raw bytes."""
    if not options.is_text:
        return raw
    try:
        return raw.decode(options.encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise ReadFailure(
            f"Cannot decode {path} as {options.encoding}: {exc}", path=path, original=exc
        ) from exc


def build_entry(path: str, raw: bytes, options: CacheOptions) -> CacheEntry:
    now = time.time()
    return CacheEntry(
        path=path,
        content=decode_content(raw, options, path),
        content_type=options.content_type,
        size=len(raw),
        created=now,
        modified=now,
        options=options,
    )


def next_timestamp(previous: float | None) -> float:
    """Current time, nudged forward so it is strictly after previous."""
    now = time.time()
    if previous is not None and now <= previous:
        return previous + 1e-6
    return now
