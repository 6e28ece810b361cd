"""Entry store — one slot per path, owning the entry and its timers."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from dataclasses import dataclass, field

from memfile.cache.entry import CacheEntry
from memfile.scheduling.timers import TimerHandle
from memfile.storage.accessor import FileStat

logger = logging.getLogger(__name__)


@dataclass
class StatSnapshot:
    """Last observed (mtime, ctime) for change detection.

    A clock-seeded snapshot only counts strictly newer times as a change;
    once a real stat has been observed any difference counts.
    """

    mtime_ns: int
    ctime_ns: int
    observed: bool = False

    @classmethod
    def from_clock(cls) -> StatSnapshot:
        now = time.time_ns()
        return cls(mtime_ns=now, ctime_ns=now)

    @classmethod
    def from_stat(cls, stat: FileStat) -> StatSnapshot:
        return cls(mtime_ns=stat.mtime_ns, ctime_ns=stat.ctime_ns, observed=True)

    def changed(self, stat: FileStat) -> bool:
        if self.observed:
            return stat.mtime_ns != self.mtime_ns or stat.ctime_ns != self.ctime_ns
        return stat.mtime_ns > self.mtime_ns or stat.ctime_ns > self.ctime_ns


@dataclass
class EntrySlot:
    """Store-private record for one entry.

    Timer callbacks capture the slot, not the path; a slot that is no longer
    current in the store must not be mutated.
    """

    entry: CacheEntry
    timers: list[TimerHandle] = field(default_factory=list)
    snapshot: StatSnapshot | None = None
    refreshing: bool = False
    refresh_pending: bool = False

    @property
    def path(self) -> str:
        return self.entry.path

    def cancel_timers(self) -> None:
        for timer in self.timers:
            timer.cancel()
        self.timers.clear()


class EntryStore:
    """Mapping from path to EntrySlot."""

    def __init__(self) -> None:
        self._slots: dict[str, EntrySlot] = {}

    def get(self, path: str) -> EntrySlot | None:
        return self._slots.get(path)

    def insert(self, slot: EntrySlot) -> None:
        """Add slot, retiring any slot already held for its path."""
        self.remove(slot.path)
        self._slots[slot.path] = slot

    def remove(self, path: str) -> EntrySlot | None:
        """Retire the slot for path: cancel its timers and drop it."""
        slot = self._slots.pop(path, None)
        if slot is not None:
            slot.cancel_timers()
            logger.debug("Retired entry for %s", path)
        return slot

    def is_current(self, slot: EntrySlot) -> bool:
        return self._slots.get(slot.path) is slot

    def clear(self) -> list[EntrySlot]:
        """Retire every slot. Returns the retired slots."""
        slots = list(self._slots.values())
        for slot in slots:
            slot.cancel_timers()
        self._slots.clear()
        return slots

    def paths(self) -> list[str]:
        return list(self._slots)

    def entries(self) -> Iterator[CacheEntry]:
        return (slot.entry for slot in list(self._slots.values()))

    def __contains__(self, path: object) -> bool:
        return path in self._slots

    def __len__(self) -> int:
        return len(self._slots)
