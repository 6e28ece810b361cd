"""Policy engine — change polling, forced refresh and absolute expiry.

Each policy is a timer armed per entry slot:

  on_change  repeating stat; refresh when mtime/ctime moved; a failed stat
             drops the entry without notification.
  on_update  repeating unconditional refresh; a failed read publishes an
             update error and keeps the last good content.
  on_expire  one-shot; publishes expire, then drops the entry.

Every callback checks that its slot is still current before touching it,
so a replaced or deleted entry is never mutated by a stale timer.
"""

from __future__ import annotations

import logging

from memfile.cache.entry import ArmedPolicy, PolicyKind, decode_content, next_timestamp
from memfile.cache.stats import CacheStats
from memfile.cache.store import EntrySlot, EntryStore, StatSnapshot
from memfile.errors.exceptions import ReadFailure, StatFailure
from memfile.events.bus import CacheEvent, EventBus, EventType
from memfile.scheduling.timers import Scheduler
from memfile.storage.accessor import FileAccessor

logger = logging.getLogger(__name__)


def _positive(interval_ms: float | None) -> bool:
    return interval_ms is not None and interval_ms > 0


class PolicyEngine:
    """Arms entry policies and runs their ticks against the store."""

    def __init__(
        self,
        store: EntryStore,
        accessor: FileAccessor,
        scheduler: Scheduler,
        bus: EventBus,
        stats: CacheStats,
    ) -> None:
        self._store = store
        self._accessor = accessor
        self._scheduler = scheduler
        self._bus = bus
        self._stats = stats

    @staticmethod
    def requested(slot: EntrySlot) -> list[ArmedPolicy]:
        """Policies the slot's options ask for, skipping non-positive intervals."""
        options = slot.entry.options
        policies: list[ArmedPolicy] = []
        if options.on_change:
            if _positive(options.on_change_interval_ms):
                interval = options.on_change_interval_ms
                policies.append(ArmedPolicy(kind=PolicyKind.ON_CHANGE, interval_ms=interval))
            else:
                logger.debug("on_change for %s not armed: no positive interval", slot.path)
        if _positive(options.update_interval_ms):
            policies.append(
                ArmedPolicy(kind=PolicyKind.ON_UPDATE, interval_ms=options.update_interval_ms)
            )
        if _positive(options.expire_interval_ms):
            policies.append(
                ArmedPolicy(kind=PolicyKind.ON_EXPIRE, interval_ms=options.expire_interval_ms)
            )
        return policies

    def arm(self, slot: EntrySlot, policies: list[ArmedPolicy]) -> None:
        """Start a timer for each policy; each runs independently."""
        for policy in policies:
            if policy.kind == PolicyKind.ON_CHANGE:
                slot.snapshot = StatSnapshot.from_clock()
                timer = self._scheduler.call_every(policy.interval_ms, lambda: self.poll(slot))
            elif policy.kind == PolicyKind.ON_UPDATE:
                timer = self._scheduler.call_every(policy.interval_ms, lambda: self.refresh(slot))
            else:
                timer = self._scheduler.call_later(policy.interval_ms, lambda: self.expire(slot))
            slot.timers.append(timer)
            logger.debug(
                "Armed %s (%.0fms) for %s", policy.kind.value, policy.interval_ms, slot.path
            )
        slot.entry.policies = list(policies)

    async def poll(self, slot: EntrySlot) -> None:
        """One on_change tick: stat, compare with the snapshot, maybe refresh."""
        if not self._store.is_current(slot):
            return
        path = slot.path
        try:
            stat = await self._accessor.stat(path)
        except StatFailure as exc:
            if self._store.is_current(slot):
                logger.info("Dropping %s, file no longer available: %s", path, exc)
                self._store.remove(path)
            return

        if not self._store.is_current(slot):
            return
        snapshot = slot.snapshot or StatSnapshot.from_clock()
        changed = snapshot.changed(stat)
        slot.snapshot = StatSnapshot.from_stat(stat)
        if changed:
            logger.debug("Change detected on %s", path)
            await self.refresh(slot)

    async def refresh(self, slot: EntrySlot) -> None:
        """Re-read the file and update the entry in place.

        Keeps the last good content when the read fails. A refresh requested
        while one is in flight is not run concurrently; it marks the slot so
        the running refresh reads once more when it finishes.
        """
        if not self._store.is_current(slot):
            return
        if slot.refreshing:
            slot.refresh_pending = True
            logger.debug("Refresh of %s already in flight, re-read queued", slot.path)
            return

        slot.refreshing = True
        try:
            while True:
                slot.refresh_pending = False
                await self._refresh_once(slot)
                if not (slot.refresh_pending and self._store.is_current(slot)):
                    break
        finally:
            slot.refreshing = False
            slot.refresh_pending = False

    async def _refresh_once(self, slot: EntrySlot) -> None:
        path = slot.path
        entry = slot.entry
        try:
            raw = await self._accessor.read(path)
            content = decode_content(raw, entry.options, path)
        except ReadFailure as exc:
            if not self._store.is_current(slot):
                return
            self._stats.refresh_failures += 1
            logger.warning("Refresh of %s failed, keeping cached copy: %s", path, exc)
            self._bus.publish(CacheEvent.failure(EventType.UPDATE, path, exc))
            return

        if not self._store.is_current(slot):
            return
        entry.content = content
        entry.modified = next_timestamp(entry.modified)
        entry.size = len(raw)
        self._stats.refreshes += 1
        self._bus.publish(
            CacheEvent.ok(EventType.UPDATE, path, time=entry.modified, size=entry.size)
        )

    def expire(self, slot: EntrySlot) -> None:
        """on_expire firing: notify, then drop without a delete event."""
        if not self._store.is_current(slot):
            return
        path = slot.path
        self._stats.expirations += 1
        logger.info("Entry for %s expired", path)
        self._bus.publish(CacheEvent.ok(EventType.EXPIRE, path))
        if self._store.is_current(slot):
            self._store.remove(path)
