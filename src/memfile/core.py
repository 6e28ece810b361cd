"""Top-level entry point: FileCache."""

from __future__ import annotations

import inspect
import logging
import os
from collections.abc import Callable
from typing import Any

from memfile.cache.entry import CacheEntry, build_entry, next_timestamp
from memfile.cache.policies import PolicyEngine
from memfile.cache.stats import CacheStats
from memfile.cache.store import EntrySlot, EntryStore
from memfile.config.hierarchy import load_config_hierarchy
from memfile.config.registry import OptionsLike, OptionsRegistry
from memfile.config.schema import CacheOptions
from memfile.errors.exceptions import MemfileError, ReadFailure
from memfile.events.bus import CacheEvent, EventBus, EventType, Handler
from memfile.scheduling.timers import Scheduler
from memfile.storage.accessor import FileAccessor, LocalFileAccessor

logger = logging.getLogger(__name__)

PathLike = str | os.PathLike[str]
SetCallback = Callable[[MemfileError | None, CacheEntry | None], Any]


class FileCache:
    """In-memory mirror of files, kept fresh by per-entry timer policies.

    All state belongs to the instance; independent caches do not share
    entries, defaults or subscribers.
    """

    def __init__(
        self,
        defaults: OptionsLike | None = None,
        accessor: FileAccessor | None = None,
        scheduler: Scheduler | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._registry = OptionsRegistry(defaults)
        self._accessor: FileAccessor = accessor or LocalFileAccessor()
        self._scheduler = scheduler or Scheduler()
        self._bus = bus or EventBus()
        self._store = EntryStore()
        self._stats = CacheStats()
        self._engine = PolicyEngine(
            self._store, self._accessor, self._scheduler, self._bus, self._stats
        )

    @classmethod
    def from_config(cls, **overrides: Any) -> FileCache:
        """Build a cache whose defaults come from the configuration hierarchy."""
        config = load_config_hierarchy(**overrides)
        config.pop("log_level", None)
        return cls(defaults=config)

    @property
    def events(self) -> EventBus:
        return self._bus

    @property
    def options(self) -> CacheOptions:
        return self._registry.defaults

    # ── Configuration and subscriptions ──

    def setup(self, options: OptionsLike | None = None) -> CacheOptions:
        """Overwrite default options for entries created from now on."""
        return self._registry.setup(options)

    def subscribe(self, event: EventType | str, handler: Handler) -> Callable[[], None]:
        return self._bus.subscribe(event, handler)

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        return self._bus.subscribe_all(handler)

    # ── Entry lifecycle ──

    async def set(
        self,
        path: PathLike,
        options: OptionsLike | None = None,
        callback: SetCallback | None = None,
    ) -> CacheEntry | None:
        """Read path and cache it.

        On failure any existing entry for path is retired, a create error
        event is published and callback (if given) receives the error.
        The error is never raised; the return value is None.
        """
        key = os.fspath(path)
        try:
            raw = await self._accessor.read(key)
            entry = self._create(key, raw, options)
        except MemfileError as exc:
            logger.warning("Could not cache %s: %s", key, exc)
            self._store.remove(key)
            self._bus.publish(CacheEvent.failure(EventType.CREATE, key, exc))
            await _invoke(callback, exc, None)
            return None

        self._bus.publish(
            CacheEvent.ok(EventType.CREATE, key, time=entry.created, size=entry.size)
        )
        await _invoke(callback, None, entry)
        return entry

    def set_sync(self, path: PathLike, options: OptionsLike | None = None) -> CacheEntry | None:
        """Read path synchronously and cache it. Publishes no events.

        Returns None if the file cannot be read; the store is left untouched.
        """
        key = os.fspath(path)
        try:
            raw = self._accessor.read_sync(key)
            return self._create(key, raw, options)
        except ReadFailure as exc:
            logger.debug("set_sync failed for %s: %s", key, exc)
            return None

    def get(self, path: PathLike) -> CacheEntry | None:
        """Return the cached entry, stamping its access time, or None."""
        key = os.fspath(path)
        slot = self._store.get(key)
        if slot is None:
            self._stats.misses += 1
            return None
        entry = slot.entry
        entry.accessed = next_timestamp(entry.accessed)
        self._stats.hits += 1
        self._bus.publish(CacheEvent.ok(EventType.ACCESSED, key, time=entry.accessed))
        return entry

    def delete(self, path: PathLike, emit_event: bool = True) -> bool:
        """Drop the entry and cancel its timers.

        Returns True when path is absent afterwards, including when it was
        never cached. A delete event is only published for a real removal.
        """
        key = os.fspath(path)
        slot = self._store.remove(key)
        if slot is not None and emit_event:
            self._bus.publish(CacheEvent.ok(EventType.DELETE, key))
        return key not in self._store

    def close(self) -> None:
        """Retire every entry, then publish a single close event."""
        retired = self._store.clear()
        logger.debug("Closed cache, retired %d entries", len(retired))
        self._bus.publish(CacheEvent.ok(EventType.CLOSE))

    async def drain(self) -> None:
        """Wait for timer and handler tasks currently in flight."""
        await self._scheduler.drain()
        await self._bus.drain()

    # ── Introspection ──

    def stats(self) -> CacheStats:
        return self._stats.model_copy(
            update={
                "entries": len(self._store),
                "size_bytes": sum(e.size for e in self._store.entries()),
            }
        )

    def paths(self) -> list[str]:
        return self._store.paths()

    def __contains__(self, path: object) -> bool:
        if isinstance(path, (str, os.PathLike)):
            return os.fspath(path) in self._store
        return False

    def __len__(self) -> int:
        return len(self._store)

    def __enter__(self) -> FileCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _create(self, path: str, raw: bytes, options: OptionsLike | None) -> CacheEntry:
        """Build and store a fresh entry, retiring any previous one first."""
        resolved = self._registry.resolve(options)
        entry = build_entry(path, raw, resolved)
        slot = EntrySlot(entry=entry)
        policies = self._engine.requested(slot)
        if policies:
            self._scheduler.ensure_available()
        self._store.insert(slot)
        self._engine.arm(slot, policies)
        return entry


async def _invoke(
    callback: SetCallback | None,
    error: MemfileError | None,
    entry: CacheEntry | None,
) -> None:
    if callback is None:
        return
    result = callback(error, entry)
    if inspect.isawaitable(result):
        await result
