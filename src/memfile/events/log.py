"""Event log — append-only record of notifications seen on a bus."""

from __future__ import annotations

from collections.abc import Callable

from memfile.events.bus import CacheEvent, EventBus, EventType


class EventLog:
    """Append-only, queryable event log."""

    def __init__(self) -> None:
        self._events: list[CacheEvent] = []
        self._detach: Callable[[], None] | None = None

    def attach(self, bus: EventBus) -> EventLog:
        """Start recording every event published on bus."""
        self.detach()
        self._detach = bus.subscribe_all(self.append)
        return self

    def detach(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None

    def append(self, event: CacheEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[CacheEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def query_by_type(self, event_type: EventType | str) -> list[CacheEvent]:
        return [e for e in self._events if e.event == EventType(event_type)]

    def query_by_path(self, path: str) -> list[CacheEvent]:
        return [e for e in self._events if e.path == path]

    def query_errors(self) -> list[CacheEvent]:
        return [e for e in self._events if e.error]
