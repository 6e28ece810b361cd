"""Tests for the on_change / on_update / on_expire policies."""

import asyncio
import os
import time

from memfile.cache.entry import PolicyKind
from memfile.core import FileCache
from memfile.events.bus import EventType
from memfile.events.log import EventLog


def _touch_forward(path, seconds: float = 5.0) -> None:
    """Push mtime clearly past the poll snapshot, regardless of fs granularity."""
    future = time.time() + seconds
    os.utime(path, (future, future))


class TestArming:
    async def test_all_policies_armed_together(self, cache, text_file):
        entry = await cache.set(
            text_file,
            {
                "on_change": True,
                "on_change_interval_ms": 50,
                "update_interval_ms": 50,
                "expire_interval_ms": 500,
            },
        )
        kinds = {p.kind for p in entry.policies}
        assert kinds == {PolicyKind.ON_CHANGE, PolicyKind.ON_UPDATE, PolicyKind.ON_EXPIRE}

    async def test_non_positive_intervals_are_not_armed(self, cache, text_file):
        entry = await cache.set(
            text_file,
            {
                "on_change": True,
                "on_change_interval_ms": 0,
                "update_interval_ms": -10,
                "expire_interval_ms": 0,
            },
        )
        assert entry.policies == []

    async def test_on_change_needs_flag(self, cache, text_file):
        entry = await cache.set(text_file, {"on_change_interval_ms": 10})
        assert not entry.has_policy(PolicyKind.ON_CHANGE)

    async def test_no_policies_by_default(self, cache, text_file):
        entry = await cache.set(text_file)
        assert entry.policies == []


class TestExpire:
    async def test_entry_gone_after_ttl(self, cache, events, text_file):
        calls = []
        await cache.set(text_file, {"expire_interval_ms": 50}, lambda e, r: calls.append((e, r)))
        assert calls[0][0] is None
        assert calls[0][1] is not None

        await asyncio.sleep(0.15)

        assert cache.get(text_file) is None
        expires = events.query_by_type(EventType.EXPIRE)
        assert len(expires) == 1
        assert expires[0].status == "OK"
        assert expires[0].path == str(text_file)
        assert events.query_by_type(EventType.DELETE) == []

    async def test_access_does_not_extend_ttl(self, cache, events, text_file):
        await cache.set(text_file, {"expire_interval_ms": 80})
        for _ in range(4):
            await asyncio.sleep(0.02)
            cache.get(text_file)

        await asyncio.sleep(0.15)

        assert text_file not in cache
        assert len(events.query_by_type(EventType.EXPIRE)) == 1

    async def test_refresh_does_not_extend_ttl(self, cache, events, text_file, wait_for):
        await cache.set(text_file, {"expire_interval_ms": 80, "update_interval_ms": 10})
        assert await wait_for(lambda: text_file not in cache, timeout=1.0)
        assert cache.stats().expirations == 1


class TestUpdate:
    async def test_rewrites_are_picked_up(self, cache, events, text_file, wait_for):
        await cache.set(text_file, {"update_interval_ms": 10, "content_type": "text/plain"})

        text_file.write_text("second")
        await asyncio.sleep(0.03)
        text_file.write_text("third")

        def ok_updates():
            return [e for e in events.query_by_type(EventType.UPDATE) if e.status == "OK"]

        assert await wait_for(lambda: len(ok_updates()) >= 2)
        times = [e.time for e in ok_updates()]
        assert all(b > a for a, b in zip(times, times[1:]))
        assert await wait_for(lambda: cache.get(text_file).content == "third")

    async def test_update_refreshes_metadata(self, cache, text_file, wait_for):
        entry = await cache.set(text_file, {"update_interval_ms": 10})
        created = entry.modified
        text_file.write_bytes(b"x" * 1000)

        assert await wait_for(lambda: entry.size == 1000)
        assert entry.modified > created
        assert entry.created < entry.modified

    async def test_read_failure_keeps_last_good_copy(self, cache, events, text_file, wait_for):
        entry = await cache.set(text_file, {"update_interval_ms": 10, "content_type": "text/plain"})
        text_file.unlink()

        assert await wait_for(lambda: len(events.query_errors()) >= 1)
        failure = events.query_errors()[0]
        assert failure.event == EventType.UPDATE
        assert failure.path == str(text_file)
        assert cache.get(text_file) is entry
        assert entry.content == "hello, wörld\n"
        assert cache.stats().refresh_failures >= 1

    async def test_text_representation_is_fixed(self, cache, text_file, wait_for):
        entry = await cache.set(text_file, {"update_interval_ms": 10})
        text_file.write_text("changed")
        assert await wait_for(lambda: entry.content == b"changed")
        assert isinstance(entry.content, bytes)


class TestOnChange:
    async def test_unchanged_file_is_not_refreshed(self, cache, events, text_file):
        await cache.set(text_file, {"on_change": True, "on_change_interval_ms": 10})
        await asyncio.sleep(0.1)
        assert events.query_by_type(EventType.UPDATE) == []

    async def test_change_triggers_refresh(self, cache, events, text_file, wait_for):
        entry = await cache.set(
            text_file,
            {"on_change": True, "on_change_interval_ms": 10, "content_type": "text/plain"},
        )
        text_file.write_text("edited")
        _touch_forward(text_file)

        assert await wait_for(lambda: entry.content == "edited")
        updates = events.query_by_type(EventType.UPDATE)
        assert updates[-1].status == "OK"
        assert updates[-1].size == len("edited")

    async def test_one_change_refreshes_once(self, cache, events, text_file, wait_for):
        await cache.set(text_file, {"on_change": True, "on_change_interval_ms": 10})
        _touch_forward(text_file)

        assert await wait_for(lambda: len(events.query_by_type(EventType.UPDATE)) == 1)
        await asyncio.sleep(0.1)
        assert len(events.query_by_type(EventType.UPDATE)) == 1

    async def test_missing_file_drops_entry_silently(self, cache, events, text_file, wait_for):
        await cache.set(text_file, {"on_change": True, "on_change_interval_ms": 10})
        recorded = len(events)
        text_file.unlink()

        assert await wait_for(lambda: text_file not in cache)
        assert len(events) == recorded


class TestRaceGuards:
    async def test_delete_during_refresh(self, gated_accessor, text_file, wait_for):
        cache = FileCache(accessor=gated_accessor)
        log = EventLog().attach(cache.events)
        entry = await cache.set(text_file, {"update_interval_ms": 10})
        gated_accessor.gate.clear()
        text_file.write_text("late")

        assert await wait_for(lambda: gated_accessor.reads_waiting == 1)
        cache.delete(text_file, emit_event=False)
        gated_accessor.gate.set()
        await cache.drain()

        assert log.query_by_type(EventType.UPDATE) == []
        assert entry.content == b"hello, w\xc3\xb6rld\n"
        cache.close()

    async def test_replacement_during_refresh(self, gated_accessor, text_file, wait_for):
        cache = FileCache(accessor=gated_accessor)
        log = EventLog().attach(cache.events)
        await cache.set(text_file, {"update_interval_ms": 10})
        gated_accessor.gate.clear()

        assert await wait_for(lambda: gated_accessor.reads_waiting == 1)
        text_file.write_text("replacement")
        fresh = cache.set_sync(text_file, {"content_type": "text/plain"})
        text_file.write_text("stale read")
        gated_accessor.gate.set()
        await cache.drain()

        assert cache.get(text_file) is fresh
        assert fresh.content == "replacement"
        assert log.query_by_type(EventType.UPDATE) == []
        cache.close()

    async def test_overlapping_ticks_do_not_start_reads(
        self, gated_accessor, text_file, wait_for
    ):
        cache = FileCache(accessor=gated_accessor)
        await cache.set(text_file, {"update_interval_ms": 5})
        started = gated_accessor.reads_started
        gated_accessor.gate.clear()

        await asyncio.sleep(0.08)

        assert gated_accessor.reads_started == started + 1
        cache.close()
        gated_accessor.gate.set()
        await cache.drain()

    async def test_change_seen_during_refresh_is_reread(
        self, capturing_accessor, text_file, wait_for
    ):
        accessor = capturing_accessor
        cache = FileCache(accessor=accessor)
        entry = await cache.set(
            text_file,
            {"content_type": "text/plain", "on_change": True, "on_change_interval_ms": 10},
        )
        accessor.gate.clear()

        text_file.write_text("v2")
        _touch_forward(text_file, 5.0)
        assert await wait_for(lambda: accessor.reads_waiting == 1)

        text_file.write_text("v3")
        _touch_forward(text_file, 10.0)
        await asyncio.sleep(0.05)
        accessor.gate.set()

        assert await wait_for(lambda: entry.content == "v3")
        assert cache.get(text_file) is entry
        cache.close()
        await cache.drain()

    async def test_pending_reread_dropped_after_delete(
        self, capturing_accessor, text_file, wait_for
    ):
        accessor = capturing_accessor
        cache = FileCache(accessor=accessor)
        await cache.set(text_file, {"update_interval_ms": 5})
        accessor.gate.clear()
        assert await wait_for(lambda: accessor.reads_waiting == 1)
        await asyncio.sleep(0.03)
        started = accessor.reads_started

        cache.delete(text_file)
        accessor.gate.set()
        await cache.drain()

        assert accessor.reads_started == started
