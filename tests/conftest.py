import asyncio
import time

import pytest

from memfile.core import FileCache
from memfile.events.log import EventLog
from memfile.storage.accessor import LocalFileAccessor


class GatedAccessor(LocalFileAccessor):
    """Local accessor whose async reads can be held at a gate.

    With capture_first the file bytes are read before waiting, so a held read
    returns what the file contained when the read started.
    """

    def __init__(self, capture_first: bool = False) -> None:
        self.gate = asyncio.Event()
        self.gate.set()
        self.capture_first = capture_first
        self.reads_started = 0
        self.reads_waiting = 0

    async def read(self, path: str) -> bytes:
        self.reads_started += 1
        captured = await super().read(path) if self.capture_first else None
        self.reads_waiting += 1
        try:
            await self.gate.wait()
        finally:
            self.reads_waiting -= 1
        if captured is not None:
            return captured
        return await super().read(path)


async def _wait_for(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


@pytest.fixture
def wait_for():
    """Poll a predicate on the running loop until it holds or times out."""
    return _wait_for


@pytest.fixture
def cache():
    c = FileCache()
    yield c
    c.close()


@pytest.fixture
def events(cache):
    log = EventLog().attach(cache.events)
    yield log
    log.detach()


@pytest.fixture
def gated_accessor():
    return GatedAccessor()


@pytest.fixture
def capturing_accessor():
    return GatedAccessor(capture_first=True)


@pytest.fixture
def text_file(tmp_path):
    """A small UTF-8 text file."""
    path = tmp_path / "note.txt"
    path.write_text("hello, wörld\n", encoding="utf-8")
    return path


@pytest.fixture
def binary_file(tmp_path):
    path = tmp_path / "blob.bin"
    path.write_bytes(bytes(range(256)))
    return path
