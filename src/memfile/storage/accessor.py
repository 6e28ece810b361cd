"""File accessor — synchronous and asynchronous read + stat."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import NamedTuple, Protocol

from memfile.errors.exceptions import ReadFailure, StatFailure


class FileStat(NamedTuple):
    mtime_ns: int
    ctime_ns: int
    size: int


class FileAccessor(Protocol):
    """Read/stat primitives the cache depends on.

    Implementations raise ReadFailure / StatFailure, never bare OSError.
    """

    def read_sync(self, path: str) -> bytes: ...

    def stat_sync(self, path: str) -> FileStat: ...

    async def read(self, path: str) -> bytes: ...

    async def stat(self, path: str) -> FileStat: ...


class LocalFileAccessor:
    """Local filesystem accessor; async calls run in a worker thread."""

    def read_sync(self, path: str) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as exc:
            raise ReadFailure(f"Cannot read {path}: {exc}", path=path, original=exc) from exc

    def stat_sync(self, path: str) -> FileStat:
        try:
            st = os.stat(path)
        except OSError as exc:
            raise StatFailure(f"Cannot stat {path}: {exc}", path=path, original=exc) from exc
        return FileStat(mtime_ns=st.st_mtime_ns, ctime_ns=st.st_ctime_ns, size=st.st_size)

    async def read(self, path: str) -> bytes:
        return await asyncio.to_thread(self.read_sync, path)

    async def stat(self, path: str) -> FileStat:
        return await asyncio.to_thread(self.stat_sync, path)
