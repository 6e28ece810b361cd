"""Storage — read and stat primitives for cached files."""

from memfile.storage.accessor import FileAccessor, FileStat, LocalFileAccessor

__all__ = ["FileAccessor", "FileStat", "LocalFileAccessor"]
