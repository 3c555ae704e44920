"""
=============================================================================
ASYNCHRONOUS FILESYSTEM ACCESS
=============================================================================

The handlers never touch the disk directly. They go through the four
coroutines in this module:

    ┌──────────────────────┬─────────────────────────────────────────────┐
    │ resolve_path()       │ request path  → absolute path under root    │
    │ stat_path()          │ absolute path → FileMetadata                │
    │ list_directory()     │ directory     → [DirectoryEntry]            │
    │ read_file()          │ path + offsets → async stream of chunks     │
    └──────────────────────┴─────────────────────────────────────────────┘

=============================================================================
WHY AN EXECUTOR?
=============================================================================

os.stat(), os.scandir() and file.read() block the calling thread. On
the event loop that would freeze every other connection while one slow
disk answers. Each blocking call is therefore handed to the loop's
default thread pool:

    Event loop                        Executor thread
    ──────────                        ───────────────
    await stat_path(p)  ───────────►  os.stat(p)
       (other requests run)                │
    ◄──────────────────────────────── result

The handler suspends at each await, and only at those points.

=============================================================================
"""

import asyncio
import logging
import os
import stat as stat_module
from dataclasses import dataclass
from functools import partial
from typing import AsyncIterator, List, Optional


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileMetadata:
    """
    One stat() snapshot of a path.

    Taken at the start of each request and never cached: freshness and
    range decisions for a request are all made against this snapshot.

    Attributes:
        size:         Size in bytes.
        modified_at:  Modification time, POSIX seconds (float).
        modified_ns:  Modification time in nanoseconds (for the ETag).
        is_directory: True for directories.
        is_regular:   True for regular files only (no FIFOs or devices).
    """

    size: int
    modified_at: float
    modified_ns: int
    is_directory: bool
    is_regular: bool = False

    @property
    def modified_ms(self) -> int:
        """Modification time in whole milliseconds."""
        return self.modified_ns // 1_000_000

    @classmethod
    def from_stat(cls, result: os.stat_result) -> "FileMetadata":
        return cls(
            size=result.st_size,
            modified_at=result.st_mtime,
            modified_ns=result.st_mtime_ns,
            is_directory=stat_module.S_ISDIR(result.st_mode),
            is_regular=stat_module.S_ISREG(result.st_mode),
        )


@dataclass(frozen=True)
class DirectoryEntry:
    """A single name inside a listed directory."""

    name: str
    is_directory: bool


async def _run_blocking(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args))


def resolve_path(root: str, request_path: str) -> str:
    """
    Map a decoded request path onto the filesystem.

        resolve_path("/srv/www", "/docs/a.txt") → "/srv/www/docs/a.txt"
        resolve_path("/srv/www", "/")           → "/srv/www"

    The path is normalized but not checked against the root; the request
    parser already rejects ".." segments.
    """
    relative = os.path.normpath(request_path.lstrip("/"))
    if relative == ".":
        return os.path.abspath(root)
    return os.path.join(os.path.abspath(root), relative)


async def stat_path(path: str) -> FileMetadata:
    """
    Stat a path without blocking the event loop.

    Raises:
        OSError: FileNotFoundError, PermissionError, NotADirectoryError...
    """
    result = await _run_blocking(os.stat, path)
    return FileMetadata.from_stat(result)


def _scan(path: str) -> List[DirectoryEntry]:
    entries = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir()
            except OSError:
                # Dangling symlink or vanished entry: list it as a file.
                is_dir = False
            entries.append(DirectoryEntry(entry.name, is_dir))
    entries.sort(key=lambda e: e.name)
    return entries


async def list_directory(path: str) -> List[DirectoryEntry]:
    """
    Entries of a directory, sorted by name.

    Raises:
        OSError: If the directory cannot be read.
    """
    return await _run_blocking(_scan, path)


def _read_chunk(handle, size: int) -> bytes:
    return handle.read(size)


async def read_file(
    path: str,
    start: int = 0,
    end: Optional[int] = None,
    chunk_size: int = 64 * 1024,
) -> AsyncIterator[bytes]:
    """
    Stream a file (or the inclusive byte interval [start, end]) in chunks.

    The file is opened on first iteration, so a response that is never
    sent (HEAD, 304) never opens it. The handle is closed when the
    stream is exhausted, closed, or cancelled.

    Args:
        path: File to read.
        start: First byte offset.
        end: Last byte offset, inclusive. None reads to end of file.
        chunk_size: Maximum bytes per chunk.
    """
    handle = await _run_blocking(open, path, "rb")
    try:
        if start:
            await _run_blocking(handle.seek, start)

        remaining = None if end is None else end - start + 1
        while remaining is None or remaining > 0:
            size = chunk_size if remaining is None else min(chunk_size, remaining)
            chunk = await _run_blocking(_read_chunk, handle, size)
            if not chunk:
                break
            if remaining is not None:
                remaining -= len(chunk)
            yield chunk
    finally:
        handle.close()
