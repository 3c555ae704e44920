"""
Unit tests for asynchronous filesystem access.
"""

import asyncio
import os

import pytest

from staticserver.core.filesystem import (
    DirectoryEntry,
    list_directory,
    read_file,
    resolve_path,
    stat_path,
)


DATA_SIZE = 1000
DATA_BYTES = bytes(i % 256 for i in range(DATA_SIZE))


def collect(stream) -> list:
    async def _run():
        return [chunk async for chunk in stream]
    return asyncio.run(_run())


class TestResolvePath:
    """Tests for resolve_path()."""

    def test_root(self, tmp_path):
        assert resolve_path(str(tmp_path), "/") == str(tmp_path)

    def test_nested(self, tmp_path):
        assert resolve_path(str(tmp_path), "/docs/a.txt") == os.path.join(str(tmp_path), "docs", "a.txt")

    def test_trailing_slash_dropped(self, tmp_path):
        assert resolve_path(str(tmp_path), "/docs/") == os.path.join(str(tmp_path), "docs")

    def test_relative_root_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert resolve_path(".", "/x") == os.path.join(os.getcwd(), "x")


class TestStatPath:
    """Tests for stat_path()."""

    def test_file(self, site):
        meta = asyncio.run(stat_path(str(site / "data.bin")))

        assert meta.size == DATA_SIZE
        assert meta.is_directory is False
        assert meta.is_regular is True
        assert meta.modified_ms == meta.modified_ns // 1_000_000

    def test_directory(self, site):
        meta = asyncio.run(stat_path(str(site / "docs")))

        assert meta.is_directory is True
        assert meta.is_regular is False

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs named pipes")
    def test_fifo_is_not_regular(self, tmp_path):
        os.mkfifo(str(tmp_path / "pipe"))
        meta = asyncio.run(stat_path(str(tmp_path / "pipe")))

        assert meta.is_directory is False
        assert meta.is_regular is False

    def test_missing(self, site):
        with pytest.raises(FileNotFoundError):
            asyncio.run(stat_path(str(site / "missing.txt")))


class TestListDirectory:
    """Tests for list_directory()."""

    def test_sorted_entries(self, site):
        entries = asyncio.run(list_directory(str(site / "docs")))

        assert entries == [
            DirectoryEntry("api", True),
            DirectoryEntry("guide.html", False),
            DirectoryEntry("notes.txt", False),
        ]

    def test_empty(self, tmp_path):
        assert asyncio.run(list_directory(str(tmp_path))) == []

    def test_not_a_directory(self, site):
        with pytest.raises(NotADirectoryError):
            asyncio.run(list_directory(str(site / "hello.txt")))


class TestReadFile:
    """Tests for read_file()."""

    def test_whole_file(self, site):
        assert b"".join(collect(read_file(str(site / "data.bin")))) == DATA_BYTES

    def test_chunking(self, site):
        chunks = collect(read_file(str(site / "data.bin"), chunk_size=300))

        assert [len(c) for c in chunks] == [300, 300, 300, 100]

    def test_inclusive_range(self, site):
        data = b"".join(collect(read_file(str(site / "data.bin"), 10, 19)))

        assert data == DATA_BYTES[10:20]

    def test_range_across_chunks(self, site):
        chunks = collect(read_file(str(site / "data.bin"), 100, 899, chunk_size=256))

        assert b"".join(chunks) == DATA_BYTES[100:900]
        assert [len(c) for c in chunks] == [256, 256, 256, 32]

    def test_range_to_end(self, site):
        data = b"".join(collect(read_file(str(site / "data.bin"), 990)))

        assert data == DATA_BYTES[990:]

    def test_single_byte(self, site):
        assert collect(read_file(str(site / "data.bin"), 0, 0)) == [DATA_BYTES[:1]]

    def test_missing_file_opens_lazily(self, site):
        """Creating the stream is free; the error surfaces on first read."""
        stream = read_file(str(site / "missing.txt"))

        with pytest.raises(FileNotFoundError):
            collect(stream)
