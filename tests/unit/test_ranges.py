"""
Unit tests for Range header parsing.
"""

import pytest

from staticserver.handlers.ranges import (
    ByteRange,
    MalformedRange,
    RangeNotSatisfiable,
    parse_range,
)
from staticserver.http.status_codes import HTTPStatus


SIZE = 1000


class TestParseRange:
    """Tests for parse_range()."""

    def test_closed_range(self):
        byte_range = parse_range("bytes=0-99", SIZE)

        assert byte_range == ByteRange(0, 99)
        assert byte_range.length == 100
        assert byte_range.content_range(SIZE) == "bytes 0-99/1000"

    def test_open_ended_range(self):
        """bytes=500- runs to the last byte."""
        assert parse_range("bytes=500-", SIZE) == ByteRange(500, 999)

    def test_suffix_range(self):
        """bytes=-100 is the LAST 100 bytes, not offset 100."""
        byte_range = parse_range("bytes=-100", SIZE)

        assert byte_range == ByteRange(900, 999)
        assert byte_range.content_range(SIZE) == "bytes 900-999/1000"

    def test_whole_file(self):
        assert parse_range("bytes=0-999", SIZE).length == SIZE

    def test_single_byte(self):
        assert parse_range("bytes=999-999", SIZE) == ByteRange(999, 999)

    def test_whitespace_tolerated(self):
        assert parse_range(" bytes = 10 - 20 ", SIZE) == ByteRange(10, 20)

    def test_only_first_range_of_many(self):
        assert parse_range("bytes=0-1,5-6", SIZE) == ByteRange(0, 1)


class TestUnsatisfiableRanges:
    """Ranges that parse but do not fit inside the file."""

    @pytest.mark.parametrize("header", [
        "bytes=0-1000",     # end == size
        "bytes=0-5000",     # end past the file
        "bytes=1000-",      # start == size
        "bytes=1500-2000",  # start past the file
        "bytes=500-100",    # start after end
        "bytes=-1001",      # suffix longer than the file
    ])
    def test_rejected(self, header):
        with pytest.raises(RangeNotSatisfiable) as exc_info:
            parse_range(header, SIZE)

        assert exc_info.value.status_code == HTTPStatus.RANGE_NOT_SATISFIABLE
        assert exc_info.value.content_range == "bytes */1000"

    def test_empty_file(self):
        """An empty file has no byte to point at."""
        with pytest.raises(RangeNotSatisfiable):
            parse_range("bytes=0-", 0)


class TestMalformedRanges:
    """Headers that cannot be read at all."""

    @pytest.mark.parametrize("header", [
        "bytes=-",
        "items=0-10",
        "bytes=abc-def",
        "bytes 0-10",
        "",
    ])
    def test_rejected(self, header):
        with pytest.raises(MalformedRange) as exc_info:
            parse_range(header, SIZE)

        assert exc_info.value.status_code == HTTPStatus.BAD_REQUEST
