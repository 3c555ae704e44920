"""
=============================================================================
BYTE RANGES (PARTIAL CONTENT)
=============================================================================

Parses a Range request header against a file size.

=============================================================================
RANGE FORMS
=============================================================================

    File of 1000 bytes (offsets 0..999):

    ┌──────────────────┬─────────────────┬─────────────────────────────┐
    │ Range header     │ Resolved        │ Meaning                     │
    ├──────────────────┼─────────────────┼─────────────────────────────┤
    │ bytes=0-99       │ 0-99            │ first 100 bytes             │
    │ bytes=500-       │ 500-999         │ from 500 to the end         │
    │ bytes=-100       │ 900-999         │ LAST 100 bytes (suffix)     │
    │ bytes=0-999      │ 0-999           │ whole file                  │
    │ bytes=0-1000     │ 416             │ end past the last byte      │
    │ bytes=500-100    │ 416             │ start after end             │
    │ bytes=-          │ 400             │ no numbers at all           │
    │ items=0-10       │ 400             │ unknown unit                │
    └──────────────────┴─────────────────┴─────────────────────────────┘

In the suffix form the number is a LENGTH, not an offset: "-100" means
"the last 100 bytes", i.e. start = size - 100, end = size - 1.

Only the first range of a multi-range header ("bytes=0-1,5-6") is
honoured; multipart/byteranges responses are not produced.

=============================================================================
VALID VS INVALID
=============================================================================

A resolved range must satisfy

    0 <= start <= end <= size - 1

Anything else is rejected with 416 and "Content-Range: bytes */<size>".
Ranges are never clamped into the file. A header that cannot be read at
all is a client error (400), and the full file is NOT sent in its place.

    206 Partial Content
    Content-Range: bytes 900-999/1000
    Content-Length: 100

=============================================================================
"""

import re
from dataclasses import dataclass

from ..http.status_codes import HTTPStatus


class RangeError(Exception):
    """Base class for Range header failures. Carries the status to answer."""

    status_code = HTTPStatus.BAD_REQUEST


class MalformedRange(RangeError):
    """The header does not follow "bytes=<start>-<end>"."""

    status_code = HTTPStatus.BAD_REQUEST


class RangeNotSatisfiable(RangeError):
    """The range does not fit inside the file."""

    status_code = HTTPStatus.RANGE_NOT_SATISFIABLE

    def __init__(self, message: str, total_size: int):
        super().__init__(message)
        self.total_size = total_size

    @property
    def content_range(self) -> str:
        """Content-Range value for the 416 response ("bytes */1000")."""
        return f"bytes */{self.total_size}"


@dataclass(frozen=True)
class ByteRange:
    """Inclusive interval [start, end] of file bytes."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, total_size: int) -> str:
        """Content-Range value for the 206 response ("bytes 0-99/1000")."""
        return f"bytes {self.start}-{self.end}/{total_size}"


RANGE_PATTERN = re.compile(r"^\s*bytes\s*=\s*(\d*)\s*-\s*(\d*)\s*(?:,|$)")


def parse_range(range_header: str, total_size: int) -> ByteRange:
    """
    Resolve a Range header against a file size.

    Args:
        range_header: Value of the Range request header.
        total_size: Size of the file in bytes.

    Returns:
        The byte interval to send.

    Raises:
        MalformedRange: Syntax error (answer 400).
        RangeNotSatisfiable: Range outside the file (answer 416).
    """
    match = RANGE_PATTERN.match(range_header)
    if not match:
        raise MalformedRange(f"Malformed Range header: {range_header!r}")

    first, last = match.groups()
    if not first and not last:
        raise MalformedRange(f"Range header has no positions: {range_header!r}")

    if not first:
        # Suffix form: "last N bytes".
        start = total_size - int(last)
        end = total_size - 1
    elif not last:
        start = int(first)
        end = total_size - 1
    else:
        start = int(first)
        end = int(last)

    if start < 0 or start > end or end > total_size - 1:
        raise RangeNotSatisfiable(
            f"Range {start}-{end} not satisfiable for {total_size} bytes",
            total_size,
        )

    return ByteRange(start, end)
