"""
=============================================================================
HTTP RESPONSE MODEL AND BUILDER
=============================================================================

Builds HTTP/1.1 responses whose body is either a small in-memory byte
string (error pages, listings, redirects) or an asynchronous stream of
chunks (file contents).

=============================================================================
TWO KINDS OF BODY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   IN-MEMORY BODY (body: bytes)                                      │
    │   ─────────────────────────────                                     │
    │   404 page, 301 page, directory listing                             │
    │   Content-Length = len(body), known up front                        │
    │                                                                      │
    │   STREAMED BODY (stream: AsyncIterator[bytes])                      │
    │   ────────────────────────────────────────────                      │
    │   File contents, read chunk by chunk from disk                      │
    │   Content-Length set by the handler when known (plain or ranged),  │
    │   absent when the stream is compressed on the fly                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The connection layer decides the framing (Content-Length, chunked, or
close-delimited); see core/connection.py.

=============================================================================
BUILDER PATTERN
=============================================================================

    response = (ResponseBuilder()
        .status(HTTPStatus.PARTIAL_CONTENT)
        .header("Content-Range", "bytes 0-99/1000")
        .stream(chunks, length=100)
        .build())

Each method returns self so calls chain; build() returns the response.

=============================================================================
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from html import escape
from typing import AsyncIterator, Dict, Optional, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be written to a connection.

    Attributes:
        status:  Status code.
        headers: Header name → value, in insertion order.
        body:    In-memory body (ignored when stream is set).
        stream:  Async iterator of body chunks, or None.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    stream: Optional[AsyncIterator[bytes]] = field(default=None, repr=False)
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Status line, e.g. "HTTP/1.1 206 Partial Content"."""
        return f"{self.version} {self.status} {self.status.phrase}"

    @property
    def is_streamed(self) -> bool:
        return self.stream is not None

    @property
    def content_length(self) -> Optional[int]:
        """Declared body length, or None when it is not known up front."""
        if not self.is_streamed:
            return len(self.body)
        value = self.headers.get("Content-Length")
        return int(value) if value is not None else None

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def remove_header(self, name: str) -> "HTTPResponse":
        self.headers.pop(name, None)
        return self

    def head_bytes(self, server_name: str = "StaticServer/1.0") -> bytes:
        """
        Serialize the status line and headers, ending with the blank line.

        Date and Server are added when missing. Content-Length is added
        for in-memory bodies only; a 304 never gets one.
        """
        headers = dict(self.headers)

        if not self.is_streamed and self.status.allows_body:
            headers.setdefault("Content-Length", str(len(self.body)))

        headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        headers.setdefault("Server", server_name)

        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in headers.items())
        lines.append("")
        lines.append("")
        return "\r\n".join(lines).encode("latin-1")

    def to_bytes(self, server_name: str = "StaticServer/1.0") -> bytes:
        """Head plus in-memory body in one buffer."""
        if self.is_streamed:
            raise ValueError("Streamed responses cannot be serialized in one piece")
        return self.head_bytes(server_name) + self.body

    async def aclose(self) -> None:
        """Release the body stream if it was never fully consumed."""
        if self.stream is not None and hasattr(self.stream, "aclose"):
            await self.stream.aclose()


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.NOT_FOUND)
            .html("<h1>Not Found</h1>")
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._stream: Optional[AsyncIterator[bytes]] = None

    # =========================================================================
    # STATUS AND HEADERS
    # =========================================================================

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    # =========================================================================
    # BODY
    # =========================================================================

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self._stream = None
        return self

    def text(self, text: str) -> "ResponseBuilder":
        self.content_type("text/plain; charset=utf-8")
        return self.body(text)

    def html(self, html: str) -> "ResponseBuilder":
        self.content_type("text/html; charset=utf-8")
        return self.body(html)

    def stream(
        self,
        chunks: AsyncIterator[bytes],
        length: Optional[int] = None,
    ) -> "ResponseBuilder":
        """
        Stream the body from an async iterator.

        Args:
            chunks: Source of body bytes.
            length: Exact byte count if known; sets Content-Length.
        """
        self._stream = chunks
        self._body = b""
        if length is not None:
            self._headers["Content-Length"] = str(length)
        else:
            self._headers.pop("Content-Length", None)
        return self

    # =========================================================================
    # REDIRECTS
    # =========================================================================

    def redirect(self, location: str) -> "ResponseBuilder":
        """
        Redirect to another URL with a small HTML body linking to it.

        301 is used for directories: "/docs" has moved to "/docs/" for
        good, so clients and caches may remember it.
        """
        link = escape(location, quote=True)
        self._status = HTTPStatus.MOVED_PERMANENTLY
        self._headers["Location"] = location
        return self.html(f"Redirecting to <a href='{link}'>{link}</a>")

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
            stream=self._stream,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231 IMF-fixdate).

        Thu, 15 Jan 2026 12:30:45 GMT

    Naive datetimes are taken to be UTC. Always English day/month names,
    regardless of locale.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def http_date(timestamp: Optional[float] = None) -> str:
    """HTTP-date for a POSIX timestamp (default: now)."""
    if timestamp is None:
        timestamp = time.time()
    return format_http_date(datetime.fromtimestamp(timestamp, tz=timezone.utc))


# =============================================================================
# CONVENIENCE RESPONSES
# =============================================================================

def not_found(target: str) -> HTTPResponse:
    """404 page naming the requested URL."""
    url = escape(target)
    return (ResponseBuilder()
        .status(HTTPStatus.NOT_FOUND)
        .html(
            f"<h1>Not Found</h1>"
            f"<p>The requested URL {url} was not found on this server.</p>"
        )
        .build())


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.BAD_REQUEST).text(message).build()


def method_not_allowed(allowed: tuple = ("GET", "HEAD")) -> HTTPResponse:
    """405 with the Allow header RFC 7231 requires."""
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed))
        .text("Method Not Allowed")
        .build())


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return (ResponseBuilder()
        .status(HTTPStatus.INTERNAL_SERVER_ERROR)
        .text(message)
        .build())


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Plain-text error for failures detected before routing."""
    return (ResponseBuilder()
        .status(status)
        .header("Connection", "close")
        .text(message)
        .build())
