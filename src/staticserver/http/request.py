"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses a raw HTTP/1.1 request head into a structured HTTPRequest.
Implements the request-line and header grammar of RFC 7230.

=============================================================================
WHAT A STATIC SERVER NEEDS FROM A REQUEST
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /docs/guide.html?v=2 HTTP/1.1\r\n        ← request line        │
    │  Host: localhost:8080\r\n                                           │
    │  If-None-Match: W/"1a2b-18c3f0e7d20"\r\n      ← freshness           │
    │  If-Modified-Since: Tue, 02 Jan ... GMT\r\n   ← freshness           │
    │  Range: bytes=0-1023\r\n                      ← partial content     │
    │  Accept-Encoding: gzip, deflate\r\n           ← compression         │
    │  Connection: keep-alive\r\n                   ← connection reuse    │
    │  \r\n                                         ← end of head         │
    └─────────────────────────────────────────────────────────────────────┘

GET and HEAD requests carry no body, so the parser only ever sees the
head. Any body a client sends with another method is never read; those
requests are answered with 405 and the connection is closed.

=============================================================================
PARSING CHALLENGES
=============================================================================

1. LINE ENDINGS: header lines end with CRLF, the head ends with CRLFCRLF.
2. CASE: methods are case-sensitive, header NAMES are not. Names are
   stored lowercase so lookups never need .lower().
3. REPEATED HEADERS: "Accept-Encoding: gzip" + "Accept-Encoding: br"
   is equivalent to "Accept-Encoding: gzip, br".
4. PERCENT-ENCODING: "/my%20file.txt" names the file "my file.txt".

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import unquote, urlsplit


class HTTPParseError(Exception):
    """
    Raised when a request head cannot be parsed.

    Carries the status code to answer with:

        400 Bad Request                - Malformed request syntax
        405 Method Not Allowed         - Unknown method token
        413 Payload Too Large          - Head exceeds the size limit
        505 HTTP Version Not Supported - Not HTTP/1.0 or HTTP/1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:         Request method ("GET", "HEAD", ...).
        path:           Percent-decoded path without the query string.
        target:         The request-target exactly as the client sent it
                        ("/docs?x=1"). Used in 404 bodies and redirects.
        query:          Raw query string without "?" ("" when absent).
        version:        "HTTP/1.1" or "HTTP/1.0".
        headers:        Header name (lowercase) → value.
        client_address: (ip, port) of the peer, for access logs.
    """

    method: str
    path: str
    target: str = ""
    query: str = ""
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    client_address: tuple = ("", 0)

    def __post_init__(self):
        if not self.target:
            self.target = self.path + (f"?{self.query}" if self.query else "")

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def is_head(self) -> bool:
        """HEAD gets the GET headers without the body."""
        return self.method == "HEAD"

    @property
    def has_trailing_slash(self) -> bool:
        return self.path.endswith("/")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the client wants the connection kept open.

            HTTP/1.1: keep alive unless "Connection: close"
            HTTP/1.0: close unless "Connection: keep-alive"
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw request-head bytes into HTTPRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        1. Size check                → 413 if the head is too large
        2. Decode as ISO-8859-1      → header bytes map 1:1 to characters
        3. Parse request line        → METHOD SP TARGET SP VERSION
        4. Parse header lines        → lowercase name → value
        5. Build HTTPRequest

    ==========================================================================
    """

    VALID_METHODS = frozenset({
        "GET", "HEAD", "POST", "PUT", "DELETE",
        "PATCH", "OPTIONS", "TRACE", "CONNECT",
    })

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:\s]+):\s*(.*?)\s*$")

    def __init__(self, max_request_size: int = 64 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple = ("", 0),
    ) -> HTTPRequest:
        """
        Parse a request head.

        Args:
            data: Raw bytes up to (and optionally including) the blank line.
            client_address: Peer (ip, port) for logging.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: If the head is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request head too large: {len(data)} bytes",
                status_code=413,
            )

        head_end = data.find(b"\r\n\r\n")
        if head_end != -1:
            data = data[:head_end]

        # Latin-1 never fails to decode; invalid bytes show up as odd
        # characters and are rejected by the patterns below.
        lines = data.decode("iso-8859-1").split("\r\n")
        if not lines or not lines[0]:
            raise HTTPParseError("Empty request")

        method, target, version = self._parse_request_line(lines[0])
        path, query = self._split_target(target)
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            target=target,
            query=query,
            version=version,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple:
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        return method, target, version

    def _split_target(self, target: str) -> tuple:
        """
        Split a request-target into decoded path and raw query.

            "/my%20docs/?sort=name" → ("/my docs/", "sort=name")
        """
        if not target.startswith("/"):
            raise HTTPParseError(f"Unsupported request target: {target!r}")

        parts = urlsplit(target)
        path = unquote(parts.path) or "/"

        # A ".." segment would climb out of the served tree.
        if ".." in path.split("/"):
            raise HTTPParseError("Invalid path: contains '..' segment")

        if "\x00" in path:
            raise HTTPParseError("Invalid path: contains NUL byte")

        return path, parts.query

    def _parse_headers(self, lines: list) -> Dict[str, str]:
        """
        Parse header lines into a lowercase-keyed dictionary.

        Obsolete line folding (continuation lines starting with a space
        or tab) is joined onto the previous header. Repeated headers are
        combined with ", ". Lines that do not look like headers are
        skipped.
        """
        headers: Dict[str, str] = {}
        current_name: Optional[str] = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.lower()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple = ("", 0),
    max_size: int = 64 * 1024,
) -> HTTPRequest:
    """One-shot helper around RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
