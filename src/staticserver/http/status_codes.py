"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes a static file server actually emits, with their reason
phrases and category helpers.

=============================================================================
STATUS CODES USED BY THIS SERVER
=============================================================================

    ┌──────┬──────────────────────────┬─────────────────────────────────────┐
    │ Code │ Phrase                   │ When                                │
    ├──────┼──────────────────────────┼─────────────────────────────────────┤
    │ 200  │ OK                       │ Full file or directory listing      │
    │ 206  │ Partial Content          │ Satisfiable Range header            │
    │ 301  │ Moved Permanently        │ Directory requested without "/"     │
    │ 304  │ Not Modified             │ Client cache is still fresh         │
    │ 400  │ Bad Request              │ Malformed request or Range syntax   │
    │ 404  │ Not Found                │ Path does not exist                 │
    │ 405  │ Method Not Allowed       │ Anything but GET/HEAD               │
    │ 408  │ Request Timeout          │ Client too slow to send headers     │
    │ 413  │ Payload Too Large        │ Header block over the size limit    │
    │ 416  │ Range Not Satisfiable    │ Range outside the file              │
    │ 500  │ Internal Server Error    │ Filesystem failure after routing    │
    │ 505  │ HTTP Version Not Supp.   │ Not HTTP/1.0 or HTTP/1.1            │
    └──────┴──────────────────────────┴─────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes as an IntEnum.

    Members compare equal to plain ints (HTTPStatus.OK == 200) and format
    as their number in f-strings, which is what the status line needs.
    """

    # 2xx Success
    OK = 200                         # Full representation follows
    PARTIAL_CONTENT = 206            # Range request fulfilled

    # 3xx Redirection
    MOVED_PERMANENTLY = 301          # Directory URL missing its trailing slash
    NOT_MODIFIED = 304               # Cached version is still valid

    # 4xx Client Errors
    BAD_REQUEST = 400                # Malformed syntax
    NOT_FOUND = 404                  # Nothing at this path
    METHOD_NOT_ALLOWED = 405         # Only GET and HEAD are served
    REQUEST_TIMEOUT = 408            # Request head not received in time
    PAYLOAD_TOO_LARGE = 413          # Request head too large
    RANGE_NOT_SATISFIABLE = 416      # Range outside [0, size - 1]

    # 5xx Server Errors
    INTERNAL_SERVER_ERROR = 500      # Unexpected filesystem or handler error
    HTTP_VERSION_NOT_SUPPORTED = 505

    def __str__(self) -> str:
        return str(self.value)

    def __format__(self, format_spec: str) -> str:
        return format(self.value, format_spec)

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line ("HTTP/1.1 200 OK")."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self < 400

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """4xx or 5xx."""
        return self >= 400

    @property
    def allows_body(self) -> bool:
        """
        Whether a response with this status may carry a body.

        304 responses never have one (RFC 7230 section 3.3.3).
        """
        return self != HTTPStatus.NOT_MODIFIED


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
