"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

One log line per request on the "staticserver.access" logger, with a
request ID echoed back to the client in X-Request-ID.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default), Apache-like:
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [02/Jan/2024:10:55:36 +0000] "GET /app.js HTTP/1.1"  │
    │     206 100 1.73ms a1b2c3d4                                         │
    └─────────────────────────────────────────────────────────────────────┘

    JSON, one object per line:
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "GET", "path": "/app.js",      │
    │  "status_code": 206, "content_length": 100, "duration_ms": 1.73,   │
    │  ...}                                                               │
    └─────────────────────────────────────────────────────────────────────┘

The logged duration covers response PRODUCTION (routing, stat, header
computation). Bytes are streamed to the client after the middleware has
returned, so transfer time is not included.

A compressed response has no known length; its size is logged as "-"
(text) or null (JSON).

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Optional

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from .base import Middleware, NextHandler


# Configure separately from application logs, e.g.
#   logging.getLogger("staticserver.access").addHandler(file_handler)
logger = logging.getLogger("staticserver.access")


@dataclass
class RequestLog:
    """Structured access log entry."""

    request_id: str
    method: str
    path: str
    query: str
    version: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: Optional[int]
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def to_text(self) -> str:
        size = "-" if self.content_length is None else self.content_length
        target = self.path + (f"?{self.query}" if self.query else "")
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {target} {self.version}" {self.status_code} '
            f'{size} {self.duration_ms:.2f}ms {self.request_id}'
        )


class LoggingMiddleware(Middleware):
    """
    Access logging with request IDs.

    Usage:
        pipeline.add(LoggingMiddleware(log_format="json"))

    Should be added first so it sees every request, including those
    answered by later middleware.
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
    ):
        if log_format not in ("text", "json"):
            raise ValueError(f"Invalid log format: {log_format!r}")
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level

    async def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        start = time.perf_counter()

        try:
            response = await next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                f"Request failed: {request.method} {request.target} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms) {request_id}"
            )
            raise

        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            query=request.query,
            version=request.version,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=response.content_length,
            duration_ms=(time.perf_counter() - start) * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if logger.isEnabledFor(self.log_level):
            message = entry.to_json() if self.log_format == "json" else entry.to_text()
            logger.log(self.log_level, message)

        if self.include_request_id:
            response.set_header("X-Request-ID", request_id)

        return response
