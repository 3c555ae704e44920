"""
=============================================================================
STATIC FILE RESPONSE PIPELINE
=============================================================================

Turns a path that is known to exist (a regular file) into the right
response: 304, 206, 416, 400 or 200, each with the right headers.

=============================================================================
STATE MACHINE
=============================================================================

    START
      │ stat()                     error ──► 500 Internal Server Error
      ▼
    STATTED
      │ compute validation headers (ETag, Last-Modified, ...)
      │
      ├── client cache fresh? ────────────► FRESH        304, no body
      │
      │ Content-Type, Accept-Ranges: bytes
      │
      ├── Range header?
      │     ├── malformed ────────────────► BAD_RANGE    400
      │     ├── outside the file ─────────► RANGE_INVALID 416
      │     └── valid ────────────────────► RANGED       206 + slice
      │
      └── no Range ───────────────────────► FULL         200 + file
                                              │
                          compressible? wrap the stream in gzip/deflate
                                              │
                                              ▼
                                          TERMINAL (stream to client)

The order is fixed: freshness first (a 304 needs no range or coding),
then ranges, then compression.

=============================================================================
HEADERS PER OUTCOME
=============================================================================

    ┌─────────┬──────────────────────────────────────────────────────────┐
    │ 304     │ ETag, Last-Modified, Cache-Control, Expires              │
    │         │ (no Content-Type, no body)                               │
    │ 416     │ validation headers, Content-Type, Accept-Ranges,         │
    │         │ Content-Range: bytes */<size>, empty body                │
    │ 206     │ validation headers, Content-Type, Accept-Ranges,         │
    │         │ Content-Range: bytes <start>-<end>/<size>                │
    │ 200     │ validation headers, Content-Type, Accept-Ranges          │
    │ + coded │ Content-Encoding, Vary: Accept-Encoding,                 │
    │         │ no Content-Length (chunked on the wire)                  │
    └─────────┴──────────────────────────────────────────────────────────┘

=============================================================================
"""

import logging

from ..config import ServerConfig
from ..core.filesystem import read_file, stat_path
from ..http import mime_types
from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse, ResponseBuilder, HTTPStatus,
    bad_request, internal_error,
)
from .compression import CompressionChoice, CompressionNegotiator
from .freshness import FreshnessEvaluator
from .ranges import MalformedRange, RangeNotSatisfiable, parse_range


logger = logging.getLogger(__name__)


class ResponsePipeline:
    """
    Serves one regular file.

    Usage:
        pipeline = ResponsePipeline(config)
        response = await pipeline.respond("/srv/www/app.js", request)

    The pipeline holds no per-request state; one instance serves every
    request concurrently.
    """

    def __init__(
        self,
        config: ServerConfig,
        freshness: FreshnessEvaluator = None,
        compression: CompressionNegotiator = None,
    ):
        self.config = config
        self.freshness = freshness or FreshnessEvaluator(config)
        self.compression = compression or CompressionNegotiator(config)

    async def respond(self, path: str, request: HTTPRequest) -> HTTPResponse:
        """
        Build the response for a file.

        Args:
            path: Absolute path of a file the router found to exist.
            request: The client request.
        """
        # ─────────────────────────────────────────────────────────────────
        # STATTED
        # ─────────────────────────────────────────────────────────────────
        # The router already saw this path. Failing now means it vanished
        # or became unreadable in between: an internal error, not a 404.
        try:
            metadata = await stat_path(path)
        except OSError as e:
            logger.error(f"Stat failed for {path}: {e}")
            return internal_error()

        validation = self.freshness.compute_headers(metadata)
        builder = ResponseBuilder().headers(validation.as_headers())

        # ─────────────────────────────────────────────────────────────────
        # FRESH → 304
        # ─────────────────────────────────────────────────────────────────
        if self.freshness.is_fresh(request.headers, validation):
            logger.debug(f"Not modified: {path}")
            return builder.status(HTTPStatus.NOT_MODIFIED).build()

        builder.content_type(mime_types.lookup(path))
        builder.header("Accept-Ranges", "bytes")

        # ─────────────────────────────────────────────────────────────────
        # RANGED → 206 / RANGE_INVALID → 416
        # ─────────────────────────────────────────────────────────────────
        range_header = request.headers.get("range")
        if range_header:
            try:
                byte_range = parse_range(range_header, metadata.size)
            except MalformedRange as e:
                logger.info(f"Rejecting range for {path}: {e}")
                return bad_request(str(e))
            except RangeNotSatisfiable as e:
                logger.info(f"Unsatisfiable range for {path}: {e}")
                return (builder
                    .status(HTTPStatus.RANGE_NOT_SATISFIABLE)
                    .header("Content-Range", e.content_range)
                    .body(b"")
                    .build())

            builder.status(HTTPStatus.PARTIAL_CONTENT)
            builder.header("Content-Range", byte_range.content_range(metadata.size))
            stream = read_file(
                path,
                byte_range.start,
                byte_range.end,
                chunk_size=self.config.chunk_size,
            )
            length = byte_range.length
        else:
            # ─────────────────────────────────────────────────────────────
            # FULL → 200
            # ─────────────────────────────────────────────────────────────
            stream = read_file(path, chunk_size=self.config.chunk_size)
            length = metadata.size

        # ─────────────────────────────────────────────────────────────────
        # COMPRESSION
        # ─────────────────────────────────────────────────────────────────
        extension = mime_types.get_extension(path)
        if not self.compression.is_compressible(extension):
            return builder.stream(stream, length=length).build()

        builder.header("Vary", "Accept-Encoding")
        choice = self.compression.negotiate(
            request.headers.get("accept-encoding"),
            extension,
        )
        if choice is CompressionChoice.NONE:
            return builder.stream(stream, length=length).build()

        return (builder
            .header("Content-Encoding", choice.content_encoding)
            .stream(self.compression.wrap(stream, choice))
            .build())
