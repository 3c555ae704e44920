"""
=============================================================================
COMPRESSION NEGOTIATION
=============================================================================

Chooses a content coding from the client's Accept-Encoding header and
compresses the outgoing file stream on the fly.

=============================================================================
CONTENT NEGOTIATION
=============================================================================

    Request:
    ┌───────────────────────────────────────────────────────────────┐
    │ GET /app.js HTTP/1.1                                          │
    │ Accept-Encoding: gzip, deflate, br                            │
    └───────────────────────────────────────────────────────────────┘

    Response:
    ┌───────────────────────────────────────────────────────────────┐
    │ HTTP/1.1 200 OK                                               │
    │ Content-Type: text/javascript; charset=utf-8                  │
    │ Content-Encoding: gzip                                        │
    │ Vary: Accept-Encoding     (caches must key on the header)     │
    │ Transfer-Encoding: chunked (compressed size unknown upfront)  │
    │                                                               │
    │ [gzip stream]                                                 │
    └───────────────────────────────────────────────────────────────┘

Decision order:

    1. Extension not compressible      → NONE
    2. No Accept-Encoding              → NONE
    3. "gzip" appears as a word        → GZIP     (preferred)
    4. "deflate" appears as a word     → DEFLATE
    5. Anything else                   → NONE

Only text-like extensions are compressible (configurable pattern,
default .css/.js/.html). Images, video and archives are already
compressed; gzipping them burns CPU for nothing.

=============================================================================
STREAMING COMPRESSION
=============================================================================

The file is never loaded whole. Each chunk read from disk is pushed
through a zlib compressor object and whatever output it produces is
yielded; flush() at the end emits the trailer:

    disk chunk ──► compressobj.compress() ──► 0..n bytes out
    disk chunk ──► compressobj.compress() ──► 0..n bytes out
    (EOF)      ──► compressobj.flush()    ──► remaining bytes + trailer

    wbits=31 (16 + 15) → gzip container (header + CRC32 trailer)
    wbits=15           → zlib container, which is what HTTP calls "deflate"

Ranges and compression compose: for "Range: bytes=0-99" with gzip the
first 100 bytes of the FILE are compressed; Content-Range still
describes the uncompressed file.

=============================================================================
"""

import re
import zlib
from enum import Enum
from typing import AsyncIterator, Optional

from ..config import ServerConfig


class CompressionChoice(Enum):
    """Content coding applied to a response body."""

    NONE = None
    GZIP = "gzip"
    DEFLATE = "deflate"

    @property
    def content_encoding(self) -> Optional[str]:
        """Value for the Content-Encoding header (None for NONE)."""
        return self.value


_WBITS = {
    CompressionChoice.GZIP: 16 + zlib.MAX_WBITS,
    CompressionChoice.DEFLATE: zlib.MAX_WBITS,
}

GZIP_PATTERN = re.compile(r"\bgzip\b", re.IGNORECASE)
DEFLATE_PATTERN = re.compile(r"\bdeflate\b", re.IGNORECASE)


class CompressionNegotiator:
    """
    Picks and applies gzip/deflate for compressible files.

    Usage:
        negotiator = CompressionNegotiator(config)
        choice = negotiator.negotiate(accept_encoding, ".js")
        stream = negotiator.wrap(stream, choice)
    """

    def __init__(self, config: ServerConfig):
        self.level = config.compression_level
        self._compressible = re.compile(config.compress_pattern, re.IGNORECASE)

    def is_compressible(self, extension: str) -> bool:
        """True if files with this extension (".css") may be compressed."""
        return bool(extension) and self._compressible.search(extension) is not None

    def negotiate(
        self,
        accept_encoding: Optional[str],
        extension: str,
    ) -> CompressionChoice:
        """
        Choose a content coding.

        Args:
            accept_encoding: Accept-Encoding request header, or None.
            extension: File extension including the dot (".html").
        """
        if not self.is_compressible(extension) or not accept_encoding:
            return CompressionChoice.NONE

        if GZIP_PATTERN.search(accept_encoding):
            return CompressionChoice.GZIP

        if DEFLATE_PATTERN.search(accept_encoding):
            return CompressionChoice.DEFLATE

        return CompressionChoice.NONE

    def wrap(
        self,
        stream: AsyncIterator[bytes],
        choice: CompressionChoice,
    ) -> AsyncIterator[bytes]:
        """Compress a byte stream; NONE passes it through untouched."""
        if choice is CompressionChoice.NONE:
            return stream
        return self._compress(stream, choice)

    async def _compress(
        self,
        stream: AsyncIterator[bytes],
        choice: CompressionChoice,
    ) -> AsyncIterator[bytes]:
        compressor = zlib.compressobj(self.level, zlib.DEFLATED, _WBITS[choice])
        try:
            async for chunk in stream:
                data = compressor.compress(chunk)
                if data:
                    yield data
            yield compressor.flush()
        finally:
            if hasattr(stream, "aclose"):
                await stream.aclose()
