"""
=============================================================================
FRESHNESS: CACHE VALIDATION HEADERS AND CONDITIONAL GET
=============================================================================

Computes the caching headers for a file and decides whether a client's
cached copy is still good enough to answer 304 Not Modified.

=============================================================================
THE HEADERS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CACHE VALIDATION HEADERS                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Cache-Control: public, max-age=3600                               │
    │   Expires: Tue, 02 Jan 2024 11:00:00 GMT      (now + max-age)       │
    │   Last-Modified: Tue, 02 Jan 2024 09:30:12 GMT  (file mtime)        │
    │   ETag: W/"1f4-18cc98258a0"                                         │
    │            │  ─┬─ ──────┬────                                       │
    │            │   │        └── mtime in milliseconds, hex              │
    │            │   └── size in bytes, hex                               │
    │            └── weak validator                                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The ETag is WEAK: it is built from metadata, not content. It changes when
size or mtime changes, and two different files with identical metadata
share it. That is acceptable for a static server and costs one stat()
instead of hashing the whole file on every request.

=============================================================================
CONDITIONAL GET
=============================================================================

    Client                                   Server
      │  GET /app.js                            │
      │  If-None-Match: W/"1f4-18cc98258a0"     │
      │ ──────────────────────────────────────► │  compare with current ETag
      │                                          │
      │  304 Not Modified (no body)              │  equal → 304
      │ ◄────────────────────────────────────── │

Rules applied by is_fresh():

    1. Neither If-None-Match nor If-Modified-Since → NOT fresh.
    2. If-None-Match present → must equal our ETag exactly.
    3. If-Modified-Since present → must equal our Last-Modified string
       exactly. This is a literal string comparison, not a date
       comparison: a client holding a NEWER date still gets a 200.
    4. Fresh only if every condition present holds.

=============================================================================
INTERVIEW QUESTIONS ABOUT CONDITIONAL REQUESTS
=============================================================================

Q: "Why does a weak ETag start with W/?"
A: "It tells caches the tag only promises semantic equivalence, not
   byte-for-byte identity. A byte-range response must not be stitched
   together from representations that only share a weak tag."

Q: "Why send both Last-Modified and an ETag?"
A: "Older caches and proxies only understand Last-Modified. The ETag
   also catches changes within the same second, because the mtime in it
   has millisecond resolution."

=============================================================================
"""

import time
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from ..config import ServerConfig
from ..core.filesystem import FileMetadata
from ..http.response import http_date


@dataclass(frozen=True)
class ValidationHeaders:
    """
    Caching headers derived from one FileMetadata snapshot.

    A field is None when the matching header is disabled in the config;
    disabled headers are omitted, never defaulted.
    """

    etag: Optional[str] = None
    last_modified: Optional[str] = None
    cache_control: Optional[str] = None
    expires: Optional[str] = None

    def as_headers(self) -> Dict[str, str]:
        """Header name → value for the enabled headers only."""
        pairs = (
            ("Expires", self.expires),
            ("Cache-Control", self.cache_control),
            ("Last-Modified", self.last_modified),
            ("ETag", self.etag),
        )
        return {name: value for name, value in pairs if value is not None}


def weak_etag(metadata: FileMetadata) -> str:
    """
    Weak validator from size and modification time.

        size=500, mtime=1704187812000 ms → W/"1f4-18cc98258a0"
    """
    return f'W/"{metadata.size:x}-{metadata.modified_ms:x}"'


class FreshnessEvaluator:
    """
    Computes validation headers and evaluates conditional requests.

    Usage:
        evaluator = FreshnessEvaluator(config)
        validation = evaluator.compute_headers(metadata)
        if evaluator.is_fresh(request.headers, validation):
            ...  # 304
    """

    def __init__(self, config: ServerConfig):
        self.config = config

    def compute_headers(
        self,
        metadata: FileMetadata,
        now: Optional[float] = None,
    ) -> ValidationHeaders:
        """
        Build the validation headers for a file.

        Args:
            metadata: Stat snapshot of the file.
            now: Current POSIX time, for Expires (defaults to time.time()).
        """
        config = self.config

        expires = None
        if config.expires:
            current = time.time() if now is None else now
            expires = http_date(current + config.max_age)

        return ValidationHeaders(
            etag=weak_etag(metadata) if config.etag else None,
            last_modified=http_date(metadata.modified_at) if config.last_modified else None,
            cache_control=f"public, max-age={config.max_age}" if config.cache_control else None,
            expires=expires,
        )

    def is_fresh(
        self,
        request_headers: Mapping[str, str],
        validation: ValidationHeaders,
    ) -> bool:
        """
        Decide whether the client's cached copy is still valid.

        Args:
            request_headers: Request headers with lowercase names.
            validation: Headers computed for the current file.

        Returns:
            True if a 304 Not Modified should be sent.
        """
        none_match = request_headers.get("if-none-match")
        modified_since = request_headers.get("if-modified-since")

        if not (none_match or modified_since):
            return False

        if none_match and none_match != validation.etag:
            return False

        # TODO: compare If-Modified-Since as a date ("not older than")
        # rather than as a literal string.
        if modified_since and modified_since != validation.last_modified:
            return False

        return True
