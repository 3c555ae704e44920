"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

One immutable settings object for the whole process.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m staticserver --port 3000 --etag false           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── STATIC_PORT=3000 python -m staticserver                   │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The config is a FROZEN dataclass. It is built once at startup and handed
to every component constructor. Nothing mutates it afterwards, so
concurrent requests can share it without coordination.

    config = ServerConfig.from_env().with_overrides(port=3000)
    config.validate()
    server = StaticServer(config)

=============================================================================
CACHING SETTINGS
=============================================================================

Four response headers are toggled independently:

    cache_control   →  Cache-Control: public, max-age=<max_age>
    expires         →  Expires: <now + max_age>
    etag            →  ETag: W/"<size-hex>-<mtime-hex>"
    last_modified   →  Last-Modified: <file mtime>

A disabled header is left out of the response entirely.

=============================================================================
"""

import os
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Optional


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def parse_bool(value: str) -> bool:
    """
    Parse a boolean from a CLI or environment string.

    Accepts true/false, yes/no, on/off and 1/0 in any case.

    Raises:
        ValueError: If the value is not a recognized boolean.
    """
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    return default if value is None else parse_bool(value)


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port

    CONTENT
    - root, index_page, compress_pattern, compression_level, chunk_size

    CACHING
    - cache_control, expires, etag, last_modified, max_age

    CONNECTIONS
    - timeout, keep_alive, keep_alive_timeout, max_request_size

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind. Use "0.0.0.0" inside containers."""

    port: int = 8080
    """TCP port to listen on. 0 lets the OS pick a free port."""

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    root: str = "."
    """Directory tree served to clients (read-only)."""

    index_page: str = "index.html"
    """File served for a directory request ending in "/"."""

    compress_pattern: str = r"^\.(css|js|html)$"
    """
    Regular expression matched against the file extension (with the dot).
    Only matching files are candidates for gzip/deflate encoding.
    """

    compression_level: int = 6
    """zlib level, 1 (fastest) to 9 (smallest)."""

    chunk_size: int = 64 * 1024
    """Bytes read from disk and written to the socket per step."""

    # ─────────────────────────────────────────────────────────────────────
    # CACHING SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    cache_control: bool = True
    expires: bool = True
    etag: bool = True
    last_modified: bool = True

    max_age: int = 3600
    """Freshness lifetime in seconds for Cache-Control and Expires."""

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTION SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    timeout: Optional[float] = 30.0
    """
    Per-request deadline in seconds, covering request reading and
    response production. None disables the deadline.
    """

    keep_alive: bool = True
    """Reuse connections for several requests (HTTP/1.1 default)."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    max_request_size: int = 64 * 1024
    """
    Maximum size of the request head in bytes. A static server never
    reads request bodies, so this only bounds the header block.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    server_name: str = "StaticServer/1.0"
    """Value of the Server response header."""

    # =========================================================================
    # CONSTRUCTORS
    # =========================================================================

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATIC_HOST            Bind address (default: 127.0.0.1)
        STATIC_PORT            Port (default: 8080)
        STATIC_ROOT            Root directory (default: .)
        STATIC_INDEX           Index page (default: index.html)
        STATIC_CACHE_CONTROL   true/false (default: true)
        STATIC_EXPIRES         true/false (default: true)
        STATIC_ETAG            true/false (default: true)
        STATIC_LAST_MODIFIED   true/false (default: true)
        STATIC_MAX_AGE         Seconds (default: 3600)
        STATIC_TIMEOUT         Seconds (default: 30)
        STATIC_LOG_LEVEL       Logging level (default: INFO)

        =====================================================================
        """
        defaults = cls()
        return cls(
            host=os.getenv("STATIC_HOST", defaults.host),
            port=int(os.getenv("STATIC_PORT", str(defaults.port))),
            root=os.getenv("STATIC_ROOT", defaults.root),
            index_page=os.getenv("STATIC_INDEX", defaults.index_page),
            cache_control=_env_bool("STATIC_CACHE_CONTROL", defaults.cache_control),
            expires=_env_bool("STATIC_EXPIRES", defaults.expires),
            etag=_env_bool("STATIC_ETAG", defaults.etag),
            last_modified=_env_bool("STATIC_LAST_MODIFIED", defaults.last_modified),
            max_age=int(os.getenv("STATIC_MAX_AGE", str(defaults.max_age))),
            timeout=float(os.getenv("STATIC_TIMEOUT", str(defaults.timeout))),
            log_level=os.getenv("STATIC_LOG_LEVEL", defaults.log_level),
        )

    def with_overrides(self, **overrides: Any) -> "ServerConfig":
        """
        Return a copy with the given fields replaced.

        None values are skipped, so unset CLI options fall through to
        the current value:

            config.with_overrides(port=args.port, etag=args.etag)
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def validate(self) -> None:
        """
        Validate configuration values (fail fast at startup).

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not os.path.isdir(self.root):
            raise ValueError(f"Root directory does not exist: {self.root}")

        if not self.index_page or "/" in self.index_page:
            raise ValueError(f"Invalid index page name: {self.index_page!r}")

        if self.max_age < 0:
            raise ValueError("max_age must be >= 0")

        if not 1 <= self.compression_level <= 9:
            raise ValueError("compression_level must be between 1 and 9")

        if self.chunk_size < 1024:
            raise ValueError("chunk_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.keep_alive_timeout <= 0:
            raise ValueError("keep_alive_timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log format: {self.log_format!r}")

        try:
            re.compile(self.compress_pattern)
        except re.error as e:
            raise ValueError(f"Invalid compress_pattern: {e}") from e

    @property
    def root_path(self) -> str:
        """Absolute form of the root directory."""
        return os.path.abspath(self.root)
