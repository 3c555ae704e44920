"""
=============================================================================
STATICSERVER: AN ASYNCHRONOUS STATIC FILE SERVER
=============================================================================

Serves a directory tree over HTTP/1.1 with the features browsers and
caches expect from a static host:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Conditional GET      ETag / Last-Modified  →  304 Not Modified   │
    │   Byte ranges          Range: bytes=0-99     →  206 / 416          │
    │   Compression          Accept-Encoding       →  gzip / deflate     │
    │   Directories          /docs → /docs/, index page or listing       │
    │   Caching headers      Cache-Control, Expires (configurable)       │
    └─────────────────────────────────────────────────────────────────────┘

Quick start:

    from staticserver import ServerConfig, StaticServer

    StaticServer(ServerConfig(root="./public", port=3000)).run()

Or from the shell:

    python -m staticserver -r ./public -p 3000

=============================================================================
PACKAGE LAYOUT
=============================================================================

    staticserver/
    ├── config.py          ServerConfig (frozen dataclass, env + CLI)
    ├── server.py          StaticServer (asyncio accept loop)
    ├── core/
    │   ├── connection.py  Per-client reading, framing, keep-alive
    │   └── filesystem.py  stat / scandir / read via the thread pool
    ├── http/
    │   ├── request.py     Request parser
    │   ├── response.py    Response model and builder
    │   ├── status_codes.py
    │   └── mime_types.py  Extension → Content-Type
    ├── handlers/
    │   ├── router.py      404 / redirect / index / listing / file
    │   ├── static.py      ResponsePipeline for one file
    │   ├── freshness.py   Validation headers, conditional GET
    │   ├── ranges.py      Range header parsing
    │   └── compression.py gzip / deflate negotiation and streaming
    └── middleware/
        └── logging.py     Access log, X-Request-ID

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import StaticServer

__all__ = [
    "ServerConfig",
    "StaticServer",
    "__version__",
]
