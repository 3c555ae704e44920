"""
=============================================================================
MIME TYPE RESOLUTION
=============================================================================

Maps file extensions to Content-Type header values.

=============================================================================
HOW LOOKUP WORKS
=============================================================================

    /srv/site/css/Style.CSS
                   ───┬───
                      │
                      └── final path segment → extension ".css"
                                                    │
                                    MIME_TYPES[".css"] = "text/css"
                                                    │
                            text type → "text/css; charset=utf-8"

    - The extension is the text after the LAST dot of the LAST segment.
    - Lookup is case-insensitive (".PNG" == ".png").
    - Unknown or missing extensions are a normal case, not an error:
      they fall back to DEFAULT_CONTENT_TYPE (plain text).

=============================================================================
WHY A CHARSET?
=============================================================================

Text responses should say how their bytes are encoded. Without a
charset a browser guesses, and a UTF-8 page with accented characters may
render as mojibake. Binary types (images, fonts, archives) have no
charset.

=============================================================================
"""

from pathlib import PurePath
from types import MappingProxyType
from typing import Mapping


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Lowercase extension (with dot) → MIME type. Wrapped in a MappingProxyType
# so the table stays read-only for the lifetime of the process.
#
# =============================================================================

MIME_TYPES: Mapping[str, str] = MappingProxyType({
    # -------------------------------------------------------------------------
    # WEB DOCUMENTS
    # -------------------------------------------------------------------------
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",

    # -------------------------------------------------------------------------
    # IMAGES
    # -------------------------------------------------------------------------
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".avif": "image/avif",
    ".bmp": "image/bmp",

    # -------------------------------------------------------------------------
    # FONTS
    # -------------------------------------------------------------------------
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # -------------------------------------------------------------------------
    # AUDIO / VIDEO
    # -------------------------------------------------------------------------
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/mp4",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",

    # -------------------------------------------------------------------------
    # DOCUMENTS / ARCHIVES / OTHER
    # -------------------------------------------------------------------------
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
    ".wasm": "application/wasm",
    ".yaml": "text/yaml",
    ".yml": "text/yaml",
})

# Text types outside text/* that still deserve a charset.
TEXT_LIKE_TYPES = frozenset({
    "application/json",
    "application/xml",
    "application/javascript",
    "image/svg+xml",
})

DEFAULT_CHARSET = "utf-8"
DEFAULT_CONTENT_TYPE = f"text/plain; charset={DEFAULT_CHARSET}"


# =============================================================================
# PUBLIC FUNCTIONS
# =============================================================================

def get_extension(path: "str | PurePath") -> str:
    """
    Extract the lowercase extension of the final path segment.

    Examples:
        >>> get_extension("/site/app.min.JS")
        '.js'
        >>> get_extension("/site/Makefile")
        ''
        >>> get_extension("/site/.hidden")
        ''
    """
    return PurePath(path).suffix.lower()


def is_text_type(mime_type: str) -> bool:
    """True for text/* and the text-based application types."""
    return mime_type.startswith("text/") or mime_type in TEXT_LIKE_TYPES


def lookup(path: "str | PurePath") -> str:
    """
    Content-Type header value for a file path.

    Examples:
        >>> lookup("index.html")
        'text/html; charset=utf-8'
        >>> lookup("logo.png")
        'image/png'
        >>> lookup("README")
        'text/plain; charset=utf-8'
    """
    mime_type = MIME_TYPES.get(get_extension(path))
    if mime_type is None:
        return DEFAULT_CONTENT_TYPE

    if is_text_type(mime_type):
        return f"{mime_type}; charset={DEFAULT_CHARSET}"

    return mime_type
