"""
=============================================================================
STATIC SERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 127.0.0.1:8080
    python -m staticserver

    # Serve ./public on port 3000, without ETags
    python -m staticserver -p 3000 -r ./public --etag false

    # Listen on all interfaces, cache for a day
    staticserver -H 0.0.0.0 --maxage 86400

Every option overrides the matching STATIC_* environment variable,
which in turn overrides the built-in default (see config.py).

Boolean options take an optional value: "-t" alone means true,
"-t false" (or no/off/0) turns the header off.

Exit status 2 means the configuration was invalid.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig, parse_bool
from .server import StaticServer


def _bool_arg(value: str) -> bool:
    try:
        return parse_bool(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Serve a directory tree over HTTP/1.1",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        epilog="""
Examples:
  staticserver                          # Serve . on 127.0.0.1:8080
  staticserver -p 3000 -r ./public      # Custom port and root
  staticserver --etag false             # No ETag header
  staticserver -H 0.0.0.0 -m 86400      # All interfaces, 1 day max-age
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("-H", "--host", help="Address to bind (default: 127.0.0.1)")
    parser.add_argument("-p", "--port", type=int, help="Port to listen on (default: 8080)")

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("-r", "--root", help="Directory to serve (default: .)")
    parser.add_argument(
        "-i", "--index",
        dest="index_page",
        help="File served for directory requests (default: index.html)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # CACHING
    # ─────────────────────────────────────────────────────────────────────

    flags = (
        ("-c", "--cachecontrol", "cache_control", "Cache-Control"),
        ("-e", "--expires", "expires", "Expires"),
        ("-t", "--etag", "etag", "ETag"),
        ("-l", "--lastmodified", "last_modified", "Last-Modified"),
    )
    for short, long, dest, header in flags:
        parser.add_argument(
            short, long,
            dest=dest,
            nargs="?",
            const=True,
            type=_bool_arg,
            metavar="BOOL",
            help=f"Send the {header} header (default: true)",
        )

    parser.add_argument(
        "-m", "--maxage",
        dest="max_age",
        type=int,
        help="max-age in seconds for Cache-Control and Expires (default: 3600)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Access log format (default: text)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # META
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("-?", "--help", action="help", help="Show this message and exit")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment defaults with the given command-line options on top."""
    return ServerConfig.from_env().with_overrides(
        host=args.host,
        port=args.port,
        root=args.root,
        index_page=args.index_page,
        cache_control=args.cache_control,
        expires=args.expires,
        etag=args.etag,
        last_modified=args.last_modified,
        max_age=args.max_age,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        config.validate()
    except ValueError as e:
        print(f"staticserver: {e}", file=sys.stderr)
        return 2

    StaticServer(config).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
