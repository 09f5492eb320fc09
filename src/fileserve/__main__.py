"""
=============================================================================
FILESERVE CLI ENTRY POINT
=============================================================================

    # Serve the current directory on localhost:8080
    python -m fileserve

    # Serve a media folder to the network
    python -m fileserve /srv/media --host 0.0.0.0 --port 9000

    # Files under /files/..., always downloaded, never cached
    python -m fileserve ./dist --prefix /files --download --no-cache

Defaults come from FILESERVE_* environment variables (see
ServerConfig.from_env); command-line arguments override them.
=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig
from .server import HTTPServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileserve",
        description="Range-aware static file server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fileserve                               # Serve . on 127.0.0.1:8080
  fileserve /srv/media --host 0.0.0.0     # Listen on all interfaces
  fileserve ./dist --prefix /files        # Serve under /files/
  fileserve . --no-ranges --no-cache      # Plain 200s, no caching
        """
    )

    parser.add_argument(
        "root",
        nargs="?",
        default=defaults.root_dir,
        help=f"Directory to serve (default: {defaults.root_dir})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", default=defaults.host,
                        help=f"Host to bind to (default: {defaults.host})")
    parser.add_argument("--port", "-p", type=int, default=defaults.port,
                        help=f"Port to listen on (default: {defaults.port})")
    parser.add_argument("--workers", "-w", type=int, default=defaults.max_workers,
                        help=f"Simultaneous connections (default: {defaults.max_workers})")

    # ─────────────────────────────────────────────────────────────────────
    # TRANSFER
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--chunk-size", type=int, default=defaults.chunk_size,
                        help=f"Bytes per streamed chunk (default: {defaults.chunk_size})")
    parser.add_argument("--prefix", default=defaults.url_prefix,
                        help="URL path to serve files under, e.g. /files")
    parser.add_argument("--cache-max-age", type=int, default=defaults.cache_max_age,
                        help=f"Cache-Control max-age in seconds (default: {defaults.cache_max_age})")
    parser.add_argument("--no-cache", action="store_true", default=defaults.disable_cache,
                        help="Send no-cache headers and no ETag")
    parser.add_argument("--no-ranges", action="store_true", default=not defaults.accept_ranges,
                        help="Ignore Range headers, always send the whole file")
    parser.add_argument("--download", action="store_true", default=defaults.download,
                        help="Content-Disposition: attachment (browsers save instead of display)")

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / META
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--log-level", "-l", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        default=defaults.log_level.upper(),
                        help=f"Logging level (default: {defaults.log_level})")
    parser.add_argument("--log-format", choices=["text", "json"], default=defaults.log_format,
                        help=f"Access log format (default: {defaults.log_format})")
    parser.add_argument("--version", "-v", action="version",
                        version=f"fileserve {__version__}")

    return parser


def config_from_args(argv: Optional[Sequence[str]] = None) -> ServerConfig:
    """Environment defaults, overridden by command-line arguments."""
    defaults = ServerConfig.from_env()
    args = build_parser(defaults).parse_args(argv)

    defaults.root_dir = args.root
    defaults.host = args.host
    defaults.port = args.port
    defaults.max_workers = args.workers
    defaults.chunk_size = args.chunk_size
    defaults.url_prefix = args.prefix
    defaults.cache_max_age = args.cache_max_age
    defaults.disable_cache = args.no_cache
    defaults.accept_ranges = not args.no_ranges
    defaults.download = args.download
    defaults.log_level = args.log_level
    defaults.log_format = args.log_format
    return defaults


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        config = config_from_args(argv)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
