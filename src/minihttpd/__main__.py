"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    python -m minihttpd <port> <base_path>

    # Examples
    python -m minihttpd 8080 /var/www
    python -m minihttpd 8080 ./site --max-connections 64 --read-timeout 30
    python -m minihttpd 8080 ./site --no-log-file --hide-tracebacks

The two positional arguments are all that is required. The options add
limits the server does not apply by default.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minihttpd",
        description="HTTP/1.0 server for static files and form echo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m minihttpd 8080 /var/www                       # Serve /var/www
  python -m minihttpd 8080 ./site --max-connections 64    # Limit threads
  python -m minihttpd 8080 ./site --read-timeout 30       # Drop stalled clients
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # REQUIRED
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("port", type=int, help="Port to listen on")
    parser.add_argument("base_path", help="Document root (index.htm, 404.htm, 500.htm)")

    # ─────────────────────────────────────────────────────────────────────
    # OPTIONAL
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--max-connections",
        type=int,
        default=None,
        help="Handle at most this many connections at once (default: no limit)"
    )

    parser.add_argument(
        "--read-timeout",
        type=float,
        default=None,
        help="Seconds to wait for a request before answering 500 (default: wait forever)"
    )

    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Log to the console only, not to log.txt in the document root"
    )

    parser.add_argument(
        "--hide-tracebacks",
        action="store_true",
        help="Leave exception details out of 500 responses"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"minihttpd {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig(
            port=args.port,
            base_path=args.base_path,
            host=args.host,
            log_level=args.log_level,
            max_connections=args.max_connections,
            read_timeout=args.read_timeout,
            log_to_file=not args.no_log_file,
            expose_tracebacks=not args.hide_tracebacks,
        )
        HTTPServer(config).run()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
