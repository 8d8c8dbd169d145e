"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    python -m routedhttp                         # Defaults (127.0.0.1:3000)
    python -m routedhttp --port 8080             # Custom port
    python -m routedhttp --host 0.0.0.0          # All interfaces
    python -m routedhttp --public ./site         # Serve another site
    python -m routedhttp --data ./data           # Other JSON data
    python -m routedhttp -l DEBUG                # Log every dispatch

Unset options fall back to the HTTP_* environment variables read by
ServerConfig.from_env(), then to the built-in defaults.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, LOG_LEVELS
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="routedhttp",
        description="Small HTTP server with static pages and a JSON web service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m routedhttp                      # Run with defaults
  python -m routedhttp --port 8080          # Custom port
  python -m routedhttp --public ./site      # Serve another site
        """,
    )

    parser.add_argument("--host", "-H", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on (default: 3000)")
    parser.add_argument("--public", help="Directory of static pages")
    parser.add_argument("--data", help="Directory of JSON files served under /api")
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"routedhttp {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment-based config with any CLI flags layered on top."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.public is not None:
        config.public_dir = args.public
    if args.data is not None:
        config.data_dir = args.data
    if args.log_level is not None:
        config.log_level = args.log_level

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        server = HTTPServer(config_from_args(args))
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
