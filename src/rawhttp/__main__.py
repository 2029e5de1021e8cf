"""
=============================================================================
RAWHTTP CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 0.0.0.0:4221
    python -m rawhttp

    # Serve files from a directory
    python -m rawhttp --directory /tmp/files

    # Local only, custom port, JSON access log
    python -m rawhttp --host 127.0.0.1 --port 8080 --log-format json

Values not given on the command line fall back to the RAWHTTP_*
environment variables, then to the ServerConfig defaults.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import LOG_FORMATS, ServerConfig
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rawhttp",
        description="Minimal HTTP/1.1 server built on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m rawhttp                          # Serve the current directory
  python -m rawhttp --directory /tmp/files   # Serve another directory
  python -m rawhttp --port 8080              # Custom port
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0)",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 4221)",
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Read deadline per connection in seconds (default: 20)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        type=str,
        default=None,
        help="Directory served by /files/<name> (default: current directory)",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"rawhttp {__version__}",
    )

    return parser


def main(argv=None):
    """Parse arguments, build the config and run the server until stopped."""
    args = build_parser().parse_args(argv)

    try:
        config = ServerConfig.from_env().with_overrides(
            host=args.host,
            port=args.port,
            timeout=args.timeout,
            directory=args.directory,
            log_level=args.log_level,
            log_format=args.log_format,
        )
        server = HTTPServer(config)
        server.run()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
