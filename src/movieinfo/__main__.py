"""
=============================================================================
MOVIEINFO CLI ENTRY POINT
=============================================================================

    # Run with defaults (0.0.0.0:35000, serial, full HTTP responses)
    python -m movieinfo

    # Byte-compatible output for old clients
    python -m movieinfo --framing legacy

    # Concurrent handling
    python -m movieinfo --workers 8

    # OMDb key from the command line instead of OMDB_API_KEY
    python -m movieinfo --api-key abc123

Configuration is read from the environment first (ServerConfig.from_env),
then any flag given on the command line overrides it.

=============================================================================
EXIT CODES
=============================================================================

    0   Clean shutdown (SIGINT / SIGTERM)
    1   Invalid configuration, or the port could not be bound / accept failed

=============================================================================
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__
from .config import FRAMING_HTTP, FRAMING_LEGACY, ServerConfig
from .server import MovieInfoServer


logger = logging.getLogger("movieinfo")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="movieinfo",
        description="Single-line movie lookup server backed by OMDb",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m movieinfo                       # Run with defaults
  python -m movieinfo --port 8080           # Custom port
  python -m movieinfo --workers 8           # 8 worker threads
  python -m movieinfo --framing legacy      # Raw JSON line responses
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
        help="Port to listen on (default: 35000)",
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Worker threads; 0 handles connections one at a time (default: 0)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # PROTOCOL ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--framing",
        choices=[FRAMING_HTTP, FRAMING_LEGACY],
        default=None,
        help="Response wire format (default: http)",
    )

    parser.add_argument(
        "--strict-query",
        action="store_true",
        default=None,
        help="Answer 400 to query pairs without '=' instead of skipping them",
    )

    parser.add_argument(
        "--default-title",
        default=None,
        help="Title pre-filled in the search page",
    )

    # ─────────────────────────────────────────────────────────────────────
    # PROVIDER ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--omdb-url",
        default=None,
        help="OMDb base URL (default: http://www.omdbapi.com/)",
    )

    parser.add_argument(
        "--api-key",
        default=None,
        help="OMDb API key (default: $OMDB_API_KEY)",
    )

    parser.add_argument(
        "--provider-timeout",
        type=float,
        default=None,
        help="Seconds to wait for OMDb (default: 10)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"movieinfo {__version__}",
    )

    return parser


# CLI flag → ServerConfig field
_OVERRIDES = {
    "host": "host",
    "port": "port",
    "workers": "workers",
    "framing": "framing",
    "strict_query": "strict_query",
    "default_title": "default_title",
    "omdb_url": "omdb_url",
    "api_key": "omdb_api_key",
    "provider_timeout": "provider_timeout",
    "log_level": "log_level",
    "log_format": "log_format",
}


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Environment configuration with command-line overrides applied."""
    config = ServerConfig.from_env()
    for arg_name, field_name in _OVERRIDES.items():
        value = getattr(args, arg_name)
        if value is not None:
            setattr(config, field_name, value)
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns the process exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        config = build_config(args)
        config.validate()
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    server = MovieInfoServer(config)

    try:
        server.run()
    except OSError as e:
        logger.error(f"Server stopped: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Parse command-line arguments
# 2. Overlay them on the environment configuration
# 3. Build and run the server (blocking)
# 4. Map startup failures to exit code 1
# =============================================================================
