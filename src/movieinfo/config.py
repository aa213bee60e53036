"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration management for the movie information server.

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
    │      └── python -m movieinfo --port 36000                          │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── MOVIEINFO_PORT=36000 python -m movieinfo                  │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The OMDb API key is read from OMDB_API_KEY and never hard-coded. Without a
key the provider still runs and OMDb answers with its own error document,
which the search page renders like any other failed lookup.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


FRAMING_HTTP = "http"
FRAMING_LEGACY = "legacy"

DEFAULT_PORT = 35000
DEFAULT_OMDB_URL = "http://www.omdbapi.com/"
DEFAULT_TITLE = "Guardians of the galaxy"


@dataclass
class ServerConfig:
    """
    Configuration for the movie information server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout, max_line_size

    CONCURRENCY
    - workers, queue_size

    WIRE FORMAT
    - framing, strict_query

    PROVIDER
    - omdb_url, omdb_api_key, provider_timeout

    SEARCH PAGE
    - default_title

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces
    - "127.0.0.1" - Localhost only
    """

    port: int = DEFAULT_PORT
    """The port number to listen on. 0 lets the OS pick one (tests)."""

    backlog: int = 128
    """Maximum number of queued connections before new ones are refused."""

    buffer_size: int = 8192
    """Size of each recv() call in bytes."""

    timeout: Optional[float] = 30.0
    """
    Client socket timeout in seconds.
    A client that connects but never sends a full line is dropped after this.
    """

    max_line_size: int = 8192
    """
    Longest request line accepted, in bytes.
    Longer lines are answered with 414 URI Too Long.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 0
    """
    Number of worker threads.
    0 = serve each connection inline in the accept loop (strictly serial).
    N = hand connections to a pool of N worker threads.
    """

    queue_size: int = 100
    """Pending connections the worker pool will hold before answering 503."""

    # ─────────────────────────────────────────────────────────────────────
    # WIRE FORMAT
    # ─────────────────────────────────────────────────────────────────────

    framing: str = FRAMING_HTTP
    """
    How responses are written back.
    - "http"   - Full HTTP/1.1 responses for both JSON and HTML
    - "legacy" - Raw JSON line; only the HTML page gets a status line
    """

    strict_query: bool = False
    """
    Reject query pairs without '=' (400) instead of skipping them.
    """

    # ─────────────────────────────────────────────────────────────────────
    # PROVIDER
    # ─────────────────────────────────────────────────────────────────────

    omdb_url: str = DEFAULT_OMDB_URL
    omdb_api_key: Optional[str] = None

    provider_timeout: float = 10.0
    """Seconds to wait for OMDb before giving up with 502 Bad Gateway."""

    # ─────────────────────────────────────────────────────────────────────
    # SEARCH PAGE
    # ─────────────────────────────────────────────────────────────────────

    default_title: str = DEFAULT_TITLE
    """Value pre-filled in the search box of the default page."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    log_format: str = "text"
    """
    Access log format: 'json' or 'text'.
    JSON is better for log aggregators, text for humans.
    """

    server_name: str = "MovieInfo/1.0"
    """Value of the Server header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        MOVIEINFO_HOST              Bind address (default: 0.0.0.0)
        MOVIEINFO_PORT              Listening port (default: 35000)
        MOVIEINFO_TIMEOUT           Client read timeout (default: 30)
        MOVIEINFO_WORKERS           Worker threads, 0 = inline (default: 0)
        MOVIEINFO_FRAMING           http | legacy (default: http)
        MOVIEINFO_PROVIDER_TIMEOUT  OMDb timeout (default: 10)
        MOVIEINFO_LOG_LEVEL         Logging level (default: INFO)
        MOVIEINFO_LOG_FORMAT        text | json (default: text)
        OMDB_URL                    OMDb base URL
        OMDB_API_KEY                OMDb API key

        =====================================================================
        """
        return cls(
            host=os.getenv("MOVIEINFO_HOST", "0.0.0.0"),
            port=int(os.getenv("MOVIEINFO_PORT", str(DEFAULT_PORT))),
            timeout=float(os.getenv("MOVIEINFO_TIMEOUT", "30")),
            workers=int(os.getenv("MOVIEINFO_WORKERS", "0")),
            framing=os.getenv("MOVIEINFO_FRAMING", FRAMING_HTTP),
            omdb_url=os.getenv("OMDB_URL", DEFAULT_OMDB_URL),
            omdb_api_key=os.getenv("OMDB_API_KEY"),
            provider_timeout=float(os.getenv("MOVIEINFO_PROVIDER_TIMEOUT", "10")),
            log_level=os.getenv("MOVIEINFO_LOG_LEVEL", "INFO"),
            log_format=os.getenv("MOVIEINFO_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value fails before the socket is bound.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.workers < 0:
            raise ValueError("workers must be >= 0")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_line_size < 16:
            raise ValueError("max_line_size must be >= 16")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.provider_timeout <= 0:
            raise ValueError("provider_timeout must be > 0")

        if self.framing not in (FRAMING_HTTP, FRAMING_LEGACY):
            raise ValueError(
                f"Invalid framing: {self.framing!r}. "
                f"Must be {FRAMING_HTTP!r} or {FRAMING_LEGACY!r}."
            )

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format!r}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with dataclass
# 2. Environment variable support (MOVIEINFO_*, OMDB_*)
# 3. Validation at startup
# 4. Defaults: port 35000, serial handling, full HTTP framing
# =============================================================================
