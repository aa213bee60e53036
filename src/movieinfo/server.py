"""
=============================================================================
MOVIE INFO SERVER
=============================================================================

The orchestrator that ties the listener, the request parser, the title
cache and the response framing together.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     MOVIE INFO SERVER                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                     ┌──────────────────┐                            │
    │                     │ MovieInfoServer  │                            │
    │                     └────────┬─────────┘                            │
    │                              │                                       │
    │        ┌─────────────────────┼──────────────────────┐               │
    │        ▼                     ▼                      ▼               │
    │  ┌─────────────┐     ┌──────────────┐      ┌───────────────┐        │
    │  │SocketServer │     │ ThreadPool   │      │ MovieService  │        │
    │  │ (listener)  │     │ (optional)   │      │  resolve()    │        │
    │  └──────┬──────┘     └──────────────┘      └───────┬───────┘        │
    │         ▼                                          │                 │
    │  ┌─────────────┐                       ┌───────────┴──────────┐     │
    │  │ Connection  │                       ▼                      ▼     │
    │  └─────────────┘                ┌─────────────┐      ┌────────────┐ │
    │                                 │ TitleCache  │      │  Provider  │ │
    │                                 └─────────────┘      │   (OMDb)   │ │
    │                                                      └────────────┘ │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. ACCEPT      SocketServer accepts a TCP connection
    2. DISPATCH    Inline (workers=0) or queued to the ThreadPool
    3. READ        Connection reads exactly one line
    4. PARSE       RequestParser extracts the raw title (or None)
    5. RESOLVE     No title      → search page
                   Cached title  → cached document
                   New title     → provider fetch, then cache
    6. FRAME       "http" or "legacy" wire format
    7. WRITE       One response
    8. CLOSE       Always; no keep-alive

=============================================================================
ERROR MAPPING
=============================================================================

    QueryParseError   (strict mode)       → 400 Bad Request
    LineTooLongError                      → 414 URI Too Long
    ProviderError                         → its status code (502 if unknown)
    anything else in the handler          → 500 Internal Server Error
    anything else on the connection       → logged, connection closed
    worker queue full                     → 503 Service Unavailable
    read timeout / client sent nothing    → closed without a response

All error bodies use OMDb's shape: {"Response":"False","Error":"..."}

=============================================================================
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from .access_log import AccessLogger
from .cache import TitleCache
from .config import ServerConfig
from .core import Connection, LineTooLongError, SocketServer, ThreadPool
from .http import (
    HTTPResponse,
    HTTPStatus,
    QueryParseError,
    RequestParser,
    error_document,
    html_page,
    movie_document,
    serialize,
)
from .providers import MovieDataProvider, OMDbMovieDataProvider, ProviderError
from .service import MovieService


logger = logging.getLogger(__name__)


@dataclass
class Exchange:
    """What happened for one request line (feeds the access log)."""

    method: str
    target: str
    title: Optional[str]
    cache: str
    response: HTTPResponse


class MovieInfoServer:
    """
    Single-line request/response server for movie lookups.

    =========================================================================
    USAGE
    =========================================================================

        # Defaults: port 35000, OMDb provider, serial handling
        server = MovieInfoServer(ServerConfig.from_env())
        server.run()

        # Tests: inject a fake provider and let the OS pick the port
        server = MovieInfoServer(ServerConfig(port=0), provider=FakeProvider())

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        provider: Optional[MovieDataProvider] = None,
        service: Optional[MovieService] = None,
    ):
        """
        Args:
            config: Server configuration. Defaults give port 35000 and
                    one connection at a time.
            provider: Movie data source. Defaults to OMDb built from config.
            service: Fully assembled service (overrides provider).
        """
        self.config = config or ServerConfig()
        self.config.validate()

        if service is None:
            if provider is None:
                provider = OMDbMovieDataProvider(
                    api_key=self.config.omdb_api_key,
                    base_url=self.config.omdb_url,
                    timeout=self.config.provider_timeout,
                )
            service = MovieService(
                cache=TitleCache(),
                provider=provider,
                default_title=self.config.default_title,
            )
        self.service = service

        self._parser = RequestParser(strict=self.config.strict_query)
        self._socket_server = SocketServer(self.config)
        self._thread_pool: Optional[ThreadPool] = None
        if self.config.workers > 0:
            self._thread_pool = ThreadPool(
                workers=self.config.workers,
                queue_size=self.config.queue_size,
            )
        self._access_log = AccessLogger(log_format=self.config.log_format)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    @property
    def address(self):
        """Bound (host, port); meaningful once wait_until_ready() returns."""
        return self._socket_server.address

    def run(self):
        """
        Start the server (blocking).

        Returns after stop() or SIGINT/SIGTERM.

        Raises:
            OSError: If the port cannot be bound or accept() fails.
        """
        self._setup_logging()

        if self._thread_pool is not None:
            self._thread_pool.start()

        mode = f"{self.config.workers} workers" if self._thread_pool else "serial"
        logger.info(
            f"Starting movie info server on {self.config.host}:{self.config.port} "
            f"({mode}, {self.config.framing} framing)"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Ask the accept loop to exit. Safe from any thread."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is bound."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("movieinfo").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")

        if self._thread_pool is not None:
            dropped = self._thread_pool.shutdown(wait=True, timeout=30.0)
            for task in dropped:
                for arg in task.args:
                    if isinstance(arg, Connection):
                        arg.close()

        stats = self.service.cache.stats()
        logger.info(
            f"Server stopped (cache: {stats['size']} titles, "
            f"{stats['hits']} hits, {stats['misses']} misses)"
        )

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Dispatch an accepted connection.

        Called by SocketServer from the accept loop.
        """
        if self._thread_pool is None:
            self._process_connection(conn)
            return

        if not self._thread_pool.submit(self._process_connection, conn):
            logger.warning(f"[{conn.id}] Worker queue full, rejecting connection")
            with conn:
                response = error_document(HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
                conn.send_response(self._serialize(response))

    def _process_connection(self, conn: Connection):
        """
        Serve the single request carried by a connection.

        Runs inline in the accept loop or on a worker thread. Nothing
        raised while serving one connection reaches the accept loop.
        """
        started_at = time.time()

        with conn:
            try:
                self._serve(conn, started_at)
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _serve(self, conn: Connection, started_at: float):
        try:
            line = conn.read_line()
        except TimeoutError:
            logger.warning(f"[{conn.id}] Timed out waiting for request line")
            return
        except LineTooLongError as e:
            logger.warning(f"[{conn.id}] {e}")
            exchange = Exchange(
                method="",
                target="",
                title=None,
                cache="-",
                response=error_document(HTTPStatus.URI_TOO_LONG, str(e)),
            )
            self._send(conn, exchange, started_at)
            return

        if line is None:
            logger.debug(f"[{conn.id}] Client closed without sending a request")
            return

        logger.info(f"[{conn.id}] Received: {line}")
        exchange = self.respond(line)
        self._send(conn, exchange, started_at)

    def respond(self, line: str) -> Exchange:
        """
        Turn one request line into a response.

        Socket-free, so the whole request path can be exercised directly.
        """
        try:
            request_line = self._parser.parse_line(line)
        except QueryParseError as e:
            logger.warning(f"Rejected request line {line!r}: {e}")
            method, _, rest = line.partition(" ")
            return Exchange(
                method=method,
                target=rest.split(" ", 1)[0],
                title=None,
                cache="-",
                response=error_document(
                    HTTPStatus.from_code(e.status_code, HTTPStatus.BAD_REQUEST), str(e)
                ),
            )

        method = request_line.method if request_line else ""
        target = request_line.target if request_line else ""
        title = request_line.title if request_line else None

        if title is None:
            return Exchange(
                method=method,
                target=target,
                title=None,
                cache="-",
                response=html_page(self.service.resolve(None)),
            )

        cache = "miss"
        try:
            document, hit = self.service.lookup(title)
        except ProviderError as e:
            logger.error(f"Provider failed for {title!r}: {e}")
            response = error_document(
                HTTPStatus.from_code(e.status_code, HTTPStatus.BAD_GATEWAY), str(e)
            )
        except Exception:
            logger.exception(f"Unexpected error resolving {title!r}")
            response = error_document(
                HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error"
            )
        else:
            cache = "hit" if hit else "miss"
            response = movie_document(document)

        return Exchange(
            method=method,
            target=target,
            title=title,
            cache=cache,
            response=response,
        )

    def _serialize(self, response: HTTPResponse) -> bytes:
        return serialize(response, self.config.framing, self.config.server_name)

    def _send(self, conn: Connection, exchange: Exchange, started_at: float):
        data = self._serialize(exchange.response)
        conn.send_response(data)
        self._access_log.log(
            connection_id=conn.id,
            client_ip=conn.client_ip,
            method=exchange.method,
            target=exchange.target,
            title=exchange.title,
            cache=exchange.cache,
            status_code=exchange.response.status,
            content_length=len(exchange.response.body),
            started_at=started_at,
        )


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Component wiring: config → provider → cache → service → listener
# 2. Request flow: accept → read line → parse → resolve → frame → close
# 3. Error mapping to OMDb-shaped JSON error bodies
# 4. Lifecycle: run() blocks, stop() or a signal ends it
# =============================================================================
