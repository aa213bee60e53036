"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

The listener loop: bind once, then accept connections forever and hand
each one to a callback.

=============================================================================
LISTENER LIFECYCLE
=============================================================================

    socket() + SO_REUSEADDR + TCP_NODELAY
    bind(0.0.0.0:35000), listen(backlog)         once, at startup
    loop:
        accept()  ── 1s timeout ──► re-check running flag
        wrap client socket in Connection (read timeout, line limit)
        handler(conn)                            inline or pool submit
    close() the listening socket                 after shutdown()

Each accepted socket carries exactly one request line and is closed by
the handler; the listener never reads from client sockets itself.

=============================================================================
FATAL VS. NORMAL ERRORS
=============================================================================

    bind() fails           → logged, OSError raised to the caller (exit 1)
    accept() fails         → logged, OSError raised to the caller (exit 1)
    accept() times out     → normal, loop re-checks the running flag
    accept() after stop()  → normal, loop exits

=============================================================================
SIGNAL HANDLING
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) flip the running flag so
the accept loop exits within one timeout tick and the caller can clean up.
Handlers can only be installed from the main thread; a server started in a
background thread (tests) skips them.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    # How often accept() wakes up to check the running flag
    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready_event = threading.Event()
        self._original_handlers: dict = {}
        self._bound_address: Optional[Tuple[str, int]] = None

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound.

        Differs from the config when port 0 asked the OS to pick one.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the listening socket.

        SO_REUSEADDR lets a restarted server rebind immediately instead of
        waiting out TIME_WAIT. TCP_NODELAY sends small responses at once.
        The accept timeout makes the loop interruptible.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that trigger shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called with each accepted Connection.

        Raises:
            OSError: If the socket cannot be bound, or accept() fails.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Could not listen on {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._bound_address = self._socket.getsockname()[:2]
        self._running = True
        self._setup_signals()
        self._ready_event.set()

        logger.info(f"Listening on {self.address[0]}:{self.address[1]}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown.

        ┌─────────────────────────────────────────────────────────────────┐
        │                     Accept Loop Flow                             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while self._running:                                           │
        │       accept()            (or time out after 1s and loop)        │
        │       Connection(...)     wrap client socket                     │
        │       connection_handler(conn)                                   │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘
        """
        while self._running:
            logger.debug("Ready to accept connections")
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break
                logger.error(f"Accept failed: {e}")
                raise

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_line_size=self.config.max_line_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """
        Stop the accept loop.

        Safe to call from a signal handler, another thread, or repeatedly.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is bound and listening."""
        return self._ready_event.wait(timeout)
