"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the single exchange it carries:

    read one line  ──►  (handler works)  ──►  write one response  ──►  close

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does not preserve message boundaries. A client that sends

    "GET /movies?title=Heat HTTP/1.1\r\n"

may arrive as one recv() or as several:

    recv() → "GET /mov"
    recv() → "ies?title=Heat HTTP/1.1\r\nHost: local"

So we buffer until we see the first "\n", take everything before it as
the request line, and ignore the rest (headers, body). The line is then
decoded as ISO-8859-1, which maps every byte to a character and never
fails.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
     │         │                                      ▲
     └─────────┴──────────────────────────────────────┘
              (client vanished, timeout, line too long)

There is no KEEP_ALIVE state: every connection serves exactly one request.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


class LineTooLongError(Exception):
    """Raised when the request line exceeds max_line_size."""

    def __init__(self, size: int, status_code: int = 414):
        super().__init__(f"Request line too long: {size} bytes")
        self.size = size
        self.status_code = status_code


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and debugging."""

    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier used in log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    max_line_size: int = 8192

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[str]:
        """
        Read the request line.

        ┌─────────────────────────────────────────────────────────────────┐
        │                      read_line() Flow                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while no "\\n" in buffer:                                      │
        │       recv() → buffer                                           │
        │       peer closed?   → stop reading                             │
        │       too long?      → LineTooLongError                         │
        │                                                                  │
        │   line = buffer up to first "\\n", minus trailing "\\r"          │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        A peer that closes after sending a partial line still gets that
        partial line back; only a connection that sent nothing yields None.

        Returns:
            The decoded line without its terminator, or None.

        Raises:
            TimeoutError: If the client sends nothing within the timeout.
            LineTooLongError: If no newline appears within max_line_size.
        """
        self.state = ConnectionState.READING

        try:
            while b"\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    break
                self._buffer += chunk
                if b"\n" not in self._buffer and len(self._buffer) > self.max_line_size:
                    raise LineTooLongError(len(self._buffer))
        except socket.timeout:
            raise TimeoutError("Request line read timeout")

        if not self._buffer:
            return None

        raw_line, _, rest = self._buffer.partition(b"\n")
        if len(raw_line) > self.max_line_size:
            raise LineTooLongError(len(raw_line))

        # Headers and body are never read
        self._buffer = rest
        self.state = ConnectionState.PROCESSING
        return raw_line.rstrip(b"\r").decode("iso-8859-1")

    def _recv(self) -> bytes:
        """
        Receive data from the socket.

        Returns:
            Received bytes, or empty bytes if the client disconnected.
        """
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send the whole response.

        Returns:
            True if sent, False if the client is gone.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN so the client sees end of response
        2. drain: discard headers/body the client sent that we never read
        3. close(): release the file descriptor

        Without the drain, closing a socket with unread data makes the
        kernel send RST, and the client may lose the response.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.1f}ms")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
