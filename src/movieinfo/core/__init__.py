"""
=============================================================================
CORE NETWORKING
=============================================================================

    socket_server.py  Listener loop: bind, accept, hand off
    connection.py     One client socket: read a line, write, close
    thread_pool.py    Optional worker threads for concurrent handling

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, LineTooLongError
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "LineTooLongError",
    "ThreadPool",
]
