"""
Unit tests for the client connection wrapper.
"""

import socket

import pytest

from movieinfo.core.connection import (
    Connection,
    ConnectionState,
    LineTooLongError,
)


@pytest.fixture
def socket_pair():
    """(server side, client side) connected sockets."""
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    for s in (server_side, client_side):
        try:
            s.close()
        except OSError:
            pass


def make_connection(sock, **kwargs) -> Connection:
    return Connection(socket=sock, address=("127.0.0.1", 50000), **kwargs)


class TestReadLine:
    """Tests for Connection.read_line()."""

    def test_reads_first_line_only(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET /?title=Heat HTTP/1.1\r\nHost: x\r\n\r\n")

        conn = make_connection(server_side)

        assert conn.read_line() == "GET /?title=Heat HTTP/1.1"
        assert conn.state == ConnectionState.PROCESSING

    def test_bare_newline_terminator(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\n")

        assert make_connection(server_side).read_line() == "GET / HTTP/1.1"

    def test_line_split_across_packets(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side, buffer_size=4)

        client_side.sendall(b"GET /?ti")
        client_side.sendall(b"tle=Heat\r\n")

        assert conn.read_line() == "GET /?title=Heat"

    def test_partial_line_then_close(self, socket_pair):
        """A line without terminator is still returned when the peer closes."""
        server_side, client_side = socket_pair
        client_side.sendall(b"GET /?title=Heat")
        client_side.shutdown(socket.SHUT_WR)

        assert make_connection(server_side).read_line() == "GET /?title=Heat"

    def test_nothing_sent(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.shutdown(socket.SHUT_WR)

        assert make_connection(server_side).read_line() is None

    def test_latin1_decoding(self, socket_pair):
        """Bytes map one-to-one onto characters."""
        server_side, client_side = socket_pair
        client_side.sendall(b"GET /?title=Am\xe9lie\r\n")

        assert make_connection(server_side).read_line() == "GET /?title=Amélie"

    def test_line_too_long(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"G" * 200)

        conn = make_connection(server_side, buffer_size=64, max_line_size=100)

        with pytest.raises(LineTooLongError) as exc_info:
            conn.read_line()
        assert exc_info.value.status_code == 414

    def test_timeout(self, socket_pair):
        server_side, _ = socket_pair
        conn = make_connection(server_side, timeout=0.1)

        with pytest.raises(TimeoutError):
            conn.read_line()


class TestWriteAndClose:
    """Tests for sending and closing."""

    def test_send_then_close(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\n")

        with make_connection(server_side) as conn:
            conn.read_line()
            assert conn.send_response(b"hello")

        assert conn.state == ConnectionState.CLOSED

        data = b""
        while True:
            chunk = client_side.recv(1024)
            if not chunk:
                break
            data += chunk
        assert data == b"hello"

    def test_close_is_idempotent(self, socket_pair):
        server_side, client_side = socket_pair
        client_side.shutdown(socket.SHUT_WR)

        conn = make_connection(server_side)
        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED

    def test_client_ip(self, socket_pair):
        server_side, _ = socket_pair
        assert make_connection(server_side).client_ip == "127.0.0.1"
