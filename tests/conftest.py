"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Dict, Generator, Iterable, List, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from movieinfo import MovieInfoServer, ServerConfig
from movieinfo.providers import MovieDataProvider, ProviderError


class FakeProvider(MovieDataProvider):
    """
    In-memory movie provider.

    Records every call so tests can assert how often the network would
    have been hit.
    """

    def __init__(
        self,
        documents: Optional[Dict[str, str]] = None,
        failing: Iterable[str] = (),
        delay: float = 0.0,
    ):
        self.documents = dict(documents or {})
        self.failing = set(failing)
        self.delay = delay
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch_movie_data(self, encoded_title: str) -> str:
        with self._lock:
            self.calls.append(encoded_title)
        if self.delay:
            time.sleep(self.delay)
        if encoded_title in self.failing:
            raise ProviderError("Movie provider unavailable")
        if encoded_title in self.documents:
            return self.documents[encoded_title]
        return '{"Title":"%s","Response":"True"}' % encoded_title

    def call_count(self, title: Optional[str] = None) -> int:
        with self._lock:
            if title is None:
                return len(self.calls)
            return self.calls.count(title)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def sample_title_request() -> str:
    """Request line as the search page's script sends it."""
    return "GET /movies?title=Guardians%20Of%20The%20Galaxy HTTP/1.1"


@pytest.fixture
def sample_root_request() -> str:
    """Request line for the search page."""
    return "GET / HTTP/1.1"


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


def send_line(port: int, line: bytes, timeout: float = 5.0) -> bytes:
    """Connect, send raw bytes, and read until the server closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        s.sendall(line)
        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes):
    """Split an HTTP response into (status line, headers dict, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return lines[0], headers, body


class TestServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: MovieInfoServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.stop()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, line: bytes) -> bytes:
        return send_line(self.port, line)


@pytest.fixture
def make_server(config: ServerConfig, fake_provider: FakeProvider):
    """
    Factory for running servers.

    Usage:
        srv = make_server(framing="legacy")
        raw = srv.request(b"GET /?title=Heat HTTP/1.1\\r\\n\\r\\n")
    """
    started: List[TestServer] = []

    def factory(provider: Optional[MovieDataProvider] = None, **overrides) -> TestServer:
        for name, value in overrides.items():
            setattr(config, name, value)
        server = MovieInfoServer(config, provider=provider or fake_provider)
        test_srv = TestServer(server)
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield factory

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def test_server(make_server) -> Generator[TestServer, None, None]:
    """A running server with default settings and the fake provider."""
    yield make_server()
