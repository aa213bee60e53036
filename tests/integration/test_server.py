"""
Integration tests: a real server on a free port, driven over raw sockets.
"""

import json
import socket
import threading

import pytest

from movieinfo import MovieInfoServer
from movieinfo.providers import ProviderError

from conftest import FakeProvider, send_line, split_response


class TestHTTPFraming:
    """Default framing: complete HTTP/1.1 responses."""

    def test_search_page(self, test_server):
        raw = test_server.request(b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n")
        status_line, headers, body = split_response(raw)

        assert status_line == "HTTP/1.1 200 OK"
        assert headers["content-type"].startswith("text/html")
        assert headers["connection"] == "close"
        assert int(headers["content-length"]) == len(body)
        assert b"<title>Search movies</title>" in body

    def test_movie_document(self, test_server):
        raw = test_server.request(
            b"GET /movies?title=The%20Matrix HTTP/1.1\r\nHost: localhost\r\n\r\n"
        )
        status_line, headers, body = split_response(raw)

        assert status_line == "HTTP/1.1 200 OK"
        assert headers["content-type"].startswith("application/json")
        assert json.loads(body) == {"Title": "The%20Matrix", "Response": "True"}

    def test_request_line_without_headers(self, test_server):
        """A lone request line is enough."""
        raw = test_server.request(b"GET /?title=Heat\n")
        status_line, _, body = split_response(raw)

        assert status_line == "HTTP/1.1 200 OK"
        assert b'"Heat"' in body


class TestMemoization:
    """Titles are fetched once for the life of the process."""

    def test_second_request_served_from_cache(self, test_server, fake_provider):
        line = b"GET /movies?title=Heat HTTP/1.1\r\n\r\n"

        first = test_server.request(line)
        second = test_server.request(line)

        assert split_response(first)[2] == split_response(second)[2]
        assert fake_provider.call_count("Heat") == 1

    def test_distinct_encodings_are_distinct_titles(self, test_server, fake_provider):
        test_server.request(b"GET /?title=The%20Matrix HTTP/1.1\r\n\r\n")
        test_server.request(b"GET /?title=The+Matrix HTTP/1.1\r\n\r\n")

        assert fake_provider.call_count() == 2

    def test_provider_failure_not_cached(self, make_server):
        provider = FakeProvider(failing={"Heat"})
        srv = make_server(provider=provider)

        status_line, _, body = split_response(srv.request(b"GET /?title=Heat HTTP/1.1\r\n\r\n"))
        assert status_line == "HTTP/1.1 502 Bad Gateway"
        assert json.loads(body)["Response"] == "False"

        provider.failing.clear()
        status_line, _, _ = split_response(srv.request(b"GET /?title=Heat HTTP/1.1\r\n\r\n"))
        assert status_line == "HTTP/1.1 200 OK"
        assert provider.call_count("Heat") == 2


class TestLegacyFraming:
    """Byte-compatible output for old clients."""

    def test_json_is_bare_line(self, make_server):
        srv = make_server(framing="legacy")

        raw = srv.request(b"GET /?title=Heat HTTP/1.1\r\n\r\n")

        assert raw == b'{"Title":"Heat","Response":"True"}\n'

    def test_html_has_fixed_header(self, make_server):
        srv = make_server(framing="legacy")

        raw = srv.request(b"GET / HTTP/1.1\r\n\r\n")

        assert raw.startswith(
            b"HTTP/1.1 200 OK\r\nContent-Type:text/html; charset=ISO-8859-1\r\n\r\n<!DOCTYPE html>"
        )
        assert raw.endswith(b"</html>\n")


class TestErrors:
    """Error responses."""

    def test_strict_query_400(self, make_server):
        srv = make_server(strict_query=True)

        status_line, _, body = split_response(srv.request(b"GET /?flag&title=Heat HTTP/1.1\r\n\r\n"))

        assert status_line == "HTTP/1.1 400 Bad Request"
        assert json.loads(body)["Response"] == "False"

    def test_line_too_long_414(self, make_server, fake_provider):
        srv = make_server(max_line_size=64)

        raw = srv.request(b"GET /?title=" + b"x" * 200)
        status_line, _, _ = split_response(raw)

        assert status_line == "HTTP/1.1 414 URI Too Long"
        assert fake_provider.call_count() == 0

    def test_silent_client_does_not_stop_server(self, test_server):
        """A client that connects and leaves gets nothing; the next one is served."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as s:
            s.shutdown(socket.SHUT_WR)
            assert s.recv(1024) == b""

        raw = test_server.request(b"GET / HTTP/1.1\r\n\r\n")
        assert split_response(raw)[0] == "HTTP/1.1 200 OK"


class TestResilience:
    """One bad connection never takes the serial server down."""

    def test_provider_status_passed_through_then_next_served(self, make_server):
        class TimeoutProvider(FakeProvider):
            def fetch_movie_data(self, encoded_title: str) -> str:
                if encoded_title == "Slow":
                    raise ProviderError("Upstream timed out", status_code=504)
                if encoded_title == "Odd":
                    raise ProviderError("Upstream confused", status_code=599)
                return super().fetch_movie_data(encoded_title)

        srv = make_server(provider=TimeoutProvider())

        slow = split_response(srv.request(b"GET /?title=Slow HTTP/1.1\r\n\r\n"))
        odd = split_response(srv.request(b"GET /?title=Odd HTTP/1.1\r\n\r\n"))
        heat = split_response(srv.request(b"GET /?title=Heat HTTP/1.1\r\n\r\n"))

        assert slow[0] == "HTTP/1.1 504 Gateway Timeout"
        assert odd[0] == "HTTP/1.1 502 Bad Gateway"
        assert heat[0] == "HTTP/1.1 200 OK"

    def test_handler_crash_closes_connection_only(self, make_server):
        srv = make_server()
        respond = srv.server.respond
        calls = []

        def crash_once(line):
            calls.append(line)
            if len(calls) == 1:
                raise RuntimeError("handler bug")
            return respond(line)

        srv.server.respond = crash_once

        assert srv.request(b"GET /?title=Heat HTTP/1.1\r\n\r\n") == b""

        raw = srv.request(b"GET /?title=Heat HTTP/1.1\r\n\r\n")
        assert split_response(raw)[0] == "HTTP/1.1 200 OK"


class TestWorkers:
    """Concurrent handling with a worker pool."""

    def test_concurrent_clients_share_one_fetch(self, make_server):
        provider = FakeProvider(delay=0.3)
        srv = make_server(provider=provider, workers=4)
        responses = []
        lock = threading.Lock()

        def client():
            raw = send_line(srv.port, b"GET /?title=Heat HTTP/1.1\r\n\r\n")
            with lock:
                responses.append(split_response(raw))

        threads = [threading.Thread(target=client) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert len(responses) == 4
        assert all(status == "HTTP/1.1 200 OK" for status, _, _ in responses)
        assert provider.call_count("Heat") == 1


class TestStartup:
    """Listener failures."""

    def test_port_in_use_raises(self, config, free_port):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", free_port))
            blocker.listen(1)

            config.port = free_port
            server = MovieInfoServer(config, provider=FakeProvider())

            with pytest.raises(OSError):
                server.run()
