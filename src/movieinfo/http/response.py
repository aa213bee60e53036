"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds the bytes written back to the client.

=============================================================================
TWO WIRE FORMATS
=============================================================================

The server can frame its answer in two ways (ServerConfig.framing):

    ┌─────────────────────────────────────────────────────────────────────┐
    │  "http" (default) - every answer is a real HTTP/1.1 response        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                                               │
    │   Content-Type: application/json; charset=utf-8\r\n                 │
    │   Content-Length: 1024\r\n                                          │
    │   Date: Sun, 18 Oct 2026 12:00:00 GMT\r\n                           │
    │   Server: MovieInfo/1.0\r\n                                         │
    │   Connection: close\r\n                                             │
    │   \r\n                                                              │
    │   {"Title":"Guardians of the Galaxy", ...}                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │  "legacy" - raw JSON line, fixed header before the HTML page         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Movie JSON:   {"Title":"Guardians of the Galaxy", ...}\n          │
    │                 (no status line, no headers)                        │
    │                                                                      │
    │   Search page:  HTTP/1.1 200 OK\r\n                                 │
    │                 Content-Type:text/html; charset=ISO-8859-1\r\n      │
    │                 \r\n                                                │
    │                 <!DOCTYPE html>...\n                                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Browsers only accept the legacy JSON line because they fall back to
HTTP/0.9 parsing. The "http" format is what the search page's fetch()
actually expects.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union
import json

from .status_codes import HTTPStatus


CONTENT_TYPE_HTML = "text/html; charset=utf-8"
CONTENT_TYPE_JSON = "application/json; charset=utf-8"

LEGACY_HTML_HEADER = (
    "HTTP/1.1 200 OK\r\n"
    "Content-Type:text/html; charset=ISO-8859-1\r\n"
    "\r\n"
)


@dataclass
class HTTPResponse:
    """
    Represents a response to be sent to the client.

    Use ResponseBuilder for a more convenient way to construct responses.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    @property
    def is_html(self) -> bool:
        return self.content_type.startswith("text/html")

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "MovieInfo/1.0") -> bytes:
        """
        Serialize as a complete HTTP/1.1 response.

        Content-Length, Date and Server are added when missing.

        Args:
            server_name: Server identifier for Server header.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body

    def to_legacy_bytes(self) -> bytes:
        """
        Serialize in the legacy single-line format.

        HTML gets the fixed legacy header block; anything else (movie JSON,
        error JSON) is written as a bare line. The status code is not sent.
        """
        if self.is_html:
            return LEGACY_HTML_HEADER.encode("utf-8") + self.body + b"\n"
        return self.body + b"\n"


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json_text(movie_document)
            .close_connection()
            .build())
    """

    def __init__(self, server_name: str = "MovieInfo/1.0"):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body = b""
        self._server_name = server_name

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body.

        Strings are encoded as UTF-8.
        """
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def html(self, html: str) -> "ResponseBuilder":
        """Set an HTML body."""
        return self.content_type(CONTENT_TYPE_HTML).body(html)

    def json(self, data: Any) -> "ResponseBuilder":
        """
        Set a JSON body from a Python object.

        Uses compact separators, same as OMDb's own payloads.
        """
        return self.json_text(json.dumps(data, separators=(",", ":"), ensure_ascii=False))

    def json_text(self, document: str) -> "ResponseBuilder":
        """
        Set a JSON body from an already serialized document.

        Movie documents are relayed verbatim, never re-encoded.
        """
        return self.content_type(CONTENT_TYPE_JSON).body(document)

    def close_connection(self) -> "ResponseBuilder":
        """Every connection carries exactly one request."""
        return self.header("Connection", "close")

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )

    def to_bytes(self) -> bytes:
        """Build and serialize the response to bytes in one step."""
        return self.build().to_bytes(self._server_name)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sun, 18 Oct 2026 12:00:00 GMT
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def html_page(html: str) -> HTTPResponse:
    """200 OK with the search page."""
    return ResponseBuilder().html(html).close_connection().build()


def movie_document(document: str) -> HTTPResponse:
    """200 OK with a movie document relayed verbatim."""
    return ResponseBuilder().json_text(document).close_connection().build()


def error_document(status: HTTPStatus, message: str) -> HTTPResponse:
    """
    Error response in OMDb's own error shape.

    {"Response":"False","Error":"..."} is what the search page already
    knows how to display, so server-side failures render the same way as
    "Movie not found!".
    """
    return (ResponseBuilder()
        .status(status)
        .json({"Response": "False", "Error": message})
        .close_connection()
        .build())


def serialize(response: HTTPResponse, framing: str, server_name: Optional[str] = None) -> bytes:
    """
    Serialize a response in the configured wire format.

    Args:
        response: The response to send.
        framing: "http" or "legacy".
        server_name: Server header value for "http" framing.
    """
    if framing == "legacy":
        return response.to_legacy_bytes()
    if server_name is None:
        return response.to_bytes()
    return response.to_bytes(server_name)
