"""
=============================================================================
REQUEST LINE PARSER
=============================================================================

Extracts the movie title from the single line a client sends.

The server reads exactly ONE line per connection and never looks at
headers or a body. Everything we need lives in the request line:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         REQUEST LINE                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    GET /movies?title=Guardians%20Of%20The%20Galaxy&year=2014 HTTP/1.1│
    │    ─┬─ ─────────────────────────┬─────────────────────────── ───┬──  │
    │     │                           │                               │    │
    │   Method                  Request target                    Version  │
    │                                 │                                    │
    │             ┌───────────────────┴──────────────┐                     │
    │             │                                  │                     │
    │           Path                          Query string                 │
    │         /movies          title=Guardians%20Of%20The%20Galaxy&year=2014
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY VALUES STAY PERCENT-ENCODED
=============================================================================

The title is the cache key AND the value forwarded to OMDb. Keeping the
bytes exactly as the browser sent them means:

    "Guardians%20Of%20The%20Galaxy"  ──►  cache key
                                     ──►  ?t=Guardians%20Of%20The%20Galaxy

No decode/re-encode round trip, so "%26" (an encoded '&' inside a title)
can never be confused with a parameter separator.

=============================================================================
MALFORMED PAIRS
=============================================================================

"title=Heat&oops&year=1995" has a pair with no '='.

    Lenient (default):  skip "oops", log it at DEBUG
    Strict:             raise QueryParseError (400 Bad Request)

Empty pairs ("a=1&&b=2", trailing "&") are ignored in both modes.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional


logger = logging.getLogger(__name__)


class QueryParseError(Exception):
    """
    Raised when a query string cannot be parsed in strict mode.

    Carries the HTTP status code the connection handler should answer with,
    so the handler doesn't need to know which parse rule failed.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RequestLine:
    """
    A parsed request line.

    Attributes:
        method:  "GET", "POST", ... (as sent, not validated)
        target:  The request target, e.g. "/movies?title=Heat"
        version: "HTTP/1.1", or "" when the client omitted it
        params:  Query parameters, raw (still percent-encoded)
    """

    method: str
    target: str
    version: str = ""
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def path(self) -> str:
        """Request target without the query string."""
        return self.target.split("?", 1)[0]

    @property
    def title(self) -> Optional[str]:
        """The raw title parameter, or None when missing."""
        return self.params.get("title")


class RequestParser:
    """
    Parses request lines and query strings.

    Usage:
        parser = RequestParser()
        parser.parse_title("GET /movies?title=Heat HTTP/1.1")   # "Heat"
        parser.parse_title("GET / HTTP/1.1")                    # None
        parser.parse_params("title=Heat&year=1995")
        # {"title": "Heat", "year": "1995"}
    """

    # Only these methods carry a title; anything else gets the search page.
    TITLE_METHODS = ("GET", "POST")

    def __init__(self, strict: bool = False):
        """
        Args:
            strict: Raise QueryParseError on pairs without '=' instead of
                    skipping them.
        """
        self.strict = strict

    def parse_line(self, line: str) -> Optional[RequestLine]:
        """
        Split a request line into method, target and version.

        Returns None for an empty line or one with no request target.
        Query parameters are only parsed for GET and POST requests that
        have a '?' in the target.
        """
        parts = line.strip().split(" ")
        parts = [part for part in parts if part]
        if len(parts) < 2:
            return None

        method, target = parts[0], parts[1]
        version = parts[2] if len(parts) > 2 else ""

        params: Dict[str, str] = {}
        if method in self.TITLE_METHODS and "?" in target:
            query_string = target.split("?", 1)[1]
            params = self.parse_params(query_string)

        return RequestLine(method=method, target=target, version=version, params=params)

    def parse_title(self, line: str) -> Optional[str]:
        """
        Extract the title query parameter from a request line.

        Args:
            line: e.g. "GET /path?title=Guardians%20Of%20The%20Galaxy HTTP/1.1"

        Returns:
            The raw (percent-encoded) title, or None if the line is not a
            GET/POST, has no '?', or has no title parameter.

        Raises:
            QueryParseError: In strict mode, if the query string is malformed.
        """
        request_line = self.parse_line(line)
        if request_line is None:
            return None
        return request_line.title

    def parse_params(self, query_string: str) -> Dict[str, str]:
        """
        Parse a query string into a name → raw value mapping.

        Each pair is split on the FIRST '=', so "expr=a=b" gives
        {"expr": "a=b"}. Repeated names keep the last value.

        Raises:
            QueryParseError: In strict mode, for a pair without '='.
        """
        params: Dict[str, str] = {}

        for pair in query_string.split("&"):
            if not pair:
                continue

            name, sep, value = pair.partition("=")
            if not sep:
                if self.strict:
                    raise QueryParseError(f"Malformed query parameter: {pair!r}")
                logger.debug(f"Skipping malformed query parameter: {pair!r}")
                continue

            params[name] = value

        return params


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

_default_parser = RequestParser()


def parse_title(line: str) -> Optional[str]:
    """Extract the title from a request line using a lenient parser."""
    return _default_parser.parse_title(line)


def parse_params(query_string: str) -> Dict[str, str]:
    """Parse a query string using a lenient parser."""
    return _default_parser.parse_params(query_string)
