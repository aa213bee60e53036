"""
=============================================================================
HTTP PROTOCOL PACKAGE
=============================================================================

The small slice of HTTP this server speaks:

    request.py       Request line and query string parsing
    response.py      Response building and wire framing
    status_codes.py  The status codes we send

=============================================================================
"""

from .request import (
    RequestLine,
    RequestParser,
    QueryParseError,
    parse_title,
    parse_params,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    html_page,
    movie_document,
    error_document,
    serialize,
)
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "RequestLine",
    "RequestParser",
    "QueryParseError",
    "parse_title",
    "parse_params",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "html_page",
    "movie_document",
    "error_document",
    "serialize",

    # Status codes
    "HTTPStatus",
]
