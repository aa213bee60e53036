"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this server actually sends.

    200 OK                     - Movie document or search page
    400 Bad Request            - Malformed query string (strict mode)
    414 URI Too Long           - Request line over max_line_size
    500 Internal Server Error  - Unexpected handler failure
    502 Bad Gateway            - OMDb unreachable or failing
    503 Service Unavailable    - Worker queue full
    504 Gateway Timeout        - Provider reported a timeout

Providers may carry any status code on their errors. from_code() turns an
arbitrary integer into a member, falling back when the code is not one
this server knows how to send.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.BAD_GATEWAY.phrase
        'Bad Gateway'
    """

    OK = 200

    BAD_REQUEST = 400
    URI_TOO_LONG = 414

    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504

    @classmethod
    def from_code(cls, code: int, default: "HTTPStatus") -> "HTTPStatus":
        """
        Look up a status by number.

        Unknown codes map to default instead of raising ValueError.
        """
        try:
            return cls(code)
        except ValueError:
            return default

    @property
    def phrase(self) -> str:
        """
        Get the standard reason phrase for this status code.

        Used in the status line: "HTTP/1.1 200 OK"
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.URI_TOO_LONG: "URI Too Long",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.BAD_GATEWAY: "Bad Gateway",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.GATEWAY_TIMEOUT: "Gateway Timeout",
}
