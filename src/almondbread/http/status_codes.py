"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The statuses this server can answer with, and their reason phrases.

    ┌────────┬──────────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK                  viewer page or rendered tile         │
    ├────────┼──────────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request         malformed request line or viewport   │
    │        │ 405 Method Not Allowed  unknown method                       │
    │        │ 408 Request Timeout     client too slow sending the head     │
    │        │ 414 URI Too Long        tile path over the length limit      │
    │        │ 431 Header Too Large    request head over the size limit     │
    ├────────┼──────────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Error      encoder or handler failure           │
    │        │ 503 Unavailable         worker queue full                    │
    │        │ 505 Version             not HTTP/1.0 or HTTP/1.1             │
    └────────┴──────────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes as an IntEnum, so they compare equal to plain ints.

    Example:
        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.URI_TOO_LONG.phrase
        'URI Too Long'
    """

    OK = 200

    BAD_REQUEST = 400
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    URI_TOO_LONG = 414
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431

    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. "OK" in "HTTP/1.1 200 OK"."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_error(self) -> bool:
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.URI_TOO_LONG: "URI Too Long",
    HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE: "Request Header Fields Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
