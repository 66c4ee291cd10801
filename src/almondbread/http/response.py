"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

HTTPResponse holds a status, headers and body; ResponseBuilder assembles
one fluently; to_bytes() serializes it for the socket.

=============================================================================
SERIALIZED FORM
=============================================================================

    HTTP/1.1 200 OK\\r\\n                         ← status line
    Content-Type: image/bmp\\r\\n
    Connection: close\\r\\n
    Content-Length: 196662\\r\\n                  ← added if missing
    Date: Mon, 19 Oct 2026 12:00:00 GMT\\r\\n     ← added if missing
    Server: almondbread\\r\\n                     ← added if missing
    \\r\\n
    BM6\\x00\\x03\\x00...                          ← body bytes

The server answers exactly one request per connection, so every response
built here carries "Connection: close".

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union

from .mime_types import get_content_type
from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "almondbread"

TEXT_CONTENT_TYPE = get_content_type("message.txt")
HTML_CONTENT_TYPE = get_content_type("index.html")
BITMAP_CONTENT_TYPE = get_content_type("tile.bmp")


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    Use ResponseBuilder or the helpers at the bottom of this module
    rather than filling the fields by hand.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize status line, headers and body.

        Content-Length, Date and Server are filled in when the response
        does not set them itself.

        Args:
            server_name: Value for the Server header.

        Returns:
            The complete response, ready for socket.sendall().
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

        header_bytes = "\r\n".join(lines).encode("latin-1") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Example:
        response = (
            ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("image/bmp")
            .body(bitmap_bytes)
            .build()
        )
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {"Connection": "close"}
        self._body: bytes = b""

    def status(self, status: Union[HTTPStatus, int]) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the body; strings are encoded as UTF-8."""
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        return self.content_type(TEXT_CONTENT_TYPE).body(text)

    def html(self, html: Union[str, bytes]) -> "ResponseBuilder":
        return self.content_type(HTML_CONTENT_TYPE).body(html)

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a UTC datetime as an RFC 7231 HTTP-date.

    Example:
        >>> format_http_date(datetime(2026, 1, 1, 12, 0, 0))
        'Thu, 01 Jan 2026 12:00:00 GMT'
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

def bitmap(body: bytes) -> HTTPResponse:
    """200 OK carrying a rendered tile."""
    return ResponseBuilder().content_type(BITMAP_CONTENT_TYPE).body(body).build()


def html(body: Union[str, bytes]) -> HTTPResponse:
    """200 OK carrying an HTML page."""
    return ResponseBuilder().html(body).build()


def error_response(status: Union[HTTPStatus, int], message: str = "") -> HTTPResponse:
    """
    A short text/plain error response.

    Args:
        status: 4xx or 5xx status.
        message: Body text; defaults to the reason phrase.
    """
    status = HTTPStatus(status)
    return ResponseBuilder().status(status).text(message or status.phrase).build()


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
