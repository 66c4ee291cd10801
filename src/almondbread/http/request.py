"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw head of an HTTP request into an HTTPRequest. The tile
server only ever needs the path out of it, but the method, version and
headers are kept for logging.

=============================================================================
WHAT GETS PARSED
=============================================================================

    GET /tile_x-0.5_y0_z2.bmp?cache=1 HTTP/1.1\\r\\n
    ─┬─ ───────────┬───────── ───┬─── ────┬────
     │             │             │        │
   Method        Path          Query    Version
                (unquoted)   (kept raw)

    Host: localhost:8080\\r\\n        ─┐
    User-Agent: curl/8.0\\r\\n          ├─ headers, names lowercased
    \\r\\n                            ─┘
    <body>                          ignored

Errors carry the status the client should see:

    400 Bad Request                   malformed request line, no terminator
    405 Method Not Allowed            method outside VALID_METHODS
    505 HTTP Version Not Supported    anything but HTTP/1.0 or HTTP/1.1

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict
from urllib.parse import unquote, urlparse
import re


class HTTPParseError(Exception):
    """
    Raised when a request head cannot be parsed.

    Attributes:
        status_code: HTTP status to answer the client with.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request head.

    Attributes:
        method: Request method ("GET", "HEAD", ...).
        path: URL-decoded path without the query string.
        version: "HTTP/1.0" or "HTTP/1.1".
        headers: Header values keyed by lowercase name.
        query_string: Raw text after "?", empty when absent.
        client_address: (ip, port) of the peer.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    query_string: str = ""
    client_address: tuple[str, int] = ("", 0)

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    Only the head (everything up to the first blank line) is examined;
    a body, if the client sent one, is dropped.
    """

    VALID_METHODS = {
        "GET",
        "HEAD",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "OPTIONS",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse a request head.

        Args:
            data: Raw bytes read from the socket, including the blank line.
            client_address: Peer (ip, port), stored for logging.

        Returns:
            Parsed HTTPRequest.

        Raises:
            HTTPParseError: If the head is incomplete or malformed.
        """
        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        head = data[:header_end].decode("latin-1")
        lines = head.split("\r\n")

        method, path, query_string, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_string=query_string,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str, str]:
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}", status_code=505
            )

        parsed = urlparse(uri)
        path = unquote(parsed.path) or "/"

        return method, path, parsed.query, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" lines into a dict with lowercase names.

        Repeated headers are joined with ", ". Lines that do not look like
        a header are skipped.
        """
        headers: Dict[str, str] = {}

        for line in lines:
            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers
