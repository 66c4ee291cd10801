"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Bytes in, bytes out around the tile pipeline:

    socket bytes ──► RequestParser ──► HTTPRequest
                                           │
                                           ▼
                                     RequestRouter        (http.router)
                                           │
                                           ▼
    socket bytes ◄── to_bytes() ◄──── HTTPResponse

The router lives in almondbread.http.router and is not re-exported here,
so importing the protocol layer does not pull in the fractal core.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    bitmap,
    html,
    error_response,
    internal_error,
)
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "bitmap",
    "html",
    "error_response",
    "internal_error",

    # Status codes
    "HTTPStatus",

    # MIME types
    "get_mime_type",
    "get_content_type",
]
