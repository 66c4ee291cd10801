"""
=============================================================================
REQUEST ROUTER
=============================================================================

Decides what a path asks for and produces it.

=============================================================================
DISPATCH RULE
=============================================================================

The only thing that matters is the path's extension, the text after its
final ".". Method and headers play no part.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   path                          extension   branch                  │
    │   ───────────────────────────   ─────────   ──────────────────────  │
    │   /tile_x2.5_y-1.0_z4.bmp       "bmp"       Image                   │
    │   /tile.bmp                     "bmp"       Image  (default view)   │
    │   /tile_x2.5_y-1.0_z4           "0_z4"      Viewer                  │
    │   /tile                         none        Viewer                  │
    │   /index.html                   "html"      Viewer                  │
    │   /                             none        Viewer                  │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Image branch:

    path ──► parse_viewport ──► rasterize ──► encode ──► Image(bytes)
                  │
                  └── MalformedViewportError ──► ClientError(400)

A path over TileConfig.max_path_length is rejected before either branch
with ClientError(414).

=============================================================================
RESPONSE SPECS
=============================================================================

route() returns one of three small value objects rather than an
HTTPResponse, so the decision can be inspected without parsing bytes:

    Viewer(body)              200 text/html
    Image(body)               200 image/bmp
    ClientError(reason, st)   st  text/plain, reason as body

Each knows how to turn itself into an HTTPResponse via to_response().

EncodingError is not a client's fault and is not caught here; the
server answers it with 500.

=============================================================================
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from ..config import TileConfig
from ..fractal.bitmap import encode
from ..fractal.errors import MalformedViewportError
from ..fractal.raster import rasterize
from ..fractal.viewport import parse_viewport
from ..handlers.viewer import ViewerPage, viewer_page
from .request import HTTPRequest
from .response import HTTPResponse, bitmap, error_response, html
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


# Handler: takes a request, returns a response. Middleware wraps these.
Handler = Callable[[HTTPRequest], HTTPResponse]


class RouteKind(Enum):
    """Which branch a path is dispatched to."""
    VIEWER = "viewer"
    IMAGE = "image"


@dataclass(frozen=True)
class Viewer:
    """The viewer page."""

    body: bytes

    def to_response(self) -> HTTPResponse:
        return html(self.body)


@dataclass(frozen=True)
class Image:
    """A fully encoded tile."""

    body: bytes

    def to_response(self) -> HTTPResponse:
        return bitmap(self.body)


@dataclass(frozen=True)
class ClientError:
    """A request the client got wrong; reason is sent back as plain text."""

    reason: str
    status: HTTPStatus = HTTPStatus.BAD_REQUEST

    def to_response(self) -> HTTPResponse:
        return error_response(self.status, self.reason)


ResponseSpec = Union[Viewer, Image, ClientError]


def path_extension(path: str) -> Optional[str]:
    """
    Text after the final "." of a path, ignoring any query string.

    Examples:
        >>> path_extension("/tile_x1_y2_z3.bmp")
        'bmp'
        >>> path_extension("/tile") is None
        True
    """
    path = path.split("?", 1)[0]
    if "." not in path:
        return None
    return path.rsplit(".", 1)[1]


class RequestRouter:
    """
    Routes tile paths to the renderer and everything else to the viewer.

    Usage:
        router = RequestRouter(TileConfig())
        spec = router.route("/tile_x-0.5_y0_z2.bmp")   # Image(...)
        response = router.handle(request)              # HTTPResponse
    """

    def __init__(self, tile_config: TileConfig, viewer: Optional[ViewerPage] = None):
        """
        Args:
            tile_config: Render constants and routing rules.
            viewer: Viewer page to serve; built from tile_config if omitted.
        """
        self.config = tile_config
        self.viewer = viewer if viewer is not None else viewer_page(tile_config)

    def classify(self, path: str) -> RouteKind:
        """Pick the branch for a path by its extension alone."""
        if path_extension(path) in self.config.image_extensions:
            return RouteKind.IMAGE
        return RouteKind.VIEWER

    def route(self, path: str) -> ResponseSpec:
        """
        Produce the response spec for a path.

        Args:
            path: Request path; a query string, if present, is ignored.

        Returns:
            Viewer, Image or ClientError.

        Raises:
            EncodingError: The bitmap encoder failed an internal check.
        """
        if len(path) > self.config.max_path_length:
            logger.info(
                f"Rejected path of {len(path)} characters "
                f"(limit {self.config.max_path_length})"
            )
            return ClientError(
                f"Path longer than {self.config.max_path_length} characters",
                HTTPStatus.URI_TOO_LONG,
            )

        if self.classify(path) is RouteKind.VIEWER:
            return Viewer(self.viewer.body)

        try:
            return Image(self.render_tile(path))
        except MalformedViewportError as e:
            logger.info(f"Malformed viewport in {path!r}: {e}")
            return ClientError(str(e), HTTPStatus.BAD_REQUEST)

    def render_tile(self, path: str) -> bytes:
        """
        Run the image pipeline for a path and return the encoded bitmap.

        Raises:
            MalformedViewportError: A viewport field in the path is invalid.
            EncodingError: The encoder rejected the rendered grid.
        """
        config = self.config
        viewport = parse_viewport(path)

        start = time.perf_counter()
        grid = rasterize(
            viewport,
            config.width,
            config.height,
            base_span=config.base_span,
            max_steps=config.max_steps,
            escape_radius_sq=config.escape_radius_sq,
        )
        body = encode(grid, config.max_steps)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.debug(
            f"Rendered {config.width}x{config.height} tile at "
            f"x={viewport.center_x} y={viewport.center_y} z={viewport.zoom} "
            f"in {elapsed_ms:.1f}ms"
        )
        return body

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Handler entry point: route the request path and build the response."""
        return self.route(request.path).to_response()
