"""
Unit tests for request routing.
"""

import pytest

from almondbread.config import TileConfig
from almondbread.fractal.bitmap import read_header
from almondbread.fractal.errors import EncodingError
from almondbread.handlers.viewer import ViewerPage
from almondbread.http import router as router_module
from almondbread.http.request import HTTPRequest
from almondbread.http.router import (
    ClientError,
    Image,
    RequestRouter,
    RouteKind,
    Viewer,
    path_extension,
)
from almondbread.http.status_codes import HTTPStatus


@pytest.fixture
def router(tile_config: TileConfig) -> RequestRouter:
    return RequestRouter(tile_config)


class TestPathExtension:
    """Tests for path_extension()."""

    @pytest.mark.parametrize("path,extension", [
        ("/tile_x2.5_y-1.0_z4.bmp", "bmp"),
        ("/tile.bmp", "bmp"),
        ("/tile.bmp?v=2", "bmp"),
        ("/index.html", "html"),
        ("/tile_x2.5_y-1.0_z4", "0_z4"),
        ("/tile.BMP", "BMP"),
        ("/tile", None),
        ("/", None),
    ])
    def test_extension(self, path, extension):
        assert path_extension(path) == extension


class TestClassify:
    """Tests for RequestRouter.classify()."""

    def test_bmp_is_image(self, router):
        assert router.classify("/tile_x1_y2_z3.bmp") is RouteKind.IMAGE

    @pytest.mark.parametrize("path", [
        "/",
        "/tile",
        "/tile_x2.5_y-1.0_z4",
        "/index.html",
        "/tile.BMP",
        "/tile.bmpx",
        "/tile.bmp/",
    ])
    def test_everything_else_is_viewer(self, router, path):
        """Only an exact "bmp" extension selects a render."""
        assert router.classify(path) is RouteKind.VIEWER

    def test_configured_extensions(self):
        router = RequestRouter(TileConfig(image_extensions=("bmp", "dib")))

        assert router.classify("/tile.dib") is RouteKind.IMAGE


class TestRoute:
    """Tests for RequestRouter.route()."""

    def test_root_serves_viewer(self, router):
        spec = router.route("/")

        assert isinstance(spec, Viewer)
        assert spec.body.startswith(b"<!DOCTYPE html>")
        assert b"tiles.js" in spec.body

    def test_viewport_tokens_without_extension_serve_viewer(self, router):
        """Tokens alone do not make a tile request."""
        assert isinstance(router.route("/tile_x2.5_y-1.0_z4"), Viewer)

    def test_malformed_tokens_without_extension_serve_viewer(self, router):
        assert isinstance(router.route("/tile_x2.5.5_"), Viewer)

    def test_default_tile(self, router, tile_config):
        spec = router.route("/tile.bmp")

        assert isinstance(spec, Image)
        header = read_header(spec.body)
        assert (header.width, header.height) == (tile_config.width, tile_config.height)
        assert header.file_size == len(spec.body)

    def test_tile_with_viewport(self, router):
        spec = router.route("/tile_x-0.5_y0.25_z2.bmp")

        assert isinstance(spec, Image)
        assert spec.body[:2] == b"BM"

    def test_different_viewports_differ(self, router):
        """The viewport in the path reaches the renderer."""
        near = router.route("/tile_x-0.5_z1.bmp")
        far = router.route("/tile_x50_y50_z1.bmp")

        assert near.body != far.body

    def test_same_path_same_bytes(self, router):
        assert router.route("/tile_x0.3_y0.2.bmp") == router.route("/tile_x0.3_y0.2.bmp")

    @pytest.mark.parametrize("path", [
        "/tile_x2.5.5_.bmp",
        "/tile_x_y1.bmp",
        "/tile_z0.bmp",
        "/tile_z-2.bmp",
        "/tile_ynan.bmp",
        "/tile_z1e-308.bmp",
    ])
    def test_malformed_viewport_is_client_error(self, router, path):
        spec = router.route(path)

        assert isinstance(spec, ClientError)
        assert spec.status == HTTPStatus.BAD_REQUEST
        assert spec.reason

    def test_long_path_rejected(self, router, tile_config):
        path = "/" + "a" * tile_config.max_path_length + ".bmp"

        spec = router.route(path)

        assert isinstance(spec, ClientError)
        assert spec.status == HTTPStatus.URI_TOO_LONG

    def test_long_viewer_path_rejected(self, router, tile_config):
        """The limit applies to both branches."""
        spec = router.route("/" + "a" * tile_config.max_path_length)

        assert spec.status == HTTPStatus.URI_TOO_LONG

    def test_path_at_limit_accepted(self):
        router = RequestRouter(TileConfig(max_path_length=10))

        assert isinstance(router.route("/" + "a" * 9), Viewer)

    def test_encoding_error_propagates(self, router, monkeypatch):
        """Encoder failures are not turned into client errors."""
        def broken_encode(grid, max_steps):
            raise EncodingError("broken")

        monkeypatch.setattr(router_module, "encode", broken_encode)

        with pytest.raises(EncodingError):
            router.route("/tile.bmp")

    def test_custom_viewer(self, tile_config):
        viewer = ViewerPage(script_url="https://example.org/v.js")
        router = RequestRouter(tile_config, viewer=viewer)

        assert b"https://example.org/v.js" in router.route("/").body


class TestToResponse:
    """Tests for converting route results into responses."""

    def test_viewer_response(self):
        response = Viewer(b"<!DOCTYPE html>").to_response()

        assert response.status == HTTPStatus.OK
        assert response.content_type == "text/html; charset=utf-8"
        assert response.body == b"<!DOCTYPE html>"

    def test_image_response(self):
        response = Image(b"BM...").to_response()

        assert response.status == HTTPStatus.OK
        assert response.content_type == "image/bmp"

    def test_client_error_response(self):
        response = ClientError("Malformed x value", HTTPStatus.BAD_REQUEST).to_response()

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.content_type == "text/plain; charset=utf-8"
        assert response.body == b"Malformed x value"


class TestHandle:
    """Tests for RequestRouter.handle()."""

    def test_handle_tile(self, router):
        request = HTTPRequest(method="GET", path="/tile.bmp", query_string="v=1")

        response = router.handle(request)

        assert response.status == HTTPStatus.OK
        assert response.content_type == "image/bmp"

    def test_handle_ignores_method(self, router):
        """Method plays no part in dispatch."""
        request = HTTPRequest(method="DELETE", path="/")

        response = router.handle(request)

        assert response.status == HTTPStatus.OK
        assert response.content_type.startswith("text/html")
