"""
Unit tests for HTTP request parsing.
"""

import pytest

from almondbread.http.request import (
    HTTPParseError,
    HTTPRequest,
    RequestParser,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_tile_request(self, sample_tile_request: bytes):
        """Test parsing a GET for a tile."""
        parser = RequestParser()
        request = parser.parse(sample_tile_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/tile_x-0.5_y0.25_z2.bmp"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_query_string_kept_raw(self, sample_tile_request: bytes):
        """The query is split off the path but not interpreted."""
        request = RequestParser().parse(sample_tile_request)

        assert request.query_string == "v=1"
        assert "?" not in request.path

    def test_parse_headers(self, sample_tile_request: bytes):
        """Header names are lowercased."""
        request = RequestParser().parse(sample_tile_request)

        assert request.headers["host"] == "localhost:8080"
        assert request.headers["accept"] == "image/*"
        assert request.user_agent == "pytest"

    def test_get_header_case_insensitive(self, sample_tile_request: bytes):
        request = RequestParser().parse(sample_tile_request)

        assert request.get_header("HOST") == "localhost:8080"
        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "none") == "none"

    def test_http_10(self, sample_viewer_request: bytes):
        request = RequestParser().parse(sample_viewer_request)

        assert request.version == "HTTP/1.0"
        assert request.path == "/"

    def test_percent_decoding(self):
        """Paths are URL-decoded."""
        request = RequestParser().parse(b"GET /tile%5Fx1.bmp HTTP/1.1\r\n\r\n")

        assert request.path == "/tile_x1.bmp"

    def test_repeated_headers_joined(self):
        data = (
            b"GET / HTTP/1.1\r\n"
            b"Accept: text/html\r\n"
            b"Accept: image/bmp\r\n"
            b"\r\n"
        )

        request = RequestParser().parse(data)

        assert request.headers["accept"] == "text/html, image/bmp"

    def test_body_ignored(self):
        """Anything after the head is dropped."""
        data = b"POST /tile.bmp HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"

        request = RequestParser().parse(data)

        assert request.method == "POST"
        assert request.path == "/tile.bmp"

    def test_malformed_header_line_skipped(self):
        data = b"GET / HTTP/1.1\r\nnot a header\r\nHost: a\r\n\r\n"

        request = RequestParser().parse(data)

        assert request.headers == {"host": "a"}


class TestParseErrors:
    """Tests for rejected request heads."""

    def test_missing_terminator(self):
        with pytest.raises(HTTPParseError) as exc_info:
            RequestParser().parse(b"GET / HTTP/1.1\r\nHost: a\r\n")

        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("line", [
        b"GARBAGE",
        b"GET /",
        b"GET / HTTP/1.1 extra",
        b"get / HTTP/1.1",
        b"",
    ])
    def test_invalid_request_line(self, line):
        with pytest.raises(HTTPParseError) as exc_info:
            RequestParser().parse(line + b"\r\n\r\n")

        assert exc_info.value.status_code == 400

    def test_unknown_method(self):
        with pytest.raises(HTTPParseError) as exc_info:
            RequestParser().parse(b"BREW /pot HTTP/1.1\r\n\r\n")

        assert exc_info.value.status_code == 405

    def test_unsupported_version(self):
        with pytest.raises(HTTPParseError) as exc_info:
            RequestParser().parse(b"GET / HTTP/2.0\r\n\r\n")

        assert exc_info.value.status_code == 505


class TestHTTPRequest:
    """Tests for HTTPRequest defaults."""

    def test_defaults(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.version == "HTTP/1.1"
        assert request.headers == {}
        assert request.query_string == ""
        assert request.user_agent == ""
