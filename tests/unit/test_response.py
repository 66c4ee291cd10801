"""
Unit tests for HTTP response building.
"""

from datetime import datetime

import pytest

from almondbread.http.response import (
    BITMAP_CONTENT_TYPE,
    HTML_CONTENT_TYPE,
    TEXT_CONTENT_TYPE,
    HTTPResponse,
    ResponseBuilder,
    bitmap,
    error_response,
    format_http_date,
    html,
    internal_error,
)
from almondbread.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        response = HTTPResponse(status=HTTPStatus.OK)
        assert response.status_line == "HTTP/1.1 200 OK"

        response = HTTPResponse(status=HTTPStatus.URI_TOO_LONG)
        assert response.status_line == "HTTP/1.1 414 URI Too Long"

    def test_to_bytes_includes_headers(self):
        """Test that to_bytes includes all headers."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"X-Custom": "value"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Custom: value\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert b"Date: " in result
        assert b"Server: almondbread\r\n" in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_to_bytes_keeps_explicit_headers(self):
        """Headers set by the response are not overwritten."""
        response = HTTPResponse(headers={"Content-Length": "99", "Server": "other"})

        result = response.to_bytes(server_name="ignored")

        assert b"Content-Length: 99\r\n" in result
        assert b"Server: other\r\n" in result
        assert b"ignored" not in result

    def test_binary_body_untouched(self):
        body = bytes(range(256))

        result = HTTPResponse(body=body).to_bytes()

        assert result.endswith(body)
        assert b"Content-Length: 256\r\n" in result

    def test_set_header_chaining(self):
        """Test method chaining for headers."""
        response = (HTTPResponse()
            .set_header("X-One", "1")
            .set_header("X-Two", "2"))

        assert response.headers["X-One"] == "1"
        assert response.headers["X-Two"] == "2"


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_defaults(self):
        response = ResponseBuilder().build()

        assert response.status == HTTPStatus.OK
        assert response.headers["Connection"] == "close"
        assert response.body == b""

    def test_status_accepts_int(self):
        response = ResponseBuilder().status(414).build()

        assert response.status is HTTPStatus.URI_TOO_LONG

    def test_text_body(self):
        response = ResponseBuilder().text("héllo").build()

        assert response.content_type == TEXT_CONTENT_TYPE
        assert response.body == "héllo".encode("utf-8")

    def test_html_body(self):
        response = ResponseBuilder().html("<p>hi</p>").build()

        assert response.content_type == HTML_CONTENT_TYPE
        assert response.body == b"<p>hi</p>"

    def test_builds_independent_responses(self):
        """Mutating one built response does not leak into the next."""
        builder = ResponseBuilder()
        first = builder.build()
        first.set_header("X-Mutated", "yes")

        assert "X-Mutated" not in builder.build().headers


class TestConvenienceFunctions:
    """Tests for response helpers."""

    def test_bitmap(self):
        response = bitmap(b"BM\x00\x00")

        assert response.status == HTTPStatus.OK
        assert response.content_type == BITMAP_CONTENT_TYPE == "image/bmp"
        assert response.body == b"BM\x00\x00"

    def test_html(self):
        response = html(b"<!DOCTYPE html>")

        assert response.status == HTTPStatus.OK
        assert response.content_type.startswith("text/html")

    def test_error_response_defaults_to_phrase(self):
        response = error_response(HTTPStatus.SERVICE_UNAVAILABLE)

        assert response.status == HTTPStatus.SERVICE_UNAVAILABLE
        assert response.body == b"Service Unavailable"
        assert response.content_type == TEXT_CONTENT_TYPE

    def test_error_response_message(self):
        response = error_response(400, "Malformed x value: '2.5.5'")

        assert response.body == b"Malformed x value: '2.5.5'"

    def test_internal_error(self):
        response = internal_error("Tile encoding failed")

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.body == b"Tile encoding failed"

    def test_format_http_date(self):
        assert format_http_date(datetime(2026, 1, 1, 12, 0, 0)) == "Thu, 01 Jan 2026 12:00:00 GMT"


class TestHTTPStatus:
    """Tests for status code helpers."""

    def test_phrases(self):
        assert HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE.phrase == "Request Header Fields Too Large"
        assert HTTPStatus(408).phrase == "Request Timeout"

    @pytest.mark.parametrize("status,is_error", [
        (HTTPStatus.OK, False),
        (HTTPStatus.BAD_REQUEST, True),
        (HTTPStatus.URI_TOO_LONG, True),
        (HTTPStatus.INTERNAL_SERVER_ERROR, True),
    ])
    def test_is_error(self, status, is_error):
        assert status.is_error is is_error

    def test_only_statuses_the_server_sends(self):
        """Every member is produced by some path through the server."""
        assert sorted(int(status) for status in HTTPStatus) == [
            200, 400, 405, 408, 414, 431, 500, 503, 505,
        ]
