"""
Unit tests for HTTP response building.
"""

import io

import pytest

from fileserver.http.response import (
    HTTPResponse,
    ResponseBuilder,
    HTTPStatus,
    content_disposition,
    empty,
    not_found,
    method_not_allowed,
    internal_error,
    format_http_date,
)


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        response = HTTPResponse(status=HTTPStatus.OK)
        assert response.status_line == "HTTP/1.1 200 OK"

        response = HTTPResponse(status=HTTPStatus.NOT_FOUND)
        assert response.status_line == "HTTP/1.1 404 Not Found"

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
        assert b"Server: fileserver/1.0\r\n" in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_empty_body_has_zero_length(self):
        """Test that an empty response still announces its length."""
        result = HTTPResponse(status=HTTPStatus.FORBIDDEN).to_bytes()

        assert b"Content-Length: 0\r\n" in result
        assert result.endswith(b"\r\n\r\n")

    def test_streamed_length_and_no_body(self):
        """A streamed response announces the file length but carries no inline body."""
        response = HTTPResponse(stream=io.BytesIO(b"0123456789"), stream_length=10)
        result = response.to_bytes()

        assert b"Content-Length: 10\r\n" in result
        assert result.endswith(b"\r\n\r\n")

    def test_explicit_content_length_wins(self):
        """Test that HEAD-style explicit Content-Length is kept."""
        response = HTTPResponse(headers={"Content-Length": "4096"})
        result = response.to_bytes()

        assert b"Content-Length: 4096\r\n" in result
        assert b"Content-Length: 0" not in result

    def test_close_releases_stream(self):
        """Test that close() closes the file and is repeatable."""
        stream = io.BytesIO(b"data")
        response = HTTPResponse(stream=stream, stream_length=4)

        response.close()
        response.close()

        assert stream.closed
        assert response.stream is None
        assert not response.is_streamed


class TestResponseBuilder:
    """Tests for ResponseBuilder class."""

    def test_status(self):
        """Test setting status code."""
        response = ResponseBuilder().status(HTTPStatus.NOT_FOUND).build()
        assert response.status == HTTPStatus.NOT_FOUND

    def test_attachment(self):
        """Test that attachment() sets disposition and a binary type."""
        response = ResponseBuilder().attachment("report.pdf").build()

        assert response.headers["Content-Disposition"] == 'attachment; filename="report.pdf"'
        assert response.headers["Content-Type"] == "application/octet-stream"

    def test_stream(self):
        """Test that stream() hands the file to the response."""
        stream = io.BytesIO(b"abc")
        response = ResponseBuilder().stream(stream, 3).build()

        assert response.stream is stream
        assert response.stream_length == 3

    def test_content_length(self):
        """Test explicit Content-Length."""
        response = ResponseBuilder().content_length(1234).build()
        assert response.headers["Content-Length"] == "1234"

    def test_method_chaining(self):
        """Test fluent method chaining."""
        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("X-Custom", "value")
            .attachment("a.bin")
            .content_length(1)
            .build())

        assert response.status == HTTPStatus.OK
        assert response.headers["X-Custom"] == "value"
        assert "Content-Disposition" in response.headers


class TestContentDisposition:
    """Tests for Content-Disposition values."""

    def test_plain_ascii(self):
        """Test the exact form for ordinary names."""
        assert content_disposition("report.pdf") == 'attachment; filename="report.pdf"'

    def test_spaces_are_kept(self):
        """Test that spaces need no escaping inside quotes."""
        assert content_disposition("q3 final.pdf") == 'attachment; filename="q3 final.pdf"'

    def test_non_ascii_gets_filename_star(self):
        """Test the RFC 6266 form for non-ASCII names."""
        value = content_disposition("café.txt")

        assert value == "attachment; filename=\"caf_.txt\"; filename*=UTF-8''caf%C3%A9.txt"

    def test_quote_is_not_emitted_raw(self):
        """Test that a double quote cannot end the quoted-string early."""
        value = content_disposition('say "hi".txt')

        assert value.startswith('attachment; filename="say _hi_.txt"; ')
        assert "filename*=UTF-8''say%20%22hi%22.txt" in value

    @pytest.mark.parametrize("name", ["evil\r\nSet-Cookie: x=1", "tab\there", "del\x7f"])
    def test_control_characters_drop_filename(self, name: str):
        """Test that names with control characters never reach the header."""
        assert content_disposition(name) == "attachment"

    def test_undecodable_name(self):
        """Test names holding surrogate-escaped bytes from the disk."""
        value = content_disposition("bad\udcffname.txt")

        assert value == 'attachment; filename="bad_name.txt"'

    def test_header_block_stays_latin1(self):
        """Test that a non-ASCII name still serializes."""
        response = ResponseBuilder().attachment("日本語.txt").build()
        result = response.to_bytes()

        assert b"filename*=UTF-8''%E6%97%A5%E6%9C%AC%E8%AA%9E.txt" in result


class TestConvenienceFunctions:
    """Tests for convenience response functions."""

    @pytest.mark.parametrize("factory,status", [
        (not_found, HTTPStatus.NOT_FOUND),
        (internal_error, HTTPStatus.INTERNAL_SERVER_ERROR),
    ])
    def test_empty_bodies(self, factory, status):
        """Test that every rejection has an empty body."""
        response = factory()

        assert response.status == status
        assert response.body == b""
        assert not response.is_streamed

    def test_empty(self):
        """Test empty() with an arbitrary status."""
        response = empty(HTTPStatus.REQUEST_TIMEOUT)
        assert response.status == HTTPStatus.REQUEST_TIMEOUT
        assert response.body == b""

    def test_method_not_allowed(self):
        """Test that 405 lists the allowed methods."""
        response = method_not_allowed(["GET", "HEAD"])

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET, HEAD"
        assert response.body == b""


class TestHTTPStatus:
    """Tests for HTTPStatus enum."""

    def test_status_phrases(self):
        """Test that all statuses have phrases."""
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.METHOD_NOT_ALLOWED.phrase == "Method Not Allowed"
        assert HTTPStatus.HTTP_VERSION_NOT_SUPPORTED.phrase == "HTTP Version Not Supported"

    def test_every_status_has_a_phrase(self):
        """Test that no emitted status falls back to 'Unknown'."""
        for status in HTTPStatus:
            assert status.phrase != "Unknown"


class TestFormatHTTPDate:
    """Tests for HTTP date formatting."""

    def test_format(self):
        """Test HTTP date format."""
        from datetime import datetime, timezone

        dt = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)

        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"
