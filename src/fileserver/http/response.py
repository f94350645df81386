"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses with proper formatting per RFC 7230.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Content-Type: application/octet-stream\r\n                  │ │
    │  │    Content-Disposition: attachment; filename="report.pdf"\r\n  │ │
    │  │    Content-Length: 48213\r\n                                   │ │
    │  │    Date: Wed, 01 Jan 2026 12:00:00 GMT\r\n                     │ │
    │  │    Server: fileserver/1.0\r\n                                  │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    <file bytes, streamed straight from disk>                   │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
IN-MEMORY BODY VS STREAMED BODY
=============================================================================

Error responses carry an empty in-memory body. Downloads never load the
file into memory: the response holds the OPEN file object and its length,
and the connection copies it to the socket after the header block.

    HTTPResponse(body=b"")                HTTPResponse(stream=<file>,
         │                                             stream_length=48213)
         ▼                                     │
    to_bytes() → head + b""                    ▼
                                          head_bytes() → header block
                                          Connection.send_file(stream, 48213)

Whoever sends a streamed response must call close() afterwards so the file
descriptor is released even when the client disconnects mid-transfer.

=============================================================================
BUILDER PATTERN
=============================================================================

    response = (ResponseBuilder()
        .status(HTTPStatus.OK)
        .attachment("report.pdf")
        .stream(fileobj, size)
        .build())

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO, Optional, Dict
from urllib.parse import quote

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Use ResponseBuilder for a more convenient way to construct responses.

    Attributes:
        status:        HTTP status code
        headers:       Response headers (case preserved)
        body:          In-memory body bytes
        version:       HTTP version for the status line
        stream:        Open binary file to send after the headers, if any
        stream_length: Number of bytes to send from stream
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"
    stream: Optional[BinaryIO] = field(default=None, repr=False)
    stream_length: int = 0

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def is_streamed(self) -> bool:
        """True when the body comes from an open file."""
        return self.stream is not None

    def head_bytes(self, server_name: str = "fileserver/1.0") -> bytes:
        """
        Serialize the status line and headers, including the blank line.

        Content-Length, Date and Server are filled in when the caller did
        not set them. For a streamed body, Content-Length is the stream
        length; otherwise it is the length of the in-memory body.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            length = self.stream_length if self.is_streamed else len(self.body)
            response_headers["Content-Length"] = str(length)

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("latin-1") + b"\r\n"

    def to_bytes(self, server_name: str = "fileserver/1.0") -> bytes:
        """
        Serialize headers plus the in-memory body.

        A streamed body is NOT included; send it separately with
        Connection.send_file().
        """
        return self.head_bytes(server_name) + self.body

    def close(self) -> None:
        """Release the streamed file, if any. Safe to call repeatedly."""
        if self.stream is not None:
            try:
                self.stream.close()
            finally:
                self.stream = None


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Each method returns `self`, so calls chain:

        builder.status(404).header("X-Key", "val").build()
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._stream: Optional[BinaryIO] = None
        self._stream_length = 0

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        """Set the HTTP status code."""
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def content_length(self, length: int) -> "ResponseBuilder":
        """
        Set Content-Length explicitly.

        Needed for HEAD responses, where the body is empty but the header
        must announce the size GET would send.
        """
        return self.header("Content-Length", str(length))

    def attachment(self, filename: str) -> "ResponseBuilder":
        """
        Mark the response as a download.

        Sets Content-Disposition (see content_disposition()) and a generic
        binary Content-Type so browsers save rather than render.
        """
        self._headers["Content-Disposition"] = content_disposition(filename)
        self._headers.setdefault("Content-Type", "application/octet-stream")
        return self

    def stream(self, fileobj: BinaryIO, length: int) -> "ResponseBuilder":
        """
        Send `length` bytes from an open binary file as the body.

        The response takes ownership of the file; call HTTPResponse.close()
        after sending.
        """
        self._stream = fileobj
        self._stream_length = length
        return self

    def build(self) -> HTTPResponse:
        """Build and return the HTTPResponse object."""
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            stream=self._stream,
            stream_length=self._stream_length,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are ALWAYS in GMT (UTC), never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def content_disposition(filename: str) -> str:
    """
    Build a Content-Disposition header value for a download.

    =========================================================================
    WHY NOT JUST f'attachment; filename="{name}"'?
    =========================================================================

    File names come from the disk, and disks allow almost anything:

        report.pdf        →  attachment; filename="report.pdf"
        café.txt          →  attachment; filename="caf_.txt";
                               filename*=UTF-8''caf%C3%A9.txt
        say "hi".txt      →  attachment; filename="say _hi_.txt";
                               filename*=UTF-8''say%20%22hi%22.txt
        evil\\r\\nSet-Cookie →  attachment

    Header values are latin-1 on the wire and a raw quote would end the
    quoted-string early, so non-ASCII or quote characters get an ASCII
    fallback plus the RFC 6266 filename* form. A control character (CR, LF,
    ...) could split the header block, so such names get no filename at all.

    =========================================================================
    """
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in filename):
        return "attachment"

    fallback = "".join(
        ch if 0x20 <= ord(ch) < 0x7F and ch not in '"\\' else "_"
        for ch in filename
    )
    if fallback == filename:
        return f'attachment; filename="{filename}"'

    # Lone surrogates (undecodable bytes in the on-disk name) cannot be
    # UTF-8 encoded; the fallback alone has to do.
    try:
        encoded = quote(filename, safe="", encoding="utf-8", errors="strict")
    except UnicodeEncodeError:
        return f'attachment; filename="{fallback}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# Every rejection this server sends has an empty body: the status code is
# the whole message, and nothing about the filesystem leaks to the client.
#
#     return empty(HTTPStatus.FORBIDDEN)
#     return not_found()
#
# =============================================================================

def empty(status: HTTPStatus) -> HTTPResponse:
    """Create a response with the given status and no body."""
    return ResponseBuilder().status(status).build()


def not_found() -> HTTPResponse:
    """404 Not Found, empty body."""
    return empty(HTTPStatus.NOT_FOUND)


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """
    405 Method Not Allowed, empty body.

    Includes the Allow header listing valid methods (RFC 7231 requirement).
    """
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .build())


def internal_error() -> HTTPResponse:
    """500 Internal Server Error, empty body."""
    return empty(HTTPStatus.INTERNAL_SERVER_ERROR)
