"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses raw HTTP/1.1 request bytes into structured HTTPRequest objects.
Implements the parts of RFC 7230 a download server needs.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ REQUEST LINE ─────────────────────────────────────────────────┐ │
    │  │                                                                 │ │
    │  │    GET /reports/q3%20final.pdf?x=1 HTTP/1.1\r\n                │ │
    │  │    ─┬─ ─────────────┬───────────── ────┬────                   │ │
    │  │     │               │                  │                        │ │
    │  │   Method        Target              Version                     │ │
    │  │                     │                                           │ │
    │  │         ┌───────────┴───────────┐                               │ │
    │  │         │                       │                               │ │
    │  │     Raw path               Query string                        │ │
    │  │  /reports/q3%20final.pdf       x=1                             │ │
    │  │                                                                 │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Host: files.local:8000\r\n                                  │ │
    │  │    User-Agent: curl/8.5.0\r\n                                  │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE PATH IS KEPT RAW
=============================================================================

The parser does NOT percent-decode the path and does NOT look for "..".
Both jobs belong to the sandbox package:

    raw path ──► check_path_shape() ──► decode_path() ──► resolve_in_sandbox()

Decoding here would hide an encoded trailing slash from the shape check,
and a string search for ".." is both too strict (a file may legitimately
be called "notes..txt") and too weak (symlinks escape without any "..").
The only reliable answer comes from asking the filesystem.

Methods are not validated here either: anything that looks like a token
parses, and the handler answers 405 for everything except GET and HEAD.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict
import re


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the HTTP status code that should be returned to the client:

        400 Bad Request                - Malformed request syntax
        413 Payload Too Large          - Request exceeds size limit
        505 HTTP Version Not Supported - Unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    Attributes:
        method:         Request method exactly as sent ("GET", "HEAD", ...)
        path:           Raw, still percent-encoded path, query removed
        query:          Raw query string (ignored by the download handler)
        version:        "HTTP/1.0" or "HTTP/1.1"
        headers:        Header dict with LOWERCASE names
        body:           Raw request body (Content-Length bytes)
        client_address: (ip, port) of the peer, ("", 0) when unknown
    """

    method: str
    path: str
    query: str = ""
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    client_address: tuple = ("", 0)

    @property
    def is_keep_alive(self) -> bool:
        """
        Check if this connection should be kept alive.

        HTTP/1.1 keeps alive unless "Connection: close" was sent;
        HTTP/1.0 closes unless "Connection: keep-alive" was sent.
        """
        connection = self.headers.get("connection", "").lower()

        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    @property
    def remote_addr(self) -> str:
        """
        The peer address formatted for the access log.

            ("192.168.1.20", 51234)  →  "192.168.1.20:51234"
            ("fe80::1", 51234)       →  "[fe80::1]:51234"
            ("", 0)                  →  "unknown"
        """
        host, port = self.client_address[0], self.client_address[1]
        if not host:
            return "unknown"
        if ":" in host:
            return f"[{host}]:{port}"
        return f"{host}:{port}"


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    Usage:
        parser = RequestParser(max_request_size=64 * 1024)
        request = parser.parse(raw_bytes, ("127.0.0.1", 54321))
    """

    # Method is any RFC 7230 token; the handler decides what is allowed.
    REQUEST_LINE_PATTERN = re.compile(
        r"^([!#$%&'*+\-.^_`|~0-9A-Za-z]+) (\S+) (HTTP/\d\.\d)$"
    )
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")
    # scheme://authority prefix of an absolute-form target (RFC 7230 §5.3.2)
    ABSOLUTE_FORM_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://[^/?]*")

    SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    def __init__(self, max_request_size: int = 64 * 1024):
        """
        Initialize the request parser.

        Args:
            max_request_size: Maximum allowed request size in bytes.
                              Downloads carry no body, so this is small.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Steps:
            1. Check size limit
            2. Split at the \\r\\n\\r\\n header/body boundary
            3. Parse the request line
            4. Parse the header lines
            5. Cut the body to Content-Length

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        # Clients may send raw UTF-8 file names without percent-encoding.
        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            query=query,
            version=version,
            headers=headers,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str, str]:
        """
        Parse "METHOD SP REQUEST-TARGET SP HTTP-VERSION".

        Returns:
            Tuple of (method, raw_path, raw_query, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, target, version = match.groups()

        if version not in self.SUPPORTED_VERSIONS:
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        # Proxies may send "http://host/x"; only the path part is ours.
        absolute = self.ABSOLUTE_FORM_PATTERN.match(target)
        if absolute:
            target = target[absolute.end():]
            if not target.startswith("/"):
                target = "/" + target

        if not target.startswith("/"):
            raise HTTPParseError(f"Invalid request target: {target!r}")

        # Only the query is split off. urlsplit() is not used because it
        # would read "//host/x" as a network location.
        path, _, query = target.partition("?")
        return method, path, query, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dict with lowercase names.

        Repeated headers are joined with ", " (RFC 7230 §3.2.2) and
        obsolete line folding is appended to the previous header.
        """
        headers: Dict[str, str] = {}
        current_name: Optional[str] = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                raise HTTPParseError(f"Malformed header line: {line!r}")

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers
