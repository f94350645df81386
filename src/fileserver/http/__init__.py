"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The HTTP/1.1 layer of the file server: raw bytes in, structured request
objects out, and response objects back to bytes.

=============================================================================
MODULE COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST PARSER (request.py)                                         │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   b"GET /docs/a.pdf HTTP/1.1\r\nHost: ...\r\n\r\n"          │
    │ Output:  HTTPRequest(method="GET", path="/docs/a.pdf", ...)         │
    │                                                                      │
    │ The path stays percent-encoded; the sandbox package decodes it.    │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE BUILDER (response.py)                                      │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   ResponseBuilder().attachment("a.pdf").stream(f, n)         │
    │ Output:  header block bytes + a file to stream after it            │
    │                                                                      │
    │ Convenience functions for the empty-bodied rejections.             │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ STATUS CODES (status_codes.py)                                      │
    │ ─────────────────────────────────────────────────────────────────── │
    │ HTTPStatus.OK → 200 "OK",  HTTPStatus.FORBIDDEN → 403 "Forbidden"   │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    content_disposition,
    # Convenience functions for the rejections
    empty,               # any status, no body
    not_found,           # 404 Not Found
    method_not_allowed,  # 405 Method Not Allowed
    internal_error,      # 500 Internal Server Error
)
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "content_disposition",

    # Response convenience functions
    "empty",
    "not_found",
    "method_not_allowed",
    "internal_error",

    # Status codes
    "HTTPStatus",
]
