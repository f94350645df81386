"""
=============================================================================
HTTP STATUS CODES (RFC 7231)
=============================================================================

The status codes this server actually emits, with their reason phrases.

=============================================================================
WHICH CODES, AND WHEN
=============================================================================

A download-only server has a very small vocabulary:

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ The file exists under the base directory and is served   │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  400   │ Malformed request, or a path that decodes to a NUL byte  │
    │  403   │ Directory requested, or the path escapes the sandbox     │
    │  404   │ Nothing there (or it vanished between checks)            │
    │  405   │ Anything but GET or HEAD                                  │
    │  408   │ Client connected but never sent a request                │
    │  413   │ Request larger than we are willing to buffer             │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  500   │ Bug in a handler (should never happen)                   │
    │  505   │ Not HTTP/1.0 or HTTP/1.1                                  │
    └────────┴───────────────────────────────────────────────────────────┘

Note that 403 and 404 are deliberately coarse: the client is never told
WHY a path was refused, only that it was.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.OK
        <HTTPStatus.OK: 200>
        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.OK.phrase
        'OK'
    """

    # 2xx SUCCESS
    OK = 200

    # 4xx CLIENT ERRORS
    BAD_REQUEST = 400            # Malformed syntax, NUL in path
    FORBIDDEN = 403              # Directory or sandbox escape
    NOT_FOUND = 404              # No such file
    METHOD_NOT_ALLOWED = 405     # Only GET and HEAD are served
    REQUEST_TIMEOUT = 408        # Client never finished sending
    PAYLOAD_TOO_LARGE = 413      # Request exceeds max_request_size

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │   └── Reason phrase
                      └────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
