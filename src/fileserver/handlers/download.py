"""
=============================================================================
DOWNLOAD HANDLER
=============================================================================

Serves files from one base directory as downloads. There is no index page,
no directory listing and no content negotiation: a client either names an
existing file exactly, or gets an empty error response.

=============================================================================
REQUEST STATE MACHINE
=============================================================================

    ┌─────────────┐  not GET/HEAD
    │ MethodCheck │ ─────────────────────────────────────────────► 405
    └──────┬──────┘
           ▼
    ┌─────────────┐  "/", ends with "/", empty
    │ PathShape   │ ─────────────────────────────────────────────► 403
    └──────┬──────┘
           ▼
    ┌─────────────┐  decodes to NUL
    │ Decode      │ ─────────────────────────────────────────────► 400
    └──────┬──────┘
           ▼
    ┌─────────────┐  cannot canonicalize                         ► 404
    │ Sandbox     │  escapes the base directory                  ► 403
    │ Resolve     │  is a directory                              ► 403
    └──────┬──────┘
           ▼
    ┌──────┴──────┐
    ▼             ▼
  HEAD           GET
  stat()         open()            failure                      ► 404
    │             │
    ▼             ▼
  log line      log line
  200 + size    200 + streamed file

Every rejection is terminal and has an empty body. The filesystem is only
ever read.

=============================================================================
USAGE
=============================================================================

    handler = DownloadHandler("/srv/share")
    response = handler.handle(request)
    try:
        connection.send(response.head_bytes())
        if response.stream:
            connection.send_file(response.stream, response.stream_length)
    finally:
        response.close()

=============================================================================
"""

import os
import logging
from pathlib import Path
from typing import Union

from ..access_log import log_download
from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    ResponseBuilder,
    empty,
    method_not_allowed,
    not_found,
)
from ..http.status_codes import HTTPStatus
from ..sandbox import (
    SandboxError,
    check_path_shape,
    decode_path,
    resolve_in_sandbox,
)


logger = logging.getLogger(__name__)


class DownloadHandler:
    """
    Turns GET/HEAD requests into file downloads from `base_dir`.

    The base directory is canonicalized once here and never changes, so
    the handler can be shared by every connection thread.
    """

    ALLOWED_METHODS = ("GET", "HEAD")

    def __init__(self, base_dir: Union[str, Path]):
        """
        Args:
            base_dir: Directory to serve. Must exist.
        """
        self.base_dir = Path(base_dir).resolve()

        if not self.base_dir.is_dir():
            raise ValueError(f"Base directory does not exist: {base_dir}")

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one request through the state machine.

        Returns:
            An HTTPResponse. On GET success it holds an open file in
            `stream`; the caller must close() it after sending.
        """
        # ─────────────────────────────────────────────────────────────────
        # METHOD CHECK
        # ─────────────────────────────────────────────────────────────────
        if request.method not in self.ALLOWED_METHODS:
            return method_not_allowed(list(self.ALLOWED_METHODS))

        # ─────────────────────────────────────────────────────────────────
        # PATH → VERIFIED FILE
        # ─────────────────────────────────────────────────────────────────
        try:
            relative = check_path_shape(request.path)
            resolved = resolve_in_sandbox(decode_path(relative), self.base_dir)
        except SandboxError as e:
            logger.debug(f"{request.method} {request.path} refused: {e}")
            return empty(HTTPStatus(e.status_code))

        if request.method == "HEAD":
            return self._head(resolved, request)
        return self._get(resolved, request)

    def _head(self, path: Path, request: HTTPRequest) -> HTTPResponse:
        """Metadata only: the file is never opened."""
        try:
            size = os.stat(path).st_size
        except OSError as e:
            logger.debug(f"stat failed for {path}: {e}")
            return not_found()

        log_download(request.remote_addr, path)

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .attachment(path.name)
            .content_length(size)
            .build())

    def _get(self, path: Path, request: HTTPRequest) -> HTTPResponse:
        """
        Open the file and hand it to the response for streaming.

        The length comes from fstat() on the OPEN descriptor, so it
        describes the same file the bytes will be read from even if the
        path is replaced in the meantime.
        """
        try:
            fileobj = open(path, "rb")
        except OSError as e:
            logger.debug(f"open failed for {path}: {e}")
            return not_found()

        try:
            size = os.fstat(fileobj.fileno()).st_size
        except OSError as e:
            fileobj.close()
            logger.debug(f"fstat failed for {path}: {e}")
            return not_found()

        log_download(request.remote_addr, path)

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .attachment(path.name)
            .stream(fileobj, size)
            .build())
