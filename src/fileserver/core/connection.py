"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket: buffered request reads, timeouts,
header and file writes, and a clean TCP close.

=============================================================================
LIFECYCLE OF A DOWNLOAD CONNECTION
=============================================================================

    ┌─────────┐ read_request() ┌─────────┐ handler ┌────────────┐
    │   NEW   │───────────────►│ READING │────────►│ PROCESSING │
    └─────────┘                └─────────┘         └─────┬──────┘
                                    ▲                    │
                                    │                    ▼
                              ┌────────────┐  send   ┌─────────┐
                              │ KEEP_ALIVE │◄────────│ WRITING │
                              └────────────┘         └────┬────┘
                                                          │ close / error
                                                          ▼
                                                     ┌────────┐
                                                     │ CLOSED │
                                                     └────────┘

=============================================================================
TWO TIMEOUTS
=============================================================================

    First request:     `timeout` (30s)            silence → 408
    Later requests:    `keep_alive_timeout` (5s)  silence → quiet close

A client that connects and says nothing gets told so; a kept-alive client
that simply has nothing more to fetch is just let go.

=============================================================================
WRITING A FILE
=============================================================================

    send_response(head)          status line + headers, sendall()
    send_file(fileobj, length)   socket.sendfile(): the kernel copies file
                                 pages to the socket where it can
                                 (os.sendfile), falling back to read/send

A client hanging up mid-download is routine, not an error: failures are
logged at DEBUG and reported to the caller as False.

=============================================================================
"""

import socket
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in its lifecycle (for logs and debugging)."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One client connection.

    Attributes:
        socket:           The accepted client socket.
        address:          Peer address as returned by accept().
        id:               Short identifier for log lines.
        state:            Current ConnectionState.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 64 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_address(self) -> tuple:
        """(ip, port) of the peer; IPv6 scope/flow fields are dropped."""
        if not self.address:
            return ("", 0)
        return (self.address[0], self.address[1])

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request (headers plus Content-Length body).

        Bytes past the end of the request stay buffered for the next call,
        so pipelined requests are served in order.

        Returns:
            The request bytes, or None if the client closed the connection
            or went idle on a kept-alive connection.

        Raises:
            TimeoutError: The first request never arrived in time.
            ValueError:   The request exceeds max_request_size.
        """
        self.state = ConnectionState.READING

        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            # ─────────────────────────────────────────────────────────────
            # HEADERS: read until the blank line
            # ─────────────────────────────────────────────────────────────
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._buffer += chunk
                self._check_size(len(self._buffer))

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])
            self._check_size(body_start + content_length)

            # ─────────────────────────────────────────────────────────────
            # BODY: whatever Content-Length announced
            # ─────────────────────────────────────────────────────────────
            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    break
                self._buffer += chunk

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            self.state = ConnectionState.PROCESSING
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            if self.state != ConnectionState.CLOSED:
                self.socket.settimeout(self.timeout)

    def _recv(self) -> bytes:
        """recv() that turns an abrupt disconnect into end-of-stream."""
        try:
            data = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""
        return data

    def _check_size(self, size: int) -> None:
        if size > self.max_request_size:
            raise ValueError(f"Request too large: {size} bytes")

    @staticmethod
    def _parse_content_length(headers: bytes) -> int:
        """
        Content-Length from raw header bytes, 0 when absent or unusable.

        Only needed to know how much to read; the request parser rejects
        malformed values properly.
        """
        for line in headers.split(b"\r\n")[1:]:
            name, sep, value = line.partition(b":")
            if sep and name.strip().lower() == b"content-length":
                try:
                    return max(0, int(value.strip()))
                except ValueError:
                    return 0
        return 0

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send bytes with sendall().

        Returns:
            True on success, False if the client is gone.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.debug(f"[{self.id}] Send failed: {e}")
            return False
        return True

    def send_file(self, fileobj: BinaryIO, count: int) -> bool:
        """
        Send exactly `count` bytes of an open file.

        Returns:
            True if all `count` bytes went out. False if the client is gone
            or the file turned out shorter than announced; either way the
            connection can no longer be reused.
        """
        self.state = ConnectionState.WRITING
        if count == 0:
            return True
        try:
            sent = self.socket.sendfile(fileobj, offset=0, count=count)
        except OSError as e:
            logger.debug(f"[{self.id}] File send failed: {e}")
            return False
        if sent < count:
            logger.debug(f"[{self.id}] File shrank: sent {sent} of {count} bytes")
            return False
        return True

    def set_keep_alive(self):
        """Response done, waiting for the next request."""
        self.state = ConnectionState.KEEP_ALIVE

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection: FIN, drain what the client still sends,
        release the descriptor. Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
