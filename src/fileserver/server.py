"""
=============================================================================
FILE SERVER
=============================================================================

Ties the pieces together: a listening socket, one thread per client, the
HTTP keep-alive loop, and the download handler.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │  SocketServer.accept()                                              │
    │        │                                                             │
    │        ▼                                                             │
    │  _handle_connection(conn)  ──► new daemon thread, returns at once   │
    │                                    │                                 │
    │                                    ▼                                 │
    │                         _process_connection(conn)                    │
    │                                    │                                 │
    │              ┌─────────────────────┴──────────────┐                 │
    │              │ loop while keep-alive:             │                 │
    │              │   read_request()                   │  408 / 413      │
    │              │   RequestParser.parse()            │  400 / 505      │
    │              │   DownloadHandler.handle()         │  200/403/404/.. │
    │              │   send header block                │                 │
    │              │   send_file() for GET              │                 │
    │              │   close the file                   │                 │
    │              └────────────────────────────────────┘                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY A THREAD PER CONNECTION
=============================================================================

Downloads are long and I/O-bound: a single 4 GB transfer to a slow laptop
can take minutes. A fixed pool would let a handful of slow clients starve
everyone else, so every connection simply gets its own daemon thread.
Threads share only the read-only base directory and the access logger.

On shutdown the accept loop stops and the listening socket closes; daemon
threads still transferring end with the process.

=============================================================================
"""

import sys
import logging
import threading
from pathlib import Path
from typing import Optional, Tuple

from .access_log import configure_access_log
from .config import ServerConfig
from .core import SocketServer, Connection
from .handlers import DownloadHandler
from .http import (
    RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus,
    empty, internal_error,
)


logger = logging.getLogger(__name__)


class FileServer:
    """
    Download-only HTTP/1.1 file server.

    =========================================================================
    USAGE
    =========================================================================

        server = FileServer(ServerConfig(port=8000, base_dir="/srv/share"))
        server.run()        # blocks until Ctrl+C / SIGTERM

    From another thread (tests):

        server.bind()
        threading.Thread(target=server.run, daemon=True).start()
        ...
        server.stop()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults serve the current
                    directory on port 8000.

        Raises:
            ValueError: Invalid configuration or missing base directory.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        # Computed once; every request resolves against this.
        base_dir = Path(self.config.base_dir) if self.config.base_dir else Path.cwd()
        self._handler = DownloadHandler(base_dir.expanduser())

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._running = False

    @property
    def base_dir(self) -> Path:
        """The canonical directory being served."""
        return self._handler.base_dir

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port), or the configured one before bind()."""
        return self._socket_server.address

    @property
    def url(self) -> str:
        """http://host:port of the bound socket, IPv6 hosts bracketed."""
        host, port = self.address
        if ":" in host:
            host = f"[{host}]"
        return f"http://{host}:{port}"

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def bind(self) -> Tuple[str, int]:
        """
        Create and bind the listening socket without serving yet.

        Lets callers report "port in use" before printing anything.

        Raises:
            OSError: If the address cannot be bound.
        """
        return self._socket_server.bind()

    def run(self):
        """
        Serve until shutdown (blocking).

        Binds first if bind() was not called.
        """
        self._setup_logging()

        if not self._socket_server.is_bound:
            self.bind()

        self._running = True
        self._print_startup_banner()

        try:
            self._socket_server.serve(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Stop accepting connections. Callable from any thread."""
        self._socket_server.shutdown()

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _print_startup_banner(self):
        print(f"Serving {self.base_dir} on {self.url}")
        print("Index is disabled; only direct file paths are allowed.")
        sys.stdout.flush()

    def _setup_logging(self):
        """
        Diagnostics to stderr at the configured level; downloads to stdout.
        """
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("fileserver").setLevel(level)

        configure_access_log()

    def _shutdown(self):
        """Stop serving. Connection threads are daemons and are not joined."""
        self._running = False
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Give the connection its own daemon thread (called by the accept loop)."""
        thread = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        thread.start()

    def _process_connection(self, conn: Connection):
        """
        Serve requests on one connection until it closes (runs in its thread).

        =====================================================================
        CONNECTION PROCESSING LOOP
        =====================================================================

        1. Read request from socket
        2. Parse HTTP request
        3. Run the download handler
        4. Send headers, then the file for GET
        5. If keep-alive: repeat from step 1

        =====================================================================
        """
        with conn:
            while self._running:
                try:
                    # ─────────────────────────────────────────────────────
                    # READ REQUEST
                    # ─────────────────────────────────────────────────────
                    try:
                        raw_request = conn.read_request()
                    except TimeoutError:
                        self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT)
                        break
                    except ValueError as e:
                        logger.debug(f"[{conn.id}] {e}")
                        self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE)
                        break

                    if raw_request is None:
                        break

                    # ─────────────────────────────────────────────────────
                    # PARSE REQUEST
                    # ─────────────────────────────────────────────────────
                    try:
                        request = self._parser.parse(raw_request, conn.client_address)
                    except HTTPParseError as e:
                        logger.debug(f"[{conn.id}] Bad request: {e}")
                        self._send_error(conn, HTTPStatus(e.status_code))
                        break

                    # ─────────────────────────────────────────────────────
                    # HANDLE
                    # ─────────────────────────────────────────────────────
                    try:
                        response = self._handler.handle(request)
                    except Exception as e:
                        logger.exception(f"[{conn.id}] Handler error: {e}")
                        response = internal_error()

                    keep_alive = request.is_keep_alive and self.config.keep_alive
                    if keep_alive:
                        response.headers.setdefault("Connection", "keep-alive")
                        response.headers.setdefault(
                            "Keep-Alive",
                            f"timeout={int(self.config.keep_alive_timeout)}"
                        )
                    else:
                        response.headers["Connection"] = "close"

                    # ─────────────────────────────────────────────────────
                    # SEND
                    # ─────────────────────────────────────────────────────
                    if not self._send(conn, response):
                        break

                    if not keep_alive:
                        break

                    conn.set_keep_alive()

                except Exception as e:
                    logger.exception(f"[{conn.id}] Connection error: {e}")
                    break

    def _send(self, conn: Connection, response: HTTPResponse) -> bool:
        """
        Write a response, streaming its file if it has one.

        The file is closed whatever happens. Returns False when the
        connection cannot be reused.
        """
        try:
            if not conn.send_response(response.to_bytes(self.config.server_name)):
                return False
            if response.is_streamed:
                return conn.send_file(response.stream, response.stream_length)
            return True
        finally:
            response.close()

    def _send_error(self, conn: Connection, status: HTTPStatus):
        """Send an empty-bodied error and mark the connection for closing."""
        response = empty(status)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Startup: validate config, canonicalize base directory, bind, banner
# 2. Request flow: Accept → Thread → Read → Parse → Handle → Send
# 3. Connection management: keep-alive, timeouts, errors
# 4. Shutdown: signal stops the accept loop, daemon threads are not joined
# =============================================================================
