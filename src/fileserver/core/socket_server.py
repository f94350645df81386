"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket: creates it, binds it to every interface, runs
the accept loop and hands each accepted client to a callback.

=============================================================================
ONE SOCKET, BOTH PROTOCOLS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  host "::"  (default)                                               │
    │                                                                      │
    │   AF_INET6 socket, IPV6_V6ONLY = 0                                  │
    │     ├── IPv6 clients arrive as themselves     [fe80::1]:40112      │
    │     └── IPv4 clients arrive as mapped IPv6    [::ffff:10.0.0.5]:..  │
    │                                                                      │
    │   No IPv6 on this host?  → AF_INET socket on "0.0.0.0" instead      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    bind()            create socket, bind, listen   (errors surface here)
       │
    serve(callback)   accept loop, BLOCKS           (signals installed
       │                                             when on main thread)
    shutdown()        flag the loop; it exits within one accept timeout
       │
    _cleanup()        restore signal handlers, close the listening socket

=============================================================================
"""

import errno
import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


# Errors that mean "this host cannot do IPv6", as opposed to
# "the port is taken" which must be reported, not worked around.
_NO_IPV6_ERRNOS = {errno.EAFNOSUPPORT, errno.EADDRNOTAVAIL}


class SocketServer:
    """
    Low-level TCP server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.bind()
        server.serve(handle_connection)  # Blocks until shutdown
    """

    ACCEPT_TIMEOUT = 1.0

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeouts).

        The socket is not created until bind().
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._shutdown_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_bound(self) -> bool:
        """Check if the listening socket exists."""
        return self._socket is not None

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address actually bound (host, port).

        Differs from the configured one after the IPv4 fallback or when
        port 0 let the OS pick a port.
        """
        if self._socket is None:
            return (self.config.host, self.config.port)
        sockname = self._socket.getsockname()
        return (sockname[0], sockname[1])

    # =========================================================================
    # SOCKET SETUP
    # =========================================================================

    def _create_socket(self, family: int) -> socket.socket:
        """Create a TCP socket of `family` with the server's options."""
        sock = socket.socket(family, socket.SOCK_STREAM)

        # Restart without waiting out TIME_WAIT.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        if family == socket.AF_INET6:
            try:
                sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
            except (AttributeError, OSError):
                logger.debug("Cannot clear IPV6_V6ONLY; serving IPv6 only")

        # accept() wakes up every second to look at the running flag.
        sock.settimeout(self.ACCEPT_TIMEOUT)
        return sock

    def _bind_candidates(self) -> list[tuple[int, str]]:
        """(family, host) pairs to try, in order."""
        host = self.config.host
        if host == "::":
            candidates = []
            if socket.has_ipv6:
                candidates.append((socket.AF_INET6, "::"))
            candidates.append((socket.AF_INET, "0.0.0.0"))
            return candidates
        if ":" in host:
            return [(socket.AF_INET6, host)]
        return [(socket.AF_INET, host)]

    def bind(self) -> Tuple[str, int]:
        """
        Create the listening socket, bind and listen.

        Returns:
            The bound (host, port).

        Raises:
            OSError: If no candidate address could be bound
                     (port in use, permission denied, ...).
        """
        candidates = self._bind_candidates()

        for index, (family, host) in enumerate(candidates):
            is_last = index == len(candidates) - 1
            try:
                sock = self._create_socket(family)
            except OSError as e:
                if is_last:
                    raise
                logger.debug(f"Cannot create socket for {host}: {e}")
                continue

            try:
                sock.bind((host, self.config.port))
                sock.listen(self.config.backlog)
            except OSError as e:
                sock.close()
                if is_last or e.errno not in _NO_IPV6_ERRNOS:
                    logger.error(f"Failed to bind to {host}:{self.config.port}: {e}")
                    raise
                logger.debug(f"No IPv6 here ({e}); falling back to IPv4")
                continue

            self._socket = sock
            break

        logger.info(f"Listening on {self.address[0]}:{self.address[1]}")
        return self.address

    # =========================================================================
    # SIGNALS
    # =========================================================================

    def _setup_signals(self):
        """
        Turn SIGINT (Ctrl+C) and SIGTERM into shutdown().

        Python only allows signal handlers on the main thread; a server
        started from another thread (tests, embedding) is stopped by
        calling shutdown() directly.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
            self.shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    # =========================================================================
    # ACCEPT LOOP
    # =========================================================================

    def serve(self, connection_handler: Callable[[Connection], None]):
        """
        Run the accept loop on the bound socket. BLOCKS until shutdown().

        Args:
            connection_handler: Called with each new Connection. It must
                                return quickly; the loop does not accept
                                again until it does.
        """
        if self._socket is None:
            raise RuntimeError("serve() called before bind()")

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        while running:
            accept() with a 1s timeout
            wrap in Connection
            connection_handler(conn)
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Ask the accept loop to stop. Idempotent, callable from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._running = False
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the server has shut down.

        Returns:
            True if shutdown happened, False on timeout.
        """
        return self._shutdown_event.wait(timeout)
