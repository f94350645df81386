"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables of the file server in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  CLI arguments  ──►  ServerConfig  ──►  FileServer                  │
    │  environment    ──►      │                                          │
    │                          └── validate()  (fail fast, at startup)    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    HTTP SETTINGS
    - keep_alive, keep_alive_timeout, max_request_size

    FILES
    - base_dir

    LOGGING / IDENTITY
    - log_level, server_name

    =========================================================================
    EXAMPLES
    =========================================================================

        # Share the current directory on the default port
        ServerConfig()

        # Share ~/Downloads on 9000, chatty logs
        ServerConfig(base_dir="~/Downloads", port=9000, log_level="DEBUG")

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "::"
    """
    The address to bind to.
    - "::"        - Every interface, IPv6 and IPv4 (dual-stack)
    - "0.0.0.0"   - Every IPv4 interface
    - "127.0.0.1" - Localhost only
    """

    port: int = 8000
    """The TCP port to listen on (1-65535)."""

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 8192
    """Size of each socket read in bytes."""

    timeout: Optional[float] = 30.0
    """
    Socket timeout in seconds for a client connection.
    None = blocking (a silent client would hold its thread forever).
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    """Serve several requests over one TCP connection."""

    keep_alive_timeout: float = 5.0
    """Idle seconds to wait for the next request on a kept-alive connection."""

    max_request_size: int = 64 * 1024
    """
    Largest request (headers plus body) we buffer, in bytes.
    Downloads carry no body, so this is small.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILES
    # ─────────────────────────────────────────────────────────────────────

    base_dir: Optional[str] = None
    """Directory to serve. None = the current working directory."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Diagnostic log level (DEBUG, INFO, WARNING, ERROR). Not the access log."""

    server_name: str = "fileserver/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls, **overrides) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        FILESERVER_PORT       Server port (default: 8000)
        FILESERVER_LOG_LEVEL  Diagnostic log level (default: INFO)

        Keyword arguments win over the environment:

            ServerConfig.from_env(base_dir="/srv/share")

        =====================================================================
        """
        values = dict(overrides)
        if "port" not in values:
            values["port"] = int(os.getenv("FILESERVER_PORT", "8000"))
        if "log_level" not in values:
            values["log_level"] = os.getenv("FILESERVER_LOG_LEVEL", "INFO").upper()
        return cls(**values)

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: naming the first bad setting.
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.keep_alive_timeout <= 0:
            raise ValueError("keep_alive_timeout must be > 0")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level}. "
                f"Must be one of {', '.join(LOG_LEVELS)}."
            )


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with a dataclass
# 2. FILESERVER_* environment variables, overridable from code
# 3. Validation at startup (fail-fast)
# 4. Defaults match `python -m fileserver` with no arguments
# =============================================================================
