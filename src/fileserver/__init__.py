"""
=============================================================================
FILESERVER - Share a Directory for Direct Download
=============================================================================

A small HTTP/1.1 server, written on raw Python sockets, that hands out
files from one directory. You can fetch a file only if you know its exact
path: there are no index pages, no listings, and nothing outside the
directory is reachable.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   $ cd ~/Downloads && fileserver                                    │
    │   Serving /home/ana/Downloads on http://[::]:8000                   │
    │   Index is disabled; only direct file paths are allowed.            │
    │                                                                      │
    │   $ curl -OJ http://laptop:8000/slides/final.pdf     → 200          │
    │   $ curl    http://laptop:8000/                      → 403          │
    │   $ curl    http://laptop:8000/../.ssh/id_ed25519    → 403 / 404    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    fileserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m fileserver)
    ├── server.py            # FileServer: accept loop + keep-alive loop
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # ts=... ip=... file=... lines on stdout
    ├── core/                # Low-level networking
    │   ├── socket_server.py # Dual-stack listening socket, accept loop
    │   └── connection.py    # Buffered reads, sendall, sendfile
    ├── http/                # HTTP protocol
    │   ├── request.py       # Request parsing (path kept raw)
    │   ├── response.py      # Response building, Content-Disposition
    │   └── status_codes.py  # HTTP status enum
    ├── sandbox/             # URL path → verified file path
    │   ├── decoder.py       # Percent-decoding, NUL rejection
    │   ├── resolver.py      # Canonicalize + stay-inside check
    │   └── guard.py         # Refuse to serve / or $HOME
    └── handlers/
        └── download.py      # GET/HEAD state machine

=============================================================================
QUICK START
=============================================================================

    from fileserver import FileServer, ServerConfig

    server = FileServer(ServerConfig(port=9000, base_dir="/srv/share"))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer
from .config import ServerConfig

__all__ = ["FileServer", "ServerConfig", "__version__"]
