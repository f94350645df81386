"""
pytest configuration and fixtures.
"""

import os
import socket
import threading
import time
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /docs/report%20final.pdf?dl=1 HTTP/1.1\r\n"
        b"Host: localhost:8000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_head_request() -> bytes:
    """Sample HTTP HEAD request that asks to close."""
    return (
        b"HEAD /hello.txt HTTP/1.1\r\n"
        b"Host: localhost:8000\r\n"
        b"Connection: close\r\n"
        b"\r\n"
    )


def _try_symlink(link: Path, target: Path, target_is_directory: bool = False):
    """Create a symlink where the platform allows it."""
    try:
        os.symlink(target, link, target_is_directory=target_is_directory)
    except (OSError, NotImplementedError):
        pass


@pytest.fixture
def outside_dir(tmp_path: Path) -> Path:
    """A directory next to the served one, holding a secret."""
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("top secret\n")
    return outside.resolve()


@pytest.fixture
def base_dir(tmp_path: Path, outside_dir: Path) -> Path:
    """
    Served directory:

        share/
        ├── hello.txt
        ├── empty.txt
        ├── with space.txt
        ├── café.txt
        ├── docs/
        │   └── report final.pdf
        ├── nested/deep/data.bin
        ├── link.txt        -> hello.txt            (symlink, inside)
        ├── escape.txt      -> ../outside/secret.txt (symlink, outside)
        └── outside_link    -> ../outside/           (symlink, outside)
    """
    share = tmp_path / "share"
    share.mkdir()

    (share / "hello.txt").write_bytes(b"hello world\n")
    (share / "empty.txt").write_bytes(b"")
    (share / "with space.txt").write_bytes(b"spaced\n")
    (share / "café.txt").write_bytes(b"accent\n")

    (share / "docs").mkdir()
    (share / "docs" / "report final.pdf").write_bytes(b"%PDF-1.4 fake\n")

    (share / "nested" / "deep").mkdir(parents=True)
    (share / "nested" / "deep" / "data.bin").write_bytes(bytes(range(256)) * 64)

    _try_symlink(share / "link.txt", share / "hello.txt")
    _try_symlink(share / "escape.txt", outside_dir / "secret.txt")
    _try_symlink(share / "outside_link", outside_dir, target_is_directory=True)

    return share.resolve()


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: FileServer, port: int):
        self.server = server
        self.port = port
        self._thread: threading.Thread = None

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        # Wait for server to be ready
        for _ in range(50):  # 5 seconds max
            try:
                with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                    s.connect(('127.0.0.1', self.port))
                    return
            except ConnectionRefusedError:
                time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.stop()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def server_factory(free_port: int, base_dir: Path) -> Generator:
    """
    Start servers sharing `base_dir` on 127.0.0.1:free_port.

    Keyword arguments override the ServerConfig defaults used here.
    Every server started is stopped at teardown.
    """
    started = []

    def start(**overrides) -> TestServer:
        options = dict(
            host="127.0.0.1",
            port=free_port,
            base_dir=str(base_dir),
            timeout=5.0,
            keep_alive_timeout=2.0,
            log_level="WARNING",
        )
        options.update(overrides)

        test_srv = TestServer(FileServer(ServerConfig(**options)), options["port"])
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield start

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def test_server(server_factory) -> TestServer:
    """A running server sharing `base_dir` on 127.0.0.1."""
    return server_factory()
