"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from pathlib import Path
from typing import Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserve import HTTPServer, ServerConfig


SAMPLE_SIZE = 1000


def sample_bytes(size: int = SAMPLE_SIZE) -> bytes:
    """Deterministic, non-repeating-looking content: byte i is i % 251."""
    return bytes(i % 251 for i in range(size))


@pytest.fixture
def sample_data() -> bytes:
    """Contents of data.bin in served_root."""
    return sample_bytes()


@pytest.fixture
def served_root(tmp_path: Path) -> Path:
    """
    A root directory with a few files to serve:

        root/
        ├── data.bin          1000 bytes
        ├── empty.bin         0 bytes
        ├── hello.txt         "Hello, World!\\n"
        ├── page.html
        ├── noext
        └── docs/
            └── report.pdf
    """
    root = tmp_path / "root"
    root.mkdir()
    (root / "data.bin").write_bytes(sample_bytes())
    (root / "empty.bin").write_bytes(b"")
    (root / "hello.txt").write_bytes(b"Hello, World!\n")
    (root / "page.html").write_bytes(b"<h1>hi</h1>")
    (root / "noext").write_bytes(b"plain")
    (root / "docs").mkdir()
    (root / "docs" / "report.pdf").write_bytes(b"%PDF-1.4 fake")

    # Something outside the root that traversal must never reach
    (tmp_path / "secret.txt").write_bytes(b"top secret")
    return root


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer, port: int):
        self.server = server
        self.port = port
        self._thread: threading.Thread = None

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"port": self.port},
            daemon=True
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

        # Wait for the accept loop to take connections
        for _ in range(50):
            try:
                with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                    s.connect(('127.0.0.1', self.port))
                    return
            except ConnectionRefusedError:
                time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        if self.server.is_running:
            self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


def make_config(root: Path, port: int, **overrides) -> ServerConfig:
    settings = dict(
        host="127.0.0.1",
        port=port,
        root_dir=str(root),
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        chunk_size=64,
        log_level="WARNING",
    )
    settings.update(overrides)
    return ServerConfig(**settings)


@pytest.fixture
def start_server(served_root: Path, free_port: int) -> Generator:
    """
    Factory: start_server(**config_overrides) runs a file server over
    served_root and returns its TestServer. Stopped after the test.
    """
    started = []

    def _start(**overrides) -> TestServer:
        server = HTTPServer(make_config(served_root, free_port, **overrides))
        test_srv = TestServer(server, free_port)
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield _start

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def test_server(start_server) -> TestServer:
    """A running file server over served_root, with a small chunk size."""
    return start_server()
