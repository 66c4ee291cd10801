"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from almondbread import TileServer, ServerConfig, TileConfig


@pytest.fixture
def sample_tile_request() -> bytes:
    """GET for a tile with every viewport field set."""
    return (
        b"GET /tile_x-0.5_y0.25_z2.bmp?v=1 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: image/*\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_viewer_request() -> bytes:
    """GET for the viewer page."""
    return (
        b"GET / HTTP/1.0\r\n"
        b"Host: localhost:8080\r\n"
        b"\r\n"
    )


@pytest.fixture
def tile_config() -> TileConfig:
    """Small tiles so rendering stays fast in tests."""
    return TileConfig(width=16, height=12, max_steps=32)


@pytest.fixture
def config(tile_config: TileConfig) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        log_level="WARNING",
        tile=tile_config,
    )


class RunningServer:
    """A TileServer running in a background thread."""

    def __init__(self, server: TileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.stop()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes, timeout: float = 10.0) -> bytes:
        """Send raw request bytes and read until the server closes."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as s:
            s.sendall(raw)
            chunks = []
            while True:
                chunk = s.recv(65536)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def get(self, path: str) -> bytes:
        return self.request(
            f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode("latin-1")
        )


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A live tile server on an OS-assigned port."""
    running = RunningServer(TileServer(config))
    running.start()

    yield running

    running.stop()
