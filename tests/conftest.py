"""
pytest configuration and fixtures.
"""

import json
import socket
import threading
from pathlib import Path
from typing import Callable, Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from routedhttp import HTTPServer, ServerConfig
from routedhttp.http import HTTPRequest, HTTPResponse, ResponseBuilder


@pytest.fixture
def sample_get_request() -> str:
    """The request from the end-to-end example: no trailing blank line."""
    return "GET /api/shows HTTP/1.1\r\nHost: localhost\r\n"


@pytest.fixture
def sample_full_request() -> bytes:
    """A browser-like GET with several headers and a terminator."""
    return (
        b"GET /about HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def public_dir(tmp_path: Path) -> Path:
    """A small site with the pages the static handler knows by name."""
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<h1>index</h1>")
    (root / "health.html").write_text("<h1>health</h1>")
    (root / "404.html").write_text("<h1>missing</h1>")
    (root / "styles.css").write_text("h1 { color: red; }")
    (root / "docs").mkdir()
    (root / "docs" / "index.html").write_text("<h1>docs</h1>")
    return root


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    root = tmp_path / "data"
    root.mkdir()
    orders = [
        {"order_id": 1, "order_date": "21 Jan 2020", "order_status": "Delivered"},
        {"order_id": 2, "order_date": "2 Feb 2020", "order_status": "Pending"},
    ]
    (root / "orders.json").write_text(json.dumps(orders))
    return root


class RecordingHandler:
    """Handler stub that remembers what it was called with."""

    def __init__(self, name: str):
        self.name = name
        self.calls: list[HTTPRequest] = []

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        self.calls.append(request)
        return ResponseBuilder().text(self.name).build()


@pytest.fixture
def recording_handlers() -> dict:
    return {
        "web_service": RecordingHandler("web_service"),
        "static_page": RecordingHandler("static_page"),
        "not_found": RecordingHandler("not_found"),
    }


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # Not a test class despite the name

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, raw: bytes) -> bytes:
        """Send raw bytes, half-close, and read the whole response."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as sock:
            sock.sendall(raw)
            sock.shutdown(socket.SHUT_WR)
            chunks = []
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def make_test_server(public_dir: Path, data_dir: Path) -> Generator[Callable[..., TestServer], None, None]:
    """Factory for live servers on OS-assigned ports; config fields can be overridden."""
    started = []

    def factory(**overrides) -> TestServer:
        settings = dict(
            host="127.0.0.1",
            port=0,
            timeout=5.0,
            max_request_size=4096,
            public_dir=str(public_dir),
            data_dir=str(data_dir),
            log_level="WARNING",
        )
        settings.update(overrides)

        test_srv = TestServer(HTTPServer(ServerConfig(**settings)))
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield factory

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def test_server(make_test_server) -> TestServer:
    """A live server serving the fixture site."""
    return make_test_server()
