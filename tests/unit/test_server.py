"""
End-to-end tests against a live server on a loopback port.
"""

import io
import json
import socket
import time

import pytest

from routedhttp import HTTPServer, ServerConfig, create_router, parse_request


def split_response(raw: bytes):
    """Split a raw response into (status line, headers dict, body bytes)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name] = value.strip()
    return lines[0], headers, body


def read_until_eof(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


class TestLiveServer:
    """Requests sent over a real socket."""

    def test_index_page(self, test_server):
        status, headers, body = split_response(
            test_server.request(b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n")
        )

        assert status == "HTTP/1.1 200 OK"
        assert headers["Content-Type"] == "text/html; charset=utf-8"
        assert headers["Content-Length"] == str(len(body))
        assert body == b"<h1>index</h1>"

    def test_web_service(self, test_server):
        status, headers, body = split_response(
            test_server.request(b"GET /api/shipping/orders HTTP/1.1\r\n\r\n")
        )

        assert status == "HTTP/1.1 200 OK"
        assert headers["Content-Type"] == "application/json; charset=utf-8"
        assert len(json.loads(body)) == 2

    def test_request_without_terminator(self, test_server, sample_get_request: str):
        """The client half-closes instead of sending a blank line."""
        status, _, body = split_response(test_server.request(sample_get_request.encode()))

        assert status == "HTTP/1.1 404 Not Found"
        assert json.loads(body) == {"error": "No route found"}

    @pytest.mark.parametrize("line", [b"DELETE /api/users HTTP/1.1", b"POST / HTTP/1.1"])
    def test_non_get_is_not_found(self, test_server, line: bytes):
        status, _, body = split_response(test_server.request(line + b"\r\n\r\n"))

        assert status == "HTTP/1.1 404 Not Found"
        assert body == b"<h1>missing</h1>"

    def test_malformed_request_line(self, test_server):
        status, headers, body = split_response(test_server.request(b"GET HTTP/1.1\r\n\r\n"))

        assert status == "HTTP/1.1 400 Bad Request"
        assert headers["Connection"] == "close"
        assert "request line" in json.loads(body)["error"]

    def test_malformed_path(self, test_server):
        status, _, _ = split_response(test_server.request(b"GET index.html HTTP/1.1\r\n\r\n"))

        assert status == "HTTP/1.1 400 Bad Request"

    def test_server_survives_bad_requests(self, test_server):
        test_server.request(b"GET HTTP/1.1\r\n\r\n")
        test_server.request(b"\r\n\r\n")

        status, _, _ = split_response(test_server.request(b"GET /health HTTP/1.1\r\n\r\n"))

        assert status == "HTTP/1.1 200 OK"

    def test_saturated_pool_answers_503(self, make_test_server):
        server = make_test_server(min_workers=1, max_workers=1, queue_size=1)
        address = ("127.0.0.1", server.port)

        held = []
        try:
            # First client stalls on the only worker, second waits in the queue
            for _ in range(2):
                held.append(socket.create_connection(address, timeout=5.0))
                time.sleep(0.3)

            with socket.create_connection(address, timeout=5.0) as sock:
                raw = read_until_eof(sock)
        finally:
            for sock in held:
                sock.close()

        status, headers, body = split_response(raw)
        assert status == "HTTP/1.1 503 Service Unavailable"
        assert headers["Connection"] == "close"
        assert json.loads(body) == {"error": "Server overloaded"}

        time.sleep(0.3)
        status, _, _ = split_response(server.request(b"GET / HTTP/1.1\r\n\r\n"))
        assert status == "HTTP/1.1 200 OK"

    def test_server_header(self, test_server):
        _, headers, _ = split_response(test_server.request(b"GET / HTTP/1.1\r\n\r\n"))

        assert headers["Server"] == "routedhttp/1.0"


class TestHTTPServer:
    """Tests for HTTPServer construction."""

    def test_invalid_config_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            HTTPServer(ServerConfig(public_dir=str(tmp_path / "missing")))

    def test_custom_router(self, public_dir, data_dir, recording_handlers):
        from routedhttp import Router

        router = Router(**recording_handlers)
        server = HTTPServer(ServerConfig(public_dir=str(public_dir), port=0), router=router)

        assert server.router is router

    def test_create_router_without_socket(self, public_dir, data_dir):
        config = ServerConfig(public_dir=str(public_dir), data_dir=str(data_dir))
        sink = io.BytesIO()

        create_router(config).route(parse_request("GET /health HTTP/1.1\r\n"), sink)

        assert sink.getvalue().startswith(b"HTTP/1.1 200 OK\r\n")
        assert sink.getvalue().endswith(b"<h1>health</h1>")

    def test_route_null_byte_target(self, public_dir, data_dir):
        config = ServerConfig(public_dir=str(public_dir), data_dir=str(data_dir))
        sink = io.BytesIO()

        create_router(config).route(parse_request("GET /a\x00b HTTP/1.1\r\n"), sink)

        assert sink.getvalue().startswith(b"HTTP/1.1 404 Not Found\r\n")

    def test_create_app(self, public_dir):
        from routedhttp.server import create_app

        app = create_app(ServerConfig(public_dir=str(public_dir), port=0))

        assert isinstance(app, HTTPServer)
        assert app.address == ("127.0.0.1", 0)
