"""
Unit tests for Connection reads and writes, using a local socket pair.
"""

import socket

import pytest

from routedhttp.core.connection import Connection, ConnectionState
from routedhttp.http.request import HTTPParseError


@pytest.fixture
def socket_pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    server_side.close()
    client_side.close()


def make_connection(sock: socket.socket, **kwargs) -> Connection:
    kwargs.setdefault("timeout", 2.0)
    return Connection(socket=sock, address=("127.0.0.1", 50000), **kwargs)


class TestReadRequest:
    """Tests for Connection.read_request."""

    def test_reads_until_blank_line(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        client_side.sendall(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        assert conn.read_request() == b"GET / HTTP/1.1\r\nHost: x\r\n\r\n"
        assert conn.state is ConnectionState.READING

    def test_reads_content_length_body(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        client_side.sendall(b"Post /f HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello")

        assert conn.read_request().endswith(b"\r\n\r\nhello")

    def test_earliest_terminator_wins(self, socket_pair):
        """LF-only headers end at the first blank line even if CRLF follows later."""
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        client_side.sendall(b"GET / HTTP/1.1\nHost: x\n\nbody\r\n\r\n")
        client_side.shutdown(socket.SHUT_WR)

        assert conn.read_request() == b"GET / HTTP/1.1\nHost: x\n\n"

    def test_returns_partial_request_on_eof(self, socket_pair):
        """A request without a terminator is handed over once the peer closes."""
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        client_side.sendall(b"GET /api/shows HTTP/1.1\r\nHost: localhost\r\n")
        client_side.shutdown(socket.SHUT_WR)

        assert conn.read_request() == b"GET /api/shows HTTP/1.1\r\nHost: localhost\r\n"

    def test_returns_none_when_nothing_sent(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        client_side.shutdown(socket.SHUT_WR)

        assert conn.read_request() is None

    def test_too_large(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side, max_request_size=1024, buffer_size=1024)

        client_side.sendall(b"GET / HTTP/1.1\r\nX-Large: " + b"A" * 2048)

        with pytest.raises(HTTPParseError) as exc_info:
            conn.read_request()

        assert exc_info.value.status_code == 413

    def test_timeout(self, socket_pair):
        server_side, _ = socket_pair
        conn = make_connection(server_side, timeout=0.1)

        with pytest.raises(TimeoutError):
            conn.read_request()


class TestWriteAndClose:
    """Tests for Connection.write and close."""

    def test_write_is_a_byte_sink(self, socket_pair):
        server_side, client_side = socket_pair
        conn = make_connection(server_side)

        assert conn.write(b"HTTP/1.1 200 OK\r\n\r\n") == 19
        assert conn.state is ConnectionState.WRITING
        assert client_side.recv(1024) == b"HTTP/1.1 200 OK\r\n\r\n"

    def test_context_manager_closes(self, socket_pair):
        server_side, client_side = socket_pair

        with make_connection(server_side) as conn:
            conn.write(b"bye")

        assert conn.state is ConnectionState.CLOSED
        assert client_side.recv(1024) == b"bye"
        assert client_side.recv(1024) == b""

    def test_close_is_idempotent(self, socket_pair):
        server_side, _ = socket_pair
        conn = make_connection(server_side)

        conn.close()
        conn.close()

        assert conn.state is ConnectionState.CLOSED
