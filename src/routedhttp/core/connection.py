"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps an accepted client socket: reads one request off it and acts as the
byte sink the router writes the response into.

=============================================================================
WHY BUFFER?
=============================================================================

TCP is a byte stream, not a message stream. One recv() may return half a
request line, or the headers and part of the body:

    recv() #1:  b"GET /api/shipping/ord"
    recv() #2:  b"ers HTTP/1.1\\r\\nHost: localhost\\r\\n\\r\\n"

We accumulate bytes until the blank line that ends the headers, then read
exactly Content-Length more bytes for the body.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSED

One request per connection: there is no keep-alive loop, the connection is
closed as soon as the response is written.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional

from ..http.request import HTTPParseError


logger = logging.getLogger(__name__)

# Either line ending style may terminate the header block
HEADER_TERMINATORS = (b"\r\n\r\n", b"\n\n")


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A single client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port) tuple.
        id: Short random identifier used in log lines.
        state: Where the connection is in its lifecycle.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete request from the socket.

        Reads until the end of the header block, then Content-Length body
        bytes. If the client closes its side early, whatever arrived is
        returned as-is and left to the parser.

        Returns:
            The request bytes, or None if the client sent nothing.

        Raises:
            TimeoutError: if the client stalls for longer than timeout.
            HTTPParseError: 413 if the request exceeds max_request_size.
        """
        self.state = ConnectionState.READING

        try:
            header_end = self._find_header_end()
            while header_end is None:
                chunk = self._recv()
                if not chunk:
                    return self._take(len(self._buffer)) or None
                self._append(chunk)
                header_end = self._find_header_end()

            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - header_end < content_length:
                chunk = self._recv()
                if not chunk:
                    break  # Client closed mid-body
                self._append(chunk)

            return self._take(header_end + content_length)

        except socket.timeout:
            raise TimeoutError("Request read timeout")

    def _find_header_end(self) -> Optional[int]:
        """
        Index just past the earliest header terminator, None if not seen
        yet. Clients mixing line endings can put a "\\n\\n" before a later
        "\\r\\n\\r\\n" in the body.
        """
        ends = []
        for terminator in HEADER_TERMINATORS:
            index = self._buffer.find(terminator)
            if index != -1:
                ends.append(index + len(terminator))
        return min(ends) if ends else None

    def _append(self, chunk: bytes) -> None:
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(self._buffer)} bytes",
                status_code=413,
            )

    def _take(self, size: int) -> bytes:
        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    def _recv(self) -> bytes:
        """recv() that treats a reset peer as a closed one."""
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _parse_content_length(self, headers: bytes) -> int:
        """
        Pull Content-Length out of raw header bytes, 0 if absent or bad.

        This runs before the request is parsed, so it does its own
        minimal scan.
        """
        text = headers.decode("utf-8", errors="replace")
        for line in text.splitlines():
            name, _, value = line.partition(":")
            if name.strip().lower() == "content-length":
                try:
                    return max(int(value.strip()), 0)
                except ValueError:
                    return 0
        return 0

    def write(self, data: bytes) -> int:
        """
        Send all of data to the client.

        This is the ByteSink interface the router writes into. Errors are
        raised as OSError; HTTPResponse.send_response() turns them into a
        False return.
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)
        return len(data)

    def close(self) -> None:
        """Half-close for writing, then release the socket."""
        if self.state is ConnectionState.CLOSED:
            return
        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone
        self.socket.close()
        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {self.age:.3f}s")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
