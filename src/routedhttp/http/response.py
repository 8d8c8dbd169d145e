"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses and writes them to a byte sink.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    HTTP/1.1 200 OK\\r\\n                         ← status line
    Content-Type: text/html; charset=utf-8\\r\\n  ← headers
    Content-Length: 27\\r\\n                      ← added automatically
    Date: Mon, 19 Oct 2026 12:00:00 GMT\\r\\n     ← added automatically
    Server: routedhttp/1.0\\r\\n                  ← added automatically
    \\r\\n                                        ← separator
    <html>...</html>                            ← body bytes

=============================================================================
SINKS
=============================================================================

A sink is anything with write(bytes): io.BytesIO in tests, a Connection
in the server. send_response() reports success as a bool and never raises
for I/O failures, so callers that do not care (the router) can drop the
result.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Union
import json
import logging

from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)

DEFAULT_SERVER_NAME = "routedhttp/1.0"


class ByteSink(Protocol):
    """Anything serialized response bytes can be written to."""

    def write(self, data: bytes) -> Any:
        ...


@dataclass
class HTTPResponse:
    """
    An HTTP response waiting to be serialized.

    Handlers return these; the router hands them to send_response().
    Use ResponseBuilder for anything beyond the trivial case.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 404 Not Found"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header, returning self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize to wire format.

        Content-Length, Date and Server are filled in unless the handler
        already set them. The instance itself is not modified.
        """
        response_headers = dict(self.headers)
        response_headers.setdefault("Content-Length", str(len(self.body)))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body

    def send_response(self, sink: ByteSink, server_name: str = DEFAULT_SERVER_NAME) -> bool:
        """
        Write the serialized response to a sink.

        Returns:
            True if the write went through. False if the sink raised
            OSError (peer went away) or ValueError (file-like sink
            already closed).
        """
        try:
            sink.write(self.to_bytes(server_name))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to write {self.status_line!r}: {e}")
            return False
        return True


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("Cache-Control", "no-cache")
            .html("<h1>Hello</h1>")
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the raw body; strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        return self.content_type(content_type).body(text)

    def html(self, html: str) -> "ResponseBuilder":
        return self.text(html, "text/html; charset=utf-8")

    def json(self, data: Any, pretty: bool = False) -> "ResponseBuilder":
        """Serialize data as a JSON body."""
        payload = json.dumps(data, indent=2 if pretty else None, ensure_ascii=False)
        return self.text(payload, "application/json; charset=utf-8")

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 7231 HTTP-date, always in GMT.

    Example: "Mon, 19 Oct 2026 12:00:00 GMT"
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    dt = dt.astimezone(timezone.utc)
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(body: Union[str, bytes, dict, list] = "", content_type: Optional[str] = None) -> HTTPResponse:
    """
    200 OK. dict/list bodies become JSON, str becomes text/plain unless
    content_type says otherwise, bytes are sent as-is.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)

    if isinstance(body, (dict, list)):
        builder.json(body)
    elif isinstance(body, str):
        builder.text(body, content_type or "text/plain; charset=utf-8")
    else:
        builder.body(body)
        if content_type:
            builder.content_type(content_type)

    return builder.build()


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    """400, used for malformed request lines and paths."""
    return ResponseBuilder().status(HTTPStatus.BAD_REQUEST).json({"error": message}).build()


def forbidden(message: str = "Forbidden") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.FORBIDDEN).json({"error": message}).build()


def not_found(message: str = "Not Found") -> HTTPResponse:
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).json({"error": message}).build()


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500. Keep the message generic; details belong in the log."""
    return ResponseBuilder().status(HTTPStatus.INTERNAL_SERVER_ERROR).json({"error": message}).build()


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """JSON error body for an arbitrary status, used by the server."""
    return ResponseBuilder().status(status).json({"error": message}).build()
