"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server actually emits, with their reason phrases.

    ┌──────────┬──────────────────────────────────────────────────────────┐
    │  Range   │ Where we use it                                          │
    ├──────────┼──────────────────────────────────────────────────────────┤
    │  2xx     │ Static pages and web service payloads                    │
    │  4xx     │ Unknown pages, malformed request lines, oversized input  │
    │  5xx     │ Unreadable data files, handler crashes, overload         │
    └──────────┴──────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200

    BAD_REQUEST = 400          # Malformed request line or path
    FORBIDDEN = 403            # Static path escapes the public root
    NOT_FOUND = 404            # Unknown page, non-GET request
    REQUEST_TIMEOUT = 408      # Client never finished sending
    PAYLOAD_TOO_LARGE = 413    # Request exceeds max_request_size

    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_error(self) -> bool:
        """True for 4xx and 5xx codes."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}
