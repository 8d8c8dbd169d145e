"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw text of one HTTP request into an immutable HTTPRequest.

The parser is deliberately forgiving: it makes a single forward pass over
the lines of the request, classifies each one, and never rejects an
unrecognized method or version. Those become Method.UNKNOWN and
Version.UNKNOWN and the request stays usable downstream (the router sends
it to the not-found page).

=============================================================================
LINE CLASSIFICATION
=============================================================================

Every physical line goes through the same ordered chain of rules. The first
rule whose predicate matches decides what the line is:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     LINE CLASSIFICATION CHAIN                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   line ──► contains "HTTP"? ──yes──► REQUEST LINE                   │
    │               │                      METHOD SP TARGET SP VERSION     │
    │               no                                                     │
    │               ▼                                                      │
    │            contains ":"?   ──yes──► HEADER                           │
    │               │                      "Host: localhost"               │
    │               no                                                     │
    │               ▼                                                      │
    │            empty?          ──yes──► BLANK (skipped)                  │
    │               │                                                      │
    │               no                                                     │
    │               ▼                                                      │
    │            BODY (overwrites any earlier body line)                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Consequences worth knowing:

    - A second request line overwrites the first; fields are not merged.
    - Blank lines are skipped wherever they appear, not only once.
    - Only the LAST body line survives. Multi-line bodies are not joined.
    - The target is stored verbatim: no URL decoding, no query splitting.
      Splitting the path into segments is the router's job.

=============================================================================
EXAMPLE
=============================================================================

    GET /api/shows HTTP/1.1\r\n        → method=GET, target, version=V1_1
    Host: localhost\r\n                → headers["Host"] = "localhost"
    \r\n                               → skipped
    hello                              → body = "hello"

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Union


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed into an HTTPRequest.

    Carries the HTTP status code the server should answer with, so callers
    can turn the failure into a response for that one request:

        400 Bad Request       - malformed request line or path
        413 Payload Too Large - request exceeds the size limit
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class MalformedRequestLineError(HTTPParseError):
    """A line containing "HTTP" did not split into exactly three tokens."""


class MalformedPathError(HTTPParseError):
    """A GET target too short to have a segment after its leading "/"."""


# =============================================================================
# CLOSED VARIANTS
# =============================================================================

class Method(Enum):
    """
    Request methods this server recognizes.

    Matching is exact and case-sensitive. Note that the POST literal is
    "Post", not "POST": a request line starting with "POST" yields UNKNOWN.
    """

    GET = "GET"
    POST = "Post"
    UNKNOWN = "unknown"

    @classmethod
    def from_token(cls, token: str) -> "Method":
        """Map a request-line token to a Method, UNKNOWN if unrecognized."""
        for method in (cls.GET, cls.POST):
            if method.value == token:
                return method
        return cls.UNKNOWN


class Version(Enum):
    """
    Protocol versions this server recognizes.

    A request with no request line keeps the default, V1_1, not UNKNOWN.
    """

    V1_1 = "HTTP/1.1"
    V2_0 = "HTTP/2.0"
    UNKNOWN = "unknown"

    @classmethod
    def from_token(cls, token: str) -> "Version":
        """Map a request-line token to a Version, UNKNOWN if unrecognized."""
        for version in (cls.V1_1, cls.V2_0):
            if version.value == token:
                return version
        return cls.UNKNOWN


@dataclass(frozen=True)
class Resource:
    """
    The request target, stored exactly as it appeared on the request line.

    There is a single case, a path. "/api/shipping/orders?x=1" is kept as
    one string, query and all.
    """

    path: str = ""

    def segments(self) -> list[str]:
        """
        Split the path on "/".

        A leading "/" produces an empty first segment, so "/api/users"
        gives ["", "api", "users"] and "/" gives ["", ""].
        """
        return self.path.split("/")


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    =========================================================================
    REQUEST LIFECYCLE
    =========================================================================

        Raw text              HTTPRequest               Router
        from socket ──parse──► (frozen)    ──route──►   picks one handler
                                  │
                                  └── never mutated after parsing

    =========================================================================
    DEFAULTS
    =========================================================================

        method:   Method.UNKNOWN    until a request line is seen
        version:  Version.V1_1      until a request line is seen
        resource: Resource("")
        headers:  {}                read-only mapping, exact-case keys
        body:     ""                last body line only

    =========================================================================
    """

    method: Method = Method.UNKNOWN
    version: Version = Version.V1_1
    resource: Resource = field(default_factory=Resource)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""

    @property
    def path(self) -> str:
        """Shortcut for resource.path."""
        return self.resource.path

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value by its exact name.

        Header names are stored as sent, so lookups are case-sensitive:
        "Host" and "host" are different keys.
        """
        return self.headers.get(name, default)


# =============================================================================
# LINE CLASSIFICATION
# =============================================================================

class LineKind(Enum):
    """What a single physical line of the request turned out to be."""

    REQUEST_LINE = "request_line"
    HEADER = "header"
    BLANK = "blank"
    BODY = "body"


def is_request_line(line: str) -> bool:
    return "HTTP" in line


def is_header_line(line: str) -> bool:
    return ":" in line


def is_blank_line(line: str) -> bool:
    return not line


# Ordered: the first matching predicate wins. Anything left over is BODY.
LINE_RULES: tuple[tuple[Callable[[str], bool], LineKind], ...] = (
    (is_request_line, LineKind.REQUEST_LINE),
    (is_header_line, LineKind.HEADER),
    (is_blank_line, LineKind.BLANK),
)


def classify_line(line: str) -> LineKind:
    """
    Classify one line (already stripped of its line ending).

    Example:
        classify_line("GET / HTTP/1.1")   # LineKind.REQUEST_LINE
        classify_line("Host: localhost")  # LineKind.HEADER
        classify_line("")                 # LineKind.BLANK
        classify_line("name=alice")       # LineKind.BODY
    """
    for predicate, kind in LINE_RULES:
        if predicate(line):
            return kind
    return LineKind.BODY


def split_lines(text: str) -> list[str]:
    """
    Split on "\\n", dropping a trailing "\\r" from each line.

    Handles both CRLF and bare LF endings. Other characters that
    str.splitlines() would break on (form feeds, "\\x1c", "\\u2028") are
    left inside the line.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()  # text ended with a newline
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_request_line(line: str) -> tuple[Method, Resource, Version]:
    """
    Parse "METHOD TARGET VERSION" into typed values.

    Tokens are separated by any run of whitespace.

    Raises:
        MalformedRequestLineError: if the line is not exactly three tokens.
    """
    tokens = line.split()
    if len(tokens) != 3:
        raise MalformedRequestLineError(
            f"Malformed request line: expected 3 tokens, got {len(tokens)}: {line!r}"
        )
    method, target, version = tokens
    return Method.from_token(method), Resource(target), Version.from_token(version)


def parse_header_line(line: str) -> tuple[str, str]:
    """
    Split a header line at its first colon and trim both sides.

        "Host: localhost:3000"  → ("Host", "localhost:3000")
        " : "                   → ("", "")
        "X-Empty:"              → ("X-Empty", "")
    """
    key, _, value = line.partition(":")
    return key.strip(), value.strip()


# =============================================================================
# PARSER
# =============================================================================

class RequestParser:
    """
    Parses raw request text into HTTPRequest objects.

    ==========================================================================
    PARSER ARCHITECTURE
    ==========================================================================

        Raw request (str or bytes)
              │
              ▼
        1. Size check ─────────► too large? HTTPParseError(413)
              │
              ▼
        2. Decode bytes as UTF-8 (invalid bytes replaced)
              │
              ▼
        3. split_lines() ──────► ["GET / HTTP/1.1", "Host: x", ...]
              │
              ▼
        4. classify_line() each line, apply it, no lookahead
              │
              ▼
        5. Freeze into HTTPRequest (headers become read-only)

    The parser holds only its size limit, so one instance can be shared
    by every connection thread.
    ==========================================================================
    """

    def __init__(self, max_request_size: Optional[int] = 10 * 1024 * 1024):
        """
        Args:
            max_request_size: Largest accepted request in bytes (characters
                              for str input). None disables the check.
        """
        self.max_request_size = max_request_size

    def parse(self, raw: Union[str, bytes]) -> HTTPRequest:
        """
        Parse one complete request.

        Raises:
            HTTPParseError: 413 if the input is larger than the limit.
            MalformedRequestLineError: if a request line has != 3 tokens.
        """
        if self.max_request_size is not None and len(raw) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(raw)} bytes",
                status_code=413,
            )

        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw

        method = Method.UNKNOWN
        version = Version.V1_1
        resource = Resource("")
        headers: dict[str, str] = {}
        body = ""

        for line in split_lines(text):
            kind = classify_line(line)

            if kind is LineKind.REQUEST_LINE:
                method, resource, version = parse_request_line(line)
            elif kind is LineKind.HEADER:
                key, value = parse_header_line(line)
                headers[key] = value
            elif kind is LineKind.BODY:
                body = line
            # LineKind.BLANK: nothing to do

        return HTTPRequest(
            method=method,
            version=version,
            resource=resource,
            headers=MappingProxyType(headers),
            body=body,
        )


def parse_request(
    raw: Union[str, bytes],
    max_size: Optional[int] = 10 * 1024 * 1024,
) -> HTTPRequest:
    """
    Parse one request with a throwaway RequestParser.

    Example:
        request = parse_request("GET /api/shows HTTP/1.1\\r\\nHost: localhost\\r\\n")
        request.method     # Method.GET
        request.path       # "/api/shows"
    """
    return RequestParser(max_request_size=max_size).parse(raw)
