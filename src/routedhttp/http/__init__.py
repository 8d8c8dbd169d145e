"""
=============================================================================
HTTP MODULE
=============================================================================

Protocol-level pieces of the server:

    request.py       raw text → HTTPRequest (Method, Version, Resource)
    router.py        HTTPRequest → one of three handlers → sink
    response.py      HTTPResponse, ResponseBuilder, send_response()
    status_codes.py  HTTPStatus with reason phrases
    mime_types.py    Content-Type detection for static files

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    MalformedRequestLineError,
    MalformedPathError,
    Method,
    Version,
    Resource,
    LineKind,
    classify_line,
    parse_request,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ByteSink,
    ok,
    bad_request,
    forbidden,
    not_found,
    internal_error,
)
from .router import Router, RouteTarget, Handler, select_target
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "MalformedRequestLineError",
    "MalformedPathError",
    "Method",
    "Version",
    "Resource",
    "LineKind",
    "classify_line",
    "parse_request",

    # Responses
    "HTTPResponse",
    "ResponseBuilder",
    "ByteSink",
    "ok",
    "bad_request",
    "forbidden",
    "not_found",
    "internal_error",

    # Routing
    "Router",
    "RouteTarget",
    "Handler",
    "select_target",

    "HTTPStatus",
    "get_mime_type",
    "get_content_type",
]
