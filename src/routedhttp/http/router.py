"""
=============================================================================
REQUEST ROUTER
=============================================================================

Sends each parsed request to exactly one of three handlers and writes the
handler's response to a sink.

=============================================================================
DISPATCH RULES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         DISPATCH DECISION                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   method != GET ─────────────────────────────► NOT_FOUND            │
    │        (POST and UNKNOWN included, whatever the path)               │
    │                                                                      │
    │   method == GET                                                      │
    │        │                                                             │
    │        ▼                                                             │
    │   path.split("/")          "/api/users" → ["", "api", "users"]      │
    │        │                   "/"          → ["", ""]                  │
    │        │                   "/about"     → ["", "about"]             │
    │        ▼                                                             │
    │   segment[1] == "api" ──yes──► WEB_SERVICE                          │
    │        │                                                             │
    │        no ───────────────────► STATIC_PAGE                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A GET target with no "/" at all ("", "*", "index.html") has no segment at
index 1. That is a malformed path: select_target() raises
MalformedPathError and route() answers that one request with 400.

The router holds its three handlers and nothing else. It keeps no state
between calls, so one instance serves every connection thread.

=============================================================================
"""

from enum import Enum
import logging
from typing import Protocol

from .request import HTTPRequest, MalformedPathError, Method
from .response import ByteSink, HTTPResponse, bad_request, DEFAULT_SERVER_NAME


logger = logging.getLogger(__name__)


class Handler(Protocol):
    """A response-producing capability: request in, response out."""

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        ...


class RouteTarget(Enum):
    """The closed set of places a request can be sent."""

    WEB_SERVICE = "web_service"
    STATIC_PAGE = "static_page"
    NOT_FOUND = "not_found"


API_SEGMENT = "api"


def select_target(request: HTTPRequest) -> RouteTarget:
    """
    Decide where a request goes. Pure function of method and path.

    Raises:
        MalformedPathError: for a GET whose path has fewer than two
                            "/"-separated segments.
    """
    if request.method is not Method.GET:
        # POST is recognized by the parser but has no handler yet.
        return RouteTarget.NOT_FOUND

    segments = request.resource.segments()
    if len(segments) < 2:
        raise MalformedPathError(f"Malformed path: {request.resource.path!r}")

    if segments[1] == API_SEGMENT:
        return RouteTarget.WEB_SERVICE
    return RouteTarget.STATIC_PAGE


class Router:
    """
    Dispatches requests to the web service, static page, or not-found
    handler.

    Usage:
        router = Router(
            web_service=WebServiceHandler(data_dir),
            static_page=StaticPageHandler(public_dir),
            not_found=PageNotFoundHandler(public_dir),
        )
        router.route(request, connection)
    """

    def __init__(
        self,
        web_service: Handler,
        static_page: Handler,
        not_found: Handler,
        server_name: str = DEFAULT_SERVER_NAME,
    ):
        self._handlers = {
            RouteTarget.WEB_SERVICE: web_service,
            RouteTarget.STATIC_PAGE: static_page,
            RouteTarget.NOT_FOUND: not_found,
        }
        self.server_name = server_name

    def handler_for(self, target: RouteTarget) -> Handler:
        return self._handlers[target]

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Select a handler and return its response without writing it.

        Raises:
            MalformedPathError: see select_target().
        """
        target = select_target(request)
        logger.debug(f"{request.method.value} {request.path} -> {target.value}")
        return self._handlers[target].handle(request)

    def route(self, request: HTTPRequest, sink: ByteSink) -> None:
        """
        Route a request and write exactly one response to the sink.

        Write failures are ignored: send_response() logs them and the
        outcome is dropped here. A malformed path is answered with
        400 Bad Request instead of propagating.
        """
        try:
            response = self.dispatch(request)
        except MalformedPathError as e:
            logger.warning(str(e))
            response = bad_request(str(e))

        response.send_response(sink, self.server_name)
