"""
=============================================================================
ROUTEDHTTP - A Small HTTP Server With a Typed Request Core
=============================================================================

Raw request text goes in, one routed response comes out.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTEDHTTP ARCHITECTURE                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   raw text ──► RequestParser ──► HTTPRequest (frozen)               │
    │                                      │                               │
    │                                      ▼                               │
    │                                   Router                             │
    │                      ┌───────────────┼───────────────┐               │
    │                      ▼               ▼               ▼               │
    │               WebService       StaticPage        NotFound            │
    │               GET /api/...     other GETs        non-GET             │
    │                      └───────────────┼───────────────┘               │
    │                                      ▼                               │
    │                          HTTPResponse ──► sink                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    routedhttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m routedhttp)
    ├── server.py            # HTTPServer: accept → parse → route
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # Listening socket and accept loop
    │   ├── connection.py    # Per-client reads, byte sink
    │   └── thread_pool.py   # Bounded connection workers
    ├── http/
    │   ├── request.py       # Line classifier and HTTPRequest model
    │   ├── router.py        # Method/path dispatch
    │   ├── response.py      # HTTPResponse, ResponseBuilder
    │   ├── status_codes.py  # HTTPStatus
    │   └── mime_types.py    # Content-Type detection
    ├── handlers/
    │   ├── static.py        # Static pages and the 404 page
    │   └── web_service.py   # JSON endpoints under /api
    ├── public/              # Bundled site
    └── data/                # Bundled JSON data

=============================================================================
QUICK START
=============================================================================

    import io
    from routedhttp import parse_request, HTTPServer, ServerConfig
    from routedhttp.server import create_router

    request = parse_request("GET /api/shipping/orders HTTP/1.1\\r\\nHost: localhost\\r\\n")
    sink = io.BytesIO()
    create_router(ServerConfig()).route(request, sink)
    print(sink.getvalue().decode())

    HTTPServer(ServerConfig(port=3000)).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .http import HTTPRequest, Method, Version, Resource, parse_request, Router
from .server import HTTPServer, create_router

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "HTTPRequest",
    "Method",
    "Version",
    "Resource",
    "Router",
    "parse_request",
    "create_router",
    "__version__",
]
