"""
=============================================================================
HANDLERS MODULE
=============================================================================

The three response-producing capabilities the router chooses between.

    ┌─────────────────────┬───────────────────────────────────────────────┐
    │ Handler             │ Receives                                      │
    ├─────────────────────┼───────────────────────────────────────────────┤
    │ WebServiceHandler   │ GET /api/...                                  │
    │ StaticPageHandler   │ every other GET                               │
    │ PageNotFoundHandler │ every non-GET request                         │
    └─────────────────────┴───────────────────────────────────────────────┘

Each one exposes handle(request) -> HTTPResponse and keeps no per-request
state.

=============================================================================
"""

from .static import StaticPageHandler, PageNotFoundHandler, not_found_page
from .web_service import WebServiceHandler

__all__ = [
    "StaticPageHandler",
    "PageNotFoundHandler",
    "WebServiceHandler",
    "not_found_page",
]
