"""
=============================================================================
WEB SERVICE HANDLER
=============================================================================

Answers GET requests under /api with JSON read from a data directory.

    GET /api/shipping/orders   → 200, contents of data/orders.json
    GET /api/anything/else     → 404 {"error": "No route found"}

The data file is read on every request, so edits show up without a
restart and the handler keeps no state between calls.

=============================================================================
"""

import json
import logging
from pathlib import Path
from typing import Union

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok, not_found, internal_error


logger = logging.getLogger(__name__)

# Path segments after "/api" → JSON file in the data directory
ENDPOINTS = {
    ("shipping", "orders"): "orders.json",
}


class WebServiceHandler:
    """
    Handler for GET /api/... requests.

    Usage:
        api = WebServiceHandler("/srv/data")
        response = api.handle(request)
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        path = request.resource.path.split("?", 1)[0]
        # ["", "api", "shipping", "orders"] → ("shipping", "orders")
        key = tuple(segment for segment in path.split("/")[2:] if segment)

        filename = ENDPOINTS.get(key)
        if filename is None:
            return not_found("No route found")

        return self._load_json(self.data_dir / filename)

    def _load_json(self, path: Path) -> HTTPResponse:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.error(f"Data file missing: {path}")
            return internal_error("Data unavailable")
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load {path}: {e}")
            return internal_error("Data unavailable")

        return ok(data)
