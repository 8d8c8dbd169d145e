"""
=============================================================================
STATIC PAGE HANDLERS
=============================================================================

Serve HTML pages and their assets from a public directory.

=============================================================================
URL TO FILE MAPPING
=============================================================================

    GET /                    → public/index.html
    GET /health              → public/health.html
    GET /styles.css          → public/styles.css
    GET /docs/intro.html     → public/docs/intro.html
    GET /docs/               → public/docs/index.html (if present)
    GET /missing.html        → 404 with public/404.html
    GET /../../etc/passwd    → 403 (resolves outside public/)

The query string, if any, is ignored when looking up the file.

=============================================================================
PATH TRAVERSAL
=============================================================================

The parser stores the target verbatim, so "/../secret" reaches this
handler untouched. We resolve the full filesystem path (following ".."
and symlinks) and refuse anything that is not inside the public root.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, HTTPStatus, forbidden
from ..http.mime_types import get_content_type


logger = logging.getLogger(__name__)

# Pages with their own short name; everything else maps to a file path.
NAMED_PAGES = {
    "": "index.html",
    "health": "health.html",
}

NOT_FOUND_PAGE = "404.html"


def _load_page(root: Path, name: str) -> Optional[bytes]:
    """Read a page from the root, None if it does not exist."""
    page = root / name
    try:
        return page.read_bytes()
    except FileNotFoundError:
        return None


def not_found_page(root: Path) -> HTTPResponse:
    """
    404 response carrying the site's 404.html.

    Falls back to a plain text body when the site has no 404 page.
    """
    content = _load_page(root, NOT_FOUND_PAGE)
    builder = ResponseBuilder().status(HTTPStatus.NOT_FOUND)
    if content is None:
        return builder.text("404 Not Found").build()
    return builder.content_type("text/html; charset=utf-8").body(content).build()


class StaticPageHandler:
    """
    Handler for every GET that is not under /api.

    Usage:
        static = StaticPageHandler("/var/www/public")
        response = static.handle(request)
    """

    def __init__(self, public_dir: Union[str, Path], index_file: str = "index.html"):
        """
        Args:
            public_dir: Directory holding the site. Must exist.
            index_file: File served for directory requests.
        """
        self.root_dir = Path(public_dir).resolve()
        self.index_file = index_file

        if not self.root_dir.is_dir():
            raise ValueError(f"Public directory does not exist: {public_dir}")

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        path = request.resource.path.split("?", 1)[0]
        segments = path.split("/")

        if len(segments) == 2 and segments[1] in NAMED_PAGES:
            relative = NAMED_PAGES[segments[1]]
        else:
            relative = "/".join(segments[1:])

        # The target is verbatim, so it may hold a NUL byte or an
        # over-long name that the filesystem rejects outright.
        try:
            full_path = (self.root_dir / relative).resolve()

            if not self._is_inside_root(full_path):
                logger.warning(f"Path traversal attempt: {request.resource.path}")
                return forbidden("Access denied")

            if full_path.is_dir():
                full_path = full_path / self.index_file
            found = full_path.is_file()
        except (ValueError, OSError) as e:
            logger.warning(f"Unusable path {request.resource.path!r}: {e}")
            return not_found_page(self.root_dir)

        if not found:
            logger.debug(f"No static file for {request.resource.path}")
            return not_found_page(self.root_dir)

        return self._serve_file(full_path)

    def _is_inside_root(self, path: Path) -> bool:
        try:
            path.relative_to(self.root_dir)
        except ValueError:
            return False
        return True

    def _serve_file(self, path: Path) -> HTTPResponse:
        try:
            content = path.read_bytes()
        except PermissionError:
            return forbidden("Permission denied")
        except OSError as e:
            logger.error(f"Error serving file {path}: {e}")
            return (ResponseBuilder()
                .status(HTTPStatus.INTERNAL_SERVER_ERROR)
                .json({"error": "Failed to read file"})
                .build())

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type(get_content_type(path))
            .body(content)
            .build())


class PageNotFoundHandler:
    """
    Handler for everything the router cannot place: non-GET requests of
    any kind. Always answers 404.
    """

    def __init__(self, public_dir: Union[str, Path]):
        self.root_dir = Path(public_dir).resolve()

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        return not_found_page(self.root_dir)
