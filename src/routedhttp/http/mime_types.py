"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file extensions to Content-Type values for the static page handler.

A browser decides how to treat a response from its Content-Type, not from
the URL. A stylesheet served as text/plain is ignored, a script served as
text/plain is never executed.

    index.html  → text/html; charset=utf-8
    styles.css  → text/css; charset=utf-8
    app.js      → text/javascript; charset=utf-8
    logo.png    → image/png
    (unknown)   → application/octet-stream

=============================================================================
"""

from pathlib import Path
from typing import Union


MIME_TYPES = {
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".json": "application/json",
    ".txt": "text/plain",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".woff2": "font/woff2",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

# Types that get a charset parameter appended
_TEXT_TYPES = {"text/html", "text/css", "text/javascript", "text/plain", "application/json"}


def get_mime_type(path: Union[str, Path]) -> str:
    """
    Get the bare MIME type for a file path (case-insensitive extension).

    Example:
        get_mime_type("css/Styles.CSS")  # "text/css"
    """
    return MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


def get_content_type(path: Union[str, Path], charset: str = "utf-8") -> str:
    """
    Get a full Content-Type header value, adding charset for text types.
    """
    mime = get_mime_type(path)
    if mime in _TEXT_TYPES:
        return f"{mime}; charset={charset}"
    return mime
