"""
Content types for the bodies this server produces.

    extension   MIME type        used for
    ─────────   ──────────────   ─────────────────────────
    .bmp        image/bmp        rendered tiles
    .html       text/html        viewer page
    .txt        text/plain       client/server error text
"""

from pathlib import PurePosixPath
from typing import Optional


MIME_TYPES = {
    ".bmp": "image/bmp",
    ".html": "text/html",
    ".htm": "text/html",
    ".txt": "text/plain",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def get_mime_type(path: str, default: Optional[str] = None) -> str:
    """
    MIME type for a file name or path, by its (case-insensitive) extension.

    Examples:
        >>> get_mime_type("/tile_x0_y0_z1.bmp")
        'image/bmp'
        >>> get_mime_type("README")
        'application/octet-stream'
    """
    extension = PurePosixPath(path).suffix.lower()
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)


def is_text_type(mime_type: str) -> bool:
    return mime_type.startswith("text/")


def get_content_type(path: str, charset: str = "utf-8") -> str:
    """
    Full Content-Type header value; text types get a charset parameter.

    Examples:
        >>> get_content_type("index.html")
        'text/html; charset=utf-8'
        >>> get_content_type("tile.bmp")
        'image/bmp'
    """
    mime_type = get_mime_type(path)

    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"

    return mime_type
