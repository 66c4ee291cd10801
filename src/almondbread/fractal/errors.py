"""
Errors raised by the tile pipeline.

Every error here is scoped to a single request. The router turns
MalformedViewportError into a 4xx response; EncodingError reaches the
server, which answers 500. None of them stops the process.
"""

from typing import Optional


class TileError(Exception):
    """Base class for failures inside the tile pipeline."""


class MalformedViewportError(TileError, ValueError):
    """
    A viewport field was present in the path but could not be used.

    Raised for numerals that do not parse (``x2.5.5``), empty numerals
    (``x_``), non-finite values and non-positive zoom levels.

    Attributes:
        field: Name of the offending field ("x", "y" or "z").
        token: The raw text that failed to parse.
    """

    def __init__(self, message: str, field: Optional[str] = None, token: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.token = token


class EncodingError(TileError):
    """
    The bitmap encoder hit an internal invariant violation.

    Only raised for grids that can never come out of the rasterizer
    (zero-sized, ragged rows, values outside the palette's range).
    """
