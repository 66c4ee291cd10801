"""
Tile rendering core: path → viewport → escape values → bitmap bytes.
"""

from .bitmap import BitmapHeader, encode, read_header
from .errors import EncodingError, MalformedViewportError, TileError
from .escape import DEFAULT_ESCAPE_RADIUS_SQ, DEFAULT_MAX_STEPS, escape_counts, escape_steps
from .palette import color_for
from .raster import (
    DEFAULT_BASE_SPAN,
    ComplexPoint,
    PixelGrid,
    pixel_to_point,
    plane_axes,
    rasterize,
)
from .viewport import Viewport, parse_viewport

__all__ = [
    "BitmapHeader",
    "ComplexPoint",
    "DEFAULT_BASE_SPAN",
    "DEFAULT_ESCAPE_RADIUS_SQ",
    "DEFAULT_MAX_STEPS",
    "EncodingError",
    "MalformedViewportError",
    "PixelGrid",
    "TileError",
    "Viewport",
    "color_for",
    "encode",
    "escape_counts",
    "escape_steps",
    "parse_viewport",
    "pixel_to_point",
    "plane_axes",
    "rasterize",
    "read_header",
]
