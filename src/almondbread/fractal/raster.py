"""
=============================================================================
TILE RASTERIZER
=============================================================================

Maps every pixel of a tile onto the complex plane and runs the escape-time
engine on it.

=============================================================================
PIXEL → PLANE MAPPING
=============================================================================

With span = base_span / zoom, pixel (px, py) of a width × height tile maps to

    re = center_x + (px - width / 2)  * span / width
    im = center_y + (py - height / 2) * span / height

    px = 0                          px = width
      ┌──────────────────────────────┐  py = 0         im = center_y - span/2
      │                              │
      │              ● (center_x,    │  py = height/2  im = center_y
      │                 center_y)    │
      │                              │
      └──────────────────────────────┘  py = height    im = center_y + span/2
    re = center_x - span/2      re = center_x + span/2

The default base_span of 4.0 at zoom 1 covers [-2, 2] on both axes, which
contains the whole of the classic Mandelbrot region.

=============================================================================
"""

import math
from dataclasses import dataclass
from typing import Iterator, Tuple, Union

import numpy as np

from .errors import MalformedViewportError
from .escape import DEFAULT_ESCAPE_RADIUS_SQ, DEFAULT_MAX_STEPS, escape_counts
from .viewport import Viewport


DEFAULT_BASE_SPAN = 4.0


@dataclass(frozen=True)
class ComplexPoint:
    """A coordinate on the complex plane."""

    re: float
    im: float


@dataclass
class PixelGrid:
    """
    Escape values for one tile, row-major, top-to-bottom, left-to-right.

    Attributes:
        width: Pixels per row.
        height: Number of rows.
        values: Flat array of width * height escape values.
    """

    width: int
    height: int
    values: np.ndarray

    def __post_init__(self):
        self.values = np.asarray(self.values).ravel()

    def __len__(self) -> int:
        return self.values.size

    def __getitem__(self, position: Tuple[int, int]) -> int:
        px, py = position
        if not (0 <= px < self.width and 0 <= py < self.height):
            raise IndexError(f"Pixel {position} outside {self.width}x{self.height} grid")
        return self.values[py * self.width + px]

    def row(self, py: int) -> np.ndarray:
        """Escape values of row ``py`` (0 is the top row)."""
        start = py * self.width
        return self.values[start:start + self.width]

    def rows(self) -> Iterator[np.ndarray]:
        """Iterate over rows from top to bottom."""
        for py in range(self.height):
            yield self.row(py)

    def as_array(self) -> np.ndarray:
        """The values shaped (height, width)."""
        return self.values.reshape(self.height, self.width)


Index = Union[int, np.ndarray]


def _axis(center: float, span: float, count: int, index: Index) -> Index:
    """Plane coordinate of pixel ``index`` along one axis of ``count`` pixels."""
    return center + (index - count / 2) * span / count


def pixel_to_point(
    viewport: Viewport,
    px: int,
    py: int,
    width: int,
    height: int,
    base_span: float = DEFAULT_BASE_SPAN,
) -> ComplexPoint:
    """Map one pixel of a width × height tile onto the complex plane."""
    span = viewport.span(base_span)
    return ComplexPoint(
        re=_axis(viewport.center_x, span, width, px),
        im=_axis(viewport.center_y, span, height, py),
    )


def plane_axes(
    viewport: Viewport,
    width: int,
    height: int,
    base_span: float = DEFAULT_BASE_SPAN,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Real coordinates of every column and imaginary coordinates of every row.

    Raises:
        MalformedViewportError: The viewport reaches coordinates that do
            not fit in a float, e.g. a zoom so small its span overflows.
    """
    span = viewport.span(base_span)

    with np.errstate(over="ignore", invalid="ignore"):
        re_axis = _axis(viewport.center_x, span, width, np.arange(width))
        im_axis = _axis(viewport.center_y, span, height, np.arange(height))

    if not (np.isfinite(re_axis).all() and np.isfinite(im_axis).all()):
        raise MalformedViewportError(
            f"Viewport x={viewport.center_x} y={viewport.center_y} z={viewport.zoom} "
            f"leaves the representable plane",
            field=None if math.isfinite(span) else "z",
        )

    return re_axis, im_axis


def rasterize(
    viewport: Viewport,
    width: int,
    height: int,
    base_span: float = DEFAULT_BASE_SPAN,
    max_steps: int = DEFAULT_MAX_STEPS,
    escape_radius_sq: float = DEFAULT_ESCAPE_RADIUS_SQ,
) -> PixelGrid:
    """
    Render the escape values for a whole tile.

    Args:
        viewport: Region of the plane to depict.
        width: Tile width in pixels.
        height: Tile height in pixels.
        base_span: Plane extent shown at zoom 1.
        max_steps: Iteration cap passed to the escape-time engine.
        escape_radius_sq: Escape threshold passed to the engine.

    Returns:
        A PixelGrid of exactly width * height values in [0, max_steps].

    Raises:
        ValueError: If width or height is not positive.
        MalformedViewportError: If the viewport's coordinates are not finite.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Tile dimensions must be positive, got {width}x{height}")

    re_axis, im_axis = plane_axes(viewport, width, height, base_span)
    re, im = np.meshgrid(re_axis, im_axis)

    counts = escape_counts(re, im, max_steps, escape_radius_sq)
    return PixelGrid(width=width, height=height, values=counts)
