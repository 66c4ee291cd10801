"""
=============================================================================
VIEWPORT RESOLVER
=============================================================================

Turns a tile path into the region of the complex plane it should show.

=============================================================================
PATH GRAMMAR
=============================================================================

    /tile_x2.5_y-1.0_z4.bmp
     ──┬─ ──┬── ──┬─── ─┬ ─┬─
       │    │     │     │  └── extension (removed before scanning)
       │    │     │     └───── zoom      "z" + numeral
       │    │     └─────────── center y  "y" + numeral
       │    └───────────────── center x  "x" + numeral
       └────────────────────── resource name (removed before scanning)

A leading "tile" is cut off, so "/tilex2.5_z4.bmp" reads like
"/tile_x2.5_z4.bmp". The rest of the final path segment is split on "_"
into tokens. A token whose first character is a marker ("x", "y" or "z")
is a field; the rest of the token is its numeral. Each field is bounded by its own token, so a marker-like
character can never pull a neighbouring field's digits into a match.

    Field   Default   Constraint
    ─────   ───────   ──────────────────────
    x       0.0       finite
    y       0.0       finite
    z       1.0       finite and > 0

A missing field takes its default. A present field whose numeral does
not parse raises MalformedViewportError. When a marker appears in more
than one token, the first one wins.

=============================================================================
"""

import math
import re
from dataclasses import dataclass
from typing import Dict

from .errors import MalformedViewportError


DEFAULT_CENTER_X = 0.0
DEFAULT_CENTER_Y = 0.0
DEFAULT_ZOOM = 1.0

RESOURCE_NAME = "tile"
FIELD_DELIMITER = "_"
MARKERS = ("x", "y", "z")

# Decimal numerals only: "nan", "inf" and hex floats are not coordinates.
NUMERAL_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")

# A trailing ".bmp"-style extension. Numerals like "z4.5" keep their digits.
EXTENSION_PATTERN = re.compile(r"\.[A-Za-z]+$")


@dataclass(frozen=True)
class Viewport:
    """
    The region of the complex plane a tile depicts.

    Attributes:
        center_x: Real coordinate at the middle of the tile.
        center_y: Imaginary coordinate at the middle of the tile.
        zoom: Magnification; the visible span is base_span / zoom.
    """

    center_x: float = DEFAULT_CENTER_X
    center_y: float = DEFAULT_CENTER_Y
    zoom: float = DEFAULT_ZOOM

    def __post_init__(self):
        if not self.zoom > 0:
            raise MalformedViewportError(
                f"Zoom must be greater than zero, got {self.zoom}", field="z"
            )

    def span(self, base_span: float) -> float:
        """Width (and height) of the plane region shown at this zoom."""
        return base_span / self.zoom


def parse_viewport(path: str) -> Viewport:
    """
    Resolve the viewport encoded in a tile path.

    Args:
        path: Request path, e.g. "/tile_x-0.5_y0.25_z8.bmp".

    Returns:
        The resolved Viewport. Absent fields take their defaults.

    Raises:
        MalformedViewportError: A field is present but its numeral is
            empty, unparsable, non-finite, or (for zoom) not positive.

    Example:
        >>> parse_viewport("/tile_x2.5_y-1.0_z4.bmp")
        Viewport(center_x=2.5, center_y=-1.0, zoom=4.0)
        >>> parse_viewport("/tile.bmp")
        Viewport(center_x=0.0, center_y=0.0, zoom=1.0)
    """
    fields = _scan_fields(path)

    center_x = _parse_field("x", fields, DEFAULT_CENTER_X)
    center_y = _parse_field("y", fields, DEFAULT_CENTER_Y)
    zoom = _parse_field("z", fields, DEFAULT_ZOOM)

    return Viewport(center_x=center_x, center_y=center_y, zoom=zoom)


def _scan_fields(path: str) -> Dict[str, str]:
    """
    Collect the raw numeral text for every marker found in the path.

    Only the final path segment is scanned, with any query string,
    trailing alphabetic extension and leading resource name removed first.
    """
    segment = path.split("?", 1)[0].rsplit("/", 1)[-1]
    stem = EXTENSION_PATTERN.sub("", segment)
    if stem.startswith(RESOURCE_NAME):
        stem = stem[len(RESOURCE_NAME):]

    fields: Dict[str, str] = {}
    for token in stem.split(FIELD_DELIMITER):
        if not token:
            continue

        marker = token[0]
        if marker in MARKERS and marker not in fields:
            fields[marker] = token[1:]

    return fields


def _parse_field(marker: str, fields: Dict[str, str], default: float) -> float:
    numeral = fields.get(marker)
    if numeral is None:
        return default

    if not NUMERAL_PATTERN.match(numeral):
        raise MalformedViewportError(
            f"Malformed {marker} value: {numeral!r}", field=marker, token=numeral
        )

    value = float(numeral)

    # Numerals like "1e999" overflow to inf.
    if not math.isfinite(value):
        raise MalformedViewportError(
            f"{marker} value out of range: {numeral!r}", field=marker, token=numeral
        )

    if marker == "z" and value <= 0:
        raise MalformedViewportError(
            f"Zoom must be greater than zero, got {numeral!r}", field=marker, token=numeral
        )

    return value
