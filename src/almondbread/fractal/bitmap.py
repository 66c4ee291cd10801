"""
=============================================================================
BITMAP ENCODER
=============================================================================

Serializes a PixelGrid into an uncompressed 24-bit Windows bitmap.

=============================================================================
FILE LAYOUT
=============================================================================

    offset  size  field                      value
    ──────  ────  ─────────────────────────  ──────────────────────────────
    BITMAPFILEHEADER (14 bytes)
       0      2   signature                  b"BM"
       2      4   file size                  54 + row_stride * height
       6      2   reserved                   0
       8      2   reserved                   0
      10      4   pixel data offset          54
    BITMAPINFOHEADER (40 bytes)
      14      4   header size                40
      18      4   width                      grid.width
      22      4   height                     grid.height (positive: bottom-up)
      26      2   colour planes              1
      28      2   bits per pixel             24
      30      4   compression                0 (BI_RGB)
      34      4   image size                 row_stride * height
      38      4   horizontal resolution      2835 px/m (72 DPI)
      42      4   vertical resolution        2835 px/m
      46      4   palette colours            0
      50      4   important colours          0
    PIXEL DATA
      54      …   rows, last grid row first, each pixel B, G, R,
                  each row zero-padded to a multiple of 4 bytes

All multi-byte fields are little-endian. Every header value is computed
from the grid, so any tile size produces a valid file.

=============================================================================
"""

import struct
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import EncodingError
from .escape import DEFAULT_MAX_STEPS
from .palette import color_for
from .raster import PixelGrid


SIGNATURE = b"BM"
FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
PIXEL_OFFSET = FILE_HEADER_SIZE + INFO_HEADER_SIZE
BITS_PER_PIXEL = 24
BYTES_PER_PIXEL = BITS_PER_PIXEL // 8
PIXELS_PER_METER = 2835

FILE_HEADER_FORMAT = "<2sIHHI"
INFO_HEADER_FORMAT = "<IiiHHIIiiII"


@dataclass(frozen=True)
class BitmapHeader:
    """The fields of a bitmap header that describe the image."""

    file_size: int
    pixel_offset: int
    width: int
    height: int
    bits_per_pixel: int
    image_size: int


def row_stride(width: int) -> int:
    """Bytes per stored pixel row, rounded up to a multiple of 4."""
    return (width * BYTES_PER_PIXEL + 3) & ~3


def encode(grid: PixelGrid, max_steps: int = DEFAULT_MAX_STEPS) -> bytes:
    """
    Encode a grid of escape values as a complete BMP file.

    Args:
        grid: Escape values, row 0 at the top.
        max_steps: Cap the grid was rendered with; selects the in-set colour.

    Returns:
        The full file, header and pixel data.

    Raises:
        EncodingError: The grid is empty, its value count does not match
            its dimensions, or a value lies outside [0, max_steps].
    """
    if grid.width <= 0 or grid.height <= 0:
        raise EncodingError(f"Cannot encode a {grid.width}x{grid.height} grid")

    if len(grid) != grid.width * grid.height:
        raise EncodingError(
            f"Grid holds {len(grid)} values, expected "
            f"{grid.width * grid.height} for {grid.width}x{grid.height}"
        )

    bad = _first_invalid(grid.values, max_steps)
    if bad is not None:
        raise EncodingError(
            f"Pixel {bad % grid.width},{bad // grid.width} holds "
            f"{grid.values.tolist()[bad]!r}, outside [0, {max_steps}]"
        )

    stride = row_stride(grid.width)
    row_bytes = grid.width * BYTES_PER_PIXEL

    # Bottom-up: the last grid row is stored first.
    pixels = _color_table(max_steps)[grid.as_array().astype(np.intp)[::-1]]

    rows = np.zeros((grid.height, stride), dtype=np.uint8)
    rows[:, :row_bytes] = pixels.reshape(grid.height, row_bytes)

    return _pack_header(grid.width, grid.height, rows.nbytes) + rows.tobytes()


def read_header(data: bytes) -> BitmapHeader:
    """
    Decode the header of a bitmap produced by :func:`encode`.

    Raises:
        ValueError: The data is too short or lacks the "BM" signature.
    """
    if len(data) < PIXEL_OFFSET:
        raise ValueError(f"Bitmap needs at least {PIXEL_OFFSET} bytes, got {len(data)}")

    signature, file_size, _, _, pixel_offset = struct.unpack_from(FILE_HEADER_FORMAT, data, 0)
    if signature != SIGNATURE:
        raise ValueError(f"Bad bitmap signature: {signature!r}")

    (_, width, height, _, bits_per_pixel, _, image_size, _, _, _, _) = struct.unpack_from(
        INFO_HEADER_FORMAT, data, FILE_HEADER_SIZE
    )

    return BitmapHeader(
        file_size=file_size,
        pixel_offset=pixel_offset,
        width=width,
        height=height,
        bits_per_pixel=bits_per_pixel,
        image_size=image_size,
    )


def _first_invalid(values: np.ndarray, max_steps: int) -> Optional[int]:
    """Flat index of the first value that is not a whole number in [0, max_steps]."""
    if values.dtype.kind in "iu":
        outside = np.flatnonzero((values < 0) | (values > max_steps))
        return int(outside[0]) if outside.size else None

    for index, value in enumerate(values.tolist()):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return index
        if not (float(value).is_integer() and 0 <= value <= max_steps):
            return index
    return None


def _color_table(max_steps: int) -> np.ndarray:
    """BGR bytes for every escape value in [0, max_steps], one row per value."""
    table = np.empty((max_steps + 1, BYTES_PER_PIXEL), dtype=np.uint8)
    for steps in range(max_steps + 1):
        red, green, blue = color_for(steps, max_steps)
        table[steps] = (blue, green, red)
    return table


def _pack_header(width: int, height: int, image_size: int) -> bytes:
    file_header = struct.pack(
        FILE_HEADER_FORMAT,
        SIGNATURE,
        PIXEL_OFFSET + image_size,
        0,
        0,
        PIXEL_OFFSET,
    )
    info_header = struct.pack(
        INFO_HEADER_FORMAT,
        INFO_HEADER_SIZE,
        width,
        height,
        1,
        BITS_PER_PIXEL,
        0,
        image_size,
        PIXELS_PER_METER,
        PIXELS_PER_METER,
        0,
        0,
    )
    return file_header + info_header
