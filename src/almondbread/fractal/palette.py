"""
Escape count → RGB colour.

A fixed 16-colour cycle (dark brown through deep blue, white, and back
through orange) indexed by ``steps % 16``. Points that never escaped are
painted black.

    steps            colour
    ─────────────    ──────────────────────────
    max_steps        (0, 0, 0)           in set
    n < max_steps    CLASSIC_PALETTE[n % 16]
"""

from typing import Tuple

RGB = Tuple[int, int, int]

IN_SET_COLOR: RGB = (0, 0, 0)

CLASSIC_PALETTE: Tuple[RGB, ...] = (
    (66, 30, 15),
    (25, 7, 26),
    (9, 1, 47),
    (4, 4, 73),
    (0, 7, 100),
    (12, 44, 138),
    (24, 82, 177),
    (57, 125, 209),
    (134, 181, 229),
    (211, 236, 248),
    (241, 233, 191),
    (248, 201, 95),
    (255, 170, 0),
    (204, 128, 0),
    (153, 87, 0),
    (106, 52, 3),
)


def color_for(steps: int, max_steps: int) -> RGB:
    """
    Colour for one escape value.

    Raises:
        ValueError: If steps is outside [0, max_steps].
    """
    if steps < 0 or steps > max_steps:
        raise ValueError(f"Escape value {steps} outside [0, {max_steps}]")

    if steps == max_steps:
        return IN_SET_COLOR

    return CLASSIC_PALETTE[steps % len(CLASSIC_PALETTE)]
