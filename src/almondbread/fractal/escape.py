"""
=============================================================================
ESCAPE-TIME ENGINE
=============================================================================

Classifies points of the complex plane against the Mandelbrot set:
escape_steps() for one point, escape_counts() for a whole tile at once.

=============================================================================
THE ITERATION
=============================================================================

For a point c = x + yi we repeatedly apply

    z(n+1) = z(n)² + c

and watch |z|. Once |z| exceeds 2 (|z|² > 4) the orbit is guaranteed to
run off to infinity, so the point is outside the set. The number of steps
taken before that happens is the "escape time" and drives the colouring.

Written out on real/imaginary parts (r, s):

    r' = r² - s² + x
    s' = 2·r·s   + y

=============================================================================
SEEDING
=============================================================================

The orbit starts at z(0) = c, not at the textbook z(0) = 0. Tiles served
by this project have always been rendered this way and viewers tile them
next to each other, so the seeding is kept as-is:

    step   textbook (z0 = 0)      this engine (z0 = c)
    ────   ─────────────────      ────────────────────
     0     0                      c
     1     c                      c² + c
     2     c² + c                 (c² + c)² + c

The engine is therefore one iteration "ahead" of the textbook version,
and any |c|² > 4 reports 0 steps.

=============================================================================
RETURN VALUE
=============================================================================

    0 .. max_steps - 1   escaped; the count of steps that stayed bounded
    max_steps            never escaped within the cap ("in the set")

=============================================================================
"""

import numpy as np


DEFAULT_MAX_STEPS = 256
DEFAULT_ESCAPE_RADIUS_SQ = 4.0


def escape_steps(
    x: float,
    y: float,
    max_steps: int = DEFAULT_MAX_STEPS,
    escape_radius_sq: float = DEFAULT_ESCAPE_RADIUS_SQ,
) -> int:
    """
    Count the bounded iterations for the point c = x + yi.

    Args:
        x: Real part of c.
        y: Imaginary part of c.
        max_steps: Iteration cap; returned when the orbit never escapes.
        escape_radius_sq: Squared modulus beyond which the orbit has escaped.

    Returns:
        Number of steps in [0, max_steps].

    Example:
        >>> escape_steps(0.0, 0.0)
        256
        >>> escape_steps(1.0, 0.0)
        1
        >>> escape_steps(3.0, 0.0)
        0
    """
    r = x
    s = y
    steps = 0

    while steps < max_steps:
        r, s = r * r - s * s + x, 2.0 * r * s + y

        if r * r + s * s > escape_radius_sq:
            break

        steps += 1

    return steps


def escape_counts(
    x: np.ndarray,
    y: np.ndarray,
    max_steps: int = DEFAULT_MAX_STEPS,
    escape_radius_sq: float = DEFAULT_ESCAPE_RADIUS_SQ,
) -> np.ndarray:
    """
    escape_steps() over whole arrays of points at once.

    Runs the same recurrence on float64 real and imaginary parts, so every
    element equals escape_steps(x[i], y[i]) exactly. Each step only touches
    the points whose orbits are still bounded; escaped points drop out.

    Args:
        x: Real parts of c.
        y: Imaginary parts of c, broadcastable against x.
        max_steps: Iteration cap.
        escape_radius_sq: Squared modulus beyond which an orbit has escaped.

    Returns:
        Integer array of the broadcast shape, values in [0, max_steps].
    """
    x, y = np.broadcast_arrays(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
    shape = x.shape

    cr = x.ravel()
    ci = y.ravel()
    r = cr.copy()
    s = ci.copy()
    live = np.arange(cr.size)
    steps = np.zeros(cr.size, dtype=np.int64)

    # Huge finite coordinates overflow to inf/nan and escape like in the scalar loop.
    with np.errstate(over="ignore", invalid="ignore"):
        for _ in range(max_steps):
            if not live.size:
                break

            r, s = r * r - s * s + cr, 2.0 * r * s + ci

            # Negated ">" so a NaN orbit stays live, as it does in escape_steps().
            bounded = ~(r * r + s * s > escape_radius_sq)

            live = live[bounded]
            r, s = r[bounded], s[bounded]
            cr, ci = cr[bounded], ci[bounded]
            steps[live] += 1

    return steps.reshape(shape)
