"""Color type and the color operations used by shading.

Shading only needs a small capability set from a color representation:

    zero_color()       the additive/blend identity
    scale_color(c, s)  per-channel scale by a scalar
    saturate(c)        clamp every channel into [0, 1]
    screen(a, b)       saturating combine, 1 - (1 - a) * (1 - b)

All of them are written with elementwise vector operations, so changing
COLOR_CHANNELS (e.g. 1 for grayscale, 4 for RGBA) changes the color type
without touching the shading code.
"""

import taichi as ti
import taichi.math as tm

# Number of channels in a color (RGB)
COLOR_CHANNELS = 3

# Color type resolved against the active default_fp
color = ti.types.vector(COLOR_CHANNELS, float)


@ti.func
def zero_color() -> color:
    """Return the black color, the identity of screen()."""
    return color(0.0)


@ti.func
def scale_color(c: color, s: float) -> color:
    """Scale every channel of c by s."""
    return c * s


@ti.func
def saturate(c: color) -> color:
    """Clamp every channel of c into [0, 1]."""
    return tm.clamp(c, 0.0, 1.0)


@ti.func
def screen(a: color, b: color) -> color:
    """Screen-blend two colors.

    For inputs in [0, 1] the result stays in [0, 1] and is never darker than
    either input. Blending with zero_color() returns a unchanged (exactly,
    hence the a + b(1 - a) form).
    """
    return a + b * (1.0 - a)


def color_from_tuple(values: tuple[float, ...]) -> list[float]:
    """Convert a host-side color tuple into a field-assignable list.

    Args:
        values: Channel values; must have COLOR_CHANNELS entries.

    Returns:
        A list of floats suitable for assigning to a color field entry.

    Raises:
        ValueError: If the number of channels does not match COLOR_CHANNELS.
    """
    if len(values) != COLOR_CHANNELS:
        raise ValueError(f"Expected {COLOR_CHANNELS} color channels, got {len(values)}")
    return [float(v) for v in values]
