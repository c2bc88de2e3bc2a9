"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    quaternion: Hamilton product and norms on 4-vectors
    color: Color type and saturating blend operations
    integrator: Render target buffers and the per-pixel rendering kernel
    renderer: Banded rendering with progress reporting and image output

Every pixel is an independent pure function of the scene and its
coordinates; the integrator fans out over the pixel range with a parallel
Taichi loop and no shared mutable state.
"""

from .color import COLOR_CHANNELS, color, saturate, scale_color, screen, zero_color
from .quaternion import (
    quat_from_position,
    quat_magnitude,
    quat_magnitude_squared,
    quat_mul,
    quat_one,
    quat_square,
)
from .ray import (
    Ray,
    cross,
    dot,
    is_finite,
    is_finite_vec,
    length,
    make_ray,
    normalize,
    ray_at,
    safe_normalize,
    vec3,
    vec4,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from src.marcher.core.integrator or src.marcher.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "vec4",
    "length",
    "normalize",
    "safe_normalize",
    "dot",
    "cross",
    "is_finite",
    "is_finite_vec",
    "quat_mul",
    "quat_square",
    "quat_magnitude",
    "quat_magnitude_squared",
    "quat_from_position",
    "quat_one",
    "color",
    "COLOR_CHANNELS",
    "zero_color",
    "scale_color",
    "saturate",
    "screen",
]
