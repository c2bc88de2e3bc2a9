"""Ray data structure and vector utilities for sphere tracing.

This module provides the Ray dataclass and the vector helpers shared by the
estimators, the sphere tracer and the shading code. The vector types are
declared with Python ``float`` so they follow the ``default_fp`` chosen in
``ti.init``; importing this module after ``ti.init(default_fp=ti.f64)`` gives
double precision everywhere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.core.ray import Ray, ray_at, vec3
    >>> # Use within a Taichi kernel:
    >>> # ray = Ray(origin=vec3(0.0, 0.0, -5.0), direction=vec3(0.0, 0.0, 1.0))
    >>> # point = ray_at(ray, 2.0)
"""

import taichi as ti
import taichi.math as tm

# Vector types resolved against the active default_fp
vec3 = ti.types.vector(3, float)
vec4 = ti.types.vector(4, float)

# Squared length below which a vector is treated as degenerate
DEGENERATE_LENGTH_SQUARED = 1e-24


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3), unit length when
            produced by the camera.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: float) -> vec3:
    """Compute the point ray.origin + t * ray.direction."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction within a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> float:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The input must not be zero-length; use safe_normalize() where a degenerate
    vector can occur.
    """
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> float:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def is_finite(x: float) -> ti.i32:
    """Check that a scalar is neither NaN nor infinite.

    Returns:
        1 if x is finite, 0 otherwise.
    """
    return not (tm.isnan(x) or tm.isinf(x))


@ti.func
def is_finite_vec(v: vec3) -> ti.i32:
    """Check that every component of a vector is finite.

    Returns:
        1 if all components are finite, 0 otherwise.
    """
    finite = 1
    for k in ti.static(range(3)):
        if tm.isnan(v[k]) or tm.isinf(v[k]):
            finite = 0
    return finite


@ti.func
def safe_normalize(v: vec3, fallback: vec3) -> vec3:
    """Normalize a vector, returning fallback when it is degenerate.

    A vector is degenerate when any component is non-finite or its squared
    length is below DEGENERATE_LENGTH_SQUARED. Normalizing such a vector
    would otherwise produce NaN.

    Args:
        v: The vector to normalize.
        fallback: The value returned for degenerate input.

    Returns:
        The unit vector along v, or fallback.
    """
    result = fallback
    if is_finite_vec(v):
        len_sq = tm.dot(v, v)
        if len_sq > DEGENERATE_LENGTH_SQUARED:
            result = v / ti.sqrt(len_sq)
    return result
