"""Quaternion arithmetic on Taichi 4-vectors.

Quaternions are stored as vec4 with the real component first:
``(w, x, y, z)`` represents ``w + x*i + y*j + z*k``. This matches the order
accepted on the command line and in scene files.

Multiplication is the Hamilton product and is not commutative.
"""

import taichi as ti
import taichi.math as tm

from src.marcher.core.ray import vec3, vec4


@ti.func
def quat_mul(a: vec4, b: vec4) -> vec4:
    """Hamilton product a * b."""
    return vec4(
        a[0] * b[0] - a[1] * b[1] - a[2] * b[2] - a[3] * b[3],
        a[0] * b[1] + a[1] * b[0] + a[2] * b[3] - a[3] * b[2],
        a[0] * b[2] - a[1] * b[3] + a[2] * b[0] + a[3] * b[1],
        a[0] * b[3] + a[1] * b[2] - a[2] * b[1] + a[3] * b[0],
    )


@ti.func
def quat_square(q: vec4) -> vec4:
    """Compute q * q.

    Equivalent to quat_mul(q, q) with the cross terms cancelled.
    """
    w = q[0]
    return vec4(
        w * w - q[1] * q[1] - q[2] * q[2] - q[3] * q[3],
        2.0 * w * q[1],
        2.0 * w * q[2],
        2.0 * w * q[3],
    )


@ti.func
def quat_magnitude_squared(q: vec4) -> float:
    """Squared norm |q|^2."""
    return tm.dot(q, q)


@ti.func
def quat_magnitude(q: vec4) -> float:
    """Norm |q|."""
    return ti.sqrt(tm.dot(q, q))


@ti.func
def quat_from_position(position: vec3) -> vec4:
    """Lift a 3D point into a quaternion.

    (x, y, z) maps to x + y*i + z*j with the k component fixed at zero,
    selecting a 3D slice of 4D quaternion space that contains the real axis.
    """
    return vec4(position[0], position[1], position[2], 0.0)


@ti.func
def quat_one() -> vec4:
    """The multiplicative identity (1, 0, 0, 0)."""
    return vec4(1.0, 0.0, 0.0, 0.0)
