"""Quaternion Julia set distance estimator.

The Julia set for a quaternion constant c is the set of points whose orbit
under q -> q^2 + c stays bounded. A point (x, y, z) is lifted to the
quaternion x + y*i + z*j (k component zero), which renders a 3D slice of the
4D set.

The distance estimate co-iterates the running derivative q' of the orbit:

    q' <- 2 * q * q'
    q  <- q^2 + c

and, after escaping |q|^2 > 16 or running out of iterations, evaluates

                |q| ln|q|
    distance = -----------
                  2 |q'|

The estimate is a conservative lower bound suitable for sphere tracing.
It is negative inside the set (|q| < 1), which the tracer treats as a hit.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.estimators.julia import JuliaEstimator
    >>> julia = JuliaEstimator(c=(-0.2, 0.6, 0.2, 0.2), iterations=8)
    >>> index = julia.register()
"""

import math
from dataclasses import dataclass

import taichi as ti

from src.marcher.core.quaternion import (
    quat_from_position,
    quat_magnitude,
    quat_magnitude_squared,
    quat_mul,
    quat_one,
    quat_square,
)
from src.marcher.core.ray import is_finite, vec3, vec4
from src.marcher.estimators.base import EstimatorType

# Orbit escape threshold on |q|^2
ESCAPE_RADIUS_SQUARED = 16.0


@dataclass(frozen=True)
class JuliaEstimator:
    """Parameters of a quaternion Julia set.

    Attributes:
        c: The defining quaternion constant, real component first (w, x, y, z).
        iterations: Maximum number of orbit iterations (at least 1).
    """

    c: tuple[float, float, float, float]
    iterations: int = 64

    def __post_init__(self) -> None:
        if len(self.c) != 4:
            raise ValueError(f"Julia constant must have 4 components, got {len(self.c)}")
        if not all(math.isfinite(component) for component in self.c):
            raise ValueError(f"Julia constant must be finite, got {self.c}")
        if self.iterations < 1:
            raise ValueError(f"Julia iterations must be >= 1, got {self.iterations}")

    @property
    def estimator_type(self) -> EstimatorType:
        return EstimatorType.JULIA

    def register(self) -> int:
        """Store this estimator in the Julia registry and return its index."""
        return add_julia_estimator(self.c, self.iterations)

    def to_config(self) -> dict:
        return {"type": "julia", "c": list(self.c), "iterations": self.iterations}


@ti.func
def julia_distance(position: vec3, c: vec4, iterations: ti.i32, fallback: float) -> float:
    """Estimate the distance from position to the Julia set of c.

    Args:
        position: The point to evaluate.
        c: The quaternion constant (w, x, y, z).
        iterations: Maximum number of orbit iterations.
        fallback: Value returned when the estimate is undefined, i.e. the
            derivative collapsed to zero or the result is NaN/inf.

    Returns:
        The distance estimate, or fallback.
    """
    q = quat_from_position(position)
    qp = quat_one()

    # Orbit iteration with early escape (flag instead of break)
    escaped = 0
    for _ in range(iterations):
        if escaped == 0:
            qp = 2.0 * quat_mul(q, qp)
            q = quat_square(q) + c
            if quat_magnitude_squared(q) > ESCAPE_RADIUS_SQUARED:
                escaped = 1

    mag_q = quat_magnitude(q)
    mag_qp = quat_magnitude(qp)

    distance = fallback
    if mag_qp > 0.0:
        estimate = mag_q * ti.log(mag_q) / (2.0 * mag_qp)
        if is_finite(estimate):
            distance = estimate
    return distance


# =============================================================================
# Estimator Field Storage
# =============================================================================

# Maximum number of Julia estimators in the scene
MAX_JULIA_ESTIMATORS = 64

# Storage for Julia estimator parameters
julia_constants = ti.Vector.field(4, dtype=float, shape=MAX_JULIA_ESTIMATORS)
julia_iterations = ti.field(dtype=ti.i32, shape=MAX_JULIA_ESTIMATORS)
num_julia_estimators = ti.field(dtype=ti.i32, shape=())


def clear_julia_estimators() -> None:
    """Clear all Julia estimators.

    Existing field data is overwritten when new estimators are added.
    """
    num_julia_estimators[None] = 0


def add_julia_estimator(c: tuple[float, float, float, float], iterations: int) -> int:
    """Add a Julia estimator to the registry.

    Args:
        c: The quaternion constant (w, x, y, z).
        iterations: Maximum number of orbit iterations.

    Returns:
        The index of the added estimator.

    Raises:
        RuntimeError: If the maximum number of Julia estimators is exceeded.
    """
    idx = num_julia_estimators[None]
    if idx >= MAX_JULIA_ESTIMATORS:
        raise RuntimeError(f"Maximum number of Julia estimators ({MAX_JULIA_ESTIMATORS}) exceeded")

    julia_constants[idx] = [float(component) for component in c]
    julia_iterations[idx] = int(iterations)
    num_julia_estimators[None] = idx + 1
    return idx


def get_julia_estimator_count() -> int:
    """Get the number of Julia estimators in the registry."""
    return int(num_julia_estimators[None])


@ti.func
def julia_distance_by_id(index: ti.i32, position: vec3, fallback: float) -> float:
    """Estimate the distance using the Julia estimator stored at index."""
    return julia_distance(position, julia_constants[index], julia_iterations[index], fallback)
