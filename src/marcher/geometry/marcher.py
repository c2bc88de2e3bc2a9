"""Sphere tracing against distance estimators.

A Geometry wraps one distance estimator together with the marching
parameters. Sphere tracing steps a ray forward by the current distance bound
until the bound drops below ``epsilon`` (hit), the travelled distance reaches
``cutoff`` or stops being finite (miss), or ``max_steps`` runs out (miss).

Surface normals are recovered as the normalized central-difference gradient
of the distance field, probing ``position +/- h`` along each axis.

Geometry parameters live in Taichi fields indexed by geometry ID; estimator
parameters stay in their own registries and are reached only through the
(type, index) pair stored here.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.estimators.julia import JuliaEstimator
    >>> from src.marcher.geometry.marcher import Geometry, add_geometry, march_ray
    >>> geometry = Geometry(
    ...     estimator=JuliaEstimator(c=(-0.2, 0.6, 0.2, 0.2), iterations=8),
    ...     max_steps=64, epsilon=1e-4, cutoff=100.0,
    ... )
    >>> geometry_id = add_geometry(geometry)
    >>> result = march_ray(geometry_id, (0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
"""

import logging
from dataclasses import dataclass

import taichi as ti

from src.marcher.core.ray import is_finite, safe_normalize, vec3
from src.marcher.estimators.base import Estimator
from src.marcher.estimators.dispatch import estimate_distance, register_estimator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Geometry:
    """A distance estimator with its sphere-tracing parameters.

    Attributes:
        estimator: The distance estimator (any Estimator implementation).
        max_steps: Maximum number of marching steps per ray.
        epsilon: Distance bound at or below which a sample counts as a hit.
        cutoff: Travelled distance at which the ray is given up as a miss.
            Also used as the fallback distance for undefined estimates.
        normal_sample_size: Finite-difference step for normals. Defaults to
            epsilon when omitted.
    """

    estimator: Estimator
    max_steps: int = 64
    epsilon: float = 1e-4
    cutoff: float = 100.0
    normal_sample_size: float | None = None

    def __post_init__(self) -> None:
        if self.max_steps < 1:
            raise ValueError(f"max_steps must be >= 1, got {self.max_steps}")
        if not self.epsilon > 0.0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        if not self.epsilon < self.cutoff:
            raise ValueError(f"epsilon ({self.epsilon}) must be smaller than cutoff ({self.cutoff})")
        if self.normal_sample_size is not None and not self.normal_sample_size > 0.0:
            raise ValueError(f"normal_sample_size must be positive, got {self.normal_sample_size}")

    @property
    def sample_size(self) -> float:
        """The finite-difference step actually used for normals."""
        if self.normal_sample_size is None:
            return self.epsilon
        return self.normal_sample_size

    def to_config(self) -> dict:
        config = self.estimator.to_config()
        config.update(
            {
                "max_steps": self.max_steps,
                "epsilon": self.epsilon,
                "cutoff": self.cutoff,
                "sample_size": self.sample_size,
            }
        )
        return config


@ti.dataclass
class MarchRecord:
    """Result of sphere tracing a single ray against one geometry.

    Attributes:
        hit: 1 if a surface point was found, 0 on a miss.
        t: Distance travelled along the ray. For hits, the distance of the
            returned point from the ray origin.
        point: The sampled point whose distance bound was <= epsilon.
            Only valid if hit == 1.
        steps: Number of distance evaluations performed.
    """

    hit: ti.i32
    t: float
    point: vec3
    steps: ti.i32


# =============================================================================
# Geometry Field Storage
# =============================================================================

# Maximum number of geometries in the scene
MAX_GEOMETRIES = 64

geometry_max_steps = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
geometry_epsilon = ti.field(dtype=float, shape=MAX_GEOMETRIES)
geometry_cutoff = ti.field(dtype=float, shape=MAX_GEOMETRIES)
geometry_sample_size = ti.field(dtype=float, shape=MAX_GEOMETRIES)
geometry_estimator_types = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
geometry_estimator_indices = ti.field(dtype=ti.i32, shape=MAX_GEOMETRIES)
num_geometries = ti.field(dtype=ti.i32, shape=())


def clear_geometries() -> None:
    """Clear all geometries.

    Estimator registries are cleared separately (see clear_estimators()).
    """
    num_geometries[None] = 0


def add_geometry(geometry: Geometry) -> int:
    """Register a geometry and its estimator.

    Args:
        geometry: The geometry to add.

    Returns:
        The geometry ID.

    Raises:
        RuntimeError: If the maximum number of geometries is exceeded.
    """
    idx = num_geometries[None]
    if idx >= MAX_GEOMETRIES:
        raise RuntimeError(f"Maximum number of geometries ({MAX_GEOMETRIES}) exceeded")

    estimator_type, estimator_index = register_estimator(geometry.estimator)

    geometry_max_steps[idx] = geometry.max_steps
    geometry_epsilon[idx] = geometry.epsilon
    geometry_cutoff[idx] = geometry.cutoff
    geometry_sample_size[idx] = geometry.sample_size
    geometry_estimator_types[idx] = int(estimator_type)
    geometry_estimator_indices[idx] = estimator_index
    num_geometries[None] = idx + 1

    logger.debug(
        "Added geometry %d (%s #%d, max_steps=%d, epsilon=%g, cutoff=%g)",
        idx,
        estimator_type.name.lower(),
        estimator_index,
        geometry.max_steps,
        geometry.epsilon,
        geometry.cutoff,
    )
    return idx


def get_geometry_count() -> int:
    """Get the number of geometries in the registry."""
    return int(num_geometries[None])


# =============================================================================
# Sphere Tracing (Taichi-compatible)
# =============================================================================


@ti.func
def geometry_distance(geometry_id: ti.i32, position: vec3) -> float:
    """Distance bound of a geometry at position.

    Undefined estimates fall back to the geometry's cutoff, which makes the
    tracer report a miss instead of propagating NaN.
    """
    return estimate_distance(
        geometry_estimator_types[geometry_id],
        geometry_estimator_indices[geometry_id],
        position,
        geometry_cutoff[geometry_id],
    )


@ti.func
def sphere_trace(origin: vec3, direction: vec3, geometry_id: ti.i32) -> MarchRecord:
    """March a ray through a geometry's distance field.

    At each step the point origin + direction * t is sampled; if its
    distance bound d is <= epsilon that point is the hit. Otherwise t
    advances by d. The ray misses once t >= cutoff, t is non-finite, or
    max_steps samples were taken without a hit.

    Args:
        origin: The ray origin.
        direction: The ray direction (unit length).
        geometry_id: The geometry to march against.

    Returns:
        A MarchRecord. Hits always satisfy t < cutoff.
    """
    max_steps = geometry_max_steps[geometry_id]
    epsilon = geometry_epsilon[geometry_id]
    cutoff = geometry_cutoff[geometry_id]

    t = 0.0
    did_hit = 0
    hit_point = vec3(0.0, 0.0, 0.0)
    steps = 0

    # Active flag for loop termination
    active = 1
    for _ in range(max_steps):
        if active == 1:
            p = origin + direction * t
            d = geometry_distance(geometry_id, p)
            steps += 1
            if d <= epsilon:
                did_hit = 1
                hit_point = p
                active = 0
            else:
                t += d
                if t >= cutoff or not is_finite(t):
                    active = 0

    # Exhausting max_steps leaves did_hit == 0: a miss
    return MarchRecord(hit=did_hit, t=t, point=hit_point, steps=steps)


@ti.func
def estimate_normal(geometry_id: ti.i32, position: vec3, fallback: vec3) -> vec3:
    """Estimate the surface normal at position by central differences.

    Probes the distance field at position +/- h along each axis (six
    evaluations) and normalizes the difference vector.

    Args:
        geometry_id: The geometry whose field is differentiated.
        position: The surface point.
        fallback: Returned when the gradient is zero or non-finite.

    Returns:
        The unit surface normal, or fallback.
    """
    h = geometry_sample_size[geometry_id]
    dx = vec3(h, 0.0, 0.0)
    dy = vec3(0.0, h, 0.0)
    dz = vec3(0.0, 0.0, h)

    gradient = vec3(
        geometry_distance(geometry_id, position + dx) - geometry_distance(geometry_id, position - dx),
        geometry_distance(geometry_id, position + dy) - geometry_distance(geometry_id, position - dy),
        geometry_distance(geometry_id, position + dz) - geometry_distance(geometry_id, position - dz),
    )
    return safe_normalize(gradient, fallback)


# =============================================================================
# Python-callable Queries
# =============================================================================


@dataclass(frozen=True)
class MarchResult:
    """Host-side copy of a MarchRecord.

    Attributes:
        hit: Whether the ray hit the surface.
        point: The hit point, or None on a miss.
        t: Distance travelled along the ray.
        steps: Number of distance evaluations performed.
    """

    hit: bool
    point: tuple[float, float, float] | None
    t: float
    steps: int


_march_hit = ti.field(dtype=ti.i32, shape=())
_march_t = ti.field(dtype=float, shape=())
_march_point = ti.Vector.field(3, dtype=float, shape=())
_march_steps = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _march_kernel(geometry_id: ti.i32, origin: vec3, direction: vec3):
    record = sphere_trace(origin, direction, geometry_id)
    _march_hit[None] = record.hit
    _march_t[None] = record.t
    _march_point[None] = record.point
    _march_steps[None] = record.steps


@ti.kernel
def _normal_kernel(geometry_id: ti.i32, position: vec3, fallback: vec3) -> vec3:
    return estimate_normal(geometry_id, position, fallback)


def _check_geometry_id(geometry_id: int) -> None:
    if not 0 <= geometry_id < get_geometry_count():
        raise ValueError(f"Invalid geometry_id: {geometry_id}")


def march_ray(
    geometry_id: int,
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> MarchResult:
    """Sphere trace a single ray from Python.

    Intended for testing and inspection; rendering traces inside kernels.

    Args:
        geometry_id: The geometry to march against.
        origin: The ray origin as (x, y, z).
        direction: The ray direction as (x, y, z), unit length.

    Returns:
        A MarchResult.

    Raises:
        ValueError: If geometry_id is invalid.
    """
    _check_geometry_id(geometry_id)
    _march_kernel(geometry_id, vec3(*origin), vec3(*direction))

    hit = bool(_march_hit[None])
    point = None
    if hit:
        p = _march_point[None]
        point = (float(p[0]), float(p[1]), float(p[2]))
    return MarchResult(hit=hit, point=point, t=float(_march_t[None]), steps=int(_march_steps[None]))


def surface_normal(
    geometry_id: int,
    position: tuple[float, float, float],
    fallback: tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> tuple[float, float, float]:
    """Estimate the surface normal at position from Python.

    Args:
        geometry_id: The geometry whose field is differentiated.
        position: The point as (x, y, z).
        fallback: Returned when the gradient is degenerate.

    Returns:
        The normal as (x, y, z).

    Raises:
        ValueError: If geometry_id is invalid.
    """
    _check_geometry_id(geometry_id)
    n = _normal_kernel(geometry_id, vec3(*position), vec3(*fallback))
    return (float(n[0]), float(n[1]), float(n[2]))
