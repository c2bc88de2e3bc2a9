"""Geometry module: sphere tracing through distance fields.

Components:
    marcher: Geometry descriptor, field registry, sphere tracing and
        finite-difference normal estimation

The tracing routines are Taichi functions (@ti.func) written against the
estimator dispatch, never against a concrete estimator. Queries follow the
pattern:

    record = sphere_trace(ray_origin, ray_direction, geometry_id)
    normal = estimate_normal(geometry_id, record.point, fallback)
"""

from .marcher import (
    MAX_GEOMETRIES,
    Geometry,
    MarchRecord,
    MarchResult,
    add_geometry,
    clear_geometries,
    estimate_normal,
    geometry_distance,
    get_geometry_count,
    march_ray,
    sphere_trace,
    surface_normal,
)

__all__ = [
    "Geometry",
    "MarchRecord",
    "MarchResult",
    "add_geometry",
    "clear_geometries",
    "get_geometry_count",
    "geometry_distance",
    "sphere_trace",
    "estimate_normal",
    "march_ray",
    "surface_normal",
    "MAX_GEOMETRIES",
]
