"""Scene-level ray queries across all (material, geometry) pairs.

The scene is a list of objects, each pairing a geometry ID with a material
ID. A primary ray is sphere traced against every object and the closest hit
wins; its normal is estimated once, for the winner only.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.scene.intersection import add_object, trace_scene_ray
    >>> add_object(geometry_id=0, material_id=0)
    >>> hit = trace_scene_ray((0.0, 0.0, -5.0), (0.0, 0.0, 1.0))
"""

from dataclasses import dataclass

import taichi as ti

from src.marcher.core.ray import vec3
from src.marcher.geometry.marcher import MAX_GEOMETRIES, estimate_normal, sphere_trace


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray hit any object (1 if hit, 0 if miss).
        t: Distance from the ray origin to the hit point.
        point: The hit point. Only valid if hit == 1.
        normal: The unit surface normal. Only valid if hit == 1.
        object_id: Index of the hit object, -1 on a miss.
        material_id: Material of the hit object, -1 on a miss.
    """

    hit: ti.i32
    t: float
    point: vec3
    normal: vec3
    object_id: ti.i32
    material_id: ti.i32


# Maximum number of (material, geometry) pairs
MAX_OBJECTS = MAX_GEOMETRIES

object_geometry_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())


def clear_objects() -> None:
    """Clear all scene objects."""
    num_objects[None] = 0


def add_object(geometry_id: int, material_id: int) -> int:
    """Pair a geometry with a material in the scene.

    Returns:
        The object index.

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
    """
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    object_geometry_ids[idx] = geometry_id
    object_material_ids[idx] = material_id
    num_objects[None] = idx + 1
    return idx


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3) -> SceneHitRecord:
    """Find the closest object hit by a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.

    Returns:
        A SceneHitRecord for the closest hit, or a miss record.
    """
    found = 0
    closest_t = 0.0
    closest_point = vec3(0.0, 0.0, 0.0)
    closest_object = -1

    for k in range(num_objects[None]):
        rec = sphere_trace(ray_origin, ray_direction, object_geometry_ids[k])
        if rec.hit == 1:
            if found == 0 or rec.t < closest_t:
                found = 1
                closest_t = rec.t
                closest_point = rec.point
                closest_object = k

    normal = vec3(0.0, 0.0, 0.0)
    material_id = -1
    if found == 1:
        # Degenerate gradients fall back to facing the viewer
        normal = estimate_normal(object_geometry_ids[closest_object], closest_point, -ray_direction)
        material_id = object_material_ids[closest_object]

    return SceneHitRecord(
        hit=found,
        t=closest_t,
        point=closest_point,
        normal=normal,
        object_id=closest_object,
        material_id=material_id,
    )


# =============================================================================
# Python-callable Query
# =============================================================================


@dataclass(frozen=True)
class SceneHit:
    """Host-side copy of a SceneHitRecord for a hit."""

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    object_id: int
    material_id: int


_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=float, shape=())
_query_point = ti.Vector.field(3, dtype=float, shape=())
_query_normal = ti.Vector.field(3, dtype=float, shape=())
_query_object = ti.field(dtype=ti.i32, shape=())
_query_material = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _intersect_kernel(origin: vec3, direction: vec3):
    rec = intersect_scene(origin, direction)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_object[None] = rec.object_id
    _query_material[None] = rec.material_id


def trace_scene_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> SceneHit | None:
    """Intersect a single ray with the scene from Python.

    Args:
        origin: The ray origin as (x, y, z).
        direction: The unit ray direction as (x, y, z).

    Returns:
        A SceneHit, or None if the ray misses every object.
    """
    _intersect_kernel(vec3(*origin), vec3(*direction))
    if _query_hit[None] == 0:
        return None
    p = _query_point[None]
    n = _query_normal[None]
    return SceneHit(
        t=float(_query_t[None]),
        point=(float(p[0]), float(p[1]), float(p[2])),
        normal=(float(n[0]), float(n[1]), float(n[2])),
        object_id=int(_query_object[None]),
        material_id=int(_query_material[None]),
    )
