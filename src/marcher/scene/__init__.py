"""Scene module for scene management and ray-scene queries.

Components:
    errors: Scene construction error types
    intersection: Closest-hit query across all (material, geometry) pairs
    literals: Color, vector and numeric literal parsing
    manager: Scene aggregate with named materials, cameras and render targets
    loader: YAML and JSON scene files
    default_scene: The built-in Julia scene
"""

from .default_scene import JuliaSceneParams, create_julia_scene
from .errors import (
    LiteralError,
    SceneError,
    SchemaError,
    UnknownCameraError,
    UnknownMaterialError,
)
from .intersection import (
    MAX_OBJECTS,
    SceneHit,
    SceneHitRecord,
    add_object,
    clear_objects,
    get_object_count,
    intersect_scene,
    trace_scene_ray,
)
from .literals import parse_color, parse_int, parse_scalar, parse_vector
from .loader import load_scene, save_scene
from .manager import (
    MaterialInfo,
    ObjectInfo,
    RenderTarget,
    SceneConfig,
    SceneManager,
)

__all__ = [
    # Errors
    "SceneError",
    "UnknownCameraError",
    "UnknownMaterialError",
    "LiteralError",
    "SchemaError",
    # Intersection
    "SceneHitRecord",
    "SceneHit",
    "add_object",
    "clear_objects",
    "get_object_count",
    "intersect_scene",
    "trace_scene_ray",
    "MAX_OBJECTS",
    # Literals
    "parse_scalar",
    "parse_int",
    "parse_vector",
    "parse_color",
    # Manager
    "SceneManager",
    "SceneConfig",
    "RenderTarget",
    "MaterialInfo",
    "ObjectInfo",
    # Files and built-in scene
    "load_scene",
    "save_scene",
    "create_julia_scene",
    "JuliaSceneParams",
]
