"""Unified scene manager coordinating materials, geometries, lights and cameras.

The SceneManager is the unit handed to the renderer. It owns:
- named materials (name -> material ID)
- (material, geometry) pairs registered as scene objects
- directional lights
- named viewports
- render targets referencing viewports by name, resolved when added
- the background color for rays that miss every object

All data lives in the module-level Taichi registries, so only one scene is
active at a time; constructing a SceneManager (or calling clear()) resets
every registry. Nothing is mutated while a render runs.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_material("gold", Material(diffuse=(0.8, 0.6, 0.2)))
    >>> scene.add_geometry(Geometry(JuliaEstimator(c=(-0.2, 0.6, 0.2, 0.2))), material="gold")
    >>> scene.add_viewport("main", Viewport(...))
    >>> scene.add_render("main", pixel_width=300)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from src.marcher.camera.viewport import Viewport
from src.marcher.core.color import COLOR_CHANNELS
from src.marcher.estimators.dispatch import clear_estimators
from src.marcher.estimators.julia import JuliaEstimator
from src.marcher.geometry.marcher import Geometry, add_geometry, clear_geometries
from src.marcher.materials.blinn_phong import (
    Light,
    Material,
    add_light,
    add_material,
    clear_lights,
    clear_materials,
)
from src.marcher.scene.errors import (
    SceneError,
    SchemaError,
    UnknownCameraError,
    UnknownMaterialError,
)
from src.marcher.scene.intersection import add_object, clear_objects, get_object_count
from src.marcher.scene.literals import parse_color, parse_int, parse_scalar, parse_vector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderTarget:
    """A requested output image.

    The viewport is copied from the scene's named cameras when the target is
    added; later changes to the camera table do not affect it.

    Attributes:
        camera: Name of the camera the target was resolved from.
        pixel_width: Output width in pixels.
        viewport: The resolved viewport.
    """

    camera: str
    pixel_width: int
    viewport: Viewport

    @property
    def pixel_height(self) -> int:
        """Output height in pixels, derived from the viewport aspect."""
        return self.viewport.pixel_height(self.pixel_width)


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        name: The name the material was registered under.
        material_id: The material ID in the Taichi registry.
        material: The material parameters.
    """

    name: str
    material_id: int
    material: Material


@dataclass
class ObjectInfo:
    """Information about a (material, geometry) pair in the scene.

    Attributes:
        object_id: The object index used by scene intersection.
        geometry_id: The geometry ID in the Taichi registry.
        geometry: The geometry parameters.
        material: Name of the material assigned to the object.
        material_id: The material ID assigned to the object.
    """

    object_id: int
    geometry_id: int
    geometry: Geometry
    material: str
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Mirrors the scene file schema: materials and cameras are keyed by name,
    geometry entries are tagged with a "type" and reference a material by
    name, and renders reference a camera by name.
    """

    materials: dict[str, dict[str, Any]] = field(default_factory=dict)
    geometry: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)
    cameras: dict[str, dict[str, Any]] = field(default_factory=dict)
    renders: list[dict[str, Any]] = field(default_factory=list)
    background: Any = None


def _require(entry: dict[str, Any], key: str, context: str) -> Any:
    if not isinstance(entry, dict):
        raise SchemaError(f"{context} must be a mapping, got {entry!r}")
    if key not in entry:
        raise SchemaError(f"{context} is missing required key {key!r}")
    return entry[key]


def _parse_material(name: str, entry: dict[str, Any]) -> Material:
    if not isinstance(entry, dict):
        raise SchemaError(f"material {name!r} must be a mapping, got {entry!r}")
    black = (0.0,) * COLOR_CHANNELS
    return Material(
        specular=parse_color(f"{name}.specular", entry.get("specular", black)),
        diffuse=parse_color(f"{name}.diffuse", entry.get("diffuse", black)),
        ambient=parse_color(f"{name}.ambient", entry.get("ambient", black)),
        shininess=parse_scalar(f"{name}.shininess", entry.get("shininess", 0.0)),
    )


def _parse_julia(entry: dict[str, Any]) -> JuliaEstimator:
    return JuliaEstimator(
        c=parse_vector("julia.c", _require(entry, "c", "julia geometry"), 4),
        iterations=parse_int("julia.iterations", entry.get("iterations", 64)),
    )


# Estimator parsers keyed by the geometry "type" tag
ESTIMATOR_PARSERS: dict[str, Callable[[dict[str, Any]], Any]] = {
    "julia": _parse_julia,
}


def _parse_geometry(entry: dict[str, Any]) -> Geometry:
    geometry_type = _require(entry, "type", "geometry")
    parser = ESTIMATOR_PARSERS.get(str(geometry_type).lower())
    if parser is None:
        raise SchemaError(f"Unknown geometry type: {geometry_type!r}")

    sample_size = entry.get("sample_size")
    return Geometry(
        estimator=parser(entry),
        max_steps=parse_int("max_steps", entry.get("max_steps", 64)),
        epsilon=parse_scalar("epsilon", entry.get("epsilon", 1e-4)),
        cutoff=parse_scalar("cutoff", entry.get("cutoff", 100.0)),
        normal_sample_size=None if sample_size is None else parse_scalar("sample_size", sample_size),
    )


def _parse_light(entry: dict[str, Any]) -> Light:
    direction = parse_vector("light.direction", _require(entry, "direction", "light"))
    intensity = entry.get("intensity", {})
    if not isinstance(intensity, dict):
        raise SchemaError(f"light intensity must be a mapping, got {intensity!r}")
    return Light(direction=direction, intensity=_parse_material("light.intensity", intensity))


def _parse_camera(name: str, entry: dict[str, Any]) -> Viewport:
    context = f"camera {name!r}"
    return Viewport(
        position=parse_vector(f"{name}.pos", _require(entry, "pos", context)),
        facing=parse_vector(f"{name}.facing", _require(entry, "facing", context)),
        right=parse_vector(f"{name}.right", _require(entry, "right", context)),
        width=parse_scalar(f"{name}.width", _require(entry, "width", context)),
        height=parse_scalar(f"{name}.height", _require(entry, "height", context)),
        focal_len=parse_scalar(f"{name}.focal_len", _require(entry, "focal_len", context)),
    )


class SceneManager:
    """Scene aggregate handed to the renderer.

    Attributes:
        materials: Registered materials keyed by name.
        objects: The (material, geometry) pairs in insertion order.
        lights: The directional lights.
        viewports: Named cameras.
        render_targets: Requested outputs, viewports already resolved.
        background: Color of rays that miss every object.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_material("white", Material(diffuse=(1.0, 1.0, 1.0)))
        >>> scene.add_geometry(geometry, material="white")
        >>> scene.add_light(Light(direction=(0.0, 1.0, 0.0), intensity=Material(diffuse=(1.0, 1.0, 1.0))))
        >>> scene.add_viewport("main", viewport)
        >>> scene.add_render("main", 300)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: dict[str, MaterialInfo] = {}
        self.objects: list[ObjectInfo] = []
        self.lights: list[Light] = []
        self.viewports: dict[str, Viewport] = {}
        self.render_targets: list[RenderTarget] = []
        self.background: tuple[float, ...] = (0.0,) * COLOR_CHANNELS
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_objects()
        clear_geometries()
        clear_estimators()
        clear_materials()
        clear_lights()
        self.materials.clear()
        self.objects.clear()
        self.lights.clear()
        self.viewports.clear()
        self.render_targets.clear()
        self.background = (0.0,) * COLOR_CHANNELS

    def clear(self) -> None:
        """Clear the entire scene and reset all Taichi registries."""
        self._clear_all()

    # =========================================================================
    # Materials and Objects
    # =========================================================================

    def add_material(self, name: str, material: Material) -> int:
        """Register a named material.

        Returns:
            The material ID.

        Raises:
            SceneError: If a material with that name already exists.
        """
        if name in self.materials:
            raise SceneError(f"Duplicate material name: {name!r}")
        material_id = add_material(material)
        self.materials[name] = MaterialInfo(name=name, material_id=material_id, material=material)
        return material_id

    def get_material_id(self, name: str) -> int:
        """Resolve a material name.

        Raises:
            UnknownMaterialError: If no material has that name.
        """
        info = self.materials.get(name)
        if info is None:
            raise UnknownMaterialError(name)
        return info.material_id

    def add_geometry(self, geometry: Geometry, material: str) -> int:
        """Add a geometry paired with a named material.

        Returns:
            The object index.

        Raises:
            UnknownMaterialError: If the material name is not registered.
        """
        material_id = self.get_material_id(material)
        geometry_id = add_geometry(geometry)
        object_id = add_object(geometry_id, material_id)
        self.objects.append(
            ObjectInfo(
                object_id=object_id,
                geometry_id=geometry_id,
                geometry=geometry,
                material=material,
                material_id=material_id,
            )
        )
        return object_id

    def add_light(self, light: Light) -> int:
        """Add a directional light.

        Returns:
            The light index.
        """
        index = add_light(light)
        self.lights.append(light)
        return index

    def set_background(self, color: tuple[float, ...]) -> None:
        """Set the color used for pixels whose rays miss every object."""
        self.background = parse_color("background", color)

    # =========================================================================
    # Cameras and Render Targets
    # =========================================================================

    def add_viewport(self, name: str, viewport: Viewport) -> None:
        """Register a named camera.

        Raises:
            SceneError: If a camera with that name already exists.
        """
        if name in self.viewports:
            raise SceneError(f"Duplicate camera name: {name!r}")
        self.viewports[name] = viewport

    def get_viewport(self, name: str) -> Viewport:
        """Resolve a camera name.

        Raises:
            UnknownCameraError: If no camera has that name.
        """
        viewport = self.viewports.get(name)
        if viewport is None:
            raise UnknownCameraError(name)
        return viewport

    def add_render(self, camera: str, pixel_width: int) -> RenderTarget:
        """Request an output image from a named camera.

        Raises:
            UnknownCameraError: If the camera name is not registered.
            ValueError: If pixel_width is not positive.
        """
        if pixel_width < 1:
            raise ValueError(f"pixel_width must be >= 1, got {pixel_width}")
        target = RenderTarget(camera=camera, pixel_width=pixel_width, viewport=self.get_viewport(camera))
        self.render_targets.append(target)
        return target

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_object_count(self) -> int:
        """Get the number of (material, geometry) pairs in the scene."""
        return get_object_count()

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return len(self.lights)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()
        for name, info in self.materials.items():
            config.materials[name] = info.material.to_config()
        for obj in self.objects:
            geometry_config = obj.geometry.to_config()
            geometry_config["material"] = obj.material
            config.geometry.append(geometry_config)
        for light in self.lights:
            config.lights.append(light.to_config())
        for name, viewport in self.viewports.items():
            config.cameras[name] = viewport.to_config()
        for target in self.render_targets:
            config.renders.append({"camera": target.camera, "width": target.pixel_width})
        config.background = list(self.background)
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene first. Materials and cameras are loaded
        before the entries that reference them.

        Raises:
            SceneError: On unknown references, malformed literals, missing
                keys, unknown geometry types or invalid parameter values.
        """
        self.clear()

        try:
            for name, entry in config.materials.items():
                self.add_material(name, _parse_material(name, entry))

            for name, entry in config.cameras.items():
                self.add_viewport(name, _parse_camera(name, entry))

            for entry in config.geometry:
                material = _require(entry, "material", "geometry")
                self.add_geometry(_parse_geometry(entry), material=str(material))

            for entry in config.lights:
                self.add_light(_parse_light(entry))

            for entry in config.renders:
                camera = _require(entry, "camera", "render")
                width = parse_int("render.width", _require(entry, "width", "render"))
                self.add_render(str(camera), width)

            if config.background is not None:
                self.set_background(config.background)
        except SceneError:
            raise
        except ValueError as e:
            # Invalid parameter values rejected by the descriptors themselves
            raise SceneError(str(e)) from e

        logger.info(
            "Loaded scene: %d object(s), %d light(s), %d camera(s), %d render(s)",
            len(self.objects),
            len(self.lights),
            len(self.viewports),
            len(self.render_targets),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for YAML or JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "geometry": config.geometry,
            "lights": config.lights,
            "cameras": config.cameras,
            "renders": config.renders,
            "background": config.background,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'materials', 'geometry', 'lights',
                'cameras', 'renders' and optionally 'background' keys.

        Raises:
            SceneError: If the data does not describe a valid scene.
        """
        if not isinstance(data, dict):
            raise SchemaError(f"Scene must be a mapping, got {type(data).__name__}")
        config = SceneConfig(
            materials=data.get("materials", {}),
            geometry=data.get("geometry", []),
            lights=data.get("lights", []),
            cameras=data.get("cameras", {}),
            renders=data.get("renders", []),
            background=data.get("background"),
        )
        if not isinstance(config.materials, dict) or not isinstance(config.cameras, dict):
            raise SchemaError("'materials' and 'cameras' must be mappings keyed by name")
        for key in ("geometry", "lights", "renders"):
            if not isinstance(getattr(config, key), list):
                raise SchemaError(f"{key!r} must be a list")
        self.from_config(config)
