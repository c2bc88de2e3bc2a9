"""Blinn-Phong materials, lights and light accumulation.

Each light contributes

    L.ambient  * M.ambient
  + L.diffuse  * M.diffuse  * max(0, dot(L.direction, N))
  + L.specular * M.specular * max(0, dot(N, H)) ^ M.shininess

with the halfway vector H = normalize(camera_forward + L.direction).
Contributions are saturated to [0, 1] and combined with a screen blend, so
any number of lights keeps the result inside the color range. A light with
zero intensity leaves the accumulated color unchanged.

Light intensity reuses the Material shape: its ambient, diffuse and
specular channels are the per-term light colors (shininess is ignored).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.materials.blinn_phong import Light, Material, add_light, add_material
    >>> gold = add_material(Material(diffuse=(0.8, 0.6, 0.2), specular=(1.0, 1.0, 1.0), shininess=32.0))
    >>> add_light(Light(direction=(0.0, 1.0, -1.0), intensity=Material(diffuse=(1.0, 1.0, 1.0))))
"""

import logging
import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.marcher.camera.viewport import unit_vector
from src.marcher.core.color import (
    COLOR_CHANNELS,
    color,
    color_from_tuple,
    saturate,
    screen,
    zero_color,
)
from src.marcher.core.ray import dot, safe_normalize, vec3

logger = logging.getLogger(__name__)

BLACK = (0.0,) * COLOR_CHANNELS


def _check_channel(name: str, values: tuple[float, ...]) -> tuple[float, ...]:
    values = tuple(color_from_tuple(values))
    for i, component in enumerate(values):
        if not math.isfinite(component) or component < 0.0:
            raise ValueError(f"{name} component {i} = {component} must be finite and non-negative")
    return values


@dataclass(frozen=True)
class Material:
    """Blinn-Phong surface response.

    Attributes:
        specular: Specular reflectance color.
        diffuse: Diffuse reflectance color.
        ambient: Ambient reflectance color.
        shininess: Specular exponent. Zero turns the specular term into a
            constant (add_material logs a warning when specular is non-zero).
            Ignored when the material is a light intensity.
    """

    specular: tuple[float, ...] = BLACK
    diffuse: tuple[float, ...] = BLACK
    ambient: tuple[float, ...] = BLACK
    shininess: float = 0.0

    def __post_init__(self) -> None:
        for name in ("specular", "diffuse", "ambient"):
            object.__setattr__(self, name, _check_channel(name, getattr(self, name)))
        if not math.isfinite(self.shininess) or self.shininess < 0.0:
            raise ValueError(f"shininess must be finite and non-negative, got {self.shininess}")

    def to_config(self) -> dict:
        return {
            "specular": list(self.specular),
            "diffuse": list(self.diffuse),
            "ambient": list(self.ambient),
            "shininess": self.shininess,
        }


@dataclass(frozen=True)
class Light:
    """A directional light.

    Attributes:
        direction: Direction toward the light; normalized on construction.
        intensity: Light color per term (ambient, diffuse, specular).
    """

    direction: tuple[float, float, float]
    intensity: Material

    def __post_init__(self) -> None:
        direction = unit_vector("Light direction", self.direction)
        object.__setattr__(self, "direction", tuple(float(x) for x in direction))

    def to_config(self) -> dict:
        intensity = self.intensity.to_config()
        del intensity["shininess"]
        return {"direction": list(self.direction), "intensity": intensity}


# =============================================================================
# Shading (Taichi-compatible)
# =============================================================================


@ti.func
def blinn_phong_term(
    normal: vec3,
    forward: vec3,
    light_direction: vec3,
    light_ambient: color,
    light_diffuse: color,
    light_specular: color,
    ambient: color,
    diffuse: color,
    specular: color,
    shininess: float,
) -> color:
    """Compute a single light's Blinn-Phong contribution.

    Negative cosines are clamped to zero so surfaces facing away from a light
    receive nothing from its diffuse and specular terms. A degenerate halfway
    vector (forward opposite to the light) contributes no specular unless
    shininess is zero.

    Returns:
        The unsaturated contribution of the light.
    """
    halfway = safe_normalize(forward + light_direction, vec3(0.0, 0.0, 0.0))
    diffuse_factor = tm.max(0.0, dot(light_direction, normal))
    specular_factor = tm.max(0.0, dot(normal, halfway)) ** shininess

    return (
        light_ambient * ambient
        + light_diffuse * diffuse * diffuse_factor
        + light_specular * specular * specular_factor
    )


# =============================================================================
# Material and Light Field Storage
# =============================================================================

# Maximum number of materials and lights in the scene
MAX_MATERIALS = 64
MAX_LIGHTS = 16

material_specular = ti.Vector.field(COLOR_CHANNELS, dtype=float, shape=MAX_MATERIALS)
material_diffuse = ti.Vector.field(COLOR_CHANNELS, dtype=float, shape=MAX_MATERIALS)
material_ambient = ti.Vector.field(COLOR_CHANNELS, dtype=float, shape=MAX_MATERIALS)
material_shininess = ti.field(dtype=float, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())

light_directions = ti.Vector.field(3, dtype=float, shape=MAX_LIGHTS)
light_ambient = ti.Vector.field(COLOR_CHANNELS, dtype=float, shape=MAX_LIGHTS)
light_diffuse = ti.Vector.field(COLOR_CHANNELS, dtype=float, shape=MAX_LIGHTS)
light_specular = ti.Vector.field(COLOR_CHANNELS, dtype=float, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all materials."""
    num_materials[None] = 0


def clear_lights() -> None:
    """Clear all lights."""
    num_lights[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the registry.

    Returns:
        The material ID.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
    if material.shininess == 0.0 and any(material.specular):
        logger.warning(
            "Material has specular %s with shininess 0; the specular term is constant",
            material.specular,
        )

    material_specular[idx] = color_from_tuple(material.specular)
    material_diffuse[idx] = color_from_tuple(material.diffuse)
    material_ambient[idx] = color_from_tuple(material.ambient)
    material_shininess[idx] = material.shininess
    num_materials[None] = idx + 1
    return idx


def add_light(light: Light) -> int:
    """Add a light to the registry.

    Returns:
        The light index.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

    light_directions[idx] = list(light.direction)
    light_ambient[idx] = color_from_tuple(light.intensity.ambient)
    light_diffuse[idx] = color_from_tuple(light.intensity.diffuse)
    light_specular[idx] = color_from_tuple(light.intensity.specular)
    num_lights[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


def get_light_count() -> int:
    """Get the number of lights in the registry."""
    return int(num_lights[None])


@ti.func
def shade(normal: vec3, material_id: ti.i32, forward: vec3) -> color:
    """Accumulate every light's contribution for a surface point.

    Args:
        normal: The unit surface normal.
        material_id: The material of the surface.
        forward: The facing direction of the active camera.

    Returns:
        The shaded color, each channel in [0, 1].
    """
    result = zero_color()
    for k in range(num_lights[None]):
        term = blinn_phong_term(
            normal,
            forward,
            light_directions[k],
            light_ambient[k],
            light_diffuse[k],
            light_specular[k],
            material_ambient[material_id],
            material_diffuse[material_id],
            material_specular[material_id],
            material_shininess[material_id],
        )
        result = screen(result, saturate(term))
    return result


@ti.kernel
def _lighting_kernel(normal: vec3, material_id: ti.i32, forward: vec3) -> color:
    return shade(normal, material_id, forward)


def evaluate_lighting(
    normal: tuple[float, float, float],
    material_id: int,
    forward: tuple[float, float, float],
) -> tuple[float, ...]:
    """Shade a single normal from Python using the registered lights.

    Args:
        normal: The unit surface normal as (x, y, z).
        material_id: A registered material ID.
        forward: The camera facing direction as (x, y, z).

    Returns:
        The shaded color as a tuple of channel values.

    Raises:
        ValueError: If material_id is invalid.
    """
    if not 0 <= material_id < get_material_count():
        raise ValueError(f"Invalid material_id: {material_id}")
    result = _lighting_kernel(vec3(*normal), material_id, vec3(*forward))
    return tuple(float(result[k]) for k in range(COLOR_CHANNELS))
