"""Materials module for surface shading.

Components:
    blinn_phong: Blinn-Phong materials, directional lights and the
        saturating multi-light accumulator

Materials and lights are stored in Taichi fields; shading is a Taichi
function evaluated per surface hit.
"""

from .blinn_phong import (
    MAX_LIGHTS,
    MAX_MATERIALS,
    Light,
    Material,
    add_light,
    add_material,
    blinn_phong_term,
    clear_lights,
    clear_materials,
    evaluate_lighting,
    get_light_count,
    get_material_count,
    shade,
)

__all__ = [
    "Material",
    "Light",
    "add_material",
    "add_light",
    "clear_materials",
    "clear_lights",
    "get_material_count",
    "get_light_count",
    "blinn_phong_term",
    "shade",
    "evaluate_lighting",
    "MAX_MATERIALS",
    "MAX_LIGHTS",
]
