"""Preview module for image output.

Components:
    display: Tone mapping and gamma correction
    export: 8-bit conversion and PNG export

Example:
    >>> from src.marcher.preview import save_png
    >>> from src.marcher.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(300, 200)
    >>> renderer.render()
    >>> save_png(renderer, "output.png", tone_map="reinhard")
"""

from src.marcher.preview.display import (
    TONE_MAP_METHODS,
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    tone_map_exposure,
    tone_map_reinhard,
)
from src.marcher.preview.export import (
    image_to_uint8,
    save_png,
    save_png_from_array,
    save_uint8,
)

__all__ = [
    # Tone mapping
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    "TONE_MAP_METHODS",
    # Export functions
    "save_png",
    "save_png_from_array",
    "save_uint8",
    "image_to_uint8",
]
