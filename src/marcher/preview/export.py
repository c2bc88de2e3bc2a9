"""Image export utilities for rendered images.

Supported formats:
    - PNG (8-bit via Pillow)

Example:
    >>> from src.marcher.preview.export import save_png
    >>> from src.marcher.core.renderer import Renderer
    >>>
    >>> renderer = Renderer(300, 200)
    >>> renderer.render()
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.marcher.preview.display import ToneMapMethod, process_image_for_display

if TYPE_CHECKING:
    from src.marcher.core.renderer import Renderer

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Convert a float image in [0, 1] to uint8, rounding to nearest.

    Args:
        image: Image array of shape (H, W, C).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 1.0).
        exposure: Exposure value for exposure tone mapping (default 1.0).

    Returns:
        8-bit image array of shape (H, W, C).
    """
    processed = process_image_for_display(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    return np.round(processed * 255).astype(np.uint8)


def save_uint8(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an 8-bit image; single-channel images are saved as grayscale.

    Raises:
        ValueError: If the image is not (H, W, C) with 1, 3 or 4 channels.
    """
    if image.ndim != 3 or image.shape[2] not in (1, 3, 4):
        raise ValueError(f"Expected an (H, W, C) image with 1, 3 or 4 channels, got shape {image.shape}")
    if image.shape[2] == 1:
        image = image[:, :, 0]

    PILImage.fromarray(np.ascontiguousarray(image)).save(filepath)
    logger.info("Wrote %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def save_png(
    renderer: Renderer,
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> None:
    """Save the renderer's current image as a PNG file.

    Args:
        renderer: The Renderer instance to save.
        filepath: Output file path (should end in .png).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 1.0).
        exposure: Exposure value for exposure tone mapping (default 1.0).
    """
    save_png_from_array(
        renderer.get_image_numpy(gamma=1.0),
        filepath,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> None:
    """Save a float image array as a PNG file.

    Args:
        image: Image array of shape (H, W, C).
        filepath: Output file path (should end in .png).
        tone_map: Tone mapping method ("none", "reinhard", or "exposure").
        gamma: Gamma correction value (default 1.0).
        exposure: Exposure value for exposure tone mapping (default 1.0).
    """
    save_uint8(image_to_uint8(image, tone_map=tone_map, gamma=gamma, exposure=exposure), filepath)

