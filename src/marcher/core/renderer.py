"""Banded renderer with progress reporting and image output.

This module provides a convenient wrapper around the core integrator that supports:
- Rendering a target in bands of rows, reporting progress after each band
- Generator-based progress for callers that want to interleave work
- Rendering every target of a scene in turn

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.core.renderer import Renderer
    >>> from src.marcher.camera.viewport import setup_viewport
    >>>
    >>> setup_viewport(viewport)
    >>> renderer = Renderer(300, 200, antialiasing=2)
    >>> renderer.render(band_rows=32)
    >>> image = renderer.get_image_numpy()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Generator, Iterator
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from src.marcher.camera.viewport import setup_viewport
from src.marcher.core.integrator import (
    get_normalized_image_numpy,
    render_rows,
    set_background,
    setup_render_target,
)

if TYPE_CHECKING:
    from src.marcher.scene.manager import RenderTarget, SceneManager

logger = logging.getLogger(__name__)

# Callback receives (rows_rendered, total_rows)
ProgressCallback = Callable[[int, int], None]

# Rows per band when the caller does not choose one
DEFAULT_BAND_ROWS = 64


class Renderer:
    """Renders the active viewport into the integrator's color buffer.

    Rows are rendered bottom to top in bands; each band is one parallel
    kernel launch. Once every band has run, every pixel of the target holds
    its final color.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        antialiasing: Sub-samples per pixel along each axis.
    """

    def __init__(self, width: int, height: int, antialiasing: int = 1) -> None:
        """Initialize the renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            antialiasing: Sub-samples per pixel along each axis.

        Raises:
            ValueError: If dimensions are out of range or antialiasing < 1.
        """
        if antialiasing < 1:
            raise ValueError(f"antialiasing must be >= 1, got {antialiasing}")
        self._width = width
        self._height = height
        self._antialiasing = antialiasing
        self._rows_rendered = 0
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def antialiasing(self) -> int:
        """Get the sub-sample grid size."""
        return self._antialiasing

    @property
    def rows_rendered(self) -> int:
        """Get the number of rows rendered so far."""
        return self._rows_rendered

    @property
    def is_complete(self) -> bool:
        """Whether every row of the target has been rendered."""
        return self._rows_rendered >= self._height

    def reset(self) -> None:
        """Clear the color buffer for a fresh render of the same size."""
        setup_render_target(self._width, self._height)
        self._rows_rendered = 0

    def render(
        self,
        band_rows: int = DEFAULT_BAND_ROWS,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render the remaining rows with optional progress callback.

        Args:
            band_rows: Number of rows to render before each callback.
            callback: Optional callback function called after each band.
                Receives (rows_rendered, total_rows).

        Example:
            >>> def progress(done, total):
            ...     print(f"Progress: {done}/{total} rows")
            >>> renderer.render(band_rows=16, callback=progress)
        """
        for done, total in self.render_progressive(band_rows):
            if callback is not None:
                callback(done, total)

    def render_progressive(
        self,
        band_rows: int = DEFAULT_BAND_ROWS,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the remaining rows, yielding progress after each band.

        Args:
            band_rows: Number of rows to render before each yield.

        Yields:
            Tuple of (rows_rendered, total_rows).

        Raises:
            ValueError: If band_rows < 1.
        """
        if band_rows < 1:
            raise ValueError(f"band_rows must be >= 1, got {band_rows}")

        while self._rows_rendered < self._height:
            row_end = min(self._rows_rendered + band_rows, self._height)
            render_rows(self._rows_rendered, row_end, self._antialiasing)
            self._rows_rendered = row_end
            yield (self._rows_rendered, self._height)

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Returns the color buffer with values clamped to [0, 1] and optionally
        gamma corrected. The array shape is (height, width, channels).

        Args:
            gamma: Gamma correction value. Default 1.0 (shaded colors are
                written as-is).
        """
        image = get_normalized_image_numpy()

        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma).astype(np.float32)

        return image

    def get_image_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit NumPy array.

        Args:
            gamma: Gamma correction value. Default 1.0.

        Returns:
            NumPy array of shape (height, width, channels) with dtype uint8.
        """
        image = self.get_image_numpy(gamma=gamma)
        return np.round(image * 255).astype(np.uint8)

    def save_image(self, filepath: str, gamma: float = 1.0) -> None:
        """Save the rendered image to a file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
            gamma: Gamma correction value. Default 1.0.
        """
        from src.marcher.preview.export import save_uint8

        save_uint8(self.get_image_uint8(gamma=gamma), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"antialiasing={self.antialiasing}, rows={self.rows_rendered})"
        )


def render_scene_targets(
    scene: SceneManager,
    antialiasing: int = 1,
    band_rows: int = DEFAULT_BAND_ROWS,
    callback: Callable[[int, RenderTarget, int, int], None] | None = None,
) -> Iterator[tuple[RenderTarget, npt.NDArray[np.float32]]]:
    """Render every render target of a scene in order.

    The scene is not modified while rendering. Each target's viewport is
    activated, the target is rendered band by band and its linear image is
    yielded before the next target starts (targets share one color buffer).

    Args:
        scene: The scene to render.
        antialiasing: Sub-samples per pixel along each axis.
        band_rows: Rows per kernel launch.
        callback: Optional progress callback receiving
            (target_index, target, rows_rendered, total_rows).

    Yields:
        Tuple of (render target, image of shape (height, width, channels)).
    """
    set_background(scene.background)

    for index, target in enumerate(scene.render_targets):
        setup_viewport(target.viewport)
        renderer = Renderer(target.pixel_width, target.pixel_height, antialiasing)
        logger.info(
            "Rendering target %d (camera %r) at %dx%d, antialiasing %d",
            index,
            target.camera,
            renderer.width,
            renderer.height,
            antialiasing,
        )

        start = time.perf_counter()
        for done, total in renderer.render_progressive(band_rows):
            if callback is not None:
                callback(index, target, done, total)
        logger.debug("Target %d rendered in %.3fs", index, time.perf_counter() - start)

        yield target, renderer.get_image_numpy()
