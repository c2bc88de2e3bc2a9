"""Per-pixel rendering kernel for sphere-traced scenes.

Every pixel is an independent function of the active viewport, the scene
registries and its own coordinates:

    1. Split the pixel into an antialiasing x antialiasing grid of sub-samples
    2. Cast a primary ray through each sub-sample center
    3. Find the closest surface with intersect_scene
    4. Shade hits with the Blinn-Phong lights, misses with the background
    5. Average the sub-samples into the color buffer

The kernel fans out over a band of rows with a parallel Taichi loop. Bands
never overlap and each pixel is written exactly once, so rendering a target
band by band fills every pixel with no gaps.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.core.integrator import render_image, setup_render_target
    >>> from src.marcher.camera.viewport import setup_viewport
    >>>
    >>> setup_viewport(viewport)
    >>> setup_render_target(300, 200)
    >>> render_image(antialiasing=2)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.marcher.camera.viewport import get_camera_forward, get_ray_subsample
from src.marcher.core.color import COLOR_CHANNELS, color, color_from_tuple, scale_color, zero_color
from src.marcher.materials.blinn_phong import shade
from src.marcher.scene.intersection import intersect_scene

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Largest sub-sample grid per pixel axis
MAX_ANTIALIASING = 16

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color buffer (preallocated to max size), indexed [x, y] with y = 0 at the bottom
_color_buffer = ti.Vector.field(COLOR_CHANNELS, dtype=float, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Color of rays that miss every object
_background = ti.Vector.field(COLOR_CHANNELS, dtype=float, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffer.

    Sets the active image dimensions and clears the buffer.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the color buffer to zero."""
    _color_buffer.fill(0.0)


def reset_render_target() -> None:
    """Forget the active render target dimensions."""
    _image_width[None] = 0
    _image_height[None] = 0
    _render_target_initialized[None] = 0
    clear_render_target()


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def set_background(background: tuple[float, ...]) -> None:
    """Set the color returned for rays that miss every object."""
    _background[None] = color_from_tuple(background)


def get_background() -> tuple[float, ...]:
    """Get the current background color."""
    value = _background[None]
    return tuple(float(value[k]) for k in range(COLOR_CHANNELS))


def _check_antialiasing(antialiasing: int) -> None:
    if not 1 <= antialiasing <= MAX_ANTIALIASING:
        raise ValueError(f"antialiasing must be in [1, {MAX_ANTIALIASING}], got {antialiasing}")


# =============================================================================
# Pixel Evaluation
# =============================================================================


@ti.func
def render_pixel_impl(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, grid: ti.i32) -> color:
    """Compute the color of one pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        grid: Sub-samples per pixel along each axis.

    Returns:
        The mean color of the grid x grid sub-samples.
    """
    forward = get_camera_forward()
    total = zero_color()

    for sub_i, sub_j in ti.ndrange(grid, grid):
        ray = get_ray_subsample(pixel_i, pixel_j, sub_i, sub_j, grid, width, height)
        rec = intersect_scene(ray.origin, ray.direction)

        sample = _background[None]
        if rec.hit == 1:
            sample = shade(rec.normal, rec.material_id, forward)

        # Drop non-finite channels from degenerate samples
        for c in ti.static(range(COLOR_CHANNELS)):
            if tm.isnan(sample[c]) or tm.isinf(sample[c]):
                sample[c] = 0.0

        total += sample

    return scale_color(total, 1.0 / ti.cast(grid * grid, float))


@ti.kernel
def _render_rows(width: ti.i32, height: ti.i32, row_start: ti.i32, row_end: ti.i32, grid: ti.i32):
    """Render every pixel in rows [row_start, row_end) into the color buffer."""
    for i, j in ti.ndrange(width, (row_start, row_end)):
        _color_buffer[i, j] = render_pixel_impl(i, j, width, height, grid)


@ti.kernel
def _render_single_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, grid: ti.i32) -> color:
    return render_pixel_impl(pixel_i, pixel_j, width, height, grid)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(row_start: int, row_end: int, antialiasing: int = 1) -> None:
    """Render a band of rows of the active render target.

    Rows are counted from the bottom of the image.

    Args:
        row_start: First row to render (inclusive).
        row_end: Last row to render (exclusive).
        antialiasing: Sub-samples per pixel along each axis.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the band is outside the image or antialiasing is
            out of range.
    """
    _check_render_target_initialized()
    _check_antialiasing(antialiasing)

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Row band [{row_start}, {row_end}) outside image height {height}")
    if row_start == row_end:
        return

    _render_rows(width, height, row_start, row_end, antialiasing)


def render_image(antialiasing: int = 1) -> None:
    """Render the whole active render target in one pass.

    Args:
        antialiasing: Sub-samples per pixel along each axis.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    _, height = get_image_dimensions()
    render_rows(0, height, antialiasing)


def render_pixel(pixel_i: int, pixel_j: int, antialiasing: int = 1) -> tuple[float, ...]:
    """Render a single pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        antialiasing: Sub-samples per pixel along each axis.

    Returns:
        The pixel color as a tuple of channel values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    _check_antialiasing(antialiasing)

    width, height = get_image_dimensions()
    result = _render_single_pixel(pixel_i, pixel_j, width, height, antialiasing)
    return tuple(float(result[k]) for k in range(COLOR_CHANNELS))


def get_normalized_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns the color buffer with values in [0, 1] range (clamped).
    The array shape is (height, width, COLOR_CHANNELS) with dtype float32,
    with row 0 at the top of the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    image = _color_buffer.to_numpy()[:width, :height, :]

    # (width, height, C) -> (height, width, C), then flip to top-left origin
    image = np.flipud(np.transpose(image, (1, 0, 2)))

    return np.clip(image, 0.0, 1.0).astype(np.float32)
