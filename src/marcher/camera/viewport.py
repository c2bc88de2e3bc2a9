"""Viewport camera model for primary ray generation.

A viewport is a rectangle of world-space size (width, height) centred on the
camera position and facing along ``facing``. ``right`` orients the rectangle;
the up direction is derived as ``right x facing``. Rays start on the viewport
plane and point away from a pinhole located ``focal_len`` behind the
viewport center, so a longer focal length narrows the field of view and a
larger viewport widens it.

The camera builds its basis once on the host with NumPy and stores it in
Taichi fields; ``get_ray`` then runs inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.camera.viewport import Viewport, setup_viewport, cast_ray
    >>> viewport = Viewport(
    ...     position=(0.0, 0.0, -5.0),
    ...     facing=(0.0, 0.0, 1.0),
    ...     right=(-1.0, 0.0, 0.0),
    ...     width=3.0,
    ...     height=2.0,
    ...     focal_len=2.0,
    ... )
    >>> setup_viewport(viewport)
    >>> origin, direction = cast_ray(0.5, 0.5)  # straight ahead
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.marcher.core.ray import Ray, make_ray, vec3

# Largest |dot(right, facing)| accepted for unit vectors
ORTHOGONALITY_TOLERANCE = 1e-6

# Vectors whose length is this close to 1 are already unit length
UNIT_LENGTH_TOLERANCE = 1e-12


def unit_vector(name: str, values: tuple[float, float, float]) -> np.ndarray:
    """Normalize a host-side 3-vector.

    Vectors that are already unit length are returned unchanged, so
    normalizing twice gives bit-identical results.

    Raises:
        ValueError: If the vector is not a finite, non-zero 3-vector.
    """
    vector = np.asarray(values, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    norm = np.linalg.norm(vector)
    if not np.isfinite(norm) or norm == 0.0:
        raise ValueError(f"{name} must be a finite, non-zero vector, got {values}")
    if abs(norm - 1.0) <= UNIT_LENGTH_TOLERANCE:
        return vector
    return vector / norm


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Viewport:
    """Configuration for a viewport camera.

    ``facing`` and ``right`` are normalized on construction. ``right`` must
    be orthogonal to ``facing``; a skewed basis is rejected rather than
    corrected.

    Attributes:
        position: Camera position (viewport center) in world space.
        facing: Forward direction of the camera.
        right: Direction of increasing u on the image plane.
        width: Viewport width in world units.
        height: Viewport height in world units.
        focal_len: Distance from the pinhole to the viewport plane.
    """

    position: tuple[float, float, float]
    facing: tuple[float, float, float]
    right: tuple[float, float, float]
    width: float
    height: float
    focal_len: float

    def __post_init__(self) -> None:
        facing = unit_vector("facing", self.facing)
        right = unit_vector("right", self.right)
        if abs(float(np.dot(facing, right))) > ORTHOGONALITY_TOLERANCE:
            raise ValueError(f"right {self.right} is not orthogonal to facing {self.facing}")
        for name in ("width", "height", "focal_len"):
            value = getattr(self, name)
            if not value > 0.0:
                raise ValueError(f"{name} must be positive, got {value}")

        object.__setattr__(self, "position", tuple(float(x) for x in self.position))
        object.__setattr__(self, "facing", tuple(float(x) for x in facing))
        object.__setattr__(self, "right", tuple(float(x) for x in right))

    @property
    def up(self) -> tuple[float, float, float]:
        """The viewport up direction, right x facing."""
        return tuple(float(x) for x in np.cross(self.right, self.facing))

    def aspect(self) -> float:
        """Width divided by height of the viewport."""
        return self.width / self.height

    def pixel_height(self, pixel_width: int) -> int:
        """Pixel height matching this viewport's aspect for a given pixel width.

        Halves round up, so a 2:1 viewport 5 pixels wide is 3 pixels high.
        """
        return max(1, math.floor(pixel_width / self.aspect() + 0.5))

    def to_config(self) -> dict:
        return {
            "pos": list(self.position),
            "facing": list(self.facing),
            "right": list(self.right),
            "width": self.width,
            "height": self.height,
            "focal_len": self.focal_len,
        }


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_viewport_position = ti.Vector.field(3, dtype=float, shape=())

# Orthonormal basis vectors
_viewport_forward = ti.Vector.field(3, dtype=float, shape=())
_viewport_right = ti.Vector.field(3, dtype=float, shape=())
_viewport_up = ti.Vector.field(3, dtype=float, shape=())

# World-space viewport size and pinhole distance
_viewport_width = ti.field(dtype=float, shape=())
_viewport_height = ti.field(dtype=float, shape=())
_viewport_focal_len = ti.field(dtype=float, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per render target)
# =============================================================================


def setup_viewport(viewport: Viewport) -> None:
    """Make viewport the active camera for ray generation.

    Note:
        This function writes to Taichi fields and should be called from
        Python (not from within a Taichi kernel).
    """
    _viewport_position[None] = list(viewport.position)
    _viewport_forward[None] = list(viewport.facing)
    _viewport_right[None] = list(viewport.right)
    _viewport_up[None] = list(viewport.up)
    _viewport_width[None] = viewport.width
    _viewport_height[None] = viewport.height
    _viewport_focal_len[None] = viewport.focal_len


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def get_ray(u: float, v: float) -> Ray:
    """Generate a ray through normalized viewport coordinates (u, v).

    - u = 0: left edge, u = 1: right edge (along ``right``)
    - v = 0: bottom edge, v = 1: top edge (along ``up``)

    The ray origin lies on the viewport plane and the direction is the
    normalized vector from the pinhole through that point, so (0.5, 0.5)
    yields the camera position looking exactly along ``facing``.
    """
    # Recentre to [-0.5, 0.5]
    x = u - 0.5
    y = v - 0.5

    # Offset from the viewport center to the sampled point
    on_viewport = (
        _viewport_right[None] * (x * _viewport_width[None])
        + _viewport_up[None] * (y * _viewport_height[None])
    )

    # Offset from the viewport center to the pinhole
    pinhole = -_viewport_forward[None] * _viewport_focal_len[None]

    direction = tm.normalize(on_viewport - pinhole)
    return make_ray(_viewport_position[None] + on_viewport, direction)


@ti.func
def get_ray_subsample(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    sub_i: ti.i32,
    sub_j: ti.i32,
    grid: ti.i32,
    width: ti.i32,
    height: ti.i32,
) -> Ray:
    """Generate the ray for one cell of a regular sub-pixel grid.

    Each pixel is split into grid x grid cells and the ray passes through the
    center of cell (sub_i, sub_j). grid = 1 samples the pixel center.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        sub_i: Sub-pixel column in [0, grid).
        sub_j: Sub-pixel row in [0, grid).
        grid: Sub-samples per pixel along each axis.
        width: Image width in pixels.
        height: Image height in pixels.
    """
    inv_grid = 1.0 / ti.cast(grid, float)
    u = (ti.cast(pixel_i, float) + (ti.cast(sub_i, float) + 0.5) * inv_grid) / ti.cast(width, float)
    v = (ti.cast(pixel_j, float) + (ti.cast(sub_j, float) + 0.5) * inv_grid) / ti.cast(height, float)
    return get_ray(u, v)


@ti.func
def get_camera_forward() -> vec3:
    """Get the facing direction of the active viewport."""
    return _viewport_forward[None]


# =============================================================================
# Utility Functions
# =============================================================================

_cast_origin = ti.Vector.field(3, dtype=float, shape=())
_cast_direction = ti.Vector.field(3, dtype=float, shape=())


@ti.kernel
def _cast_ray_kernel(u: float, v: float):
    ray = get_ray(u, v)
    _cast_origin[None] = ray.origin
    _cast_direction[None] = ray.direction


def cast_ray(u: float, v: float) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Generate a ray from Python through the active viewport.

    Args:
        u: Horizontal coordinate in [0, 1].
        v: Vertical coordinate in [0, 1].

    Returns:
        Tuple of (origin, direction), each as (x, y, z).
    """
    _cast_ray_kernel(u, v)
    o = _cast_origin[None]
    d = _cast_direction[None]
    return (
        (float(o[0]), float(o[1]), float(o[2])),
        (float(d[0]), float(d[1]), float(d[2])),
    )


def get_viewport_info() -> dict[str, tuple[float, ...]]:
    """Get the active viewport state for debugging.

    Returns:
        Dictionary with position, forward, right, up and size
        (width, height, focal_len).
    """

    def _as_tuple(field: ti.MatrixField) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "position": _as_tuple(_viewport_position),
        "forward": _as_tuple(_viewport_forward),
        "right": _as_tuple(_viewport_right),
        "up": _as_tuple(_viewport_up),
        "size": (
            float(_viewport_width[None]),
            float(_viewport_height[None]),
            float(_viewport_focal_len[None]),
        ),
    }
