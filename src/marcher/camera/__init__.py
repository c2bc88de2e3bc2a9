"""Camera module for view and ray generation.

Components:
    viewport: Viewport camera with a pinhole behind the image plane

Camera responsibilities:
    - Validate the camera basis (facing and right must be orthogonal)
    - Transform (u, v) image coordinates to world-space rays
    - Split pixels into regular sub-pixel grids for antialiasing
    - Derive pixel height from the viewport aspect ratio

Ray generation uses normalized device coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image
"""

from .viewport import (
    Viewport,
    cast_ray,
    get_camera_forward,
    get_ray,
    get_ray_subsample,
    get_viewport_info,
    setup_viewport,
)

__all__ = [
    "Viewport",
    "setup_viewport",
    "get_ray",
    "get_ray_subsample",
    "get_camera_forward",
    "cast_ray",
    "get_viewport_info",
]
