"""Built-in quaternion Julia scene.

This module provides a factory function for the scene rendered when no scene
file is given: a single Julia set at the origin, lit by one white
directional light, seen by one camera looking down +z.

The scene consists of:
- Julia estimator with c = (-0.2, 0.6, 0.2, 0.2) (real part first)
- Gold Blinn-Phong material with a white specular highlight
- One directional light above, left and in front of the set
- Camera "main" at (0, 0, -3.5) with a 3 x 2 viewport (aspect 1.5)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.marcher.scene.default_scene import create_julia_scene
    >>>
    >>> scene = create_julia_scene(pixel_width=300)
    >>> scene.render_targets[0].pixel_height
    200
"""

from dataclasses import dataclass

from src.marcher.camera.viewport import Viewport
from src.marcher.estimators.julia import JuliaEstimator
from src.marcher.geometry.marcher import Geometry
from src.marcher.materials.blinn_phong import Light, Material
from src.marcher.scene.manager import SceneManager

DEFAULT_CONSTANT = (-0.2, 0.6, 0.2, 0.2)
DEFAULT_ITERATIONS = 64
DEFAULT_PIXEL_WIDTH = 300

CAMERA_NAME = "main"
MATERIAL_NAME = "gold"


@dataclass
class JuliaSceneParams:
    """Parameters for the built-in Julia scene.

    Attributes:
        c: The Julia constant, real part first.
        iterations: Maximum iterations of the estimator.
        max_steps: Sphere tracing step limit.
        epsilon: Surface acceptance distance.
        cutoff: Distance at which a ray is declared a miss.
        viewport_width: World-space width of the viewport.
        viewport_height: World-space height of the viewport.
        focal_len: Distance from pinhole to viewport.
        background: Color of rays that miss the set.
    """

    c: tuple[float, float, float, float] = DEFAULT_CONSTANT
    iterations: int = DEFAULT_ITERATIONS
    max_steps: int = 256
    epsilon: float = 1e-4
    cutoff: float = 100.0
    viewport_width: float = 3.0
    viewport_height: float = 2.0
    focal_len: float = 2.0
    background: tuple[float, float, float] = (0.05, 0.05, 0.08)


def create_julia_scene(
    params: JuliaSceneParams | None = None,
    pixel_width: int = DEFAULT_PIXEL_WIDTH,
) -> SceneManager:
    """Create the built-in Julia scene with one render target.

    Args:
        params: Scene parameters. Defaults to JuliaSceneParams().
        pixel_width: Width in pixels of the render target; the height
            follows the viewport aspect.

    Returns:
        A populated SceneManager.
    """
    if params is None:
        params = JuliaSceneParams()

    scene = SceneManager()

    scene.add_material(
        MATERIAL_NAME,
        Material(
            specular=(1.0, 1.0, 1.0),
            diffuse=(0.85, 0.65, 0.25),
            ambient=(0.25, 0.18, 0.08),
            shininess=32.0,
        ),
    )

    scene.add_geometry(
        Geometry(
            estimator=JuliaEstimator(c=params.c, iterations=params.iterations),
            max_steps=params.max_steps,
            epsilon=params.epsilon,
            cutoff=params.cutoff,
        ),
        material=MATERIAL_NAME,
    )

    scene.add_light(
        Light(
            direction=(-1.0, 1.0, -1.0),
            intensity=Material(
                specular=(0.6, 0.6, 0.6),
                diffuse=(0.9, 0.9, 0.9),
                ambient=(0.3, 0.3, 0.3),
            ),
        )
    )

    # right x facing = +y, so the image is upright
    scene.add_viewport(
        CAMERA_NAME,
        Viewport(
            position=(0.0, 0.0, -3.5),
            facing=(0.0, 0.0, 1.0),
            right=(-1.0, 0.0, 0.0),
            width=params.viewport_width,
            height=params.viewport_height,
            focal_len=params.focal_len,
        ),
    )
    scene.add_render(CAMERA_NAME, pixel_width)
    scene.set_background(params.background)

    return scene
