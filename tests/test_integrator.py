"""Tests for the per-pixel rendering kernel and render target.

The unit ball (Julia set of c = 0) seen from z = -5 covers the center of
the image and leaves the corners empty.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest

WIDTH = 30
HEIGHT = 20


def _setup_unit_ball_scene(viewport):
    from src.marcher.camera.viewport import setup_viewport
    from src.marcher.estimators.julia import JuliaEstimator
    from src.marcher.geometry.marcher import Geometry, add_geometry
    from src.marcher.materials.blinn_phong import Light, Material, add_light, add_material
    from src.marcher.scene.intersection import add_object

    material_id = add_material(Material(diffuse=(0.8, 0.6, 0.2), ambient=(0.5, 0.5, 0.5)))
    geometry_id = add_geometry(
        Geometry(estimator=JuliaEstimator(c=(0.0, 0.0, 0.0, 0.0), iterations=4), max_steps=128)
    )
    add_object(geometry_id, material_id)
    add_light(
        Light(
            direction=(0.0, 1.0, -1.0),
            intensity=Material(diffuse=(1.0, 1.0, 1.0), ambient=(1.0, 1.0, 1.0)),
        )
    )
    setup_viewport(viewport)


class TestRenderTarget:
    """Test render target setup."""

    def test_setup_sets_dimensions(self):
        from src.marcher.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)

    @pytest.mark.parametrize("width, height", [(0, 10), (10, 0), (4096, 10), (10, 4096)])
    def test_rejects_invalid_dimensions(self, width, height):
        from src.marcher.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_render_requires_setup(self):
        from src.marcher.core.integrator import render_image

        with pytest.raises(RuntimeError, match="Render target not set up"):
            render_image()

    def test_background_round_trip(self):
        from src.marcher.core.integrator import get_background, set_background

        set_background((0.25, 0.5, 0.75))
        assert get_background() == pytest.approx((0.25, 0.5, 0.75))


class TestRenderImage:
    """Test full and banded rendering."""

    def test_empty_scene_is_background(self, front_viewport):
        from src.marcher.camera.viewport import setup_viewport
        from src.marcher.core.integrator import get_normalized_image_numpy, render_image, set_background, setup_render_target

        setup_viewport(front_viewport)
        set_background((0.25, 0.5, 0.75))
        setup_render_target(WIDTH, HEIGHT)
        render_image(antialiasing=2)

        image = get_normalized_image_numpy()
        assert image.shape == (HEIGHT, WIDTH, 3)
        assert np.allclose(image, np.array([0.25, 0.5, 0.75], dtype=np.float32))

    def test_ball_covers_center_not_corners(self, front_viewport):
        from src.marcher.core.integrator import get_normalized_image_numpy, render_image, setup_render_target

        _setup_unit_ball_scene(front_viewport)
        setup_render_target(WIDTH, HEIGHT)
        render_image()

        image = get_normalized_image_numpy()
        # Ambient alone contributes 0.5 on every channel
        assert np.all(image[HEIGHT // 2, WIDTH // 2] >= 0.5 - 1e-6)
        for row, col in [(0, 0), (0, WIDTH - 1), (HEIGHT - 1, 0), (HEIGHT - 1, WIDTH - 1)]:
            assert np.all(image[row, col] == 0.0)

    def test_image_is_finite_and_in_range(self, front_viewport):
        from src.marcher.core.integrator import get_normalized_image_numpy, render_image, setup_render_target

        _setup_unit_ball_scene(front_viewport)
        setup_render_target(WIDTH, HEIGHT)
        render_image(antialiasing=3)

        image = get_normalized_image_numpy()
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0
        assert image.max() <= 1.0

    def test_banded_render_matches_full_render(self, front_viewport):
        from src.marcher.core.integrator import get_normalized_image_numpy, render_image, render_rows, setup_render_target

        _setup_unit_ball_scene(front_viewport)
        setup_render_target(WIDTH, HEIGHT)
        render_image()
        full = get_normalized_image_numpy()

        setup_render_target(WIDTH, HEIGHT)
        for start in range(0, HEIGHT, 7):
            render_rows(start, min(start + 7, HEIGHT))
        banded = get_normalized_image_numpy()

        np.testing.assert_array_equal(full, banded)

    def test_render_rows_only_touches_its_band(self, front_viewport):
        from src.marcher.camera.viewport import setup_viewport
        from src.marcher.core.integrator import get_normalized_image_numpy, render_rows, set_background, setup_render_target

        setup_viewport(front_viewport)
        set_background((1.0, 1.0, 1.0))
        setup_render_target(WIDTH, HEIGHT)
        render_rows(0, 5)

        image = get_normalized_image_numpy()
        # Rows count from the bottom; the array's first row is the top
        assert np.all(image[HEIGHT - 5 :] == 1.0)
        assert np.all(image[: HEIGHT - 5] == 0.0)

    def test_render_rows_validates_band(self):
        from src.marcher.core.integrator import render_rows, setup_render_target

        setup_render_target(WIDTH, HEIGHT)
        with pytest.raises(ValueError, match="Row band"):
            render_rows(5, HEIGHT + 1)
        with pytest.raises(ValueError, match="Row band"):
            render_rows(6, 5)

    def test_rejects_invalid_antialiasing(self):
        from src.marcher.core.integrator import render_image, setup_render_target

        setup_render_target(WIDTH, HEIGHT)
        with pytest.raises(ValueError, match="antialiasing"):
            render_image(antialiasing=0)

    def test_render_pixel_matches_buffer(self, front_viewport):
        from src.marcher.core.integrator import (
            get_normalized_image_numpy,
            render_image,
            render_pixel,
            setup_render_target,
        )

        _setup_unit_ball_scene(front_viewport)
        setup_render_target(WIDTH, HEIGHT)
        render_image(antialiasing=2)

        image = get_normalized_image_numpy()
        for i, j in [(15, 10), (0, 0), (12, 7)]:
            # Row 0 of the array is the top of the image
            value = image[HEIGHT - 1 - j, i]
            assert render_pixel(i, j, antialiasing=2) == pytest.approx(
                (float(value[0]), float(value[1]), float(value[2])), abs=1e-5
            )
