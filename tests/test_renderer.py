"""Tests for the banded Renderer and scene target rendering.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest
from PIL import Image as PILImage


class TestRendererInit:
    """Test Renderer initialization."""

    def test_init_creates_render_target(self):
        from src.marcher.core.integrator import get_image_dimensions
        from src.marcher.core.renderer import Renderer

        renderer = Renderer(32, 24, antialiasing=2)

        assert renderer.width == 32
        assert renderer.height == 24
        assert renderer.antialiasing == 2
        assert renderer.rows_rendered == 0
        assert not renderer.is_complete
        assert get_image_dimensions() == (32, 24)

    def test_init_rejects_oversized_dimensions(self):
        from src.marcher.core.renderer import Renderer

        with pytest.raises(ValueError, match="exceed maximum"):
            Renderer(4096, 100)

    def test_init_rejects_zero_antialiasing(self):
        from src.marcher.core.renderer import Renderer

        with pytest.raises(ValueError, match="antialiasing"):
            Renderer(16, 16, antialiasing=0)

    def test_repr(self):
        from src.marcher.core.renderer import Renderer

        assert repr(Renderer(16, 8)) == "Renderer(width=16, height=8, antialiasing=1, rows=0)"


class TestRendererProgress:
    """Test banded rendering and progress reporting."""

    def test_callback_reports_each_band(self, front_viewport):
        from src.marcher.camera.viewport import setup_viewport
        from src.marcher.core.renderer import Renderer

        setup_viewport(front_viewport)
        renderer = Renderer(12, 20)
        calls = []
        renderer.render(band_rows=8, callback=lambda done, total: calls.append((done, total)))

        assert calls == [(8, 20), (16, 20), (20, 20)]
        assert renderer.is_complete

    def test_render_progressive_yields(self, front_viewport):
        from src.marcher.camera.viewport import setup_viewport
        from src.marcher.core.renderer import Renderer

        setup_viewport(front_viewport)
        renderer = Renderer(12, 10)
        progress = list(renderer.render_progressive(band_rows=4))

        assert progress == [(4, 10), (8, 10), (10, 10)]
        assert renderer.rows_rendered == 10

    def test_complete_render_does_nothing_more(self, front_viewport):
        from src.marcher.camera.viewport import setup_viewport
        from src.marcher.core.renderer import Renderer

        setup_viewport(front_viewport)
        renderer = Renderer(8, 8)
        renderer.render()
        assert list(renderer.render_progressive()) == []

    def test_reset_restarts(self, front_viewport):
        from src.marcher.camera.viewport import setup_viewport
        from src.marcher.core.renderer import Renderer

        setup_viewport(front_viewport)
        renderer = Renderer(8, 8)
        renderer.render()
        renderer.reset()
        assert renderer.rows_rendered == 0

    def test_rejects_zero_band(self):
        from src.marcher.core.renderer import Renderer

        renderer = Renderer(8, 8)
        with pytest.raises(ValueError, match="band_rows"):
            renderer.render(band_rows=0)


class TestRendererOutput:
    """Test image retrieval and saving."""

    def test_image_formats(self, front_viewport):
        from src.marcher.camera.viewport import setup_viewport
        from src.marcher.core.integrator import set_background
        from src.marcher.core.renderer import Renderer

        setup_viewport(front_viewport)
        set_background((0.25, 0.5, 1.0))
        renderer = Renderer(16, 8)
        renderer.render()

        linear = renderer.get_image_numpy()
        assert linear.shape == (8, 16, 3)
        assert linear.dtype == np.float32

        image = renderer.get_image_uint8()
        assert image.dtype == np.uint8
        assert tuple(image[0, 0]) == (64, 128, 255)

        corrected = renderer.get_image_numpy(gamma=2.0)
        assert corrected[0, 0, 0] == pytest.approx(0.5)

    def test_save_image(self, front_viewport, tmp_path):
        from src.marcher.camera.viewport import setup_viewport
        from src.marcher.core.renderer import Renderer

        setup_viewport(front_viewport)
        renderer = Renderer(16, 8)
        renderer.render()
        path = tmp_path / "render.png"
        renderer.save_image(str(path))

        with PILImage.open(path) as saved:
            assert saved.size == (16, 8)
            assert saved.mode == "RGB"


class TestRenderSceneTargets:
    """Test rendering every target of a scene."""

    def test_renders_each_target(self):
        from src.marcher.core.renderer import render_scene_targets
        from src.marcher.scene.default_scene import create_julia_scene

        scene = create_julia_scene(pixel_width=24)
        scene.add_render("main", 12)

        progress = []
        results = list(
            render_scene_targets(
                scene,
                band_rows=5,
                callback=lambda index, target, done, total: progress.append((index, done, total)),
            )
        )

        assert [image.shape for _, image in results] == [(16, 24, 3), (8, 12, 3)]
        assert [target.pixel_width for target, _ in results] == [24, 12]
        assert progress[-1] == (1, 8, 8)
        assert (0, 16, 16) in progress
        for _, image in results:
            assert np.all(np.isfinite(image))

    def test_misses_use_scene_background(self):
        from src.marcher.core.renderer import render_scene_targets
        from src.marcher.scene.default_scene import create_julia_scene

        scene = create_julia_scene(pixel_width=12)
        scene.set_background((1.0, 0.0, 0.0))

        _, image = next(iter(render_scene_targets(scene)))
        # The set sits in the middle of the frame; the corners see the background
        assert tuple(image[0, 0]) == (1.0, 0.0, 0.0)

    def test_scene_without_targets_yields_nothing(self):
        from src.marcher.core.renderer import render_scene_targets
        from src.marcher.scene.manager import SceneManager

        assert list(render_scene_targets(SceneManager())) == []
