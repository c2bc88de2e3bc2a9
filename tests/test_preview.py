"""Tests for the preview module.

This module tests the preview/display and preview/export functionality including:
- Tone mapping functions (Reinhard, exposure)
- Gamma correction
- 8-bit conversion and PNG export
"""

import numpy as np
import pytest
from PIL import Image as PILImage


class TestToneMapping:
    """Test tone mapping operators."""

    def test_reinhard_preserves_black(self):
        from src.marcher.preview.display import tone_map_reinhard

        image = np.zeros((4, 4, 3), dtype=np.float32)
        assert np.allclose(tone_map_reinhard(image), 0.0)

    def test_reinhard_compresses_bright_values(self):
        from src.marcher.preview.display import tone_map_reinhard

        image = np.full((4, 4, 3), 10.0, dtype=np.float32)
        result = tone_map_reinhard(image)

        assert np.allclose(result, 10.0 / 11.0)
        assert result.dtype == np.float32

    def test_reinhard_clamps_negative(self):
        from src.marcher.preview.display import tone_map_reinhard

        image = np.full((2, 2, 3), -1.0, dtype=np.float32)
        assert np.allclose(tone_map_reinhard(image), 0.0)

    def test_exposure_scales(self):
        from src.marcher.preview.display import tone_map_exposure

        image = np.full((2, 2, 3), 1.0, dtype=np.float32)

        dim = tone_map_exposure(image, exposure=0.5)
        bright = tone_map_exposure(image, exposure=2.0)

        assert np.allclose(dim, 1.0 - np.exp(-0.5))
        assert np.all(bright > dim)
        assert np.all(bright <= 1.0)


class TestGamma:
    """Test gamma correction."""

    def test_gamma_one_is_identity(self):
        from src.marcher.preview.display import apply_gamma

        image = np.linspace(0.0, 1.0, 12, dtype=np.float32).reshape(2, 2, 3)
        np.testing.assert_array_equal(apply_gamma(image), image)

    def test_gamma_brightens_midtones(self):
        from src.marcher.preview.display import apply_gamma

        image = np.full((2, 2, 3), 0.25, dtype=np.float32)
        assert np.allclose(apply_gamma(image, 2.0), 0.5)

    @pytest.mark.parametrize("gamma", [0.0, -2.2])
    def test_rejects_non_positive_gamma(self, gamma):
        from src.marcher.preview.display import apply_gamma

        with pytest.raises(ValueError, match="gamma"):
            apply_gamma(np.zeros((1, 1, 3), dtype=np.float32), gamma)


class TestProcessImage:
    """Test the full display pipeline."""

    def test_default_pipeline_only_clamps(self):
        from src.marcher.preview.display import process_image_for_display

        image = np.array([[[0.2, 1.5, -0.1]]], dtype=np.float32)
        result = process_image_for_display(image)

        assert np.allclose(result, [[[0.2, 1.0, 0.0]]])

    def test_does_not_modify_input(self):
        from src.marcher.preview.display import process_image_for_display

        image = np.full((2, 2, 3), 3.0, dtype=np.float32)
        process_image_for_display(image, tone_map="reinhard", gamma=2.2)

        assert np.all(image == 3.0)

    def test_unknown_tone_map(self):
        from src.marcher.preview.display import process_image_for_display

        with pytest.raises(ValueError, match="Unknown tone mapping method"):
            process_image_for_display(np.zeros((1, 1, 3), dtype=np.float32), tone_map="filmic")


class TestExport:
    """Test 8-bit conversion and PNG writing."""

    def test_image_to_uint8_rounds(self):
        from src.marcher.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.5, 1.0]]], dtype=np.float32)
        result = image_to_uint8(image)

        assert result.dtype == np.uint8
        assert tuple(result[0, 0]) == (0, 128, 255)

    def test_save_png_from_array(self, tmp_path):
        from src.marcher.preview.export import save_png_from_array

        image = np.zeros((6, 10, 3), dtype=np.float32)
        image[:, :, 0] = 1.0
        path = tmp_path / "red.png"
        save_png_from_array(image, path)

        with PILImage.open(path) as saved:
            assert saved.size == (10, 6)
            assert saved.getpixel((3, 2)) == (255, 0, 0)

    def test_save_uint8_single_channel(self, tmp_path):
        from src.marcher.preview.export import save_uint8

        image = np.full((4, 5, 1), 200, dtype=np.uint8)
        path = tmp_path / "gray.png"
        save_uint8(image, path)

        with PILImage.open(path) as saved:
            assert saved.mode == "L"
            assert saved.size == (5, 4)

    @pytest.mark.parametrize("shape", [(4, 5), (4, 5, 2), (2, 4, 5, 3)])
    def test_save_uint8_rejects_bad_shape(self, shape, tmp_path):
        from src.marcher.preview.export import save_uint8

        with pytest.raises(ValueError, match="channels"):
            save_uint8(np.zeros(shape, dtype=np.uint8), tmp_path / "bad.png")

