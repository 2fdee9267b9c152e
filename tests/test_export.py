"""Unit tests for image export.

Tests cover:
- PNG and BMP writes through Pillow
- Format forcing for save_png
- Input validation
"""

import numpy as np
import pytest
from PIL import Image as PILImage

from rtcore.preview.export import load_image, save_image, save_png


@pytest.fixture
def gradient():
    """A small (H, W, 3) uint8 test image with distinct channels."""
    image = np.zeros((4, 6, 3), dtype=np.uint8)
    image[:, :, 0] = np.arange(6, dtype=np.uint8) * 40
    image[:, :, 1] = (np.arange(4, dtype=np.uint8) * 60)[:, None]
    image[:, :, 2] = 255
    return image


class TestSaveImage:
    @pytest.mark.parametrize("suffix", [".png", ".bmp"])
    def test_lossless_formats(self, gradient, tmp_path, suffix):
        path = tmp_path / f"frame{suffix}"
        save_image(gradient, path)

        np.testing.assert_array_equal(load_image(path), gradient)

    def test_format_from_extension(self, gradient, tmp_path):
        path = tmp_path / "RayTracing_Buffer.bmp"
        save_image(gradient, str(path))

        with PILImage.open(path) as pil_image:
            assert pil_image.format == "BMP"
            assert pil_image.size == (6, 4)

    def test_save_png_ignores_extension(self, gradient, tmp_path):
        path = tmp_path / "frame.out"
        save_png(gradient, path)

        with PILImage.open(path) as pil_image:
            assert pil_image.format == "PNG"
        np.testing.assert_array_equal(load_image(path), gradient)


class TestValidation:
    def test_wrong_shape(self, tmp_path):
        with pytest.raises(ValueError):
            save_image(np.zeros((4, 6), dtype=np.uint8), tmp_path / "gray.png")
        with pytest.raises(ValueError):
            save_image(np.zeros((4, 6, 4), dtype=np.uint8), tmp_path / "rgba.png")

    def test_wrong_dtype(self, tmp_path):
        with pytest.raises(ValueError):
            save_png(np.zeros((4, 6, 3), dtype=np.float32), tmp_path / "float.png")

    def test_non_contiguous_input(self, gradient, tmp_path):
        path = tmp_path / "flipped.png"
        flipped = gradient[::-1]
        save_image(flipped, path)

        np.testing.assert_array_equal(load_image(path), flipped)
