"""Unit tests for color utilities.

Tests cover:
- Negative channel clamping
- Max-to-one scaling
- 8-bit quantization by truncation
- Packing and unpacking 0xRRGGBB pixels
"""

import numpy as np
import taichi as ti


def _run_color_func(func, color):
    """Apply a vec3 -> vec3 Taichi function to a color and return a tuple."""
    from rtcore.core.color import vec3

    result = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(r: ti.f32, g: ti.f32, b: ti.f32):
        result[None] = func(vec3(r, g, b))

    test_kernel(*color)
    c = result[None]
    return (float(c[0]), float(c[1]), float(c[2]))


class TestMaxToOne:
    """Tests for max-to-one scaling."""

    def test_color_within_range_unchanged(self):
        from rtcore.core.color import max_to_one

        r, g, b = _run_color_func(max_to_one, (0.2, 0.5, 1.0))
        assert abs(r - 0.2) < 1e-6
        assert abs(g - 0.5) < 1e-6
        assert abs(b - 1.0) < 1e-6

    def test_over_bright_color_divided_by_max(self):
        """Test that hue is preserved when the largest channel exceeds 1."""
        from rtcore.core.color import max_to_one

        r, g, b = _run_color_func(max_to_one, (4.0, 2.0, 1.0))
        assert abs(r - 1.0) < 1e-6
        assert abs(g - 0.5) < 1e-6
        assert abs(b - 0.25) < 1e-6

    def test_result_never_exceeds_one(self):
        from rtcore.core.color import max_to_one

        for color in [(1.5, 0.0, 0.0), (0.0, 100.0, 3.0), (2.0, 2.0, 2.0)]:
            assert max(_run_color_func(max_to_one, color)) <= 1.0 + 1e-6


class TestSanitize:
    """Tests for color sanitizing."""

    def test_negative_channels_clamped(self):
        from rtcore.core.color import sanitize

        r, g, b = _run_color_func(sanitize, (-0.5, 0.25, 0.0))
        assert r == 0.0
        assert abs(g - 0.25) < 1e-6
        assert b == 0.0


class TestQuantization:
    """Tests for 8-bit quantization and packing."""

    def test_quantize_truncates(self):
        """Test that quantization truncates rather than rounds."""
        from rtcore.core.color import quantize_channel

        result = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            result[0] = quantize_channel(1.0)
            result[1] = quantize_channel(0.0)
            result[2] = quantize_channel(0.999)
            result[3] = quantize_channel(1.5)

        test_kernel()
        assert result[0] == 255
        assert result[1] == 0
        assert result[2] == 254
        assert result[3] == 255

    def test_pack_rgb8(self):
        from rtcore.core.color import pack_rgb8, vec3

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = pack_rgb8(vec3(1.0, 0.0, 1.0))

        test_kernel()
        assert result[None] == 0xFF00FF

    def test_unpack_rgb8(self):
        from rtcore.core.color import unpack_rgb8

        packed = np.array([[0xFF0000, 0x00FF00], [0x0000FF, 0x102030]], dtype=np.int32)
        rgb = unpack_rgb8(packed)

        assert rgb.shape == (2, 2, 3)
        assert rgb.dtype == np.uint8
        assert tuple(rgb[0, 0]) == (255, 0, 0)
        assert tuple(rgb[0, 1]) == (0, 255, 0)
        assert tuple(rgb[1, 0]) == (0, 0, 255)
        assert tuple(rgb[1, 1]) == (0x10, 0x20, 0x30)
