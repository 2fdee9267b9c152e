"""Unit tests for the BRDF library.

Tests cover:
- Lambert diffuse (scalar and per-channel reflectance)
- Phong specular lobe
- Schlick Fresnel
- GGX normal distribution
- Schlick-GGX and Smith geometry terms
"""

import math

import taichi as ti


class TestLambert:
    def test_lambert(self):
        """Test Lambert returns kd * cd / pi."""
        from rtcore.materials.brdf import lambert, lambert_tinted, vec3

        result = ti.field(dtype=ti.math.vec3, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = lambert(0.5, vec3(1.0, 0.5, 0.0))
            result[1] = lambert_tinted(vec3(1.0, 0.5, 0.25), vec3(1.0, 1.0, 1.0))

        test_kernel()
        a = result[0]
        assert abs(a[0] - 0.5 / math.pi) < 1e-6
        assert abs(a[1] - 0.25 / math.pi) < 1e-6
        assert abs(a[2]) < 1e-6
        b = result[1]
        assert abs(b[0] - 1.0 / math.pi) < 1e-6
        assert abs(b[1] - 0.5 / math.pi) < 1e-6
        assert abs(b[2] - 0.25 / math.pi) < 1e-6


class TestPhong:
    """Tests for the Phong specular lobe."""

    def _phong(self, ks, exponent, l, v, n):
        from rtcore.materials.brdf import phong, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = phong(
                ks,
                exponent,
                vec3(l[0], l[1], l[2]),
                vec3(v[0], v[1], v[2]),
                vec3(n[0], n[1], n[2]),
            )

        test_kernel()
        c = result[None]
        return (float(c[0]), float(c[1]), float(c[2]))

    def test_peak_at_mirror_direction(self):
        s = math.sqrt(0.5)
        r, g, b = self._phong(0.5, 60.0, (s, s, 0.0), (-s, s, 0.0), (0.0, 1.0, 0.0))
        assert abs(r - 0.5) < 1e-4
        assert r == g == b

    def test_falls_off_away_from_mirror(self):
        s = math.sqrt(0.5)
        value = self._phong(1.0, 4.0, (s, s, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0))[0]
        assert abs(value - s**4) < 1e-4

    def test_zero_when_view_opposes_reflection(self):
        s = math.sqrt(0.5)
        value = self._phong(1.0, 2.5, (s, s, 0.0), (s, -s, 0.0), (0.0, 1.0, 0.0))[0]
        assert value == 0.0


class TestFresnel:
    def test_fresnel_schlick(self):
        """Test F equals f0 at normal incidence and 1 at grazing."""
        from rtcore.materials.brdf import fresnel_schlick, vec3

        result = ti.field(dtype=ti.math.vec3, shape=2)

        @ti.kernel
        def test_kernel():
            f0 = vec3(0.04, 0.5, 0.9)
            result[0] = fresnel_schlick(vec3(0.0, 1.0, 0.0), vec3(0.0, 1.0, 0.0), f0)
            result[1] = fresnel_schlick(vec3(0.0, 1.0, 0.0), vec3(1.0, 0.0, 0.0), f0)

        test_kernel()
        normal = result[0]
        grazing = result[1]
        assert abs(normal[0] - 0.04) < 1e-6
        assert abs(normal[1] - 0.5) < 1e-6
        assert abs(normal[2] - 0.9) < 1e-6
        for c in range(3):
            assert abs(grazing[c] - 1.0) < 1e-6


class TestGGX:
    def test_normal_distribution(self):
        """Test D at n = h for two roughness values (a = roughness^2)."""
        from rtcore.materials.brdf import normal_distribution_ggx, vec3

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            n = vec3(0.0, 1.0, 0.0)
            result[0] = normal_distribution_ggx(n, n, 1.0)
            result[1] = normal_distribution_ggx(n, n, 0.5)

        test_kernel()
        assert abs(result[0] - 1.0 / math.pi) < 1e-5
        assert abs(result[1] - 16.0 / math.pi) < 1e-3

    def test_geometry_schlick_ggx(self):
        from rtcore.materials.brdf import geometry_schlick_ggx, vec3

        result = ti.field(dtype=ti.f32, shape=3)

        @ti.kernel
        def test_kernel():
            n = vec3(0.0, 1.0, 0.0)
            result[0] = geometry_schlick_ggx(n, n, 1.0)
            result[1] = geometry_schlick_ggx(n, vec3(ti.sqrt(0.75), 0.5, 0.0), 1.0)
            # Back-facing direction is clamped to the dot epsilon
            result[2] = geometry_schlick_ggx(n, vec3(0.0, -1.0, 0.0), 1.0)

        test_kernel()
        # roughness 1 -> k = 0.5
        assert abs(result[0] - 1.0) < 1e-6
        assert abs(result[1] - 2.0 / 3.0) < 1e-5
        assert abs(result[2] - 0.01 / 0.505) < 1e-5

    def test_geometry_smith_is_product(self):
        from rtcore.materials.brdf import geometry_schlick_ggx, geometry_smith, vec3

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            n = vec3(0.0, 1.0, 0.0)
            v = vec3(0.6, 0.8, 0.0)
            l = vec3(0.0, 0.6, 0.8)
            result[0] = geometry_smith(n, v, l, 0.4)
            result[1] = geometry_schlick_ggx(n, v, 0.4) * geometry_schlick_ggx(n, l, 0.4)

        test_kernel()
        assert abs(result[0] - result[1]) < 1e-6
        assert 0.0 < result[0] <= 1.0
