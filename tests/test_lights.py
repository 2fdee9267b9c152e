"""Unit tests for point and directional lights.

Tests cover:
- Adding lights and validation
- Direction-to-light vectors
- Radiance with inverse-square falloff
"""

import pytest
import taichi as ti


def _light_query(idx, point):
    """Return (direction_to_light, radiance) for light idx at a point."""
    from rtcore.scene.lights import get_direction_to_light, get_radiance, vec3

    direction = ti.field(dtype=ti.math.vec3, shape=())
    radiance = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel():
        p = vec3(point[0], point[1], point[2])
        direction[None] = get_direction_to_light(idx, p)
        radiance[None] = get_radiance(idx, p)

    test_kernel()
    d = direction[None]
    r = radiance[None]
    return (float(d[0]), float(d[1]), float(d[2])), (float(r[0]), float(r[1]), float(r[2]))


class TestLightRegistry:
    def test_add_lights(self):
        from rtcore.scene.lights import add_directional_light, add_point_light, get_light_count

        assert add_point_light((0.0, 5.0, 5.0), 25.0) == 0
        assert add_directional_light((0.0, -1.0, 0.0), 1.0, (1.0, 0.9, 0.8)) == 1
        assert get_light_count() == 2

    def test_negative_intensity(self):
        from rtcore.scene.lights import add_point_light

        with pytest.raises(ValueError):
            add_point_light((0.0, 0.0, 0.0), -1.0)

    def test_negative_color(self):
        from rtcore.scene.lights import add_point_light

        with pytest.raises(ValueError):
            add_point_light((0.0, 0.0, 0.0), 1.0, (1.0, -0.5, 1.0))

    def test_zero_direction(self):
        from rtcore.scene.lights import add_directional_light

        with pytest.raises(ValueError):
            add_directional_light((0.0, 0.0, 0.0), 1.0)

    def test_capacity(self):
        from rtcore.scene.lights import MAX_LIGHTS, add_point_light

        for _ in range(MAX_LIGHTS):
            add_point_light((0.0, 1.0, 0.0), 1.0)
        with pytest.raises(RuntimeError):
            add_point_light((0.0, 1.0, 0.0), 1.0)

    def test_clear(self):
        from rtcore.scene.lights import add_point_light, clear_lights, get_light_count

        add_point_light((0.0, 1.0, 0.0), 1.0)
        clear_lights()
        assert get_light_count() == 0


class TestPointLight:
    """Tests for point light evaluation."""

    def test_direction_to_light(self):
        from rtcore.scene.lights import add_point_light

        idx = add_point_light((0.0, 5.0, 5.0), 25.0)
        direction, _ = _light_query(idx, (0.0, 1.0, 2.0))
        assert direction == pytest.approx((0.0, 4.0, 3.0), abs=1e-5)

    def test_inverse_square_radiance(self):
        """Test radiance = color * intensity / distance^2."""
        from rtcore.scene.lights import add_point_light

        idx = add_point_light((0.0, 5.0, 5.0), 25.0, (1.0, 0.5, 0.0))
        _, radiance = _light_query(idx, (0.0, 1.0, 2.0))
        # Distance is 5
        assert radiance == pytest.approx((1.0, 0.5, 0.0), abs=1e-5)

    def test_radiance_at_light_position_is_finite(self):
        from rtcore.scene.lights import MIN_DISTANCE_SQUARED, add_point_light

        idx = add_point_light((1.0, 1.0, 1.0), 2.0)
        _, radiance = _light_query(idx, (1.0, 1.0, 1.0))
        assert radiance[0] == pytest.approx(2.0 / MIN_DISTANCE_SQUARED, rel=1e-4)


class TestDirectionalLight:
    """Tests for directional light evaluation."""

    def test_direction_points_against_light_travel(self):
        from rtcore.scene.lights import DIRECTIONAL_LIGHT_DISTANCE, add_directional_light

        idx = add_directional_light((0.0, -2.0, 0.0), 3.0)
        direction, _ = _light_query(idx, (10.0, 0.0, -4.0))
        assert direction[0] == pytest.approx(0.0, abs=1e-3)
        assert direction[1] == pytest.approx(DIRECTIONAL_LIGHT_DISTANCE, rel=1e-5)
        assert direction[2] == pytest.approx(0.0, abs=1e-3)

    def test_radiance_has_no_falloff(self):
        from rtcore.scene.lights import add_directional_light

        idx = add_directional_light((1.0, -1.0, 0.0), 3.0, (1.0, 0.5, 0.25))
        _, near = _light_query(idx, (0.0, 0.0, 0.0))
        _, far = _light_query(idx, (100.0, -50.0, 7.0))
        assert near == pytest.approx((3.0, 1.5, 0.75), abs=1e-5)
        assert far == pytest.approx(near, abs=1e-5)
