"""Unit tests for the pinhole camera module.

Tests cover:
- Camera validation
- Camera-to-world basis for yaw and pitch
- Row-vector transform helpers
- Primary ray generation for center and corner pixels
"""

import math

import numpy as np
import pytest
import taichi as ti


def _primary_ray(px, py, width, height):
    """Return (origin, direction) of the primary ray for one pixel."""
    from rtcore.camera.pinhole import get_primary_ray

    origin = ti.field(dtype=ti.math.vec3, shape=())
    direction = ti.field(dtype=ti.math.vec3, shape=())
    t_range = ti.field(dtype=ti.f32, shape=2)

    @ti.kernel
    def test_kernel():
        ray = get_primary_ray(px, py, width, height)
        origin[None] = ray.origin
        direction[None] = ray.direction
        t_range[0] = ray.t_min
        t_range[1] = ray.t_max

    test_kernel()
    o = origin[None]
    d = direction[None]
    return (
        (float(o[0]), float(o[1]), float(o[2])),
        (float(d[0]), float(d[1]), float(d[2])),
        (float(t_range[0]), float(t_range[1])),
    )


class TestCameraDescription:
    def test_defaults(self):
        from rtcore.camera.pinhole import Camera

        camera = Camera()
        assert camera.origin == (0.0, 0.0, 0.0)
        assert camera.fov_angle == 90.0
        assert camera.fov_scale == pytest.approx(1.0)

    @pytest.mark.parametrize("fov", [0.0, -10.0, 180.0, 200.0])
    def test_invalid_fov(self, fov):
        from rtcore.camera.pinhole import Camera

        with pytest.raises(ValueError):
            Camera(fov_angle=fov)


class TestCameraToWorld:
    """Tests for the camera basis."""

    def test_default_orientation(self):
        from rtcore.camera.pinhole import Camera, camera_to_world

        m = camera_to_world(Camera(origin=(1.0, 2.0, 3.0)))
        np.testing.assert_allclose(m[0, :3], [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(m[1, :3], [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(m[2, :3], [0.0, 0.0, 1.0], atol=1e-12)
        np.testing.assert_allclose(m[3], [1.0, 2.0, 3.0, 1.0], atol=1e-12)
        np.testing.assert_allclose(m[:3, 3], [0.0, 0.0, 0.0])

    def test_yaw_turns_right(self):
        from rtcore.camera.pinhole import Camera, camera_to_world

        m = camera_to_world(Camera(yaw=math.pi / 2))
        np.testing.assert_allclose(m[2, :3], [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(m[0, :3], [0.0, 0.0, -1.0], atol=1e-12)
        np.testing.assert_allclose(m[1, :3], [0.0, 1.0, 0.0], atol=1e-12)

    def test_positive_pitch_looks_up(self):
        from rtcore.camera.pinhole import Camera, camera_to_world

        m = camera_to_world(Camera(pitch=0.3))
        forward = m[2, :3]
        assert forward[1] == pytest.approx(math.sin(0.3))
        # Basis stays orthonormal
        np.testing.assert_allclose(m[:3, :3] @ m[:3, :3].T, np.identity(3), atol=1e-12)

    def test_looking_straight_down(self):
        from rtcore.camera.pinhole import Camera, camera_to_world

        m = camera_to_world(Camera(pitch=-math.pi / 2))
        np.testing.assert_allclose(m[2, :3], [0.0, -1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(m[0, :3], [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(m[:3, :3] @ m[:3, :3].T, np.identity(3), atol=1e-12)


class TestTransformHelpers:
    def test_transform_vector_ignores_translation(self):
        from rtcore.camera.pinhole import Camera, camera_to_world, transform_vector

        m = camera_to_world(Camera(origin=(5.0, 5.0, 5.0), yaw=math.pi / 2))
        np.testing.assert_allclose(transform_vector(m, [0.0, 0.0, 1.0]), [1.0, 0.0, 0.0], atol=1e-12)

    def test_transform_point_applies_translation(self):
        from rtcore.camera.pinhole import Camera, camera_to_world, transform_point

        m = camera_to_world(Camera(origin=(5.0, 5.0, 5.0), yaw=math.pi / 2))
        np.testing.assert_allclose(transform_point(m, [0.0, 0.0, 2.0]), [7.0, 5.0, 5.0], atol=1e-12)


class TestPrimaryRays:
    """Tests for ray generation in Taichi scope."""

    def test_camera_info(self):
        from rtcore.camera.pinhole import Camera, get_camera_info, setup_camera

        setup_camera(Camera(origin=(0.0, 1.0, -5.0), fov_angle=90.0))
        info = get_camera_info()
        assert info["origin"] == pytest.approx((0.0, 1.0, -5.0))
        assert info["forward"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)
        assert info["fov_scale"] == pytest.approx(1.0, rel=1e-6)

    def test_center_pixel_looks_forward(self):
        from rtcore.camera.pinhole import Camera, setup_camera
        from rtcore.core.ray import T_MAX, T_MIN

        setup_camera(Camera(origin=(0.0, 1.0, -5.0), fov_angle=45.0))
        origin, direction, t_range = _primary_ray(1, 1, 3, 3)

        assert origin == pytest.approx((0.0, 1.0, -5.0), abs=1e-6)
        assert direction == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)
        assert t_range[0] == pytest.approx(T_MIN)
        assert t_range[1] == pytest.approx(T_MAX)

    def test_top_left_pixel(self):
        """Test py = 0 is the top row and px = 0 the left column."""
        from rtcore.camera.pinhole import Camera, setup_camera

        setup_camera(Camera(fov_angle=90.0))
        _, direction, _ = _primary_ray(0, 0, 2, 2)

        n = math.sqrt(1.5)
        assert direction == pytest.approx((-0.5 / n, 0.5 / n, 1.0 / n), abs=1e-5)

    def test_aspect_ratio_widens_horizontally(self):
        from rtcore.camera.pinhole import Camera, setup_camera

        setup_camera(Camera(fov_angle=90.0))
        # 4x2 image: left column center is x = -0.75 * aspect 2
        _, direction, _ = _primary_ray(0, 0, 4, 2)

        n = math.sqrt(1.5 * 1.5 + 0.5 * 0.5 + 1.0)
        assert direction == pytest.approx((-1.5 / n, 0.5 / n, 1.0 / n), abs=1e-5)

    def test_direction_is_unit_length(self):
        from rtcore.camera.pinhole import Camera, setup_camera

        setup_camera(Camera(fov_angle=60.0, yaw=0.7, pitch=-0.3))
        _, d, _ = _primary_ray(5, 17, 32, 24)
        assert math.sqrt(d[0] ** 2 + d[1] ** 2 + d[2] ** 2) == pytest.approx(1.0, abs=1e-5)
