"""Unit tests for the ready-made scenes.

Tests cover:
- Primitive, material and light counts of each preset
- Material assignment in the reference scene
- Culling behavior of the reference triangles
- Triangle animation between frames
"""

import math

import pytest


class TestBasicScenes:
    def test_basic_scene(self):
        from rtcore.scene.presets import create_basic_scene

        scene = create_basic_scene()
        assert scene.get_material_count() == 1
        assert scene.get_plane_count() == 1
        assert scene.get_sphere_count() == 1
        assert scene.get_light_count() == 1
        assert scene.camera.origin == (0.0, 1.0, -5.0)
        assert scene.camera.fov_angle == 45.0

    def test_basic_scene_light_origin(self):
        from rtcore.scene.presets import create_basic_scene

        scene = create_basic_scene((1.0, 2.0, 3.0))
        assert scene.lights[0].vector == (1.0, 2.0, 3.0)

    def test_material_test_scene(self):
        from rtcore.scene.manager import MaterialType
        from rtcore.scene.presets import create_material_test_scene

        scene = create_material_test_scene()
        assert scene.get_material_count() == 3
        assert scene.get_plane_count() == 1
        assert scene.get_sphere_count() == 2
        assert scene.get_light_count() == 2
        assert scene.get_material_info(1).material_type == MaterialType.LAMBERT_PHONG
        assert scene.spheres[1].material_id == 1


class TestReferenceScene:
    """Tests for the Cook-Torrance reference scene."""

    def test_counts(self):
        from rtcore.scene.presets import create_reference_scene

        scene = create_reference_scene()
        assert scene.get_material_count() == 8
        assert scene.get_plane_count() == 5
        assert scene.get_sphere_count() == 6
        assert scene.get_mesh_count() == 3
        assert scene.get_light_count() == 3

    def test_materials(self):
        from rtcore.scene.manager import MaterialType
        from rtcore.scene.presets import create_reference_scene

        scene = create_reference_scene()
        roughness = [scene.get_material_info(i).params["roughness"] for i in range(6)]
        metalness = [scene.get_material_info(i).params["metalness"] for i in range(6)]

        assert roughness == [1.0, 0.6, 0.1, 1.0, 0.6, 0.1]
        assert metalness == [1.0, 1.0, 1.0, 0.0, 0.0, 0.0]
        assert scene.get_material_info(6).material_type == MaterialType.LAMBERT
        assert scene.get_material_info(7).material_type == MaterialType.LAMBERT

        # Metal spheres on the bottom row, plastic on top
        assert [s.material_id for s in scene.spheres] == [0, 1, 2, 3, 4, 5]
        assert all(s.center[1] == 1.0 for s in scene.spheres[:3])
        assert all(s.center[1] == 3.0 for s in scene.spheres[3:])
        assert all(p.material_id == 6 for p in scene.planes)

    def test_triangle_meshes(self):
        from rtcore.geometry.triangle import CullMode
        from rtcore.scene.presets import create_reference_scene

        scene = create_reference_scene()
        assert [m.cull_mode for m in scene.meshes] == [
            CullMode.BACK_FACE,
            CullMode.FRONT_FACE,
            CullMode.NO_CULLING,
        ]
        assert [m.translation for m in scene.meshes] == [
            (-1.75, 4.5, 0.0),
            (0.0, 4.5, 0.0),
            (1.75, 4.5, 0.0),
        ]
        assert all(m.material_id == 7 for m in scene.meshes)

    def test_custom_layout(self):
        from rtcore.scene.presets import ReferenceSceneLayout, create_reference_scene

        scene = create_reference_scene(ReferenceSceneLayout(sphere_radius=0.5, sphere_spacing=2.0))
        assert all(s.radius == 0.5 for s in scene.spheres)
        assert scene.spheres[2].center == (2.0, 1.0, 0.0)

    def test_culling_from_camera(self):
        """Test the back-face culled triangle is visible and the front-face culled one is not."""
        from rtcore.scene.presets import create_reference_scene

        scene = create_reference_scene()
        origin = scene.camera.origin

        def toward(target):
            return tuple(t - o for t, o in zip(target, origin))

        # Interior points of the left (back-face) and middle (front-face) triangles
        left = scene.closest_hit(origin, toward((-2.0, 5.0, 0.0)))
        middle = scene.closest_hit(origin, toward((-0.25, 5.0, 0.0)))

        assert left.material_id == 7
        assert left.point[2] == pytest.approx(0.0, abs=1e-3)
        # Middle triangle is culled; the ray reaches the back wall
        assert middle.material_id == 6
        assert middle.point[2] == pytest.approx(10.0, abs=1e-3)


class TestAnimation:
    """Tests for spinning the reference triangles."""

    @pytest.mark.parametrize(
        "total_time,expected",
        [(0.0, math.pi), (math.pi / 2, math.pi / 2), (math.pi, 0.0), (2 * math.pi, math.pi)],
    )
    def test_reference_yaw(self, total_time, expected):
        from rtcore.scene.presets import reference_yaw

        assert reference_yaw(total_time) == pytest.approx(expected, abs=1e-12)

    def test_animate_sets_yaw(self):
        from rtcore.scene.presets import animate_reference_scene, create_reference_scene

        scene = create_reference_scene()
        animate_reference_scene(scene, math.pi / 2)
        assert all(m.yaw == pytest.approx(math.pi / 2) for m in scene.meshes)

    def test_half_turn_hides_back_face_triangle(self):
        """Test a half turn shows the left triangle's back, which it culls."""
        from rtcore.scene.presets import animate_reference_scene, create_reference_scene

        scene = create_reference_scene()
        origin = scene.camera.origin
        # Interior point of the left triangle after a half turn about +Y
        target = (-1.5, 5.0, 0.0)
        direction = tuple(t - o for t, o in zip(target, origin))

        animate_reference_scene(scene, 0.0)
        assert scene.closest_hit(origin, direction).material_id == 6

        animate_reference_scene(scene, math.pi)
        # Back at yaw 0 the point lies on the hypotenuse; aim at the interior
        interior = tuple(t - o for t, o in zip((-2.0, 5.0, 0.0), origin))
        assert scene.closest_hit(origin, interior).material_id == 7
