"""Ready-made scenes.

This module provides factory functions for the scenes used to check the
renderer by eye and in tests:

- Basic scene: one red Lambert sphere on a ground plane, one white point
  light. Small enough to reason about pixel by pixel.
- Material test scene: a red Lambert sphere and a blue Lambert-Phong sphere
  side by side on a yellow ground plane, lit by two point lights.
- Reference scene: a box of five gray-blue Lambert planes, two rows of
  Cook-Torrance spheres (metal on the bottom row, plastic on top, roughness
  decreasing from left to right), three single-triangle meshes with
  back-face, front-face and no culling, and three colored point lights.

The reference scene is animated by spinning its triangles about +Y with
``animate_reference_scene`` between frames.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.scene.presets import create_reference_scene, animate_reference_scene
    >>> scene = create_reference_scene()
    >>> animate_reference_scene(scene, total_time=0.5)
"""

import math
from dataclasses import dataclass

from rtcore.camera.pinhole import Camera
from rtcore.geometry.triangle import CullMode
from rtcore.scene.manager import SceneManager

Vec3Tuple = tuple[float, float, float]

# =============================================================================
# Colors
# =============================================================================

RED: Vec3Tuple = (1.0, 0.0, 0.0)
BLUE: Vec3Tuple = (0.0, 0.0, 1.0)
YELLOW: Vec3Tuple = (1.0, 1.0, 0.0)
WHITE: Vec3Tuple = (1.0, 1.0, 1.0)
GRAY_BLUE: Vec3Tuple = (0.49, 0.57, 0.57)
SILVER: Vec3Tuple = (0.972, 0.960, 0.915)
PLASTIC_GRAY: Vec3Tuple = (0.75, 0.75, 0.75)


# =============================================================================
# Basic Scene
# =============================================================================


def create_basic_scene(light_origin: Vec3Tuple = (0.0, 5.0, 5.0)) -> SceneManager:
    """Create a single red sphere resting above a ground plane.

    Args:
        light_origin: Position of the white point light (intensity 25).

    Returns:
        A SceneManager holding the scene, with its camera at (0, 1, -5)
        looking down +Z with a 45 degree field of view.
    """
    scene = SceneManager(Camera(origin=(0.0, 1.0, -5.0), fov_angle=45.0))
    red = scene.add_lambert_material(RED, kd=1.0)
    scene.add_plane((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), red)
    scene.add_sphere((0.0, 1.0, 0.0), 0.75, red)
    scene.add_point_light(light_origin, 25.0, WHITE)
    return scene


# =============================================================================
# Material Test Scene
# =============================================================================


def create_material_test_scene() -> SceneManager:
    """Create the Lambert versus Lambert-Phong comparison scene.

    Material IDs: 0 red Lambert, 1 blue Lambert-Phong (ks 1, exponent 60),
    2 yellow Lambert.
    """
    scene = SceneManager(Camera(origin=(0.0, 1.0, -5.0), fov_angle=45.0))

    lambert_red = scene.add_lambert_material(RED, kd=1.0)
    phong_blue = scene.add_lambert_phong_material(BLUE, kd=1.0, ks=1.0, exponent=60.0)
    lambert_yellow = scene.add_lambert_material(YELLOW, kd=1.0)

    scene.add_plane((0.0, 0.0, 10.0), (0.0, 1.0, 0.0), lambert_yellow)

    scene.add_sphere((-0.75, 1.0, 0.0), 1.0, lambert_red)
    scene.add_sphere((0.75, 1.0, 0.0), 1.0, phong_blue)

    scene.add_point_light((0.0, 5.0, 5.0), 25.0, WHITE)
    scene.add_point_light((0.0, 2.5, -5.0), 25.0, WHITE)
    return scene


# =============================================================================
# Reference Scene
# =============================================================================


@dataclass
class ReferenceSceneLayout:
    """Placement parameters for the reference scene.

    Attributes:
        sphere_radius: Radius of the six Cook-Torrance spheres.
        sphere_spacing: Horizontal distance between sphere centers.
        triangle_height: Height of the triangle row.
        base_triangle: Clockwise-wound triangle shared by the three meshes.
    """

    sphere_radius: float = 0.75
    sphere_spacing: float = 1.75
    triangle_height: float = 4.5
    base_triangle: tuple[Vec3Tuple, Vec3Tuple, Vec3Tuple] = (
        (-0.75, 1.5, 0.0),
        (0.75, 0.0, 0.0),
        (-0.75, 0.0, 0.0),
    )


# Five walls of the box: back, floor, ceiling, right, left
REFERENCE_PLANES: tuple[tuple[Vec3Tuple, Vec3Tuple], ...] = (
    ((0.0, 0.0, 10.0), (0.0, 0.0, -1.0)),
    ((0.0, 0.0, 0.0), (0.0, 1.0, 0.0)),
    ((0.0, 10.0, 0.0), (0.0, -1.0, 0.0)),
    ((5.0, 0.0, 10.0), (-1.0, 0.0, 0.0)),
    ((-5.0, 0.0, 0.0), (1.0, 0.0, 0.0)),
)

# (origin, intensity, color)
REFERENCE_LIGHTS: tuple[tuple[Vec3Tuple, float, Vec3Tuple], ...] = (
    ((0.0, 5.0, 5.0), 50.0, (1.0, 0.61, 0.45)),
    ((-2.5, 5.0, -5.0), 70.0, (1.0, 0.8, 0.45)),
    ((2.5, 2.5, -5.0), 50.0, (0.34, 0.47, 0.68)),
)

REFERENCE_CULL_MODES = (CullMode.BACK_FACE, CullMode.FRONT_FACE, CullMode.NO_CULLING)


def create_reference_scene(layout: ReferenceSceneLayout | None = None) -> SceneManager:
    """Create the Cook-Torrance reference scene.

    Material IDs 0-2 are metals with roughness 1.0, 0.6 and 0.1, IDs 3-5
    the matching plastics, ID 6 the gray-blue wall Lambert and ID 7 the white
    triangle Lambert. The meshes appear in ``scene.meshes`` in the order
    back-face, front-face, no culling, from left to right.

    Args:
        layout: Placement parameters. Uses the defaults if None.

    Returns:
        A SceneManager holding the scene, with its camera at (0, 3, -9).
    """
    if layout is None:
        layout = ReferenceSceneLayout()

    scene = SceneManager(Camera(origin=(0.0, 3.0, -9.0), fov_angle=45.0))

    roughnesses = (1.0, 0.6, 0.1)
    metals = [scene.add_cook_torrance_material(SILVER, 1.0, r) for r in roughnesses]
    plastics = [scene.add_cook_torrance_material(PLASTIC_GRAY, 0.0, r) for r in roughnesses]
    wall = scene.add_lambert_material(GRAY_BLUE, kd=1.0)
    white = scene.add_lambert_material(WHITE, kd=1.0)

    for origin, normal in REFERENCE_PLANES:
        scene.add_plane(origin, normal, wall)

    xs = (-layout.sphere_spacing, 0.0, layout.sphere_spacing)
    for x, material_id in zip(xs, metals):
        scene.add_sphere((x, 1.0, 0.0), layout.sphere_radius, material_id)
    for x, material_id in zip(xs, plastics):
        scene.add_sphere((x, 3.0, 0.0), layout.sphere_radius, material_id)

    v0, v1, v2 = layout.base_triangle
    for x, cull_mode in zip(xs, REFERENCE_CULL_MODES):
        mesh = scene.add_triangle(v0, v1, v2, white, cull_mode)
        mesh.translate(x, layout.triangle_height, 0.0)
    scene.update_transforms()

    for origin, intensity, color in REFERENCE_LIGHTS:
        scene.add_point_light(origin, intensity, color)

    return scene


def reference_yaw(total_time: float) -> float:
    """Yaw of the reference triangles at ``total_time`` seconds.

    Swings between pi (t = 0) and 0 (t = pi) and back.
    """
    return (math.cos(total_time) + 1.0) / 2.0 * math.pi


def animate_reference_scene(scene: SceneManager, total_time: float) -> None:
    """Spin every mesh of the scene to the reference yaw and re-upload them."""
    yaw = reference_yaw(total_time)
    for mesh in scene.meshes:
        mesh.rotate_y(yaw)
    scene.update_transforms()
