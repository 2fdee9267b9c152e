"""Point and directional lights.

Lights are stored in structure-of-arrays Taichi fields. The render kernel
needs two things from a light:

    get_direction_to_light(idx, origin)  unnormalized vector toward the light
    get_radiance(idx, target)            incoming radiance at a point

A directional light sits infinitely far away along -direction. Its
direction-to-light vector is -direction scaled by DIRECTIONAL_LIGHT_DISTANCE,
so a shadow ray bounded by that length never misses a real occluder. Point
light radiance falls off with the squared distance, floored at
MIN_DISTANCE_SQUARED.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.scene.lights import add_point_light
    >>> add_point_light((0.0, 5.0, 5.0), intensity=25.0, color=(1.0, 1.0, 1.0))
"""

import math
from enum import IntEnum

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]


class LightType(IntEnum):
    """Enumeration of supported light types."""

    POINT = 0
    DIRECTIONAL = 1


# Stands in for infinity without overflowing f32 math (1e10^2 < f32 max)
DIRECTIONAL_LIGHT_DISTANCE = 1e10

MIN_DISTANCE_SQUARED = 1e-4

MAX_LIGHTS = 64

light_types = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
# Origin for point lights, unit direction for directional lights
light_vectors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Remove all lights."""
    num_lights[None] = 0


def _add_light(
    light_type: LightType,
    vector: Vec3Tuple,
    intensity: float,
    color: Vec3Tuple,
) -> int:
    if intensity < 0.0:
        raise ValueError(f"Light intensity must be non-negative, got {intensity}")
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(f"Light color component {i} = {component} is negative")

    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")

    light_types[idx] = int(light_type)
    light_vectors[idx] = vec3(vector[0], vector[1], vector[2])
    light_intensities[idx] = intensity
    light_colors[idx] = vec3(color[0], color[1], color[2])
    num_lights[None] = idx + 1
    return idx


def add_point_light(
    origin: Vec3Tuple,
    intensity: float,
    color: Vec3Tuple = (1.0, 1.0, 1.0),
) -> int:
    """Add a point light.

    Args:
        origin: Light position.
        intensity: Radiant intensity, non-negative.
        color: Light color as (R, G, B), non-negative.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
        ValueError: If intensity or a color component is negative.
    """
    return _add_light(LightType.POINT, origin, intensity, color)


def add_directional_light(
    direction: Vec3Tuple,
    intensity: float,
    color: Vec3Tuple = (1.0, 1.0, 1.0),
) -> int:
    """Add a directional light.

    Args:
        direction: Direction the light travels in; normalized before storing.
        intensity: Irradiance scale, non-negative.
        color: Light color as (R, G, B), non-negative.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
        ValueError: If the direction is zero or a parameter is negative.
    """
    length = math.sqrt(sum(c * c for c in direction))
    if length < 1e-12:
        raise ValueError("Directional light direction must be non-zero")
    unit = (direction[0] / length, direction[1] / length, direction[2] / length)
    return _add_light(LightType.DIRECTIONAL, unit, intensity, color)


def get_light_count() -> int:
    """Get the number of lights."""
    return int(num_lights[None])


@ti.func
def get_direction_to_light(idx: ti.i32, origin: vec3) -> vec3:
    """Unnormalized vector from origin toward light ``idx``.

    Its length is the distance to the light, which bounds the shadow ray.
    """
    result = -light_vectors[idx] * DIRECTIONAL_LIGHT_DISTANCE
    if light_types[idx] == int(LightType.POINT):
        result = light_vectors[idx] - origin
    return result


@ti.func
def get_radiance(idx: ti.i32, target: vec3) -> vec3:
    """Radiance arriving at ``target`` from light ``idx``.

    Directional lights deliver color * intensity everywhere. Point lights
    divide by the squared distance, floored at MIN_DISTANCE_SQUARED.
    """
    radiance = light_colors[idx] * light_intensities[idx]
    if light_types[idx] == int(LightType.POINT):
        to_light = light_vectors[idx] - target
        dist_sq = tm.max(tm.dot(to_light, to_light), MIN_DISTANCE_SQUARED)
        radiance = radiance / dist_sq
    return radiance
