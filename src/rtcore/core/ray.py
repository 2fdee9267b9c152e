"""Ray and hit record data structures.

This module provides the Ray and HitRecord dataclasses shared by every
intersection routine, plus the default ray parameter range. The helpers are
Taichi functions so they can be called from kernels.

A ray carries its own valid parameter range [t_min, t_max]. Each primitive
decides whether its bounds are open or closed; see the geometry modules.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.core.ray import Ray, ray_at
    >>> ray = Ray(
    ...     origin=ti.math.vec3(0.0, 0.0, 0.0),
    ...     direction=ti.math.vec3(0.0, 0.0, 1.0),
    ...     t_min=1e-4,
    ...     t_max=1e10,
    ... )
    >>> # Use ray_at(ray, 5.0) within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Default parameter range for primary rays
T_MIN = 1e-4
T_MAX = 1e10


@ti.dataclass
class Ray:
    """A ray with origin, unit direction and valid parameter range.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The unit direction vector of the ray (vec3).
        t_min: Lower bound of the valid hit parameter.
        t_max: Upper bound of the valid hit parameter.
    """

    origin: vec3
    direction: vec3
    t_min: ti.f32
    t_max: ti.f32


@ti.dataclass
class HitRecord:
    """Result of a ray-primitive or ray-scene intersection query.

    Attributes:
        hit: 1 if the ray hit something, 0 on a miss.
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: World-space intersection point. Only valid if hit == 1.
        normal: Unit surface normal at the intersection. Only valid if hit == 1.
        material_id: Unified material ID of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


@ti.func
def make_ray(origin: vec3, direction: vec3, t_min: ti.f32, t_max: ti.f32) -> Ray:
    """Create a ray from origin, direction and parameter bounds.

    Args:
        origin: The starting point of the ray.
        direction: The direction vector (should be normalized).
        t_min: Lower bound of the valid hit parameter.
        t_max: Upper bound of the valid hit parameter.

    Returns:
        A new Ray instance.
    """
    return Ray(origin=origin, direction=direction, t_min=t_min, t_max=t_max)


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )
