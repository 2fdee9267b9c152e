"""Infinite plane primitive.

A plane is described by a point on it and a unit normal. The stored normal is
reported as-is for every hit and is never flipped toward the ray.

Bounds policy: a hit is accepted only for t strictly inside
(ray.t_min, ray.t_max). Rays parallel to the plane never hit, and NaN or
infinite parameters are treated as misses.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.geometry.plane import Plane, hit_plane
    >>> ground = Plane(origin=ti.math.vec3(0, 0, 0), normal=ti.math.vec3(0, 1, 0))
    >>> # Use hit_plane(ray, ground) within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from rtcore.core.ray import HitRecord, Ray, make_miss_record, ray_at

vec3 = tm.vec3


@ti.dataclass
class Plane:
    """An infinite plane.

    Attributes:
        origin: Any point on the plane.
        normal: Unit normal of the plane.
        material_id: Unified material ID used for shading.
    """

    origin: vec3
    normal: vec3
    material_id: ti.i32


@ti.func
def _plane_parameter(ray: Ray, plane: Plane):
    """Compute the accepted ray parameter for a plane, if any.

    Returns:
        Tuple of (did_hit, t).
    """
    did_hit = 0
    t = 0.0

    denom = tm.dot(ray.direction, plane.normal)
    if denom != 0.0:
        t = tm.dot(plane.origin - ray.origin, plane.normal) / denom
        # Comparisons with NaN are false, so a NaN t is rejected here
        if t > ray.t_min and t < ray.t_max and not tm.isinf(t):
            did_hit = 1

    return did_hit, t


@ti.func
def hit_plane(ray: Ray, plane: Plane) -> HitRecord:
    """Test for ray-plane intersection and fill a hit record.

    Solves t = dot(plane.origin - ray.origin, n) / dot(ray.direction, n).

    Args:
        ray: The ray to test, with its valid parameter range.
        plane: The plane to test against.

    Returns:
        A HitRecord with the plane's stored normal, or a miss record.
    """
    result = make_miss_record()
    did_hit, t = _plane_parameter(ray, plane)

    if did_hit == 1:
        result = HitRecord(
            hit=1,
            t=t,
            point=ray_at(ray, t),
            normal=plane.normal,
            material_id=plane.material_id,
        )

    return result


@ti.func
def hit_plane_any(ray: Ray, plane: Plane) -> ti.i32:
    """Boolean ray-plane test for occlusion queries."""
    did_hit, _ = _plane_parameter(ray, plane)
    return did_hit
