"""Triangle primitive with winding-based culling.

Triangles store their three vertices, a precomputed face normal and a cull
mode. The face normal (not an interpolated one) is reported for every hit.

Culling is decided from nDotV = dot(ray.direction, normal):
    - BACK_FACE rejects nDotV > 0 (ray travels along the normal)
    - FRONT_FACE rejects nDotV < 0 (ray travels against the normal)
    - NO_CULLING never rejects on winding

The boolean test used for shadow rays evaluates the same policy on the
inverted sign, so a shadow ray traced from a surface toward a light probes
the winding that faces away from the light. A ray exactly parallel to the
triangle plane (nDotV == 0) is always a miss.

Bounds policy: the closed range [ray.t_min, ray.t_max].

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.geometry.triangle import CullMode, Triangle, hit_triangle
    >>> # Use hit_triangle(ray, tri) within a Taichi kernel
"""

from enum import IntEnum

import numpy as np
import taichi as ti
import taichi.math as tm

from rtcore.core.ray import HitRecord, Ray, make_miss_record, ray_at

vec3 = tm.vec3


class CullMode(IntEnum):
    """Which triangle windings are eligible for intersection."""

    BACK_FACE = 0
    FRONT_FACE = 1
    NO_CULLING = 2


@ti.dataclass
class Triangle:
    """A single triangle.

    Attributes:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
        normal: Unit face normal, normalize(cross(v1 - v0, v2 - v0)).
        cull_mode: One of the CullMode values.
        material_id: Unified material ID used for shading.
    """

    v0: vec3
    v1: vec3
    v2: vec3
    normal: vec3
    cull_mode: ti.i32
    material_id: ti.i32


def face_normal(v0, v1, v2) -> np.ndarray:
    """Compute the unit face normal of a triangle on the host.

    Args:
        v0: First vertex as (x, y, z).
        v1: Second vertex as (x, y, z).
        v2: Third vertex as (x, y, z).

    Returns:
        normalize(cross(v1 - v0, v2 - v0)) as a float32 array.

    Raises:
        ValueError: If the triangle is degenerate (zero area).
    """
    a = np.asarray(v0, dtype=np.float64)
    n = np.cross(np.asarray(v1, dtype=np.float64) - a, np.asarray(v2, dtype=np.float64) - a)
    norm = np.linalg.norm(n)
    if norm < 1e-12:
        raise ValueError("Degenerate triangle has no face normal")
    return (n / norm).astype(np.float32)


@ti.func
def _is_culled(cull_mode: ti.i32, n_dot_v: ti.f32) -> ti.i32:
    culled = 0
    if cull_mode == int(CullMode.BACK_FACE):
        if n_dot_v > 0.0:
            culled = 1
    elif cull_mode == int(CullMode.FRONT_FACE):
        if n_dot_v < 0.0:
            culled = 1
    return culled


@ti.func
def _inside_edges(point: vec3, tri: Triangle) -> ti.i32:
    """Check that a point on the triangle plane lies inside all three edges."""
    inside = 1
    if tm.dot(tm.cross(tri.v1 - tri.v0, point - tri.v0), tri.normal) < 0.0:
        inside = 0
    if tm.dot(tm.cross(tri.v2 - tri.v1, point - tri.v1), tri.normal) < 0.0:
        inside = 0
    if tm.dot(tm.cross(tri.v0 - tri.v2, point - tri.v2), tri.normal) < 0.0:
        inside = 0
    return inside


@ti.func
def _triangle_parameter(ray: Ray, tri: Triangle, shadow: ti.template()):
    """Compute the accepted ray parameter for a triangle, if any.

    Args:
        ray: The ray to test.
        tri: The triangle to test against.
        shadow: Compile-time flag. When true the cull test is mirrored.

    Returns:
        Tuple of (did_hit, t).
    """
    did_hit = 0
    t = 0.0

    n_dot_v = tm.dot(ray.direction, tri.normal)
    if n_dot_v != 0.0:
        culled = 0
        if ti.static(shadow):
            culled = _is_culled(tri.cull_mode, -n_dot_v)
        else:
            culled = _is_culled(tri.cull_mode, n_dot_v)

        if culled == 0:
            t = tm.dot(tri.v0 - ray.origin, tri.normal) / n_dot_v
            if t >= ray.t_min and t <= ray.t_max:
                did_hit = _inside_edges(ray_at(ray, t), tri)

    return did_hit, t


@ti.func
def hit_triangle(ray: Ray, tri: Triangle) -> HitRecord:
    """Test for ray-triangle intersection and fill a hit record.

    Args:
        ray: The ray to test, with its valid parameter range.
        tri: The triangle to test against.

    Returns:
        A HitRecord carrying the face normal, or a miss record.
    """
    result = make_miss_record()
    did_hit, t = _triangle_parameter(ray, tri, False)

    if did_hit == 1:
        result = HitRecord(
            hit=1,
            t=t,
            point=ray_at(ray, t),
            normal=tri.normal,
            material_id=tri.material_id,
        )

    return result


@ti.func
def hit_triangle_any(ray: Ray, tri: Triangle) -> ti.i32:
    """Boolean ray-triangle test for shadow rays (mirrored culling)."""
    did_hit, _ = _triangle_parameter(ray, tri, True)
    return did_hit
