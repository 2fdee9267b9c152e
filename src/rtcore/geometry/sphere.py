"""Sphere primitive with robust ray-sphere intersection.

This module provides a Sphere dataclass and two intersection functions: a
detailed test that returns a HitRecord and a boolean test for shadow rays.
Roots are computed with the robust quadratic formula from Ray Tracing Gems to
avoid catastrophic cancellation when b^2 is nearly equal to 4ac.

Bounds policy: a root is accepted when it lies in the closed range
[ray.t_min, ray.t_max]. A tangent ray (zero discriminant) is a miss.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, 0), radius=1.0, material_id=0)
    >>> # Use hit_sphere(ray, sphere) within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from rtcore.core.ray import HitRecord, Ray, make_miss_record, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        material_id: Unified material ID used for shading.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def _sphere_root(ray: Ray, sphere: Sphere):
    """Find the accepted ray parameter for a sphere, if any.

    The smaller root is used unless it lies before ray.t_min, in which case
    the larger root is tried. The result must fall inside [t_min, t_max].

    Returns:
        Tuple of (did_hit, t).
    """
    oc = ray.origin - sphere.center

    # a*t^2 + 2*h*t + c = 0 (h is half of the traditional 'b')
    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    did_hit = 0
    t = 0.0

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        if t < ray.t_min:
            t = t1

        if t >= ray.t_min and t <= ray.t_max:
            did_hit = 1

    return did_hit, t


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere) -> HitRecord:
    """Test for ray-sphere intersection and fill a hit record.

    The ray-sphere intersection solves:
        |ray.origin + t * ray.direction - center|^2 = radius^2

    Args:
        ray: The ray to test, with its valid parameter range.
        sphere: The sphere to test against.

    Returns:
        A HitRecord with the outward normal normalize(point - center), or a
        miss record.
    """
    result = make_miss_record()
    did_hit, t = _sphere_root(ray, sphere)

    if did_hit == 1:
        point = ray_at(ray, t)
        result = HitRecord(
            hit=1,
            t=t,
            point=point,
            normal=tm.normalize(point - sphere.center),
            material_id=sphere.material_id,
        )

    return result


@ti.func
def hit_sphere_any(ray: Ray, sphere: Sphere) -> ti.i32:
    """Boolean ray-sphere test for occlusion queries.

    Returns:
        1 if the ray hits the sphere inside its parameter range, 0 otherwise.
    """
    did_hit, _ = _sphere_root(ray, sphere)
    return did_hit
