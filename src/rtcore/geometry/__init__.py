"""Geometric primitives and ray intersection tests.

Components:
    sphere: Sphere primitive with robust quadratic intersection
    plane: Infinite plane primitive
    triangle: Triangle primitive with back/front/no culling
    mesh: Indexed triangle meshes with a transform cache and a shared pool

Every primitive offers two Taichi functions: a detailed test returning a
HitRecord, and a boolean test for shadow rays:
    rec = hit_sphere(ray, sphere)
    blocked = hit_sphere_any(ray, sphere)

The mesh module allocates Taichi fields and is therefore not imported here;
import rtcore.geometry.mesh directly after ti.init().
"""

from .plane import Plane, hit_plane, hit_plane_any
from .sphere import Sphere, hit_sphere, hit_sphere_any
from .triangle import CullMode, Triangle, face_normal, hit_triangle, hit_triangle_any

__all__ = [
    "Sphere",
    "hit_sphere",
    "hit_sphere_any",
    "Plane",
    "hit_plane",
    "hit_plane_any",
    "CullMode",
    "Triangle",
    "face_normal",
    "hit_triangle",
    "hit_triangle_any",
]
