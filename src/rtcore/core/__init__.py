"""Core rendering module.

Components:
    ray: Ray and HitRecord data structures
    color: Max-to-one scaling, 8-bit quantization and pixel packing
    renderer: Per-pixel render kernel, lighting modes and shadow toggle
    frame_loop: Frame driver with animation hook and FPS logging

The renderer and frame_loop modules allocate Taichi fields and are NOT
imported here. Import them directly after ti.init():
    from rtcore.core.frame_loop import FrameRenderer
"""

from .ray import (
    T_MAX,
    T_MIN,
    HitRecord,
    Ray,
    make_miss_record,
    make_ray,
    ray_at,
    vec3,
)

__all__ = [
    "Ray",
    "HitRecord",
    "make_ray",
    "make_miss_record",
    "ray_at",
    "vec3",
    "T_MIN",
    "T_MAX",
]
