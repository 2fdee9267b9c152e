"""Taichi-based CPU ray tracer.

This package renders scenes of spheres, planes and triangle meshes with
direct lighting from point and directional lights. Every pixel is shaded by
a single primary ray, one shadow ray per light and one of four material
models built from a small BRDF library.

Subpackages:
    core: Ray and hit record types, color utilities, render kernel, frame loop
    geometry: Sphere, plane, triangle and mesh intersection tests
    materials: BRDF library and the four material models
    scene: Primitive storage, scene queries, lights, scene manager, presets
    camera: Yaw/pitch pinhole camera and primary ray generation
    preview: Image export

Modules that allocate Taichi fields (scene storage, materials, renderer)
must be imported after ``ti.init`` has been called, e.g. through
``rtcore.config.init_taichi``.
"""

__version__ = "0.1.0"
