"""Scene storage, lights and ray-scene queries.

Components:
    intersection: Plane and sphere storage, closest-hit and any-hit queries
    lights: Point and directional lights
    manager: Unified scene manager coordinating primitives and materials
    presets: Ready-made scenes (basic, material test, reference)

Scene data is organized for the render kernel:
    - Structure-of-Arrays layout for geometric data
    - A unified material ID space tagged by material type
    - Brute-force linear scans, no acceleration structure

Every module here allocates Taichi fields, so nothing is imported at package
level. Import the modules directly after ti.init():
    from rtcore.scene.manager import SceneManager
"""
