"""Materials module.

Components:
    brdf: Lambert, Phong, Schlick Fresnel, GGX distribution, Smith geometry
    solid_color: Constant color material
    lambert: Ideal diffuse material
    lambert_phong: Diffuse plus Phong specular material
    cook_torrance: Diffuse plus GGX microfacet specular material

Each material module keeps its parameters in Taichi fields indexed by a
type-local index; SceneManager maps unified material IDs onto them. Those
modules allocate fields and are imported directly after ti.init().
"""

from .brdf import (
    DOT_EPSILON,
    fresnel_schlick,
    geometry_schlick_ggx,
    geometry_smith,
    lambert,
    lambert_tinted,
    normal_distribution_ggx,
    phong,
)

__all__ = [
    "DOT_EPSILON",
    "lambert",
    "lambert_tinted",
    "phong",
    "fresnel_schlick",
    "normal_distribution_ggx",
    "geometry_schlick_ggx",
    "geometry_smith",
]
