"""Cook-Torrance microfacet material.

Combines a Lambert diffuse lobe with a GGX microfacet specular lobe:

    h        = normalize(v + l)
    f0       = 0.04 (gray) for dielectrics, albedo for metals
    F        = fresnel_schlick(h, v, f0)
    D        = normal_distribution_ggx(n, h, roughness)
    G        = geometry_smith(n, -v, -l, roughness)
    specular = F * D * G / (4 * dot(v, n) * dot(l, n))
    kd       = 1 - F for dielectrics, 0 for metals
    diffuse  = kd * albedo / pi

Both l and v are passed as the render kernel stores them: l runs from the
light toward the surface and v from the camera toward the surface, so the
geometry term flips them to point away from the surface. The product
dot(v, n) * dot(l, n) is positive for a lit, visible point; when the
specular denominator falls to SPECULAR_DENOM_EPSILON or below the specular
lobe contributes nothing.

Metalness is treated as a switch: exactly 0 is a dielectric, anything else
is a metal.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.materials.cook_torrance import add_cook_torrance_material
    >>> gold = add_cook_torrance_material((1.0, 0.782, 0.344), metalness=1.0, roughness=0.3)
"""

import taichi as ti
import taichi.math as tm

from rtcore.materials.brdf import (
    fresnel_schlick,
    geometry_smith,
    lambert_tinted,
    normal_distribution_ggx,
)

vec3 = tm.vec3

# Base reflectivity of common dielectrics
DIELECTRIC_F0 = 0.04

SPECULAR_DENOM_EPSILON = 1e-4


@ti.dataclass
class CookTorranceMaterial:
    """Cook-Torrance material properties.

    Attributes:
        albedo: Base color (RGB, each component in [0, 1]). For metals this
            is also the Fresnel reflectivity at normal incidence.
        metalness: 0 for dielectrics, 1 for metals.
        roughness: Perceptual roughness in (0, 1].
    """

    albedo: vec3
    metalness: ti.f32
    roughness: ti.f32


@ti.func
def shade_cook_torrance(
    mat: CookTorranceMaterial,
    light_dir: vec3,
    view_dir: vec3,
    normal: vec3,
) -> vec3:
    """Evaluate the Cook-Torrance material.

    Args:
        mat: Material properties.
        light_dir: Unit direction of incoming light (light toward surface).
        view_dir: Unit view ray direction (camera toward surface).
        normal: Unit surface normal.

    Returns:
        Diffuse plus specular reflected color.
    """
    half_sum = view_dir + light_dir
    half_len = tm.length(half_sum)
    h = -normal
    if half_len > 1e-6:
        h = half_sum / half_len

    is_metal = mat.metalness != 0.0
    f0 = vec3(DIELECTRIC_F0, DIELECTRIC_F0, DIELECTRIC_F0)
    if is_metal:
        f0 = mat.albedo

    f = fresnel_schlick(h, view_dir, f0)
    d = normal_distribution_ggx(normal, h, mat.roughness)
    g = geometry_smith(normal, -view_dir, -light_dir, mat.roughness)

    specular = vec3(0.0, 0.0, 0.0)
    denom = 4.0 * tm.dot(view_dir, normal) * tm.dot(light_dir, normal)
    if denom > SPECULAR_DENOM_EPSILON:
        specular = f * d * g / denom

    kd = vec3(0.0, 0.0, 0.0)
    if not is_metal:
        kd = vec3(1.0, 1.0, 1.0) - f

    return lambert_tinted(kd, mat.albedo) + specular


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_COOK_TORRANCE_MATERIALS = 256

cook_torrance_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_COOK_TORRANCE_MATERIALS)
cook_torrance_metalness = ti.field(dtype=ti.f32, shape=MAX_COOK_TORRANCE_MATERIALS)
cook_torrance_roughness = ti.field(dtype=ti.f32, shape=MAX_COOK_TORRANCE_MATERIALS)
num_cook_torrance_materials = ti.field(dtype=ti.i32, shape=())


def clear_cook_torrance_materials() -> None:
    """Clear all Cook-Torrance materials."""
    num_cook_torrance_materials[None] = 0


def add_cook_torrance_material(
    albedo: tuple[float, float, float],
    metalness: float,
    roughness: float,
) -> int:
    """Add a Cook-Torrance material to the registry.

    Args:
        albedo: Base color as (R, G, B), each component in [0, 1].
        metalness: Metalness in [0, 1]; 0 selects the dielectric branch.
        roughness: Roughness in (0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any parameter is out of range.
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"Albedo component {i} = {component} is outside [0, 1]")
    if metalness < 0.0 or metalness > 1.0:
        raise ValueError(f"Metalness {metalness} is outside [0, 1]")
    if roughness <= 0.0 or roughness > 1.0:
        raise ValueError(f"Roughness {roughness} is outside (0, 1]")

    idx = num_cook_torrance_materials[None]
    if idx >= MAX_COOK_TORRANCE_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Cook-Torrance materials ({MAX_COOK_TORRANCE_MATERIALS}) exceeded"
        )

    cook_torrance_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    cook_torrance_metalness[idx] = metalness
    cook_torrance_roughness[idx] = roughness
    num_cook_torrance_materials[None] = idx + 1
    return idx


def get_cook_torrance_material_count() -> int:
    """Get the number of Cook-Torrance materials in the registry."""
    return int(num_cook_torrance_materials[None])


@ti.func
def get_cook_torrance_material(material_idx: ti.i32) -> CookTorranceMaterial:
    return CookTorranceMaterial(
        albedo=cook_torrance_albedos[material_idx],
        metalness=cook_torrance_metalness[material_idx],
        roughness=cook_torrance_roughness[material_idx],
    )
