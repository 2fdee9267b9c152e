"""Lambert diffuse plus Phong specular material.

The reflected color is
    kd * diffuse_color / pi + ks * max(dot(r, -v), 0)^exponent

where r is the direction toward the light mirrored about the normal. The
render kernel passes the incoming light direction (light toward surface) and
the view ray direction (camera toward surface); both are negated here because
the Phong lobe expects vectors pointing away from the surface.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.materials.lambert_phong import add_lambert_phong_material
    >>> blue = add_lambert_phong_material((0.0, 0.0, 1.0), kd=1.0, ks=1.0, exponent=60.0)
"""

import taichi as ti
import taichi.math as tm

from rtcore.materials.brdf import lambert, phong

vec3 = tm.vec3


@ti.dataclass
class LambertPhongMaterial:
    """Lambert-Phong material properties.

    Attributes:
        diffuse_color: The diffuse color (RGB, each component in [0, 1]).
        kd: Diffuse reflection coefficient.
        ks: Specular reflection coefficient.
        exponent: Phong exponent (higher is a tighter highlight).
    """

    diffuse_color: vec3
    kd: ti.f32
    ks: ti.f32
    exponent: ti.f32


@ti.func
def shade_lambert_phong(
    mat: LambertPhongMaterial,
    light_dir: vec3,
    view_dir: vec3,
    normal: vec3,
) -> vec3:
    """Evaluate the Lambert-Phong material.

    Args:
        mat: Material properties.
        light_dir: Unit direction of incoming light (light toward surface).
        view_dir: Unit view ray direction (camera toward surface).
        normal: Unit surface normal.

    Returns:
        Diffuse plus specular reflected color.
    """
    diffuse = lambert(mat.kd, mat.diffuse_color)
    specular = phong(mat.ks, mat.exponent, -light_dir, -view_dir, normal)
    return diffuse + specular


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_LAMBERT_PHONG_MATERIALS = 256

lambert_phong_diffuse_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERT_PHONG_MATERIALS)
lambert_phong_kds = ti.field(dtype=ti.f32, shape=MAX_LAMBERT_PHONG_MATERIALS)
lambert_phong_kss = ti.field(dtype=ti.f32, shape=MAX_LAMBERT_PHONG_MATERIALS)
lambert_phong_exponents = ti.field(dtype=ti.f32, shape=MAX_LAMBERT_PHONG_MATERIALS)
num_lambert_phong_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambert_phong_materials() -> None:
    """Clear all Lambert-Phong materials."""
    num_lambert_phong_materials[None] = 0


def add_lambert_phong_material(
    diffuse_color: tuple[float, float, float],
    kd: float,
    ks: float,
    exponent: float,
) -> int:
    """Add a Lambert-Phong material to the registry.

    Args:
        diffuse_color: The diffuse color as (R, G, B), each component in [0, 1].
        kd: Diffuse reflection coefficient in [0, 1].
        ks: Specular reflection coefficient in [0, 1].
        exponent: Phong exponent, non-negative.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any parameter is out of range.
    """
    for i, component in enumerate(diffuse_color):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"Diffuse color component {i} = {component} is outside [0, 1]")
    if kd < 0.0 or kd > 1.0:
        raise ValueError(f"Diffuse reflectance kd = {kd} is outside [0, 1]")
    if ks < 0.0 or ks > 1.0:
        raise ValueError(f"Specular reflectance ks = {ks} is outside [0, 1]")
    if exponent < 0.0:
        raise ValueError(f"Phong exponent must be non-negative, got {exponent}")

    idx = num_lambert_phong_materials[None]
    if idx >= MAX_LAMBERT_PHONG_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambert-Phong materials ({MAX_LAMBERT_PHONG_MATERIALS}) exceeded"
        )

    lambert_phong_diffuse_colors[idx] = vec3(diffuse_color[0], diffuse_color[1], diffuse_color[2])
    lambert_phong_kds[idx] = kd
    lambert_phong_kss[idx] = ks
    lambert_phong_exponents[idx] = exponent
    num_lambert_phong_materials[None] = idx + 1
    return idx


def get_lambert_phong_material_count() -> int:
    """Get the number of Lambert-Phong materials in the registry."""
    return int(num_lambert_phong_materials[None])


@ti.func
def get_lambert_phong_material(material_idx: ti.i32) -> LambertPhongMaterial:
    return LambertPhongMaterial(
        diffuse_color=lambert_phong_diffuse_colors[material_idx],
        kd=lambert_phong_kds[material_idx],
        ks=lambert_phong_kss[material_idx],
        exponent=lambert_phong_exponents[material_idx],
    )
