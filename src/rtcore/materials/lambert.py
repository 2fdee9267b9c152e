"""Lambert (ideal diffuse) material.

The reflected color does not depend on the light or view direction:
    f_r = kd * diffuse_color / pi

The cosine term is applied by the render kernel, not by the material.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.materials.lambert import add_lambert_material
    >>> red = add_lambert_material((1.0, 0.0, 0.0), kd=1.0)
"""

import taichi as ti
import taichi.math as tm

from rtcore.materials.brdf import lambert

vec3 = tm.vec3


@ti.dataclass
class LambertMaterial:
    """Lambert material properties.

    Attributes:
        diffuse_color: The diffuse color (RGB, each component in [0, 1]).
        kd: The diffuse reflection coefficient.
    """

    diffuse_color: vec3
    kd: ti.f32


@ti.func
def shade_lambert(kd: ti.f32, diffuse_color: vec3) -> vec3:
    """Evaluate the Lambert material.

    Args:
        kd: Diffuse reflection coefficient.
        diffuse_color: Diffuse color (RGB).

    Returns:
        kd * diffuse_color / pi.
    """
    return lambert(kd, diffuse_color)


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_LAMBERT_MATERIALS = 256

lambert_diffuse_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERT_MATERIALS)
lambert_kds = ti.field(dtype=ti.f32, shape=MAX_LAMBERT_MATERIALS)
num_lambert_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambert_materials() -> None:
    """Clear all Lambert materials.

    Resets the material count to zero. Existing data in the fields is
    overwritten when new materials are added.
    """
    num_lambert_materials[None] = 0


def add_lambert_material(diffuse_color: tuple[float, float, float], kd: float = 1.0) -> int:
    """Add a Lambert material to the registry.

    Args:
        diffuse_color: The diffuse color as (R, G, B), each component in [0, 1].
        kd: The diffuse reflection coefficient in [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any color component or kd is outside [0, 1].
    """
    for i, component in enumerate(diffuse_color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Diffuse color component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    if kd < 0.0 or kd > 1.0:
        raise ValueError(f"Diffuse reflectance kd = {kd} is outside [0, 1]")

    idx = num_lambert_materials[None]
    if idx >= MAX_LAMBERT_MATERIALS:
        raise RuntimeError(f"Maximum number of Lambert materials ({MAX_LAMBERT_MATERIALS}) exceeded")

    lambert_diffuse_colors[idx] = vec3(diffuse_color[0], diffuse_color[1], diffuse_color[2])
    lambert_kds[idx] = kd
    num_lambert_materials[None] = idx + 1
    return idx


def get_lambert_material_count() -> int:
    """Get the number of Lambert materials in the registry."""
    return int(num_lambert_materials[None])


@ti.func
def get_lambert_material(material_idx: ti.i32) -> LambertMaterial:
    """Get the properties of a Lambert material by index."""
    return LambertMaterial(
        diffuse_color=lambert_diffuse_colors[material_idx],
        kd=lambert_kds[material_idx],
    )


@ti.func
def shade_lambert_by_id(material_idx: ti.i32) -> vec3:
    """Evaluate a registered Lambert material."""
    mat = get_lambert_material(material_idx)
    return shade_lambert(mat.kd, mat.diffuse_color)
