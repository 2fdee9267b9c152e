"""Solid color material.

Returns its stored color for every hit regardless of geometry, light or view
direction. Useful for debugging and flat-shaded markers.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.materials.solid_color import add_solid_color_material
    >>> idx = add_solid_color_material((1.0, 0.0, 1.0))
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.func
def shade_solid_color(color: vec3) -> vec3:
    """Evaluate the solid color material (the color itself)."""
    return color


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_SOLID_COLOR_MATERIALS = 256

solid_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SOLID_COLOR_MATERIALS)
num_solid_color_materials = ti.field(dtype=ti.i32, shape=())


def clear_solid_color_materials() -> None:
    """Clear all solid color materials."""
    num_solid_color_materials[None] = 0


def add_solid_color_material(color: tuple[float, float, float]) -> int:
    """Add a solid color material to the registry.

    Args:
        color: The constant color as (R, G, B), each component in [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any color component is outside [0, 1].
    """
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"Color component {i} = {component} is outside [0, 1]")

    idx = num_solid_color_materials[None]
    if idx >= MAX_SOLID_COLOR_MATERIALS:
        raise RuntimeError(
            f"Maximum number of solid color materials ({MAX_SOLID_COLOR_MATERIALS}) exceeded"
        )

    solid_colors[idx] = vec3(color[0], color[1], color[2])
    num_solid_color_materials[None] = idx + 1
    return idx


def get_solid_color_material_count() -> int:
    """Get the number of solid color materials in the registry."""
    return int(num_solid_color_materials[None])


@ti.func
def get_solid_color(material_idx: ti.i32) -> vec3:
    return solid_colors[material_idx]
