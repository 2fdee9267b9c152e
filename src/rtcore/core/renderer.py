"""Per-pixel render kernel with direct lighting and hard shadows.

This module implements the frame kernel. One kernel launch renders a whole
frame; its outermost loop runs over every pixel index and Taichi spreads the
iterations over the CPU thread pool. Each iteration writes exactly one pixel
slot and only reads scene data.

Per pixel:
    1. Build the primary ray through the pixel center.
    2. Find the closest hit. A miss leaves the pixel black.
    3. For each light: cast a shadow ray toward the light (when shadows are
       enabled) and skip the light if it is blocked or behind the surface.
    4. Accumulate the light's contribution for the current lighting mode.
    5. Sanitize, scale by max-to-one, quantize and pack as 0xRRGGBB.

Lighting modes:
    OBSERVED_AREA: cos(theta) as gray
    RADIANCE: incoming radiance only
    BRDF: material response only
    COMBINED: radiance * BRDF * cos(theta)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.core.renderer import (
    ...     get_image_numpy, render_frame, setup_render_target
    ... )
    >>> from rtcore.camera.pinhole import setup_camera
    >>> from rtcore.scene.presets import create_basic_scene
    >>>
    >>> scene = create_basic_scene()
    >>> setup_camera(scene.camera)
    >>> setup_render_target(320, 240)
    >>> render_frame()
    >>> image = get_image_numpy()  # (240, 320, 3) uint8
"""

import logging
from enum import IntEnum

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from rtcore.camera.pinhole import get_primary_ray
from rtcore.core.color import max_to_one, pack_rgb8, sanitize, unpack_rgb8
from rtcore.core.ray import T_MIN, HitRecord, make_ray
from rtcore.materials.cook_torrance import get_cook_torrance_material, shade_cook_torrance
from rtcore.materials.lambert import shade_lambert_by_id
from rtcore.materials.lambert_phong import get_lambert_phong_material, shade_lambert_phong
from rtcore.materials.solid_color import get_solid_color, shade_solid_color
from rtcore.preview.export import save_image as export_image
from rtcore.scene.intersection import any_hit, closest_hit
from rtcore.scene.lights import get_direction_to_light, get_radiance, num_lights
from rtcore.scene.manager import MaterialType, get_material_type, get_material_type_index

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Offset along the normal for shadow ray origins, also their t_min
SHADOW_EPSILON = T_MIN


class LightingMode(IntEnum):
    """What each unoccluded light contributes to a pixel."""

    OBSERVED_AREA = 0
    RADIANCE = 1
    BRDF = 2
    COMBINED = 3


# =============================================================================
# Render Settings
# =============================================================================

_lighting_mode = ti.field(dtype=ti.i32, shape=())
_shadows_enabled = ti.field(dtype=ti.i32, shape=())


def reset_render_settings() -> None:
    """Restore the defaults: COMBINED lighting, shadows enabled."""
    _lighting_mode[None] = int(LightingMode.COMBINED)
    _shadows_enabled[None] = 1


def _as_lighting_mode(mode: LightingMode | int | str) -> LightingMode:
    if isinstance(mode, str):
        try:
            return LightingMode[mode.upper()]
        except KeyError:
            raise ValueError(f"Unknown lighting mode: {mode}") from None
    return LightingMode(mode)


def set_lighting_mode(mode: LightingMode | int | str) -> None:
    """Select the lighting mode.

    Args:
        mode: A LightingMode, its integer value, or its name
            (case-insensitive, e.g. "brdf").

    Raises:
        ValueError: If the mode is unknown.
    """
    lighting_mode = _as_lighting_mode(mode)
    _lighting_mode[None] = int(lighting_mode)
    logger.info("Lighting mode: %s", lighting_mode.name)


def get_lighting_mode() -> LightingMode:
    return LightingMode(int(_lighting_mode[None]))


def cycle_lighting_mode() -> LightingMode:
    """Advance to the next lighting mode.

    OBSERVED_AREA -> RADIANCE -> BRDF -> COMBINED -> OBSERVED_AREA.

    Returns:
        The new lighting mode.
    """
    next_mode = LightingMode((get_lighting_mode() + 1) % len(LightingMode))
    set_lighting_mode(next_mode)
    return next_mode


def set_shadows_enabled(enabled: bool) -> None:
    """Turn shadow rays on or off."""
    _shadows_enabled[None] = 1 if enabled else 0
    logger.info("Shadows %s", "enabled" if enabled else "disabled")


def get_shadows_enabled() -> bool:
    return bool(_shadows_enabled[None])


def toggle_shadows() -> bool:
    """Flip the shadow setting.

    Returns:
        Whether shadows are enabled after the toggle.
    """
    enabled = not get_shadows_enabled()
    set_shadows_enabled(enabled)
    return enabled


reset_render_settings()

# =============================================================================
# Render Target (Pixel Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Packed 0xRRGGBB pixels, indexed [px, py] with py = 0 the top row
_pixels = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Result slot for render_pixel
_probe_color = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the pixel buffer.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the pixel buffer to black."""
    _pixels.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _shade_material(material_id: ti.i32, light_dir: vec3, view_dir: vec3, normal: vec3) -> vec3:
    """Evaluate the BRDF of a material by unified material ID.

    Args:
        material_id: Unified material ID of the hit surface.
        light_dir: Unit direction from the light toward the surface.
        view_dir: Unit view ray direction.
        normal: Unit surface normal.

    Returns:
        The reflected color, or black for an unknown material ID.
    """
    mat_type = get_material_type(material_id)
    type_idx = get_material_type_index(material_id)

    result = vec3(0.0, 0.0, 0.0)
    if mat_type == int(MaterialType.SOLID_COLOR):
        result = shade_solid_color(get_solid_color(type_idx))
    elif mat_type == int(MaterialType.LAMBERT):
        result = shade_lambert_by_id(type_idx)
    elif mat_type == int(MaterialType.LAMBERT_PHONG):
        mat = get_lambert_phong_material(type_idx)
        result = shade_lambert_phong(mat, light_dir, view_dir, normal)
    elif mat_type == int(MaterialType.COOK_TORRANCE):
        mat = get_cook_torrance_material(type_idx)
        result = shade_cook_torrance(mat, light_dir, view_dir, normal)

    return result


# =============================================================================
# Shading
# =============================================================================


@ti.func
def _shade_hit(rec: HitRecord, view_dir: vec3) -> vec3:
    """Sum the direct lighting of every light at a hit point."""
    color = vec3(0.0, 0.0, 0.0)
    mode = _lighting_mode[None]
    shadows = _shadows_enabled[None]
    shadow_origin = rec.point + rec.normal * SHADOW_EPSILON

    for i in range(num_lights[None]):
        to_light = get_direction_to_light(i, shadow_origin)
        distance = tm.length(to_light)

        if distance > 0.0:
            light_dir = to_light / distance

            occluded = 0
            if shadows == 1:
                shadow_ray = make_ray(shadow_origin, light_dir, SHADOW_EPSILON, distance)
                occluded = any_hit(shadow_ray)

            cos_theta = tm.dot(rec.normal, light_dir)
            if occluded == 0 and cos_theta > 0.0:
                if mode == int(LightingMode.OBSERVED_AREA):
                    color += vec3(cos_theta, cos_theta, cos_theta)
                elif mode == int(LightingMode.RADIANCE):
                    color += get_radiance(i, rec.point)
                elif mode == int(LightingMode.BRDF):
                    color += _shade_material(rec.material_id, -light_dir, view_dir, rec.normal)
                else:
                    radiance = get_radiance(i, rec.point)
                    brdf = _shade_material(rec.material_id, -light_dir, view_dir, rec.normal)
                    color += radiance * brdf * cos_theta

    return color


@ti.func
def _shade_pixel(px: ti.i32, py: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    """Compute the final (max-to-one scaled) color of one pixel."""
    ray = get_primary_ray(px, py, width, height)
    rec = closest_hit(ray)

    # Background is black
    color = vec3(0.0, 0.0, 0.0)
    if rec.hit == 1:
        color = _shade_hit(rec, ray.direction)

    return max_to_one(sanitize(color))


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_frame(width: ti.i32, height: ti.i32):
    """Render every pixel of the active image in parallel."""
    for idx in range(width * height):
        px = idx % width
        py = idx // width
        _pixels[px, py] = pack_rgb8(_shade_pixel(px, py, width, height))


@ti.kernel
def _render_single_pixel(px: ti.i32, py: ti.i32, width: ti.i32, height: ti.i32):
    # Serial wrapper loop, see rtcore.scene.intersection
    for _ in range(1):
        _probe_color[None] = _shade_pixel(px, py, width, height)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_frame() -> None:
    """Render one frame into the pixel buffer.

    Upload the camera with setup_camera() first. Returns once every pixel
    has been written.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    _render_frame(width, height)


def render_pixel(px: int, py: int) -> tuple[float, float, float]:
    """Compute the color of a single pixel without touching the buffer.

    This is a Python-callable function for testing and debugging.

    Args:
        px: Pixel column (0 = left).
        py: Pixel row (0 = top).

    Returns:
        Tuple of (R, G, B) after max-to-one scaling, before quantization.

    Raises:
        RuntimeError: If render target has not been set up.
        IndexError: If the pixel lies outside the active image.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    if not (0 <= px < width and 0 <= py < height):
        raise IndexError(f"Pixel ({px}, {py}) outside {width}x{height} image")

    _render_single_pixel(px, py, width, height)
    color = _probe_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def get_packed_pixels() -> npt.NDArray[np.int32]:
    """Get the packed 0xRRGGBB pixels as a (height, width) array."""
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return np.ascontiguousarray(_pixels.to_numpy()[:width, :height].T)


def get_image_numpy() -> npt.NDArray[np.uint8]:
    """Get the rendered frame as an 8-bit RGB image.

    Returns:
        NumPy array of shape (height, width, 3) with dtype uint8; row 0 is
        the top of the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    return unpack_rgb8(get_packed_pixels())


def save_image(filepath: str) -> None:
    """Save the rendered frame to a file (format from the extension).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    export_image(get_image_numpy(), filepath)
