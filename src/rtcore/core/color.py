"""RGB color utilities for the final pixel write.

Colors are accumulated as unbounded linear RGB (vec3). Before a pixel is
written the accumulated color is sanitized, scaled by max-to-one, clamped and
quantized to 8 bits per channel. Pixels are stored packed as 0xRRGGBB.

Max-to-one keeps hue intact for over-bright colors: when any channel
exceeds 1 every channel is divided by the largest one, so the result is
``color / max(r, g, b, 1)``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.core.color import max_to_one, pack_rgb8
    >>> # Within a Taichi kernel:
    >>> # packed = pack_rgb8(max_to_one(color))
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def sanitize(color: vec3) -> vec3:
    """Replace NaN and infinite channels with zero and clamp negatives."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            result[c] = 0.0
    return result


@ti.func
def max_to_one(color: vec3) -> vec3:
    """Scale a color so that its largest channel does not exceed 1.

    Args:
        color: Non-negative linear RGB color.

    Returns:
        The color divided by max(r, g, b) when that maximum is above 1,
        otherwise the color unchanged.
    """
    max_value = tm.max(color.x, tm.max(color.y, color.z))
    result = color
    if max_value > 1.0:
        result = color / max_value
    return result


@ti.func
def quantize_channel(value: ti.f32) -> ti.i32:
    """Convert a channel in [0, 1] to an 8-bit value by truncation."""
    clamped = tm.clamp(value, 0.0, 1.0)
    return ti.cast(clamped * 255.0, ti.i32)


@ti.func
def pack_rgb8(color: vec3) -> ti.i32:
    """Quantize a color and pack it as 0xRRGGBB."""
    r = quantize_channel(color.x)
    g = quantize_channel(color.y)
    b = quantize_channel(color.z)
    return (r << 16) | (g << 8) | b


def unpack_rgb8(packed: npt.NDArray[np.int32]) -> npt.NDArray[np.uint8]:
    """Unpack an array of 0xRRGGBB integers into a trailing RGB axis.

    Args:
        packed: Integer array of any shape.

    Returns:
        uint8 array with shape packed.shape + (3,).
    """
    packed = np.asarray(packed, dtype=np.int64)
    rgb = np.stack(
        [(packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF],
        axis=-1,
    )
    return rgb.astype(np.uint8)
