"""Image export utilities for rendered frames.

Frames leave the renderer as 8-bit RGB arrays, so export is a direct write
through Pillow with no tone mapping or gamma step.

Supported formats:
    - PNG
    - BMP (the screenshot format of the interactive viewer)
    - anything else Pillow infers from the file extension

Example:
    >>> from rtcore.preview.export import save_png
    >>> from rtcore.core.frame_loop import FrameRenderer
    >>>
    >>> renderer = FrameRenderer(640, 480)
    >>> renderer.render(scene)
    >>> save_png(renderer.get_image_numpy(), "frame.png")
"""

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def _to_pil(image: npt.NDArray[np.uint8]) -> PILImage.Image:
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected a uint8 image, got {image.dtype}")
    return PILImage.fromarray(np.ascontiguousarray(image))


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an 8-bit RGB image, choosing the format from the extension.

    Args:
        image: Array of shape (H, W, 3) with dtype uint8.
        filepath: Output path, e.g. "frame.png" or "RayTracing_Buffer.bmp".

    Raises:
        ValueError: If the array is not an (H, W, 3) uint8 image.
    """
    _to_pil(image).save(filepath)


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an 8-bit RGB image as PNG regardless of the extension."""
    _to_pil(image).save(filepath, format="PNG")


def load_image(filepath: str | Path) -> npt.NDArray[np.uint8]:
    """Read an image back as an (H, W, 3) uint8 array."""
    with PILImage.open(filepath) as pil_image:
        return np.asarray(pil_image.convert("RGB"), dtype=np.uint8)
