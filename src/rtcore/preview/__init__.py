"""Preview module for rendered output.

Components:
    export: Pillow-based export of 8-bit frames (PNG, BMP)

Example:
    >>> from rtcore.preview import save_png
    >>> save_png(image, "frame.png")
"""

from rtcore.preview.export import load_image, save_image, save_png

__all__ = [
    "save_image",
    "save_png",
    "load_image",
]
