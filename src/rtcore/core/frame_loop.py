"""Frame driver for repeated rendering of an animated scene.

This module provides a convenient wrapper around the render kernel that
supports:
- Rendering a SceneManager from its camera in one call
- A frame loop with an update hook between frames (animation)
- Frame-granular stop requests
- Lighting-mode cycling and shadow toggling
- FPS reporting once per second through logging

Stop requests are only honored between frames; a frame that has started
always completes.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.core.frame_loop import FrameRenderer
    >>> from rtcore.scene.presets import animate_reference_scene, create_reference_scene
    >>>
    >>> scene = create_reference_scene()
    >>> renderer = FrameRenderer(640, 480)
    >>> renderer.run(scene, num_frames=60, update=animate_reference_scene)
    >>> renderer.save_image("frame.png")
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from rtcore.camera.pinhole import setup_camera
from rtcore.config import RenderConfig
from rtcore.core.renderer import (
    LightingMode,
    cycle_lighting_mode,
    get_image_numpy,
    get_lighting_mode,
    get_shadows_enabled,
    render_frame,
    save_image,
    set_lighting_mode,
    set_shadows_enabled,
    setup_render_target,
    toggle_shadows,
)
from rtcore.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Update hook, receives (scene, total_seconds) before each frame
UpdateCallback = Callable[[SceneManager, float], None]

# Frame callback, receives (frame_index, frame_seconds) after each frame
FrameCallback = Callable[[int, float], None]

# Checked between frames; returning True ends the loop
StopCondition = Callable[[], bool]


class FrameRenderer:
    """Renders frames of a scene into the shared pixel buffer.

    The renderer keeps its own width and height and delegates to the global
    render target (Taichi fields), so only one FrameRenderer is active at a
    time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        frame_count: Number of frames rendered by this renderer.
    """

    def __init__(self, width: int, height: int, config: RenderConfig | None = None) -> None:
        """Initialize the frame renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            config: Optional settings for the initial lighting mode and
                shadow state. Its width and height are ignored.

        Raises:
            ValueError: If dimensions are invalid.
        """
        self._width = width
        self._height = height
        self._frame_count = 0
        setup_render_target(width, height)

        if config is not None:
            set_lighting_mode(config.lighting_mode)
            set_shadows_enabled(config.shadows_enabled)

    @classmethod
    def from_config(cls, config: RenderConfig) -> "FrameRenderer":
        """Create a renderer sized and configured from a RenderConfig."""
        return cls(config.width, config.height, config)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def lighting_mode(self) -> LightingMode:
        return get_lighting_mode()

    @lighting_mode.setter
    def lighting_mode(self, mode: LightingMode | int | str) -> None:
        set_lighting_mode(mode)

    @property
    def shadows_enabled(self) -> bool:
        return get_shadows_enabled()

    @shadows_enabled.setter
    def shadows_enabled(self, enabled: bool) -> None:
        set_shadows_enabled(enabled)

    def cycle_lighting_mode(self) -> LightingMode:
        """Advance to the next lighting mode and return it."""
        return cycle_lighting_mode()

    def toggle_shadows(self) -> bool:
        """Flip the shadow setting and return the new state."""
        return toggle_shadows()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and clear it.

        Raises:
            ValueError: If dimensions are invalid.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def render(self, scene: SceneManager) -> float:
        """Render one frame of the scene from its camera.

        Returns:
            Time spent on the frame in seconds.
        """
        start = time.perf_counter()
        setup_camera(scene.camera)
        render_frame()
        self._frame_count += 1
        return time.perf_counter() - start

    def frames(
        self,
        scene: SceneManager,
        num_frames: int | None = None,
        update: UpdateCallback | None = None,
    ) -> Generator[tuple[int, float], None, None]:
        """Render frames, yielding after each one.

        Stopping iteration between yields stops rendering, which makes this a
        natural fit for a UI loop that checks for a quit event.

        Args:
            scene: The scene to render.
            num_frames: Number of frames to render. None renders until the
                caller stops iterating.
            update: Optional hook called as update(scene, total_seconds)
                before each frame, e.g. animate_reference_scene.

        Yields:
            Tuple of (frame_index, frame_seconds).
        """
        start = time.perf_counter()
        fps_window_start = start
        fps_window_frames = 0
        index = 0

        while num_frames is None or index < num_frames:
            if update is not None:
                update(scene, time.perf_counter() - start)

            frame_seconds = self.render(scene)
            fps_window_frames += 1

            now = time.perf_counter()
            if now - fps_window_start >= 1.0:
                fps = fps_window_frames / (now - fps_window_start)
                logger.info("FPS: %.1f", fps)
                fps_window_start = now
                fps_window_frames = 0

            yield (index, frame_seconds)
            index += 1

    def run(
        self,
        scene: SceneManager,
        num_frames: int | None = None,
        update: UpdateCallback | None = None,
        callback: FrameCallback | None = None,
        stop: StopCondition | None = None,
    ) -> int:
        """Render frames until num_frames is reached or stop() returns True.

        Args:
            scene: The scene to render.
            num_frames: Maximum number of frames. None runs until stopped.
            update: Optional animation hook, see frames().
            callback: Optional hook called as callback(index, seconds) after
                each frame.
            stop: Optional condition checked before each frame.

        Returns:
            The number of frames rendered.

        Raises:
            ValueError: If both num_frames and stop are None.
        """
        if num_frames is None and stop is None:
            raise ValueError("run() needs num_frames or a stop condition")

        rendered = 0
        if stop is not None and stop():
            return rendered

        for index, frame_seconds in self.frames(scene, num_frames, update):
            rendered += 1
            if callback is not None:
                callback(index, frame_seconds)
            if stop is not None and stop():
                break

        logger.debug("Rendered %d frames", rendered)
        return rendered

    def get_image_numpy(self) -> npt.NDArray[np.uint8]:
        """Get the last frame as a (height, width, 3) uint8 array."""
        return get_image_numpy()

    def save_image(self, filepath: str) -> None:
        """Save the last frame (format from the file extension)."""
        save_image(filepath)

    def __repr__(self) -> str:
        return (
            f"FrameRenderer(width={self._width}, height={self._height}, "
            f"lighting_mode={self.lighting_mode.name}, "
            f"shadows_enabled={self.shadows_enabled})"
        )
