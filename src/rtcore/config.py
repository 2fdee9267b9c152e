"""Render configuration, Taichi backend setup and logging.

A RenderConfig collects the settings needed before a frame can be rendered:
image size, Taichi backend and thread count, the initial lighting mode and
shadow state, and the log level.

Example:
    >>> from rtcore.config import RenderConfig, init_taichi, setup_logging
    >>> config = RenderConfig.from_dict({"width": 320, "height": 240, "num_threads": 4})
    >>> setup_logging(config.log_level)
    >>> init_taichi(config)
    >>> from rtcore.core.frame_loop import FrameRenderer  # safe after ti.init
"""

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any

import taichi as ti

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LIGHTING_MODE_NAMES = ("observed_area", "radiance", "brdf", "combined")

_ARCHS = {
    "cpu": ti.cpu,
    "x64": ti.x64,
    "arm64": ti.arm64,
}


@dataclass
class RenderConfig:
    """Settings for a render session.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        arch: Taichi backend name ("cpu", "x64" or "arm64").
        num_threads: Size of the CPU worker pool. None uses all hardware threads.
        lighting_mode: Initial lighting mode name (see LIGHTING_MODE_NAMES).
        shadows_enabled: Whether shadow rays are cast.
        log_level: Log level name for setup_logging.
    """

    width: int = 640
    height: int = 480
    arch: str = "cpu"
    num_threads: int | None = None
    lighting_mode: str = "combined"
    shadows_enabled: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.arch not in _ARCHS:
            raise ValueError(f"Unknown Taichi arch: {self.arch}")
        if self.num_threads is not None and self.num_threads <= 0:
            raise ValueError(f"num_threads must be positive, got {self.num_threads}")
        self.lighting_mode = self.lighting_mode.lower()
        if self.lighting_mode not in LIGHTING_MODE_NAMES:
            raise ValueError(f"Unknown lighting mode: {self.lighting_mode}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        """Build a config from a dictionary, ignoring unknown keys.

        Raises:
            ValueError: If a value is out of range.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def init_taichi(config: RenderConfig | None = None, **kwargs: Any) -> None:
    """Initialize the Taichi runtime for rendering.

    The outermost loop of every render kernel is distributed over a CPU
    thread pool; ``num_threads`` caps its size.

    Args:
        config: Render settings. Defaults to RenderConfig().
        **kwargs: Extra keyword arguments forwarded to ti.init.
    """
    if config is None:
        config = RenderConfig()

    init_args: dict[str, Any] = {"arch": _ARCHS[config.arch]}
    if config.num_threads is not None:
        init_args["cpu_max_num_threads"] = config.num_threads
    init_args.update(kwargs)

    ti.init(**init_args)
    logger.info(
        "Taichi initialized (arch=%s, threads=%s)",
        config.arch,
        config.num_threads if config.num_threads is not None else "auto",
    )


def setup_logging(level: str = "INFO", log_format: str = LOG_FORMAT) -> logging.Logger:
    """Configure the ``rtcore`` logger with a console handler.

    Calling this more than once replaces the previous handler instead of
    stacking a new one.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Format string for the console handler.

    Returns:
        The configured package logger.
    """
    package_logger = logging.getLogger("rtcore")
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    package_logger.setLevel(numeric_level)

    for handler in list(package_logger.handlers):
        if getattr(handler, "_rtcore_handler", False):
            package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter(log_format))
    console_handler._rtcore_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(console_handler)

    return package_logger
