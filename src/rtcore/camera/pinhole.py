"""Yaw/pitch pinhole camera and primary ray generation.

The camera is described by an origin, a horizontal yaw and vertical pitch
(radians), and a vertical field of view in degrees. Its camera-to-world
transform uses the row-vector convention: the rows are right, up, forward
and origin, so a camera-space direction d maps to ``d @ M[:3, :3]``.

    forward = (cos(pitch) * sin(yaw), sin(pitch), cos(pitch) * cos(yaw))
    right   = normalize(cross(world_up, forward))
    up      = cross(forward, right)

With yaw = pitch = 0 the camera looks down +Z with +Y up and +X right.

Primary rays are generated per pixel (px, py), with py = 0 the top row:

    x = (2 * (px + 0.5) / width - 1) * aspect * tan(fov / 2)
    y = (1 - 2 * (py + 0.5) / height) * tan(fov / 2)
    direction = normalize(transform_vector(M, (x, y, 1)))

The basis is computed once per frame on the host by setup_camera and kept in
Taichi fields for the kernel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.camera.pinhole import Camera, setup_camera
    >>> camera = Camera(origin=(0.0, 1.0, -5.0), fov_angle=45.0)
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from rtcore.core.ray import T_MAX, T_MIN, Ray, make_ray

vec3 = tm.vec3

WORLD_UP = np.array([0.0, 1.0, 0.0])

# =============================================================================
# Camera Description
# =============================================================================


@dataclass
class Camera:
    """A pinhole camera.

    Attributes:
        origin: Camera position in world space (x, y, z).
        fov_angle: Vertical field of view in degrees, in (0, 180).
        yaw: Rotation about +Y in radians; 0 looks down +Z.
        pitch: Rotation above the horizon in radians.
    """

    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    fov_angle: float = 90.0
    yaw: float = 0.0
    pitch: float = 0.0

    def __post_init__(self) -> None:
        if not 0.0 < self.fov_angle < 180.0:
            raise ValueError(f"fov_angle must be in (0, 180) degrees, got {self.fov_angle}")

    @property
    def fov_scale(self) -> float:
        """tan(fov / 2), the half-height of the image plane at unit distance."""
        return math.tan(math.radians(self.fov_angle) / 2.0)


def camera_forward(camera: Camera) -> npt.NDArray[np.float64]:
    """Unit view direction for the camera's yaw and pitch."""
    cp = math.cos(camera.pitch)
    return np.array(
        [cp * math.sin(camera.yaw), math.sin(camera.pitch), cp * math.cos(camera.yaw)]
    )


def camera_to_world(camera: Camera) -> npt.NDArray[np.float64]:
    """Build the 4x4 camera-to-world matrix (row-vector convention).

    Returns:
        Matrix whose rows are right, up, forward (w = 0) and origin (w = 1).
    """
    forward = camera_forward(camera)
    right = np.cross(WORLD_UP, forward)
    right_len = np.linalg.norm(right)
    if right_len < 1e-8:
        # Looking straight up or down; fall back to the yaw-only right vector
        right = np.array([math.cos(camera.yaw), 0.0, -math.sin(camera.yaw)])
    else:
        right = right / right_len
    up = np.cross(forward, right)

    matrix = np.identity(4)
    matrix[0, :3] = right
    matrix[1, :3] = up
    matrix[2, :3] = forward
    matrix[3, :3] = camera.origin
    return matrix


def transform_vector(matrix: npt.ArrayLike, v: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Transform a direction (no translation) by a row-vector 4x4 matrix."""
    m = np.asarray(matrix, dtype=np.float64)
    return np.asarray(v, dtype=np.float64) @ m[:3, :3]


def transform_point(matrix: npt.ArrayLike, p: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Transform a point (with translation) by a row-vector 4x4 matrix."""
    m = np.asarray(matrix, dtype=np.float64)
    return np.asarray(p, dtype=np.float64) @ m[:3, :3] + m[3, :3]


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_fov_scale = ti.field(dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload the camera basis for the next frame.

    Call once per frame, before the render kernel runs.

    Args:
        camera: The camera to render from.
    """
    matrix = camera_to_world(camera)
    _camera_right[None] = matrix[0, :3].tolist()
    _camera_up[None] = matrix[1, :3].tolist()
    _camera_forward[None] = matrix[2, :3].tolist()
    _camera_origin[None] = matrix[3, :3].tolist()
    _camera_fov_scale[None] = camera.fov_scale


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_primary_ray(px: ti.i32, py: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the primary ray through the center of pixel (px, py).

    Args:
        px: Pixel column (0 = left).
        py: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray from the camera origin with range [T_MIN, T_MAX].
    """
    w = ti.cast(width, ti.f32)
    h = ti.cast(height, ti.f32)
    aspect = w / h
    fov = _camera_fov_scale[None]

    x = (2.0 * (ti.cast(px, ti.f32) + 0.5) / w - 1.0) * aspect * fov
    y = (1.0 - 2.0 * (ti.cast(py, ti.f32) + 0.5) / h) * fov

    direction = x * _camera_right[None] + y * _camera_up[None] + _camera_forward[None]
    return make_ray(_camera_origin[None], tm.normalize(direction), T_MIN, T_MAX)


@ti.func
def get_camera_origin() -> vec3:
    return _camera_origin[None]


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, right, up, forward and fov_scale.
    """

    def _tuple(field) -> tuple[float, float, float]:
        v = field[None]
        return (float(v[0]), float(v[1]), float(v[2]))

    return {
        "origin": _tuple(_camera_origin),
        "right": _tuple(_camera_right),
        "up": _tuple(_camera_up),
        "forward": _tuple(_camera_forward),
        "fov_scale": float(_camera_fov_scale[None]),
    }
