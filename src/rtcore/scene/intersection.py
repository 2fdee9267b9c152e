"""Scene-level primitive storage and ray queries.

Planes and spheres are stored in structure-of-arrays Taichi fields; triangle
meshes live in the mesh pool (rtcore.geometry.mesh). Two scene queries run
inside kernels:

    closest_hit(ray) -> HitRecord   minimum-t hit over planes, spheres, meshes
    any_hit(ray) -> int             1 as soon as any primitive blocks the ray

Both are brute-force linear scans. In closest_hit, a candidate replaces the
current result only when its t is strictly smaller, so on an exact tie the
first primitive in scan order (planes, then spheres, then meshes) wins.

Host-side wrappers (query_closest_hit, query_any_hit and the per-primitive
query functions) run the same Taichi functions from Python and return a
HitInfo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.scene.intersection import add_plane, add_sphere, query_closest_hit
    >>> add_plane((0, 0, 0), (0, 1, 0), material_id=0)
    >>> add_sphere((0, 1, 0), 0.75, material_id=1)
    >>> info = query_closest_hit((0, 1, -5), (0, 0, 1))
    >>> info.material_id
    1
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from rtcore.core.ray import T_MAX, T_MIN, HitRecord, Ray, make_miss_record
from rtcore.geometry.mesh import clear_meshes, hit_mesh, hit_mesh_any, num_meshes
from rtcore.geometry.plane import Plane, hit_plane, hit_plane_any
from rtcore.geometry.sphere import Sphere, hit_sphere, hit_sphere_any

vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]

# Maximum number of primitives supported in the scene
MAX_PLANES = 1024
MAX_SPHERES = 1024

# Plane storage: Structure of Arrays layout
plane_origins = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_material_ids = ti.field(dtype=ti.i32, shape=MAX_PLANES)
num_planes = ti.field(dtype=ti.i32, shape=())

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def _normalized(v: Vec3Tuple, name: str) -> Vec3Tuple:
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    if length < 1e-12:
        raise ValueError(f"{name} must be non-zero, got {tuple(v)}")
    return (v[0] / length, v[1] / length, v[2] / length)


def clear_scene() -> None:
    """Remove all planes, spheres and meshes from the scene."""
    num_planes[None] = 0
    num_spheres[None] = 0
    clear_meshes()


def add_plane(origin: Vec3Tuple, normal: Vec3Tuple, material_id: int = 0) -> int:
    """Add an infinite plane to the scene.

    Args:
        origin: Any point on the plane.
        normal: Plane normal; normalized before storing.
        material_id: The unified material ID for the plane.

    Returns:
        The index of the added plane.

    Raises:
        RuntimeError: If the maximum number of planes is exceeded.
        ValueError: If the normal has zero length.
    """
    unit_normal = _normalized(normal, "Plane normal")
    idx = num_planes[None]
    if idx >= MAX_PLANES:
        raise RuntimeError(f"Maximum number of planes ({MAX_PLANES}) exceeded")
    plane_origins[idx] = vec3(origin[0], origin[1], origin[2])
    plane_normals[idx] = vec3(unit_normal[0], unit_normal[1], unit_normal[2])
    plane_material_ids[idx] = material_id
    num_planes[None] = idx + 1
    return idx


def add_sphere(center: Vec3Tuple, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere.
        material_id: The unified material ID for the sphere.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
        ValueError: If the radius is not positive.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_material_ids[idx] = material_id
    num_spheres[None] = idx + 1
    return idx


def get_plane_count() -> int:
    """Get the number of planes in the scene."""
    return int(num_planes[None])


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


@ti.func
def get_plane(idx: ti.i32) -> Plane:
    return Plane(
        origin=plane_origins[idx],
        normal=plane_normals[idx],
        material_id=plane_material_ids[idx],
    )


@ti.func
def get_sphere(idx: ti.i32) -> Sphere:
    return Sphere(
        center=sphere_centers[idx],
        radius=sphere_radii[idx],
        material_id=sphere_material_ids[idx],
    )


# =============================================================================
# Scene Queries (Taichi)
# =============================================================================


@ti.func
def _closer(candidate: HitRecord, current: HitRecord) -> ti.i32:
    """Whether candidate should replace current as the closest hit."""
    result = 0
    if candidate.hit == 1:
        if current.hit == 0 or candidate.t < current.t:
            result = 1
    return result


@ti.func
def closest_hit(ray: Ray) -> HitRecord:
    """Find the closest intersection of a ray with the scene.

    Args:
        ray: The ray to trace, with its valid parameter range.

    Returns:
        The HitRecord with the smallest accepted t, or a miss record.
    """
    result = make_miss_record()

    for i in range(num_planes[None]):
        rec = hit_plane(ray, get_plane(i))
        if _closer(rec, result) == 1:
            result = rec

    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, get_sphere(i))
        if _closer(rec, result) == 1:
            result = rec

    for m in range(num_meshes[None]):
        rec = hit_mesh(ray, m)
        if _closer(rec, result) == 1:
            result = rec

    return result


@ti.func
def any_hit(ray: Ray) -> ti.i32:
    """Test if a ray hits any primitive in the scene (shadow ray query).

    Returns:
        1 if any primitive was hit inside the ray's range, 0 otherwise.
    """
    hit_any = 0

    for i in range(num_planes[None]):
        if hit_any == 0:
            hit_any = hit_plane_any(ray, get_plane(i))

    for i in range(num_spheres[None]):
        if hit_any == 0:
            hit_any = hit_sphere_any(ray, get_sphere(i))

    for m in range(num_meshes[None]):
        if hit_any == 0:
            hit_any = hit_mesh_any(ray, m)

    return hit_any


# =============================================================================
# Host Queries
# =============================================================================


@dataclass
class HitInfo:
    """Python-side copy of a HitRecord.

    Attributes:
        hit: Whether the ray hit anything.
        t: Ray parameter of the hit (0 on a miss).
        point: World-space hit point.
        normal: Unit surface normal.
        material_id: Unified material ID, -1 on a miss.
    """

    hit: bool
    t: float
    point: Vec3Tuple
    normal: Vec3Tuple
    material_id: int


_query_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_t_min = ti.field(dtype=ti.f32, shape=())
_query_t_max = ti.field(dtype=ti.f32, shape=())

_result_hit = ti.field(dtype=ti.i32, shape=())
_result_t = ti.field(dtype=ti.f32, shape=())
_result_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_result_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_result_material_id = ti.field(dtype=ti.i32, shape=())


@ti.func
def _load_query_ray() -> Ray:
    return Ray(
        origin=_query_origin[None],
        direction=_query_direction[None],
        t_min=_query_t_min[None],
        t_max=_query_t_max[None],
    )


@ti.func
def _store_result(rec: HitRecord):
    _result_hit[None] = rec.hit
    _result_t[None] = rec.t
    _result_point[None] = rec.point
    _result_normal[None] = rec.normal
    _result_material_id[None] = rec.material_id


# The single-iteration outer loop keeps the scan loops inside the queries
# nested, so they run serially in one task.


@ti.kernel
def _closest_hit_kernel():
    for _ in range(1):
        _store_result(closest_hit(_load_query_ray()))


@ti.kernel
def _any_hit_kernel():
    for _ in range(1):
        _result_hit[None] = any_hit(_load_query_ray())


@ti.kernel
def _plane_hit_kernel(idx: ti.i32):
    _store_result(hit_plane(_load_query_ray(), get_plane(idx)))


@ti.kernel
def _sphere_hit_kernel(idx: ti.i32):
    _store_result(hit_sphere(_load_query_ray(), get_sphere(idx)))


@ti.kernel
def _mesh_hit_kernel(idx: ti.i32):
    for _ in range(1):
        _store_result(hit_mesh(_load_query_ray(), idx))


def _set_query_ray(origin: Vec3Tuple, direction: Vec3Tuple, t_min: float, t_max: float) -> None:
    if not t_min < t_max:
        raise ValueError(f"t_min ({t_min}) must be smaller than t_max ({t_max})")
    unit_direction = _normalized(direction, "Ray direction")
    _query_origin[None] = [origin[0], origin[1], origin[2]]
    _query_direction[None] = [unit_direction[0], unit_direction[1], unit_direction[2]]
    _query_t_min[None] = t_min
    _query_t_max[None] = t_max


def _read_result() -> HitInfo:
    point = _result_point[None]
    normal = _result_normal[None]
    return HitInfo(
        hit=bool(_result_hit[None]),
        t=float(_result_t[None]),
        point=(float(point[0]), float(point[1]), float(point[2])),
        normal=(float(normal[0]), float(normal[1]), float(normal[2])),
        material_id=int(_result_material_id[None]),
    )


def query_closest_hit(
    origin: Vec3Tuple,
    direction: Vec3Tuple,
    t_min: float = T_MIN,
    t_max: float = T_MAX,
) -> HitInfo:
    """Run closest_hit for a single ray from Python.

    Args:
        origin: Ray origin.
        direction: Ray direction; normalized before tracing.
        t_min: Lower bound of the valid hit parameter.
        t_max: Upper bound of the valid hit parameter.

    Raises:
        ValueError: If the direction has zero length or t_min >= t_max.
    """
    _set_query_ray(origin, direction, t_min, t_max)
    _closest_hit_kernel()
    return _read_result()


def query_any_hit(
    origin: Vec3Tuple,
    direction: Vec3Tuple,
    t_min: float = T_MIN,
    t_max: float = T_MAX,
) -> bool:
    """Run any_hit for a single ray from Python."""
    _set_query_ray(origin, direction, t_min, t_max)
    _any_hit_kernel()
    return bool(_result_hit[None])


def query_plane_hit(idx: int, origin: Vec3Tuple, direction: Vec3Tuple,
                    t_min: float = T_MIN, t_max: float = T_MAX) -> HitInfo:
    """Intersect a single ray with the plane at ``idx``."""
    if not 0 <= idx < get_plane_count():
        raise IndexError(f"Plane index {idx} out of range")
    _set_query_ray(origin, direction, t_min, t_max)
    _plane_hit_kernel(idx)
    return _read_result()


def query_sphere_hit(idx: int, origin: Vec3Tuple, direction: Vec3Tuple,
                     t_min: float = T_MIN, t_max: float = T_MAX) -> HitInfo:
    """Intersect a single ray with the sphere at ``idx``."""
    if not 0 <= idx < get_sphere_count():
        raise IndexError(f"Sphere index {idx} out of range")
    _set_query_ray(origin, direction, t_min, t_max)
    _sphere_hit_kernel(idx)
    return _read_result()


def query_mesh_hit(idx: int, origin: Vec3Tuple, direction: Vec3Tuple,
                   t_min: float = T_MIN, t_max: float = T_MAX) -> HitInfo:
    """Intersect a single ray with the mesh at pool index ``idx``."""
    if not 0 <= idx < int(num_meshes[None]):
        raise IndexError(f"Mesh index {idx} out of range")
    _set_query_ray(origin, direction, t_min, t_max)
    _mesh_hit_kernel(idx)
    return _read_result()
