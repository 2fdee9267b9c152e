"""Triangle meshes with a host-side transform cache and a shared Taichi pool.

A TriangleMesh owns its untransformed source data (vertex positions, an index
buffer and one normal per triangle) plus a transform made of independent
scale, rotation (yaw) and translation components. ``update_transforms``
recomputes the transformed positions and normals into fresh arrays, swaps
them in, and uploads them to the mesh pool if the mesh is registered. The
cache is never partially updated, and kernels never run while an upload is
in progress because Taichi kernel launches are synchronous.

The transform follows the row-vector convention: a point p maps to
``p @ S @ R @ T``, so scaling happens first, then rotation, then translation.
Normals are mapped with the inverse-transpose of the linear part and
renormalized. A mirroring transform (negative determinant) reverses the
triangle winding, so its normals are also negated to keep them consistent
with the transformed vertex order.

All registered meshes share one structure-of-arrays pool: world-space
positions, per-triangle vertex indices (already offset into the pool), and
per-triangle world-space normals. A small per-mesh table stores each mesh's
triangle range, cull mode and material ID.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.geometry.mesh import TriangleMesh, add_triangle_mesh
    >>> mesh = TriangleMesh.from_triangles(
    ...     [((-0.75, 1.5, 0.0), (0.75, 0.0, 0.0), (-0.75, 0.0, 0.0))],
    ...     material_id=0,
    ... )
    >>> mesh.translate(0.0, 4.5, 0.0)
    >>> mesh.update_transforms()
    >>> add_triangle_mesh(mesh)
"""

import logging
import math
from collections.abc import Iterable, Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from rtcore.core.ray import HitRecord, Ray, make_miss_record
from rtcore.geometry.triangle import (
    CullMode,
    Triangle,
    face_normal,
    hit_triangle,
    hit_triangle_any,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]


# =============================================================================
# Host-side mesh
# =============================================================================


class TriangleMesh:
    """An indexed triangle mesh with a cached world-space copy.

    Attributes:
        cull_mode: Winding policy applied to every triangle of the mesh.
        material_id: Unified material ID shared by every triangle.
    """

    def __init__(
        self,
        positions: npt.ArrayLike,
        indices: npt.ArrayLike,
        normals: npt.ArrayLike | None = None,
        cull_mode: CullMode = CullMode.BACK_FACE,
        material_id: int = 0,
    ) -> None:
        """Create a mesh from source vertex data.

        Args:
            positions: Vertex positions with shape (N, 3).
            indices: Flat index buffer, three indices per triangle.
            normals: One unit normal per triangle with shape (T, 3). Computed
                from the winding when omitted.
            cull_mode: Winding policy for intersection.
            material_id: Unified material ID.

        Raises:
            ValueError: If the arrays have the wrong shape, indices are out of
                range, or a triangle is degenerate when normals are computed.
        """
        self._positions = self._as_points(positions, "positions")
        self._indices = np.asarray(indices, dtype=np.int32).reshape(-1)

        if self._indices.size % 3 != 0:
            raise ValueError(
                f"Index buffer length {self._indices.size} is not a multiple of 3"
            )
        if self._indices.size > 0 and (
            self._indices.min() < 0 or self._indices.max() >= len(self._positions)
        ):
            raise ValueError("Index buffer references a vertex outside the position array")

        if normals is None:
            self._normals = self._compute_face_normals()
        else:
            self._normals = self._as_points(normals, "normals")
            if len(self._normals) != self.triangle_count:
                raise ValueError(
                    f"Expected {self.triangle_count} normals (one per triangle), "
                    f"got {len(self._normals)}"
                )

        self.cull_mode = CullMode(cull_mode)
        self.material_id = material_id

        self._scale: Vec3Tuple = (1.0, 1.0, 1.0)
        self._yaw = 0.0
        self._translation: Vec3Tuple = (0.0, 0.0, 0.0)

        self._transformed_positions = self._positions.copy()
        self._transformed_normals = self._normals.copy()

        # Pool slot, valid only while _pool_generation matches the pool's
        self._pool_index = -1
        self._pool_generation = -1

    @classmethod
    def from_triangles(
        cls,
        triangles: Iterable[Sequence[Vec3Tuple]],
        cull_mode: CullMode = CullMode.BACK_FACE,
        material_id: int = 0,
    ) -> "TriangleMesh":
        """Build a mesh from a list of (v0, v1, v2) vertex triples.

        Vertices are not shared between triangles.
        """
        mesh = cls(np.zeros((0, 3)), [], cull_mode=cull_mode, material_id=material_id)
        for v0, v1, v2 in triangles:
            mesh.append_triangle(v0, v1, v2)
        return mesh

    @staticmethod
    def _as_points(data: npt.ArrayLike, name: str) -> npt.NDArray[np.float32]:
        array = np.asarray(data, dtype=np.float32)
        if array.size == 0:
            return np.zeros((0, 3), dtype=np.float32)
        if array.ndim != 2 or array.shape[1] != 3:
            raise ValueError(f"{name} must have shape (N, 3), got {array.shape}")
        return array

    def _compute_face_normals(self) -> npt.NDArray[np.float32]:
        normals = np.zeros((self.triangle_count, 3), dtype=np.float32)
        for i, (a, b, c) in enumerate(self._indices.reshape(-1, 3)):
            normals[i] = face_normal(self._positions[a], self._positions[b], self._positions[c])
        return normals

    # =========================================================================
    # Source data
    # =========================================================================

    @property
    def positions(self) -> npt.NDArray[np.float32]:
        """Untransformed vertex positions, shape (N, 3)."""
        return self._positions

    @property
    def indices(self) -> npt.NDArray[np.int32]:
        """Flat index buffer."""
        return self._indices

    @property
    def normals(self) -> npt.NDArray[np.float32]:
        """Untransformed per-triangle normals, shape (T, 3)."""
        return self._normals

    @property
    def transformed_positions(self) -> npt.NDArray[np.float32]:
        """World-space vertex positions as of the last update_transforms()."""
        return self._transformed_positions

    @property
    def transformed_normals(self) -> npt.NDArray[np.float32]:
        """World-space triangle normals as of the last update_transforms()."""
        return self._transformed_normals

    @property
    def vertex_count(self) -> int:
        return len(self._positions)

    @property
    def triangle_count(self) -> int:
        return self._indices.size // 3

    @property
    def is_registered(self) -> bool:
        """Whether the mesh currently occupies a slot in the mesh pool."""
        return self._pool_index >= 0 and self._pool_generation == _pool_generation

    @property
    def pool_index(self) -> int:
        """Index of the mesh in the pool, or -1 if not registered."""
        return self._pool_index if self.is_registered else -1

    def append_triangle(self, v0: Vec3Tuple, v1: Vec3Tuple, v2: Vec3Tuple) -> None:
        """Append a triangle with its own three vertices.

        Raises:
            RuntimeError: If the mesh is already registered in the pool.
            ValueError: If the triangle is degenerate.
        """
        if self.is_registered:
            raise RuntimeError("Cannot append triangles to a mesh that is already in the scene")

        normal = face_normal(v0, v1, v2)
        start = len(self._positions)
        new_vertices = np.array([v0, v1, v2], dtype=np.float32)

        self._positions = np.concatenate([self._positions, new_vertices])
        self._indices = np.concatenate(
            [self._indices, np.array([start, start + 1, start + 2], dtype=np.int32)]
        )
        self._normals = np.concatenate([self._normals, normal.reshape(1, 3)])
        self._recompute_cache()

    # =========================================================================
    # Transform
    # =========================================================================

    def translate(self, x: float, y: float, z: float) -> None:
        """Set the translation component of the transform."""
        self._translation = (float(x), float(y), float(z))

    def rotate_y(self, yaw: float) -> None:
        """Set the rotation component to a rotation of ``yaw`` radians about +Y."""
        self._yaw = float(yaw)

    def scale(self, x: float, y: float, z: float) -> None:
        """Set the scale component of the transform.

        Negative factors mirror the mesh.

        Raises:
            ValueError: If any factor is zero.
        """
        if x == 0.0 or y == 0.0 or z == 0.0:
            raise ValueError(f"Scale factors must be non-zero, got ({x}, {y}, {z})")
        self._scale = (float(x), float(y), float(z))

    @property
    def translation(self) -> Vec3Tuple:
        return self._translation

    @property
    def yaw(self) -> float:
        return self._yaw

    @property
    def scale_factors(self) -> Vec3Tuple:
        return self._scale

    @property
    def transform(self) -> npt.NDArray[np.float64]:
        """The 4x4 world transform (row-vector convention): S @ R @ T."""
        scale = np.diag([*self._scale, 1.0])

        c = math.cos(self._yaw)
        s = math.sin(self._yaw)
        rotation = np.identity(4)
        rotation[0, 0] = c
        rotation[0, 2] = -s
        rotation[2, 0] = s
        rotation[2, 2] = c

        translation = np.identity(4)
        translation[3, :3] = self._translation

        return scale @ rotation @ translation

    def _recompute_cache(self) -> None:
        matrix = self.transform
        linear = matrix[:3, :3]

        positions = self._positions.astype(np.float64) @ linear + matrix[3, :3]

        normals = self._normals.astype(np.float64) @ np.linalg.inv(linear).T
        # A mirroring transform reverses the winding; keep normals on its side
        if np.linalg.det(linear) < 0.0:
            normals = -normals
        lengths = np.linalg.norm(normals, axis=1, keepdims=True)
        normals = np.divide(normals, lengths, out=np.zeros_like(normals), where=lengths > 0.0)

        # Swap in complete arrays only
        self._transformed_positions = positions.astype(np.float32)
        self._transformed_normals = normals.astype(np.float32)

    def update_transforms(self) -> None:
        """Recompute the world-space cache and upload it if registered."""
        self._recompute_cache()
        if self.is_registered:
            _upload_transformed(self)

    def __repr__(self) -> str:
        return (
            f"TriangleMesh(triangles={self.triangle_count}, "
            f"cull_mode={self.cull_mode.name}, material_id={self.material_id})"
        )


# =============================================================================
# Mesh pool (Taichi fields)
# =============================================================================

MAX_MESHES = 64
MAX_MESH_VERTICES = 65536
MAX_MESH_TRIANGLES = 65536

# World-space vertex positions of all registered meshes
mesh_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MESH_VERTICES)
# Vertex indices per triangle, already offset into mesh_positions
mesh_triangles = ti.Vector.field(3, dtype=ti.i32, shape=MAX_MESH_TRIANGLES)
# World-space face normal per triangle
mesh_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MESH_TRIANGLES)

# Per-mesh table
mesh_vertex_offsets = ti.field(dtype=ti.i32, shape=MAX_MESHES)
mesh_triangle_offsets = ti.field(dtype=ti.i32, shape=MAX_MESHES)
mesh_triangle_counts = ti.field(dtype=ti.i32, shape=MAX_MESHES)
mesh_cull_modes = ti.field(dtype=ti.i32, shape=MAX_MESHES)
mesh_material_ids = ti.field(dtype=ti.i32, shape=MAX_MESHES)

num_meshes = ti.field(dtype=ti.i32, shape=())
num_mesh_vertices = ti.field(dtype=ti.i32, shape=())
num_mesh_triangles = ti.field(dtype=ti.i32, shape=())

# Bumped on every clear so stale TriangleMesh handles stop uploading
_pool_generation = 0


@ti.kernel
def _upload_positions(offset: ti.i32, data: ti.types.ndarray()):
    for i in range(data.shape[0]):
        mesh_positions[offset + i] = vec3(data[i, 0], data[i, 1], data[i, 2])


@ti.kernel
def _upload_normals(offset: ti.i32, data: ti.types.ndarray()):
    for i in range(data.shape[0]):
        mesh_normals[offset + i] = vec3(data[i, 0], data[i, 1], data[i, 2])


@ti.kernel
def _upload_triangles(offset: ti.i32, vertex_offset: ti.i32, data: ti.types.ndarray()):
    for i in range(data.shape[0]):
        mesh_triangles[offset + i] = ti.Vector(
            [data[i, 0] + vertex_offset, data[i, 1] + vertex_offset, data[i, 2] + vertex_offset]
        )


def _upload_transformed(mesh: TriangleMesh) -> None:
    """Copy a registered mesh's world-space cache into the pool."""
    idx = mesh._pool_index
    if mesh.vertex_count > 0:
        _upload_positions(
            int(mesh_vertex_offsets[idx]),
            np.ascontiguousarray(mesh.transformed_positions, dtype=np.float32),
        )
    if mesh.triangle_count > 0:
        _upload_normals(
            int(mesh_triangle_offsets[idx]),
            np.ascontiguousarray(mesh.transformed_normals, dtype=np.float32),
        )


def clear_meshes() -> None:
    """Remove every mesh from the pool.

    Previously registered TriangleMesh objects become unregistered; their
    host-side data is untouched.
    """
    global _pool_generation
    num_meshes[None] = 0
    num_mesh_vertices[None] = 0
    num_mesh_triangles[None] = 0
    _pool_generation += 1


def add_triangle_mesh(mesh: TriangleMesh) -> int:
    """Register a mesh in the pool and upload its world-space cache.

    Call ``mesh.update_transforms()`` first if its transform was changed.

    Args:
        mesh: The mesh to register.

    Returns:
        The index of the mesh in the pool.

    Raises:
        RuntimeError: If the mesh is already registered, or a pool capacity
            would be exceeded.
    """
    if mesh.is_registered:
        raise RuntimeError("Mesh is already registered in the scene")

    idx = num_meshes[None]
    if idx >= MAX_MESHES:
        raise RuntimeError(f"Maximum number of meshes ({MAX_MESHES}) exceeded")

    vertex_offset = num_mesh_vertices[None]
    triangle_offset = num_mesh_triangles[None]
    if vertex_offset + mesh.vertex_count > MAX_MESH_VERTICES:
        raise RuntimeError(f"Maximum number of mesh vertices ({MAX_MESH_VERTICES}) exceeded")
    if triangle_offset + mesh.triangle_count > MAX_MESH_TRIANGLES:
        raise RuntimeError(f"Maximum number of mesh triangles ({MAX_MESH_TRIANGLES}) exceeded")

    mesh_vertex_offsets[idx] = vertex_offset
    mesh_triangle_offsets[idx] = triangle_offset
    mesh_triangle_counts[idx] = mesh.triangle_count
    mesh_cull_modes[idx] = int(mesh.cull_mode)
    mesh_material_ids[idx] = mesh.material_id

    if mesh.triangle_count > 0:
        _upload_triangles(
            triangle_offset,
            vertex_offset,
            np.ascontiguousarray(mesh.indices.reshape(-1, 3), dtype=np.int32),
        )

    num_meshes[None] = idx + 1
    num_mesh_vertices[None] = vertex_offset + mesh.vertex_count
    num_mesh_triangles[None] = triangle_offset + mesh.triangle_count

    mesh._pool_index = idx
    mesh._pool_generation = _pool_generation
    _upload_transformed(mesh)

    logger.debug("Registered mesh %d with %d triangles", idx, mesh.triangle_count)
    return idx


def get_mesh_count() -> int:
    """Get the number of meshes in the pool."""
    return int(num_meshes[None])


def get_mesh_triangle_total() -> int:
    """Get the number of triangles across all meshes in the pool."""
    return int(num_mesh_triangles[None])


# =============================================================================
# Intersection
# =============================================================================


@ti.func
def get_mesh_triangle(mesh_idx: ti.i32, tri_idx: ti.i32) -> Triangle:
    """Assemble a world-space Triangle from the pool.

    Args:
        mesh_idx: Index of the mesh in the pool.
        tri_idx: Global triangle index into mesh_triangles.
    """
    verts = mesh_triangles[tri_idx]
    return Triangle(
        v0=mesh_positions[verts[0]],
        v1=mesh_positions[verts[1]],
        v2=mesh_positions[verts[2]],
        normal=mesh_normals[tri_idx],
        cull_mode=mesh_cull_modes[mesh_idx],
        material_id=mesh_material_ids[mesh_idx],
    )


@ti.func
def hit_mesh(ray: Ray, mesh_idx: ti.i32) -> HitRecord:
    """Find the closest triangle hit within one mesh.

    Ties on t keep the earlier triangle.

    Args:
        ray: The ray to test, with its valid parameter range.
        mesh_idx: Index of the mesh in the pool.

    Returns:
        The minimum-t HitRecord over all triangles, or a miss record.
    """
    result = make_miss_record()
    start = mesh_triangle_offsets[mesh_idx]
    end = start + mesh_triangle_counts[mesh_idx]

    for k in range(start, end):
        rec = hit_triangle(ray, get_mesh_triangle(mesh_idx, k))
        if rec.hit == 1 and (result.hit == 0 or rec.t < result.t):
            result = rec

    return result


@ti.func
def hit_mesh_any(ray: Ray, mesh_idx: ti.i32) -> ti.i32:
    """Boolean mesh test for shadow rays; stops testing after the first hit."""
    hit_any = 0
    start = mesh_triangle_offsets[mesh_idx]
    end = start + mesh_triangle_counts[mesh_idx]

    for k in range(start, end):
        if hit_any == 0:
            hit_any = hit_triangle_any(ray, get_mesh_triangle(mesh_idx, k))

    return hit_any
