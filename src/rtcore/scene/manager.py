"""Unified scene manager for coordinating primitives, materials and lights.

This module provides a high-level scene API on top of the Taichi-side
storage. It tracks which material type (SolidColor, Lambert, LambertPhong,
CookTorrance) each material ID refers to, so the render kernel can dispatch
to the right shading function by tag.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- Plane, sphere, mesh and light bookkeeping for serialization
- The camera used for rendering
- Host-side scene queries (closest hit, any hit, per-primitive hit tests)

Materials are shared: many primitives may reference one material ID.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from rtcore.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambert_material((1.0, 0.0, 0.0), kd=1.0)
    >>> scene.add_sphere((0.0, 1.0, 0.0), 0.75, red)
    >>> scene.add_point_light((0.0, 5.0, 5.0), 25.0)
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from rtcore.camera.pinhole import Camera
from rtcore.core.ray import T_MAX, T_MIN
from rtcore.geometry.mesh import (
    MAX_MESHES,
    TriangleMesh,
    add_triangle_mesh,
    get_mesh_count,
)
from rtcore.geometry.triangle import CullMode
from rtcore.materials.cook_torrance import (
    add_cook_torrance_material,
    clear_cook_torrance_materials,
)
from rtcore.materials.lambert import add_lambert_material, clear_lambert_materials
from rtcore.materials.lambert_phong import (
    add_lambert_phong_material,
    clear_lambert_phong_materials,
)
from rtcore.materials.solid_color import (
    add_solid_color_material,
    clear_solid_color_materials,
)
from rtcore.scene.intersection import (
    MAX_PLANES,
    MAX_SPHERES,
    HitInfo,
    add_plane,
    add_sphere,
    clear_scene,
    get_plane_count,
    get_sphere_count,
    query_any_hit,
    query_closest_hit,
    query_mesh_hit,
    query_plane_hit,
    query_sphere_hit,
)
from rtcore.scene.lights import (
    MAX_LIGHTS,
    LightType,
    add_directional_light,
    add_point_light,
    clear_lights,
    get_light_count,
)

logger = logging.getLogger(__name__)

Vec3Tuple = tuple[float, float, float]


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used by the render kernel to pick the shading function.
    """

    SOLID_COLOR = 0
    LAMBERT = 1
    LAMBERT_PHONG = 2
    COOK_TORRANCE = 3


class PrimitiveType(IntEnum):
    """Kinds of geometry a hit test can be requested for."""

    PLANE = 0
    SPHERE = 1
    TRIANGLE = 2
    TRIANGLE_MESH = 3


# Maximum number of materials across all types
MAX_MATERIALS = 1024  # 256 per type * 4 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType), or -1 for an
        invalid material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    Returns:
        The index into the type-specific material fields, or -1 for an
        invalid material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material fields.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class PlaneInfo:
    plane_index: int
    origin: Vec3Tuple
    normal: Vec3Tuple
    material_id: int


@dataclass
class SphereInfo:
    sphere_index: int
    center: Vec3Tuple
    radius: float
    material_id: int


@dataclass
class LightInfo:
    """Information about a light in the scene.

    Attributes:
        light_index: The index in the light fields.
        light_type: Point or directional.
        vector: Origin for point lights, direction for directional lights.
        intensity: Light intensity.
        color: Light color.
    """

    light_index: int
    light_type: LightType
    vector: Vec3Tuple
    intensity: float
    color: Vec3Tuple


@dataclass
class SceneConfig:
    """Plain-data description of a scene, for serialization."""

    camera: dict[str, Any] = field(default_factory=dict)
    materials: list[dict[str, Any]] = field(default_factory=list)
    planes: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)
    meshes: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)


def _vec3(values: Sequence[float]) -> Vec3Tuple:
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """Unified scene manager coordinating primitives, materials and lights.

    Only one scene is live at a time: every SceneManager writes to the same
    module-level Taichi fields, and creating one clears them.

    Attributes:
        camera: The camera to render from.
        materials: MaterialInfo for all registered materials.
        planes: PlaneInfo for all planes.
        spheres: SphereInfo for all spheres.
        meshes: TriangleMesh objects in the scene.
        lights: LightInfo for all lights.

    Example:
        >>> scene = SceneManager(Camera(origin=(0.0, 1.0, -5.0), fov_angle=45.0))
        >>> gray = scene.add_lambert_material((0.49, 0.57, 0.57))
        >>> scene.add_plane((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), gray)
        >>> metal = scene.add_cook_torrance_material((0.972, 0.96, 0.915), 1.0, 0.1)
        >>> scene.add_sphere((0.0, 1.0, 0.0), 0.75, metal)
    """

    def __init__(self, camera: Camera | None = None) -> None:
        """Initialize an empty scene."""
        self.camera = camera if camera is not None else Camera()
        self.materials: list[MaterialInfo] = []
        self.planes: list[PlaneInfo] = []
        self.spheres: list[SphereInfo] = []
        self.meshes: list[TriangleMesh] = []
        self.lights: list[LightInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lights()
        clear_solid_color_materials()
        clear_lambert_materials()
        clear_lambert_phong_materials()
        clear_cook_torrance_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.planes.clear()
        self.spheres.clear()
        self.meshes.clear()
        self.lights.clear()

    def clear(self) -> None:
        """Clear the entire scene (primitives, materials and lights).

        The camera is kept.
        """
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        add_fn: Callable[..., int],
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        # Validation happens in the type-specific registry
        type_index = add_fn(**params)

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        logger.debug("Added %s material %d", material_type.name, material_id)
        return material_id

    def add_solid_color_material(self, color: Vec3Tuple) -> int:
        """Add a solid color material.

        Args:
            color: The constant color as (R, G, B), each in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any color component is outside [0, 1].
        """
        return self._register_material(
            MaterialType.SOLID_COLOR, add_solid_color_material, {"color": _vec3(color)}
        )

    def add_lambert_material(self, diffuse_color: Vec3Tuple, kd: float = 1.0) -> int:
        """Add a Lambert (diffuse) material.

        Args:
            diffuse_color: The diffuse color as (R, G, B), each in [0, 1].
            kd: The diffuse reflection coefficient in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If a parameter is out of range.
        """
        return self._register_material(
            MaterialType.LAMBERT,
            add_lambert_material,
            {"diffuse_color": _vec3(diffuse_color), "kd": float(kd)},
        )

    def add_lambert_phong_material(
        self,
        diffuse_color: Vec3Tuple,
        kd: float,
        ks: float,
        exponent: float,
    ) -> int:
        """Add a Lambert-Phong material.

        Args:
            diffuse_color: The diffuse color as (R, G, B), each in [0, 1].
            kd: Diffuse reflection coefficient in [0, 1].
            ks: Specular reflection coefficient in [0, 1].
            exponent: Phong exponent, non-negative.

        Returns:
            The unified material ID for this material.
        """
        return self._register_material(
            MaterialType.LAMBERT_PHONG,
            add_lambert_phong_material,
            {
                "diffuse_color": _vec3(diffuse_color),
                "kd": float(kd),
                "ks": float(ks),
                "exponent": float(exponent),
            },
        )

    def add_cook_torrance_material(
        self,
        albedo: Vec3Tuple,
        metalness: float,
        roughness: float,
    ) -> int:
        """Add a Cook-Torrance material.

        Args:
            albedo: Base color as (R, G, B), each in [0, 1].
            metalness: 0 for dielectrics, up to 1 for metals.
            roughness: Roughness in (0, 1].

        Returns:
            The unified material ID for this material.
        """
        return self._register_material(
            MaterialType.COOK_TORRANCE,
            add_cook_torrance_material,
            {
                "albedo": _vec3(albedo),
                "metalness": float(metalness),
                "roughness": float(roughness),
            },
        )

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_plane(self, origin: Vec3Tuple, normal: Vec3Tuple, material_id: int) -> int:
        """Add an infinite plane.

        Returns:
            The index of the added plane.

        Raises:
            RuntimeError: If the maximum number of planes is exceeded.
            ValueError: If material_id is invalid or the normal is zero.
        """
        self._check_material_id(material_id)
        plane_index = add_plane(origin, normal, material_id)
        self.planes.append(PlaneInfo(plane_index, _vec3(origin), _vec3(normal), material_id))
        return plane_index

    def add_sphere(self, center: Vec3Tuple, radius: float, material_id: int) -> int:
        """Add a sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid or the radius is not positive.
        """
        self._check_material_id(material_id)
        sphere_index = add_sphere(center, radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, _vec3(center), float(radius), material_id))
        return sphere_index

    def add_mesh(self, mesh: TriangleMesh) -> int:
        """Add a triangle mesh, uploading its current world-space cache.

        Returns:
            The index of the mesh in the mesh pool.

        Raises:
            RuntimeError: If a mesh pool capacity is exceeded.
            ValueError: If the mesh's material_id is invalid.
        """
        self._check_material_id(mesh.material_id)
        mesh_index = add_triangle_mesh(mesh)
        self.meshes.append(mesh)
        return mesh_index

    def add_triangle(
        self,
        v0: Vec3Tuple,
        v1: Vec3Tuple,
        v2: Vec3Tuple,
        material_id: int,
        cull_mode: CullMode = CullMode.BACK_FACE,
    ) -> TriangleMesh:
        """Add a single triangle as a one-triangle mesh.

        Returns:
            The created mesh, so it can be transformed and animated later.
        """
        mesh = TriangleMesh.from_triangles([(v0, v1, v2)], cull_mode, material_id)
        self.add_mesh(mesh)
        return mesh

    def update_transforms(self) -> None:
        """Recompute and upload the world-space cache of every mesh.

        Call between frames after changing mesh transforms.
        """
        for mesh in self.meshes:
            mesh.update_transforms()

    # =========================================================================
    # Light Management
    # =========================================================================

    def add_point_light(
        self,
        origin: Vec3Tuple,
        intensity: float,
        color: Vec3Tuple = (1.0, 1.0, 1.0),
    ) -> int:
        """Add a point light. See rtcore.scene.lights.add_point_light."""
        light_index = add_point_light(origin, intensity, color)
        self.lights.append(
            LightInfo(light_index, LightType.POINT, _vec3(origin), float(intensity), _vec3(color))
        )
        return light_index

    def add_directional_light(
        self,
        direction: Vec3Tuple,
        intensity: float,
        color: Vec3Tuple = (1.0, 1.0, 1.0),
    ) -> int:
        """Add a directional light. See rtcore.scene.lights.add_directional_light."""
        light_index = add_directional_light(direction, intensity, color)
        self.lights.append(
            LightInfo(
                light_index,
                LightType.DIRECTIONAL,
                _vec3(direction),
                float(intensity),
                _vec3(color),
            )
        )
        return light_index

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_plane_count(self) -> int:
        return get_plane_count()

    def get_sphere_count(self) -> int:
        return get_sphere_count()

    def get_mesh_count(self) -> int:
        return get_mesh_count()

    def get_light_count(self) -> int:
        return get_light_count()

    def get_primitive_count(self) -> int:
        """Get the number of planes, spheres and meshes in the scene."""
        return self.get_plane_count() + self.get_sphere_count() + self.get_mesh_count()

    def closest_hit(
        self,
        origin: Vec3Tuple,
        direction: Vec3Tuple,
        t_min: float = T_MIN,
        t_max: float = T_MAX,
    ) -> HitInfo:
        """Closest intersection of a ray with the scene."""
        return query_closest_hit(origin, direction, t_min, t_max)

    def any_hit(
        self,
        origin: Vec3Tuple,
        direction: Vec3Tuple,
        t_min: float = T_MIN,
        t_max: float = T_MAX,
    ) -> bool:
        """Whether a ray hits anything in the scene within [t_min, t_max]."""
        return query_any_hit(origin, direction, t_min, t_max)

    def hit_test(
        self,
        primitive_type: PrimitiveType,
        index: int,
        origin: Vec3Tuple,
        direction: Vec3Tuple,
        t_min: float = T_MIN,
        t_max: float = T_MAX,
    ) -> HitInfo:
        """Intersect a ray with one primitive of the scene.

        Args:
            primitive_type: The kind of primitive to test.
            index: Index of the primitive within its kind.
            origin: Ray origin.
            direction: Ray direction.
            t_min: Lower bound of the valid hit parameter.
            t_max: Upper bound of the valid hit parameter.

        Raises:
            NotImplementedError: If the scene has no hit test for the kind.
                Standalone triangles only exist inside meshes.
            IndexError: If index is out of range.
        """
        tests = {
            PrimitiveType.PLANE: query_plane_hit,
            PrimitiveType.SPHERE: query_sphere_hit,
            PrimitiveType.TRIANGLE_MESH: query_mesh_hit,
        }
        test = tests.get(primitive_type)
        if test is None:
            raise NotImplementedError(f"No scene hit test for primitive type {primitive_type!r}")
        return test(index, origin, direction, t_min, t_max)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()
        config.camera = {
            "origin": list(self.camera.origin),
            "fov_angle": self.camera.fov_angle,
            "yaw": self.camera.yaw,
            "pitch": self.camera.pitch,
        }

        for mat in self.materials:
            params = {k: list(v) if isinstance(v, tuple) else v for k, v in mat.params.items()}
            config.materials.append({"type": mat.material_type.name.lower(), **params})

        for plane in self.planes:
            config.planes.append(
                {
                    "origin": list(plane.origin),
                    "normal": list(plane.normal),
                    "material_id": plane.material_id,
                }
            )

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        for mesh in self.meshes:
            config.meshes.append(
                {
                    "positions": mesh.positions.tolist(),
                    "indices": mesh.indices.tolist(),
                    "normals": mesh.normals.tolist(),
                    "cull_mode": mesh.cull_mode.name.lower(),
                    "material_id": mesh.material_id,
                    "translation": list(mesh.translation),
                    "yaw": mesh.yaw,
                    "scale": list(mesh.scale_factors),
                }
            )

        for light in self.lights:
            key = "origin" if light.light_type == LightType.POINT else "direction"
            config.lights.append(
                {
                    "type": light.light_type.name.lower(),
                    key: list(light.vector),
                    "intensity": light.intensity,
                    "color": list(light.color),
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene first.

        Raises:
            ValueError: If the configuration contains an unknown material,
                light or cull mode type, or invalid parameters.
        """
        self.clear()

        if config.camera:
            self.camera = Camera(
                origin=_vec3(config.camera.get("origin", (0.0, 0.0, 0.0))),
                fov_angle=config.camera.get("fov_angle", 90.0),
                yaw=config.camera.get("yaw", 0.0),
                pitch=config.camera.get("pitch", 0.0),
            )

        # Materials first; primitives reference them by ID
        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "solid_color":
                self.add_solid_color_material(_vec3(mat_config.get("color", (1.0, 1.0, 1.0))))
            elif mat_type == "lambert":
                self.add_lambert_material(
                    _vec3(mat_config.get("diffuse_color", (1.0, 1.0, 1.0))),
                    mat_config.get("kd", 1.0),
                )
            elif mat_type == "lambert_phong":
                self.add_lambert_phong_material(
                    _vec3(mat_config.get("diffuse_color", (1.0, 1.0, 1.0))),
                    mat_config.get("kd", 0.5),
                    mat_config.get("ks", 0.5),
                    mat_config.get("exponent", 1.0),
                )
            elif mat_type == "cook_torrance":
                self.add_cook_torrance_material(
                    _vec3(mat_config.get("albedo", (0.955, 0.637, 0.538))),
                    mat_config.get("metalness", 1.0),
                    mat_config.get("roughness", 0.1),
                )
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for plane_config in config.planes:
            self.add_plane(
                _vec3(plane_config.get("origin", (0.0, 0.0, 0.0))),
                _vec3(plane_config.get("normal", (0.0, 1.0, 0.0))),
                plane_config.get("material_id", 0),
            )

        for sphere_config in config.spheres:
            self.add_sphere(
                _vec3(sphere_config.get("center", (0.0, 0.0, 0.0))),
                sphere_config.get("radius", 1.0),
                sphere_config.get("material_id", 0),
            )

        for mesh_config in config.meshes:
            cull_name = mesh_config.get("cull_mode", "back_face").upper()
            if cull_name not in CullMode.__members__:
                raise ValueError(f"Unknown cull mode: {cull_name.lower()}")
            mesh = TriangleMesh(
                mesh_config.get("positions", []),
                mesh_config.get("indices", []),
                mesh_config.get("normals"),
                cull_mode=CullMode[cull_name],
                material_id=mesh_config.get("material_id", 0),
            )
            mesh.translate(*_vec3(mesh_config.get("translation", (0.0, 0.0, 0.0))))
            mesh.rotate_y(mesh_config.get("yaw", 0.0))
            mesh.scale(*_vec3(mesh_config.get("scale", (1.0, 1.0, 1.0))))
            mesh.update_transforms()
            self.add_mesh(mesh)

        for light_config in config.lights:
            light_type = light_config.get("type", "").lower()
            color = _vec3(light_config.get("color", (1.0, 1.0, 1.0)))
            intensity = light_config.get("intensity", 1.0)
            if light_type == "point":
                self.add_point_light(_vec3(light_config["origin"]), intensity, color)
            elif light_type == "directional":
                self.add_directional_light(_vec3(light_config["direction"]), intensity, color)
            else:
                raise ValueError(f"Unknown light type: {light_type}")

        logger.info(
            "Loaded scene: %d materials, %d planes, %d spheres, %d meshes, %d lights",
            len(self.materials),
            len(self.planes),
            len(self.spheres),
            len(self.meshes),
            len(self.lights),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "camera": config.camera,
            "materials": config.materials,
            "planes": config.planes,
            "spheres": config.spheres,
            "meshes": config.meshes,
            "lights": config.lights,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary produced by to_dict()."""
        config = SceneConfig(
            camera=data.get("camera", {}),
            materials=data.get("materials", []),
            planes=data.get("planes", []),
            spheres=data.get("spheres", []),
            meshes=data.get("meshes", []),
            lights=data.get("lights", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_planes() -> int:
        return MAX_PLANES

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_meshes() -> int:
        return MAX_MESHES

    @staticmethod
    def get_max_lights() -> int:
        return MAX_LIGHTS

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
