"""Scene container and closest-hit dispatch.

``hit_world`` tests a ray against every entity of every registered shape
kind, narrowing the accepted interval as closer hits are found, and returns
the globally nearest hit. The result never depends on insertion order.

``Scene`` is the Python-side container: an ordered list of entities mirrored
into the Taichi storage of their shape kinds. Storage is module level, so one
scene is active at a time; creating a Scene clears the previous one.

Example:
    >>> from pathtracer.runtime import init_taichi
    >>> init_taichi()
    >>> from pathtracer.materials.diffuse import Diffuse
    >>> from pathtracer.scene.entities import SphereEntity
    >>> from pathtracer.scene.world import Scene
    >>> scene = Scene()
    >>> scene.add(SphereEntity((0.0, 0.0, -1.0), 0.5, Diffuse((0.7, 0.3, 0.3))))
    0
    >>> hit = scene.hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
    >>> round(hit.t, 6)
    0.5
"""

import logging
from dataclasses import dataclass
from typing import Any

import taichi as ti

# Registers the SPHERE shape kind
import pathtracer.geometry.sphere  # noqa: F401
from pathtracer.core.ray import Ray, real, vec3
from pathtracer.geometry.hittable import (
    HitRecord,
    get_shape,
    make_miss_record,
    registered_intersectors,
    registered_shapes,
)
from pathtracer.scene.entities import SphereEntity, entity_from_dict

logger = logging.getLogger(__name__)


@ti.func
def hit_world(ray: Ray, t_min: real, t_max: real) -> HitRecord:
    """Closest hit of a ray against the active scene.

    Args:
        ray: The ray to test.
        t_min: Minimum accepted ray parameter.
        t_max: Maximum accepted ray parameter.

    Returns:
        The nearest HitRecord within [t_min, t_max], or a miss record.
    """
    closest_t = t_max
    result = make_miss_record()

    for intersect in ti.static(registered_intersectors()):
        rec = intersect(ray, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


def clear_world() -> None:
    """Clear the storage of every registered shape kind."""
    for shape in registered_shapes():
        shape.clear()


# Kernel-side query result used by Scene.hit
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=real, shape=())
_query_point = ti.Vector.field(3, dtype=real, shape=())
_query_normal = ti.Vector.field(3, dtype=real, shape=())
_query_front_face = ti.field(dtype=ti.i32, shape=())
_query_material_kind = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _query_world(
    ox: real, oy: real, oz: real, dx: real, dy: real, dz: real, t_min: real, t_max: real
):
    ray = Ray(origin=vec3(ox, oy, oz), direction=vec3(dx, dy, dz))
    rec = hit_world(ray, t_min, t_max)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_front_face[None] = rec.front_face
    _query_material_kind[None] = rec.material.kind


@dataclass(frozen=True)
class HitInfo:
    """Python-side copy of a hit record.

    Attributes:
        t: The ray parameter of the intersection.
        point: The intersection point.
        normal: Unit normal oriented against the ray.
        front_face: Whether the ray hit the outside of the surface.
        material_kind: The MaterialKind value of the hit material.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material_kind: int


class Scene:
    """Ordered, mutable collection of entities backing the active scene.

    Example:
        >>> scene = Scene()
        >>> scene.add(SphereEntity((0, 0, -1), 0.5))
        0
        >>> len(scene)
        1
        >>> scene.clear()
        >>> scene.entities()
        ()
    """

    def __init__(self) -> None:
        """Initialize an empty scene, clearing any previously active one."""
        self._entities: list[SphereEntity] = []
        clear_world()

    def add(self, entity: SphereEntity) -> int:
        """Append an entity.

        Args:
            entity: The entity to add.

        Returns:
            The entity's position in the scene order.

        Raises:
            NotImplementedError: If the entity kind has no intersection support.
            RuntimeError: If the storage for the entity kind is full.
        """
        get_shape(entity.kind).add(entity)
        self._entities.append(entity)
        logger.debug("Added %s entity #%d", entity.kind.name.lower(), len(self._entities) - 1)
        return len(self._entities) - 1

    def clear(self) -> None:
        """Remove all entities."""
        clear_world()
        self._entities.clear()

    def entities(self) -> tuple[SphereEntity, ...]:
        """Return the entities in insertion order."""
        return tuple(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def hit(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        t_min: float = 0.001,
        t_max: float = float("inf"),
    ) -> HitInfo | None:
        """Find the nearest hit of a ray from Python.

        Args:
            origin: The ray origin.
            direction: The ray direction (must not be zero length).
            t_min: Minimum accepted ray parameter.
            t_max: Maximum accepted ray parameter.

        Returns:
            A HitInfo for the nearest hit, or None on a miss.
        """
        _query_world(*origin, *direction, t_min, t_max)
        if _query_hit[None] == 0:
            return None
        point = _query_point[None]
        normal = _query_normal[None]
        return HitInfo(
            t=float(_query_t[None]),
            point=(float(point[0]), float(point[1]), float(point[2])),
            normal=(float(normal[0]), float(normal[1]), float(normal[2])),
            front_face=bool(_query_front_face[None]),
            material_kind=int(_query_material_kind[None]),
        )

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        return {"entities": [entity.to_dict() for entity in self._entities]}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Replace the scene contents with entities from a dictionary.

        Args:
            data: Dictionary with an 'entities' list.

        Raises:
            ValueError: If the dictionary contains invalid data.
        """
        entities = [entity_from_dict(item) for item in data.get("entities", [])]
        self.clear()
        for entity in entities:
            self.add(entity)
        logger.info("Loaded scene with %d entities", len(self._entities))

    def __repr__(self) -> str:
        return f"Scene(entities={len(self._entities)})"
