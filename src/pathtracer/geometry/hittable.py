"""Hit records and the shape registry.

Every shape kind the scene can hold is described by an ``Intersectable``:
Python callables that manage the kind's Taichi storage plus one ``@ti.func``
returning the closest hit among all stored entities of that kind. Shape
modules register themselves on import with ``register_shape``; the scene
dispatcher iterates the registry at kernel compile time, so adding a kind
never touches the dispatch code.

The kernel for a query is compiled on first use, so shapes must be registered
before the first render; a later registration logs a warning.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import real, vec3
from pathtracer.materials.material import Material

logger = logging.getLogger(__name__)


class EntityKind(IntEnum):
    """Tags for the geometric entity kinds.

    Only SPHERE has intersection code; the remaining tags are reserved.
    """

    SPHERE = 0
    TRIANGLE = 1
    BOX = 2
    PLANE = 3
    PYRAMID = 4
    CONE = 5


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: 1 if the ray intersected a surface, 0 on a miss. The remaining
            fields are only meaningful when hit == 1.
        t: The ray parameter of the intersection.
        point: The intersection point.
        normal: Unit surface normal, oriented against the incoming ray.
        front_face: 1 if the ray hit the outside of the surface, 0 if it hit
            from inside.
        material: Copy of the hit entity's material.
        render_normal_as_color: Diagnostic flag copied from the entity.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32
    material: Material
    render_normal_as_color: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material=Material(kind=0, albedo=vec3(0.0, 0.0, 0.0), fuzz=0.0, refraction_index=1.0),
        render_normal_as_color=0,
    )


@ti.func
def face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient an outward normal against the incoming ray.

    Returns:
        A tuple (front_face, normal) where front_face is 1 when the ray comes
        from the outward side.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@dataclass(frozen=True)
class Intersectable:
    """Registration entry for one shape kind.

    Attributes:
        kind: The entity kind this entry handles.
        add: Stores an entity of this kind and returns its storage index.
        clear: Removes all stored entities of this kind.
        count: Returns the number of stored entities of this kind.
        intersect: ``@ti.func (ray, t_min, t_max) -> HitRecord`` returning the
            closest hit among the stored entities within [t_min, t_max].
    """

    kind: EntityKind
    add: Callable[[Any], int]
    clear: Callable[[], None]
    count: Callable[[], int]
    intersect: Any


_registry: dict[EntityKind, Intersectable] = {}

# Set once a dispatch kernel has read the registry during compilation
_dispatch_compiled = False


def register_shape(shape: Intersectable) -> None:
    """Register (or replace) the intersectable for a shape kind.

    Kernels compiled before the call keep the shape set they were compiled
    with, so a warning is logged when registration comes after the first
    dispatch kernel.
    """
    if shape.kind in _registry:
        logger.debug("Replacing registered shape kind %s", shape.kind.name)
    if _dispatch_compiled:
        logger.warning(
            "Shape kind %s registered after a scene query kernel was compiled; "
            "kernels compiled earlier will not intersect it",
            shape.kind.name,
        )
    _registry[shape.kind] = shape


def unregister_shape(kind: EntityKind) -> Intersectable:
    """Remove the intersectable for a shape kind and return it.

    Raises:
        NotImplementedError: If the kind is not registered.
    """
    shape = get_shape(kind)
    del _registry[kind]
    return shape


def get_shape(kind: EntityKind) -> Intersectable:
    """Look up the intersectable for a shape kind.

    Raises:
        NotImplementedError: If the kind has no intersection code.
    """
    try:
        return _registry[kind]
    except KeyError:
        raise NotImplementedError(
            f"Entity kind {EntityKind(kind).name} has no intersection support"
        ) from None


def registered_shapes() -> list[Intersectable]:
    """Return the registered intersectables in EntityKind order."""
    return [_registry[kind] for kind in sorted(_registry)]


def registered_intersectors() -> list[Any]:
    """Return the intersection functions of all registered shape kinds.

    Called while a dispatch kernel compiles.
    """
    global _dispatch_compiled
    _dispatch_compiled = True
    return [shape.intersect for shape in registered_shapes()]
