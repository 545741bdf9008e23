"""Geometry module for hit records and shape primitives.

Components:
    hittable: Entity kinds, the HitRecord struct and the shape registry
    sphere: Sphere primitive, ray-sphere intersection and sphere storage

Shape kinds register an Intersectable with the registry; scene dispatch
iterates the registry at compile time. ``sphere`` is not imported here because
it allocates Taichi fields; ``pathtracer.scene.world`` imports it.
"""

from .hittable import (
    EntityKind,
    HitRecord,
    Intersectable,
    face_normal,
    get_shape,
    make_miss_record,
    register_shape,
    unregister_shape,
    registered_shapes,
)

__all__ = [
    "EntityKind",
    "HitRecord",
    "Intersectable",
    "face_normal",
    "make_miss_record",
    "register_shape",
    "unregister_shape",
    "get_shape",
    "registered_shapes",
]
