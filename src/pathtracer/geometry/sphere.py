"""Sphere primitive with ray-sphere intersection and scene storage.

The ray-sphere intersection is found by solving:
    |origin + t * direction - center|^2 = radius^2

which expands to the quadratic:
    a*t^2 + 2*half_b*t + c = 0

where:
    a = dot(direction, direction)
    half_b = dot(origin - center, direction)
    c = dot(origin - center, origin - center) - radius^2

The nearer root is tried first; the farther root is used when the nearer one
falls outside [t_min, t_max].

Spheres in the active scene are stored in Taichi fields (Structure of Arrays)
and registered as the SPHERE shape kind on import.

Example:
    >>> from pathtracer.runtime import init_taichi
    >>> init_taichi()
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> # Use hit_sphere within a Taichi kernel
"""

import logging

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, ray_at, real, vec3
from pathtracer.geometry.hittable import (
    EntityKind,
    HitRecord,
    Intersectable,
    face_normal,
    make_miss_record,
    register_shape,
)
from pathtracer.materials.material import Material

logger = logging.getLogger(__name__)


@ti.dataclass
class Sphere:
    """A sphere with its material.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        material: The surface material.
        render_normal_as_color: Diagnostic flag, 1 to shade by normal in
            the normals render mode.
    """

    center: vec3
    radius: real
    material: Material
    render_normal_as_color: ti.i32


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: real, t_max: real) -> HitRecord:
    """Test for ray-sphere intersection within [t_min, t_max].

    Args:
        ray: The ray to test. Its direction must not be zero length.
        sphere: The sphere to test against.
        t_min: Minimum accepted ray parameter.
        t_max: Maximum accepted ray parameter.

    Returns:
        A HitRecord for the nearest accepted root, or a miss record.
    """
    result = make_miss_record()

    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearer root first
        root = (-half_b - sqrt_d) / a
        valid = t_min <= root and root <= t_max
        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = t_min <= root and root <= t_max

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material=sphere.material,
                render_normal_as_color=sphere.render_normal_as_color,
            )

    return result


# =============================================================================
# Sphere Storage (active scene)
# =============================================================================

MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_material_kinds = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
sphere_albedos = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_fuzz = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_refraction_indices = ti.field(dtype=real, shape=MAX_SPHERES)
sphere_normal_flags = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_spheres() -> None:
    """Remove all spheres from the active scene.

    Resets the count; stale field data is overwritten by later additions.
    """
    num_spheres[None] = 0


def add_sphere(entity) -> int:
    """Store a sphere entity in the active scene.

    Args:
        entity: A SphereEntity (center, radius, material, render_normal_as_color).

    Returns:
        The storage index of the sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    kind, albedo, fuzz, refraction_index = entity.material.packed()
    sphere_centers[idx] = list(entity.center)
    sphere_radii[idx] = entity.radius
    sphere_material_kinds[idx] = kind
    sphere_albedos[idx] = list(albedo)
    sphere_fuzz[idx] = fuzz
    sphere_refraction_indices[idx] = refraction_index
    sphere_normal_flags[idx] = int(entity.render_normal_as_color)
    num_spheres[None] = idx + 1

    logger.debug("Stored sphere %d at %s (radius %s)", idx, entity.center, entity.radius)
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the active scene."""
    return int(num_spheres[None])


@ti.func
def load_sphere(i: ti.i32) -> Sphere:
    """Assemble the Sphere struct stored at index i."""
    material = Material(
        kind=sphere_material_kinds[i],
        albedo=sphere_albedos[i],
        fuzz=sphere_fuzz[i],
        refraction_index=sphere_refraction_indices[i],
    )
    return Sphere(
        center=sphere_centers[i],
        radius=sphere_radii[i],
        material=material,
        render_normal_as_color=sphere_normal_flags[i],
    )


@ti.func
def intersect_spheres(ray: Ray, t_min: real, t_max: real) -> HitRecord:
    """Closest hit among all stored spheres within [t_min, t_max]."""
    closest_t = t_max
    result = make_miss_record()

    ti.loop_config(serialize=True)
    for i in range(num_spheres[None]):
        rec = hit_sphere(ray, load_sphere(i), t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


register_shape(
    Intersectable(
        kind=EntityKind.SPHERE,
        add=add_sphere,
        clear=clear_spheres,
        count=get_sphere_count,
        intersect=intersect_spheres,
    )
)
