"""Diffuse (matte) material implementation.

Incoming light is scattered around the surface normal: the outgoing direction
is the normal offset by a random unit vector, which yields a cosine-like
distribution over the hemisphere. The attenuation is the albedo.

Example:
    >>> from pathtracer.materials.diffuse import Diffuse
    >>> red = Diffuse(albedo=(0.7, 0.3, 0.3))
    >>> # Inside a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_diffuse(albedo, point, normal)
"""

from dataclasses import dataclass
from typing import Any

import taichi as ti

from pathtracer.core.ray import make_ray, near_zero, random_unit_vector, vec3
from pathtracer.materials.material import MaterialKind, SurfaceMaterial, validate_albedo


@dataclass(frozen=True)
class Diffuse(SurfaceMaterial):
    """Diffuse material description.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    kind = MaterialKind.DIFFUSE
    type_name = "diffuse"

    albedo: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))

    def packed(self) -> tuple[int, tuple[float, float, float], float, float]:
        return int(self.kind), self.albedo, 0.0, 1.0

    def params(self) -> dict[str, Any]:
        return {"albedo": list(self.albedo)}


# Fallback for entities created without an explicit material
DEFAULT_MATERIAL = Diffuse()


@ti.func
def diffuse_direction(normal: vec3, offset: vec3) -> vec3:
    """Offset the normal by a unit vector, falling back to the normal when they cancel."""
    direction = normal + offset
    if near_zero(direction):
        direction = normal
    return direction


@ti.func
def scatter_diffuse(albedo: vec3, hit_point: vec3, normal: vec3):
    """Scatter a ray off a diffuse surface.

    Args:
        albedo: The diffuse reflectance color.
        hit_point: The intersection point, origin of the scattered ray.
        normal: The unit surface normal facing the incoming ray.

    Returns:
        A tuple of (scattered_ray, attenuation, did_scatter). Diffuse surfaces
        always scatter, so did_scatter is always 1.
    """
    scatter_direction = diffuse_direction(normal, random_unit_vector())
    return make_ray(hit_point, scatter_direction), albedo, 1
