"""Metal (specular reflective) material implementation.

Perfect metals (fuzz=0) produce mirror reflections:

    R = D - 2(D . N)N

Rough metals offset the reflected direction by a random point in a ball of
radius ``fuzz``. When the offset pushes the direction below the surface the
ray is absorbed.

Example:
    >>> from pathtracer.materials.metal import Metal
    >>> gold = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
    >>> # Inside a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, point, normal
    >>> # )
"""

from dataclasses import dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import make_ray, random_in_unit_sphere, real, reflect, vec3
from pathtracer.materials.material import MaterialKind, SurfaceMaterial, validate_albedo


@dataclass(frozen=True)
class Metal(SurfaceMaterial):
    """Metal material description.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Reflection blur radius. Must be non-negative; values above 1
            are clamped to 1.
    """

    kind = MaterialKind.METAL
    type_name = "metal"

    albedo: tuple[float, float, float] = (0.8, 0.8, 0.8)
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", validate_albedo(self.albedo))
        if self.fuzz < 0.0:
            raise ValueError(f"Fuzz = {self.fuzz} is negative. Fuzz must be >= 0.")
        object.__setattr__(self, "fuzz", min(float(self.fuzz), 1.0))

    def packed(self) -> tuple[int, tuple[float, float, float], float, float]:
        return int(self.kind), self.albedo, self.fuzz, 1.0

    def params(self) -> dict[str, Any]:
        return {"albedo": list(self.albedo), "fuzz": self.fuzz}


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: real,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
):
    """Scatter a ray off a metal surface.

    Args:
        albedo: The reflective color.
        fuzz: The reflection blur radius in [0, 1].
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point, origin of the scattered ray.
        normal: The unit surface normal facing the incoming ray.

    Returns:
        A tuple of (scattered_ray, attenuation, did_scatter) where
        did_scatter is 0 when the perturbed direction points below the surface.
    """
    reflected = reflect(tm.normalize(incident_direction), normal)
    scatter_direction = reflected + fuzz * random_in_unit_sphere()

    did_scatter = 0
    if tm.dot(scatter_direction, normal) > 0.0:
        did_scatter = 1

    return make_ray(hit_point, scatter_direction), albedo, did_scatter
