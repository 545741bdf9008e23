"""Dielectric (glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when (n1 / n2) * sin(theta1) > 1
    - Schlick's approximation for the Fresnel reflectance

The material reflects when refraction is impossible, and otherwise chooses
reflection with probability equal to the Schlick reflectance, refraction
the rest of the time. Clear dielectrics absorb nothing.

Example:
    >>> from pathtracer.materials.dielectric import Dielectric
    >>> glass = Dielectric(refraction_index=1.5)
"""

from dataclasses import dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    make_ray,
    random_real,
    real,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from pathtracer.materials.material import MaterialKind, SurfaceMaterial


@dataclass(frozen=True)
class Dielectric(SurfaceMaterial):
    """Dielectric material description.

    Attributes:
        refraction_index: Index of refraction relative to the surrounding
            medium. Common values: water 1.33, glass 1.5, diamond 2.4.
            Values below 1 model a bubble of air inside a denser medium.
    """

    kind = MaterialKind.DIELECTRIC
    type_name = "dielectric"

    refraction_index: float = 1.5

    def __post_init__(self) -> None:
        if self.refraction_index <= 0.0:
            raise ValueError(
                f"Index of refraction = {self.refraction_index} must be positive."
            )
        object.__setattr__(self, "refraction_index", float(self.refraction_index))

    def packed(self) -> tuple[int, tuple[float, float, float], float, float]:
        return int(self.kind), (1.0, 1.0, 1.0), 0.0, self.refraction_index

    def params(self) -> dict[str, Any]:
        return {"refraction_index": self.refraction_index}


@ti.func
def refraction_ratio(refraction_index: real, front_face: ti.i32) -> real:
    """Ratio of indices for the side being hit.

    Entering the material (front face) uses 1 / ior, leaving it uses ior.
    """
    ratio = refraction_index
    if front_face == 1:
        ratio = 1.0 / refraction_index
    return ratio


@ti.func
def cannot_refract(unit_direction: vec3, normal: vec3, ratio: real) -> ti.i32:
    """Return 1 when Snell's law has no real solution (total internal reflection)."""
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    return ratio * sin_theta > 1.0


@ti.func
def scatter_dielectric(
    refraction_index: real,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Scatter a ray through a dielectric surface.

    Args:
        refraction_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point, origin of the scattered ray.
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray enters the material, 0 if it leaves it.

    Returns:
        A tuple of (scattered_ray, attenuation, did_scatter). Dielectrics
        always scatter and never tint light.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ratio = refraction_ratio(refraction_index, front_face)

    unit_direction = tm.normalize(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)

    direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract(unit_direction, normal, ratio) or (
        schlick_reflectance(cos_theta, ratio) > random_real()
    ):
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)

    return make_ray(hit_point, direction), attenuation, 1
