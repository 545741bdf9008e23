"""Material dispatch for scattering.

Routes a hit to the scatter function of the hit material's kind. Kept out of
``pathtracer.materials`` so importing material descriptions does not pull in
the geometry package.
"""

import taichi as ti

from pathtracer.core.ray import Ray, make_ray, vec3
from pathtracer.geometry.hittable import HitRecord
from pathtracer.materials.dielectric import scatter_dielectric
from pathtracer.materials.diffuse import scatter_diffuse
from pathtracer.materials.material import MaterialKind
from pathtracer.materials.metal import scatter_metal


@ti.func
def scatter(ray_in: Ray, rec: HitRecord):
    """Scatter an incoming ray at a hit according to the hit material.

    Args:
        ray_in: The ray that produced the hit.
        rec: The hit record (hit == 1).

    Returns:
        A tuple of (scattered_ray, attenuation, did_scatter) where
        did_scatter is 0 when the light is absorbed. Unknown material kinds
        absorb.
    """
    material = rec.material

    scattered = make_ray(rec.point, rec.normal)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if material.kind == int(MaterialKind.DIFFUSE):
        scattered, attenuation, did_scatter = scatter_diffuse(
            material.albedo, rec.point, rec.normal
        )

    elif material.kind == int(MaterialKind.METAL):
        scattered, attenuation, did_scatter = scatter_metal(
            material.albedo, material.fuzz, ray_in.direction, rec.point, rec.normal
        )

    elif material.kind == int(MaterialKind.DIELECTRIC):
        scattered, attenuation, did_scatter = scatter_dielectric(
            material.refraction_index,
            ray_in.direction,
            rec.point,
            rec.normal,
            rec.front_face,
        )

    return scattered, attenuation, did_scatter
