"""Materials module.

Each material has an immutable Python description, packed into the shared
``Material`` struct when an entity is added to a scene, and a scatter
function that runs inside Taichi kernels:

    diffuse: Lambertian reflection around the normal
    metal: Mirror reflection perturbed by fuzz
    dielectric: Refraction with total internal reflection and Schlick reflectance

``materials.scatter`` dispatches on the struct's kind.
"""

from .dielectric import Dielectric, scatter_dielectric
from .diffuse import DEFAULT_MATERIAL, Diffuse, diffuse_direction, scatter_diffuse
from .material import Material, MaterialKind, SurfaceMaterial
from .metal import Metal, scatter_metal

__all__ = [
    "Material",
    "MaterialKind",
    "SurfaceMaterial",
    "Diffuse",
    "DEFAULT_MATERIAL",
    "diffuse_direction",
    "scatter_diffuse",
    "Metal",
    "scatter_metal",
    "Dielectric",
    "scatter_dielectric",
]
