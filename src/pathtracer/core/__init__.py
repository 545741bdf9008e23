"""Core rendering module.

Components:
    ray: Ray struct, vector helpers and random sampling
    integrator: Sky model, path tracing and the render target
    progressive: Batched sample accumulation
"""

from .ray import (
    Ray,
    length_squared,
    make_ray,
    near_zero,
    random_in_unit_sphere,
    random_real,
    random_unit_vector,
    ray_at,
    real,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)

# Note: integrator and progressive are NOT imported here because they allocate
# Taichi fields at import time. Import them after init_taichi():
#   from pathtracer.core.progressive import ProgressiveRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "real",
    "length_squared",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "random_real",
    "random_in_unit_sphere",
    "random_unit_vector",
]
