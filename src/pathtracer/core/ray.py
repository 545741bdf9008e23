"""Ray data structure and vector utilities for the path tracer.

This module provides the fundamental Ray dataclass and the vector and random
sampling helpers used by intersection and scattering code. All vectors are
double precision; the Taichi runtime must be initialised with
``default_fp=ti.f64`` (see ``pathtracer.runtime.init_taichi``).

Example:
    >>> from pathtracer.runtime import init_taichi
    >>> init_taichi()
    >>> from pathtracer.core.ray import Ray, ray_at, vec3
    >>> # Inside a Taichi kernel:
    >>> # ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    >>> # point = ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# Scalar and 3D vector types (double precision)
real = ti.f64
vec3 = ti.types.vector(3, ti.f64)

# Components below this magnitude count as zero when checking scatter directions
NEAR_ZERO_EPSILON = 1e-8

# Rejection sampling attempts before giving up on a unit-ball sample
MAX_REJECTION_ATTEMPTS = 100


@ti.dataclass
class Ray:
    """A half-line with an origin point and a direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector. Not required to be unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: real) -> vec3:
    """Compute the point ``origin + t * direction``."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> real:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to detect degenerate scatter directions, e.g. when a random unit
    vector almost exactly cancels the surface normal.

    Returns:
        1 if all components are below NEAR_ZERO_EPSILON in magnitude, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal.

    Computes ``d - 2 * dot(d, n) * n``.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, eta_ratio: real) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    The refracted direction is split into the component perpendicular to the
    normal and the component parallel to it:

        r_perp = eta_ratio * (d + cos_theta * n)
        r_parallel = -sqrt(|1 - |r_perp|^2|) * n

    The caller is responsible for checking total internal reflection first.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal facing the incoming ray (unit length).
        eta_ratio: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction (unit length when no TIR occurs).
    """
    cos_theta = tm.min(tm.dot(-unit_incident, normal), 1.0)
    r_out_perp = eta_ratio * (unit_incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: real, eta_ratio: real) -> real:
    """Approximate Fresnel reflectance using Schlick's formula."""
    r0 = (1.0 - eta_ratio) / (1.0 + eta_ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_real() -> real:
    """Draw a uniform sample in [0, 1) from the runtime generator."""
    return ti.random(real)


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit ball.

    Rejection sampling: draw components in [-1, 1), reject while the squared
    length is >= 1.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Keep the loop serial when inlined at kernel top level
    ti.loop_config(serialize=True)
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if not found:
            p = vec3(
                random_real() * 2.0 - 1.0,
                random_real() * 2.0 - 1.0,
                random_real() * 2.0 - 1.0,
            )
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector (normalised unit-ball sample)."""
    return tm.normalize(random_in_unit_sphere())
