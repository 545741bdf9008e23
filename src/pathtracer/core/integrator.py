"""Path tracing integrator.

Estimates the color seen along camera rays by following each ray through the
scene: at every hit the material scatters the ray and attenuates the carried
throughput, a ray that escapes picks up the sky color, and a ray that is
absorbed or runs out of bounces contributes black.

The recursion of the classic formulation is unrolled into a loop over a
throughput accumulator, which gives the same estimate without recursion
inside Taichi functions.

Samples are accumulated as per-pixel sums in a preallocated double precision
buffer together with a per-pixel sample count. Averaging, gamma correction
and quantisation happen on the Python side (see ``pathtracer.preview.export``).

Example:
    >>> from pathtracer.runtime import init_taichi
    >>> init_taichi(seed=7)
    >>> from pathtracer.camera.camera import setup_camera
    >>> from pathtracer.core.integrator import render_image, setup_render_target
    >>> from pathtracer.scene.presets import create_default_scene
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=100, max_depth=50)
"""

import logging
from enum import IntEnum

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.camera import get_ray_jittered
from pathtracer.core.ray import Ray, real, vec3
from pathtracer.materials.scatter import scatter
from pathtracer.scene.world import hit_world

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# Accepted ray interval; t_min skips self-intersection at the scatter origin
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints (bottom, top)
SKY_HORIZON = vec3(1.0, 1.0, 1.0)
SKY_ZENITH = vec3(0.5, 0.7, 1.0)


class RenderMode(IntEnum):
    """How a camera ray is turned into a color.

    PATH_TRACE follows scattered rays up to the depth limit. NORMALS is a
    diagnostic mode that only shades the primary hit.
    """

    PATH_TRACE = 0
    NORMALS = 1

    @classmethod
    def from_name(cls, name: str) -> "RenderMode":
        """Look up a mode by its short name ('path' or 'normals')."""
        names = {"path": cls.PATH_TRACE, "normals": cls.NORMALS}
        try:
            return names[name.lower()]
        except KeyError:
            raise ValueError(
                f"Unknown render mode: {name!r} (expected one of {sorted(names)})"
            ) from None


# =============================================================================
# Radiance Estimation
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background color for a ray that hits nothing.

    Blends white at the horizon to light blue overhead using the height of
    the normalized direction.
    """
    unit_direction = tm.normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON + t * SKY_ZENITH


@ti.func
def trace(ray: Ray, depth: ti.i32) -> vec3:
    """Estimate the color carried back along a ray.

    Args:
        ray: The ray to follow.
        depth: Remaining bounce budget. Zero or less yields black.

    Returns:
        The estimated color. Black when the path is absorbed or the budget
        runs out before the path escapes to the sky.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Taichi funcs cannot break out of loops, so a flag marks finished paths
    active = 1

    ti.loop_config(serialize=True)
    for _ in range(depth):
        if active == 1:
            rec = hit_world(current, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(current.direction)
                active = 0
            else:
                scattered, attenuation, did_scatter = scatter(current, rec)
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = scattered

    return color


@ti.func
def shade_normals(ray: Ray) -> vec3:
    """Diagnostic shading of the primary hit.

    Entities flagged with render_normal_as_color show their normal mapped to
    [0, 1]; other hits show their material albedo; misses show the sky.
    """
    color = sky_color(ray.direction)
    rec = hit_world(ray, T_MIN, T_MAX)

    if rec.hit == 1:
        if rec.render_normal_as_color == 1:
            color = 0.5 * (rec.normal + vec3(1.0, 1.0, 1.0))
        else:
            color = rec.material.albedo

    return color


@ti.func
def shade_sample(ray: Ray, max_depth: ti.i32, mode: ti.i32) -> vec3:
    """Color of one camera ray in the given render mode."""
    color = vec3(0.0, 0.0, 0.0)
    if mode == int(RenderMode.NORMALS):
        color = shade_normals(ray)
    else:
        color = trace(ray, max_depth)
    return color


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 1920
MAX_IMAGE_HEIGHT = 1080

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Per-pixel sum of sample colors, indexed (i, j) with j = 0 at the bottom row
_color_sum = ti.Vector.field(3, dtype=real, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image dimensions and clear the buffers.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug("Render target set to %dx%d", width, height)


def clear_render_target() -> None:
    """Reset the color sums and sample counts to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the active (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_samples(
    width: ti.i32, height: ti.i32, num_samples: ti.i32, max_depth: ti.i32, mode: ti.i32
):
    # Outermost loop is parallel over pixels; samples of a pixel run serially
    for i, j in ti.ndrange(width, height):
        total = vec3(0.0, 0.0, 0.0)

        for _ in range(num_samples):
            ray = get_ray_jittered(i, j, width, height)
            color = shade_sample(ray, max_depth, mode)

            for c in ti.static(range(3)):
                if tm.isnan(color[c]) or tm.isinf(color[c]):
                    color[c] = 0.0
            total += tm.max(color, vec3(0.0, 0.0, 0.0))

        _color_sum[i, j] += total
        _sample_count[i, j] += num_samples


@ti.kernel
def _trace_single_ray(
    ox: real, oy: real, oz: real, dx: real, dy: real, dz: real, depth: ti.i32
) -> vec3:
    ray = Ray(origin=vec3(ox, oy, oz), direction=vec3(dx, dy, dz))
    return trace(ray, depth)


@ti.kernel
def _shade_single_pixel(
    pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, max_depth: ti.i32, mode: ti.i32
) -> vec3:
    ray = get_ray_jittered(pixel_i, pixel_j, width, height)
    return shade_sample(ray, max_depth, mode)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int,
) -> tuple[float, float, float]:
    """Trace one ray through the active scene from Python.

    Intended for tests and debugging; rendering goes through render_image().

    Args:
        origin: The ray origin.
        direction: The ray direction (need not be normalized).
        depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) color values.
    """
    color = _trace_single_ray(*origin, *direction, depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = 50,
    mode: RenderMode = RenderMode.PATH_TRACE,
) -> tuple[float, float, float]:
    """Render a single jittered sample for one pixel without accumulating it.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _shade_single_pixel(pixel_i, pixel_j, width, height, max_depth, int(mode))
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    num_samples: int = 1,
    max_depth: int = 50,
    mode: RenderMode = RenderMode.PATH_TRACE,
) -> None:
    """Add samples to every pixel of the render target.

    Can be called repeatedly; samples keep accumulating until the target is
    cleared.

    Args:
        num_samples: Samples to add per pixel.
        max_depth: Bounce budget per path.
        mode: Render mode.

    Raises:
        ValueError: If num_samples or max_depth is negative.
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    if num_samples < 0 or max_depth < 0:
        raise ValueError(
            f"num_samples and max_depth must be non-negative, got {num_samples}, {max_depth}"
        )
    if num_samples == 0:
        return

    width, height = get_image_dimensions()
    _render_samples(width, height, num_samples, max_depth, int(mode))
    logger.debug("Rendered %d samples per pixel (%s)", num_samples, RenderMode(mode).name)


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel.

    Every pixel receives the same number of samples, so pixel (0, 0) is
    representative.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def get_accumulated_image_numpy() -> tuple[npt.NDArray[np.float64], int]:
    """Get the accumulated color sums in image order.

    Returns:
        Tuple of (sums, samples) where sums has shape (height, width, 3), top
        row first, and samples is the per-pixel sample count.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    sums = _color_sum.to_numpy()[:width, :height, :]

    # (width, height, 3) -> (height, width, 3), then put the top row first
    sums = np.flipud(np.transpose(sums, (1, 0, 2)))

    return np.ascontiguousarray(sums, dtype=np.float64), get_total_samples()
