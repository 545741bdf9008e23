"""Camera model for primary ray generation.

The camera maps normalized image-plane coordinates (u, v) to world-space
rays. It is described by four vectors derived once at construction:

- origin: the eye position
- lower_left_corner: the lower-left corner of the viewport
- horizontal: the full viewport width vector
- vertical: the full viewport height vector

A ray through (u, v) starts at the origin and points at
``lower_left_corner + u * horizontal + v * vertical``. Camera instances are
immutable; changing a parameter means building a new camera.

The active camera lives in Taichi fields (``setup_camera``) so kernels can
generate rays with ``get_ray`` and ``get_ray_jittered``.

Example:
    >>> from pathtracer.camera.camera import Camera, setup_camera
    >>> camera = Camera.from_viewport(aspect_ratio=16.0 / 9.0, viewport_height=2.0)
    >>> camera.horizontal
    (3.5555555555555554, 0.0, 0.0)
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, make_ray, random_real, real

Vector3 = tuple[float, float, float]


def _as_tuple(v: np.ndarray) -> Vector3:
    return (float(v[0]), float(v[1]), float(v[2]))


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """An immutable pinhole camera.

    Use ``Camera.from_viewport`` or ``Camera.look_at`` rather than the raw
    constructor, which takes the already derived vectors.

    Attributes:
        origin: Eye position in world space.
        lower_left_corner: Lower-left corner of the viewport.
        horizontal: Vector spanning the viewport width.
        vertical: Vector spanning the viewport height.
    """

    origin: Vector3
    lower_left_corner: Vector3
    horizontal: Vector3
    vertical: Vector3

    @classmethod
    def from_viewport(
        cls,
        origin: Vector3 = (0.0, 0.0, 0.0),
        aspect_ratio: float = 16.0 / 9.0,
        viewport_height: float = 2.0,
        focal_length: float = 1.0,
    ) -> "Camera":
        """Build an axis-aligned camera looking down -Z.

        Args:
            origin: Eye position.
            aspect_ratio: Image width divided by height.
            viewport_height: Height of the viewport in world units.
            focal_length: Distance from the eye to the viewport.

        Raises:
            ValueError: If any size parameter is not positive.
        """
        if aspect_ratio <= 0.0 or viewport_height <= 0.0 or focal_length <= 0.0:
            raise ValueError(
                "aspect_ratio, viewport_height and focal_length must be positive, got "
                f"{aspect_ratio}, {viewport_height}, {focal_length}"
            )

        viewport_width = aspect_ratio * viewport_height
        eye = np.array(origin, dtype=np.float64)
        horizontal = np.array([viewport_width, 0.0, 0.0])
        vertical = np.array([0.0, viewport_height, 0.0])
        lower_left = eye - horizontal / 2.0 - vertical / 2.0 - np.array([0.0, 0.0, focal_length])

        return cls(
            origin=_as_tuple(eye),
            lower_left_corner=_as_tuple(lower_left),
            horizontal=_as_tuple(horizontal),
            vertical=_as_tuple(vertical),
        )

    @classmethod
    def look_at(
        cls,
        lookfrom: Vector3,
        lookat: Vector3,
        vup: Vector3 = (0.0, 1.0, 0.0),
        vfov: float = 90.0,
        aspect_ratio: float = 16.0 / 9.0,
    ) -> "Camera":
        """Build a camera positioned at lookfrom, looking toward lookat.

        The camera's orthonormal basis (u, v, w) has w pointing from lookat
        toward lookfrom, u to the right and v up in the image plane. The
        viewport sits at unit distance.

        Args:
            lookfrom: Eye position.
            lookat: Point the camera looks at.
            vup: Up direction used to orient the camera.
            vfov: Vertical field of view in degrees.
            aspect_ratio: Image width divided by height.

        Raises:
            ValueError: If the view direction is degenerate or parallel to vup.
        """
        theta = math.radians(vfov)
        viewport_height = 2.0 * math.tan(theta / 2.0)
        viewport_width = aspect_ratio * viewport_height

        eye = np.array(lookfrom, dtype=np.float64)
        w = eye - np.array(lookat, dtype=np.float64)
        u = np.cross(np.array(vup, dtype=np.float64), w)
        if np.linalg.norm(w) == 0.0 or np.linalg.norm(u) == 0.0:
            raise ValueError("lookfrom must differ from lookat and not be aligned with vup")
        w = w / np.linalg.norm(w)
        u = u / np.linalg.norm(u)
        v = np.cross(w, u)

        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = eye - horizontal / 2.0 - vertical / 2.0 - w

        return cls(
            origin=_as_tuple(eye),
            lower_left_corner=_as_tuple(lower_left),
            horizontal=_as_tuple(horizontal),
            vertical=_as_tuple(vertical),
        )

    def ray_direction(self, u: float, v: float) -> Vector3:
        """Direction of the ray through (u, v), computed on the Python side."""
        direction = (
            np.array(self.lower_left_corner)
            + u * np.array(self.horizontal)
            + v * np.array(self.vertical)
            - np.array(self.origin)
        )
        return _as_tuple(direction)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=real, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=real, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=real, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=real, shape=())


def setup_camera(camera: Camera) -> None:
    """Make a camera the active camera for rendering kernels."""
    _camera_origin[None] = list(camera.origin)
    _lower_left_corner[None] = list(camera.lower_left_corner)
    _viewport_horizontal[None] = list(camera.horizontal)
    _viewport_vertical[None] = list(camera.vertical)


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(u: real, v: real) -> Ray:
    """Generate a ray through normalized image coordinates (u, v).

    - u = 0: left edge, u = 1: right edge
    - v = 0: bottom edge, v = 1: top edge

    The direction is not normalized.
    """
    origin = _camera_origin[None]
    direction = (
        _lower_left_corner[None]
        + u * _viewport_horizontal[None]
        + v * _viewport_vertical[None]
        - origin
    )
    return make_ray(origin, direction)


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate a ray through a random point of pixel (i, j).

    Uses ``u = (i + rand) / (width - 1)`` and ``v = (j + rand) / (height - 1)``
    with rand uniform in [0, 1).

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
    """
    u_span = ti.cast(ti.max(width - 1, 1), real)
    v_span = ti.cast(ti.max(height - 1, 1), real)

    u = (ti.cast(pixel_i, real) + random_real()) / u_span
    v = (ti.cast(pixel_j, real) + random_real()) / v_span

    return get_ray(u, v)


def get_camera_info() -> dict[str, Vector3]:
    """Get the active camera state for debugging."""
    return {
        "origin": _as_tuple(_camera_origin[None].to_numpy()),
        "lower_left_corner": _as_tuple(_lower_left_corner[None].to_numpy()),
        "horizontal": _as_tuple(_viewport_horizontal[None].to_numpy()),
        "vertical": _as_tuple(_viewport_vertical[None].to_numpy()),
    }
