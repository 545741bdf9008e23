"""Tests for the viewport camera and primary ray generation.

Tests cover:
- Derived viewport vectors of from_viewport and look_at
- get_ray at the viewport corners and centre
- Jittered rays staying inside their pixel
- Parameter validation
"""

import pytest
import taichi as ti


class TestCameraConstruction:
    """Tests for Camera.from_viewport and Camera.look_at."""

    def test_from_viewport_vectors(self):
        """Test the derived vectors of the default 16:9 viewport."""
        from pathtracer.camera.camera import Camera

        camera = Camera.from_viewport(
            origin=(0.0, 0.0, 0.0), aspect_ratio=16.0 / 9.0, viewport_height=2.0, focal_length=1.0
        )
        width = 2.0 * 16.0 / 9.0

        assert camera.origin == (0.0, 0.0, 0.0)
        assert camera.horizontal == pytest.approx((width, 0.0, 0.0))
        assert camera.vertical == pytest.approx((0.0, 2.0, 0.0))
        assert camera.lower_left_corner == pytest.approx((-width / 2.0, -1.0, -1.0))

    def test_from_viewport_offset_origin(self):
        """Test the viewport moves with the origin."""
        from pathtracer.camera.camera import Camera

        camera = Camera.from_viewport(origin=(1.0, 2.0, 3.0), aspect_ratio=1.0)
        assert camera.lower_left_corner == pytest.approx((0.0, 1.0, 2.0))

    @pytest.mark.parametrize(
        "kwargs",
        [{"aspect_ratio": 0.0}, {"viewport_height": -2.0}, {"focal_length": 0.0}],
    )
    def test_from_viewport_rejects_non_positive(self, kwargs):
        """Test non-positive sizes raise ValueError."""
        from pathtracer.camera.camera import Camera

        with pytest.raises(ValueError):
            Camera.from_viewport(**kwargs)

    def test_look_at_matches_from_viewport(self):
        """Test look_at down -Z with 90 degree fov equals the default viewport."""
        from pathtracer.camera.camera import Camera

        a = Camera.look_at((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 1.0, 0.0), 90.0, 16.0 / 9.0)
        b = Camera.from_viewport()

        assert a.origin == pytest.approx(b.origin)
        assert a.horizontal == pytest.approx(b.horizontal)
        assert a.vertical == pytest.approx(b.vertical)
        assert a.lower_left_corner == pytest.approx(b.lower_left_corner)

    def test_look_at_degenerate(self):
        """Test a view direction parallel to vup raises ValueError."""
        from pathtracer.camera.camera import Camera

        with pytest.raises(ValueError):
            Camera.look_at((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 1.0, 0.0))

    def test_camera_is_immutable(self):
        """Test camera attributes cannot be reassigned."""
        import dataclasses

        from pathtracer.camera.camera import Camera

        camera = Camera.from_viewport()
        with pytest.raises(dataclasses.FrozenInstanceError):
            camera.origin = (1.0, 0.0, 0.0)

    def test_ray_direction_python_side(self):
        """Test ray_direction through the viewport centre points down -Z."""
        from pathtracer.camera.camera import Camera

        assert Camera.from_viewport().ray_direction(0.5, 0.5) == pytest.approx((0.0, 0.0, -1.0))


class TestRayGeneration:
    """Tests for get_ray and get_ray_jittered."""

    def test_get_ray_corners_and_center(self):
        """Test rays through the corners and centre of the viewport."""
        from pathtracer.camera.camera import Camera, get_ray, setup_camera

        setup_camera(Camera.from_viewport())
        origins = ti.Vector.field(3, dtype=ti.f64, shape=3)
        directions = ti.Vector.field(3, dtype=ti.f64, shape=3)

        @ti.kernel
        def test_kernel():
            r0 = get_ray(0.0, 0.0)
            r1 = get_ray(1.0, 1.0)
            r2 = get_ray(0.5, 0.5)
            origins[0] = r0.origin
            origins[1] = r1.origin
            origins[2] = r2.origin
            directions[0] = r0.direction
            directions[1] = r1.direction
            directions[2] = r2.direction

        test_kernel()
        half_width = 16.0 / 9.0
        d = directions.to_numpy()
        assert origins.to_numpy() == pytest.approx(0.0)
        assert tuple(d[0]) == pytest.approx((-half_width, -1.0, -1.0))
        assert tuple(d[1]) == pytest.approx((half_width, 1.0, -1.0))
        assert tuple(d[2]) == pytest.approx((0.0, 0.0, -1.0))

    def test_get_ray_is_not_normalized(self):
        """Test corner directions keep their full length."""
        from pathtracer.camera.camera import Camera, get_ray, setup_camera

        setup_camera(Camera.from_viewport(aspect_ratio=1.0))
        direction = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            direction[None] = get_ray(1.0, 1.0).direction

        test_kernel()
        d = direction[None]
        assert abs((d[0] ** 2 + d[1] ** 2 + d[2] ** 2) ** 0.5 - 3.0**0.5) < 1e-12

    def test_jittered_rays_stay_in_pixel(self):
        """Test jittered rays for pixel (i, j) fall within [i, i+1) x [j, j+1)."""
        from pathtracer.camera.camera import Camera, get_ray_jittered, setup_camera

        camera = Camera.from_viewport(aspect_ratio=1.0, viewport_height=2.0)
        setup_camera(camera)

        width, height = 11, 11
        pixel_i, pixel_j = 3, 7
        n = 200
        directions = ti.Vector.field(3, dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                directions[k] = get_ray_jittered(pixel_i, pixel_j, width, height).direction

        test_kernel()
        d = directions.to_numpy()
        # Recover u, v from the viewport: x = -1 + 2u, y = -1 + 2v
        u = (d[:, 0] + 1.0) / 2.0 * (width - 1)
        v = (d[:, 1] + 1.0) / 2.0 * (height - 1)
        assert (u >= pixel_i - 1e-9).all() and (u < pixel_i + 1 + 1e-9).all()
        assert (v >= pixel_j - 1e-9).all() and (v < pixel_j + 1 + 1e-9).all()
        assert u.std() > 0.0

    def test_get_camera_info(self):
        """Test the active camera can be read back."""
        from pathtracer.camera.camera import Camera, get_camera_info, setup_camera

        camera = Camera.from_viewport(origin=(0.0, 1.0, 0.0))
        setup_camera(camera)
        info = get_camera_info()

        assert info["origin"] == pytest.approx(camera.origin)
        assert info["lower_left_corner"] == pytest.approx(camera.lower_left_corner)
