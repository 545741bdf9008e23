"""End-to-end rendering tests.

Renders the preset scenes at small sizes and checks the qualitative content
of the image: a reddish sphere in the middle, yellow-green ground below and a
blue-white sky above, with no invalid pixels.
"""

import numpy as np
import pytest


def _render(create_scene, width, height, samples, max_depth=50, **kwargs):
    from pathtracer.camera.camera import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer

    scene, camera = create_scene()
    setup_camera(camera)

    renderer = ProgressiveRenderer(width, height, max_depth=max_depth, **kwargs)
    renderer.render(samples, batch_size=samples)
    return scene, renderer


class TestDefaultScene:
    """Tests for the two-sphere scene."""

    @pytest.fixture
    def image(self):
        from pathtracer.scene.presets import create_default_scene

        _, renderer = _render(create_default_scene, 64, 36, 32)
        linear = renderer.get_image_numpy(gamma_correct=True)
        return linear, renderer.get_image_uint8()

    def test_scene_contents(self):
        """Test the preset holds the sphere and the ground."""
        from pathtracer.scene.presets import create_default_scene

        scene, camera = create_default_scene()
        centers = [entity.center for entity in scene.entities()]
        assert centers == [(0.0, 0.0, -1.0), (0.0, -100.5, -1.0)]
        assert camera.origin == (0.0, 0.0, 0.0)

    def test_no_invalid_pixels(self, image):
        """Test every pixel is finite and within [0, 1)."""
        linear, quantized = image
        assert np.isfinite(linear).all()
        assert linear.min() >= 0.0
        assert linear.max() < 1.0
        assert quantized.dtype == np.uint8

    def test_center_is_reddish(self, image):
        """Test the sphere in the image centre is dominated by red."""
        linear, _ = image
        r, g, b = linear[16:20, 30:34].reshape(-1, 3).mean(axis=0)
        assert r > g
        assert r > b

    def test_ground_is_yellow_green(self, image):
        """Test the ground below the sphere has little blue."""
        linear, _ = image
        r, g, b = linear[-3:, :8].reshape(-1, 3).mean(axis=0)
        assert r > b
        assert g > b

    def test_sky_is_blue_white(self, image):
        """Test the top corners show the sky with blue dominant."""
        linear, _ = image
        r, g, b = linear[:3, :6].reshape(-1, 3).mean(axis=0)
        assert b >= g >= r
        assert r > 0.6

    def test_independent_renders_agree(self):
        """Test two renders of the scene differ only by sampling noise."""
        from pathtracer.preview.export import compute_rmse
        from pathtracer.scene.presets import create_default_scene

        _, first = _render(create_default_scene, 32, 18, 64)
        a = first.get_image_numpy()
        _, second = _render(create_default_scene, 32, 18, 64)
        b = second.get_image_numpy()

        assert compute_rmse(a, b) < 0.1


class TestOtherPresets:
    """Smoke tests for the remaining presets and render modes."""

    def test_showcase_scene_renders(self):
        """Test the glass/diffuse/metal scene renders without invalid pixels."""
        from pathtracer.scene.presets import create_material_showcase_scene

        scene, renderer = _render(create_material_showcase_scene, 32, 18, 8)
        image = renderer.get_image_numpy()

        assert len(scene) == 5
        assert np.isfinite(image).all()
        assert image.max() > 0.0

    def test_normals_mode_center_pixel(self):
        """Test normals mode shades the flagged sphere by its normal."""
        from pathtracer.core.integrator import RenderMode
        from pathtracer.scene.presets import create_normals_scene

        _, renderer = _render(create_normals_scene, 64, 36, 4, mode=RenderMode.NORMALS)
        linear = renderer.get_image_numpy(gamma_correct=False)

        # Facing the camera, the normal is close to +Z: color close to (0.5, 0.5, 1)
        r, g, b = linear[17:19, 31:33].reshape(-1, 3).mean(axis=0)
        assert b > 0.9
        assert abs(r - 0.5) < 0.1
        assert abs(g - 0.5) < 0.1
