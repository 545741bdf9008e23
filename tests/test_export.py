"""Tests for quantisation and image export.

Tests cover:
- Averaging, gamma correction and clamping
- The plain-text PPM writer
- Extension-based dispatch between PPM and Pillow
"""

import math

import numpy as np
import pytest
from PIL import Image as PILImage

from pathtracer.preview.export import (
    PPMWriter,
    average_samples,
    compute_rmse,
    quantize,
    save_image,
)


class TestQuantize:
    """Tests for average_samples and quantize."""

    @pytest.mark.parametrize("c", [0.0, 0.01, 0.25, 0.5, 0.81, 0.998, 1.0, 4.0])
    def test_gamma_quantisation(self, c):
        """Test byte = int(256 * clamp(sqrt(c), 0, 0.999)) for a single sample."""
        sums = np.full((1, 1, 3), c)
        expected = int(256 * min(max(math.sqrt(c), 0.0), 0.999))
        assert (quantize(sums, 1) == expected).all()

    def test_average_over_samples(self):
        """Test sums are divided by the sample count before gamma."""
        sums = np.full((2, 2, 3), 25.0)
        image = average_samples(sums, 100, gamma_correct=True)
        assert np.allclose(image, 0.5)

    def test_without_gamma(self):
        """Test linear quantisation when gamma correction is off."""
        sums = np.array([[[0.25, 0.5, 0.75]]])
        assert quantize(sums, 1, gamma_correct=False).tolist() == [[[64, 128, 192]]]

    def test_never_exceeds_255(self):
        """Test bright values clamp to 255."""
        assert quantize(np.full((1, 1, 3), 1e6), 1).max() == 255

    def test_negative_values_clamp_to_zero(self):
        """Test negative sums quantise to zero without NaN."""
        assert quantize(np.full((1, 1, 3), -1.0), 1).max() == 0

    def test_zero_samples_rejected(self):
        """Test a zero sample count raises ValueError."""
        with pytest.raises(ValueError):
            quantize(np.zeros((1, 1, 3)), 0)

    def test_dtype_and_shape(self):
        """Test the output keeps the input shape as uint8."""
        out = quantize(np.random.default_rng(0).random((5, 7, 3)), 1)
        assert out.dtype == np.uint8
        assert out.shape == (5, 7, 3)


class TestPPMWriter:
    """Tests for PPMWriter and save_image."""

    def test_header_and_pixels(self, tmp_path):
        """Test the P3 header and one line per pixel."""
        path = tmp_path / "out.ppm"
        with PPMWriter(path, 2, 1) as writer:
            writer.write_pixel(255, 0, 0)
            writer.write_pixel(0, 0, 255)

        assert path.read_text() == "P3\n2 1\n255\n255 0 0\n0 0 255\n"

    @pytest.mark.parametrize("size", [(0, 10), (10, 0)])
    def test_zero_dimensions_rejected(self, tmp_path, size):
        """Test opening with a zero width or height raises ValueError."""
        with pytest.raises(ValueError):
            PPMWriter(tmp_path / "bad.ppm", *size)
        assert not (tmp_path / "bad.ppm").exists()

    def test_too_many_pixels(self, tmp_path):
        """Test writing past the declared size raises ValueError."""
        with PPMWriter(tmp_path / "out.ppm", 1, 1) as writer:
            writer.write_pixel(1, 2, 3)
            with pytest.raises(ValueError):
                writer.write_pixel(4, 5, 6)

    def test_write_after_close(self, tmp_path):
        """Test writing to a closed writer raises ValueError."""
        writer = PPMWriter(tmp_path / "out.ppm", 1, 1)
        writer.close()
        with pytest.raises(ValueError, match="closed"):
            writer.write_pixel(0, 0, 0)

    def test_save_ppm_row_order(self, tmp_path):
        """Test images are written top row first, left to right."""
        image = np.array(
            [[[1, 2, 3], [4, 5, 6]], [[7, 8, 9], [10, 11, 12]]], dtype=np.uint8
        )
        path = save_image(image, tmp_path / "img.ppm")

        lines = path.read_text().splitlines()
        assert lines[:3] == ["P3", "2 2", "255"]
        assert lines[3:] == ["1 2 3", "4 5 6", "7 8 9", "10 11 12"]

    def test_save_png(self, tmp_path):
        """Test non-PPM extensions are written with Pillow."""
        image = np.zeros((3, 4, 3), dtype=np.uint8)
        image[0, 0] = (255, 128, 0)
        path = save_image(image, tmp_path / "img.png")

        with PILImage.open(path) as loaded:
            assert loaded.size == (4, 3)
            assert np.array_equal(np.asarray(loaded.convert("RGB")), image)


class TestComputeRmse:
    """Tests for compute_rmse."""

    def test_identical_images(self):
        """Test identical images have zero error."""
        image = np.ones((4, 4, 3))
        assert compute_rmse(image, image) == 0.0

    def test_shape_mismatch(self):
        """Test mismatched shapes raise ValueError."""
        with pytest.raises(ValueError):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((3, 2, 3)))
