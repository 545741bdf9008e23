"""Progressive renderer for batched sample accumulation.

Wraps the integrator's render target so a caller can add samples in
batches, observe progress between batches, and read the image at any point.

Example:
    >>> from pathtracer.runtime import init_taichi
    >>> init_taichi()
    >>> from pathtracer.camera.camera import setup_camera
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.scene.presets import create_default_scene
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100, batch_size=10)
    >>> image = renderer.get_image_uint8()
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from pathtracer.core.integrator import (
    RenderMode,
    clear_render_target,
    get_accumulated_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from pathtracer.preview.export import average_samples, quantize, save_image

logger = logging.getLogger(__name__)

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A renderer that accumulates samples over repeated calls.

    The renderer keeps the image dimensions, bounce budget and render mode,
    and delegates storage to the integrator's global buffers (Taichi fields),
    so only one renderer should be active at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Bounce budget per path.
        mode: The render mode.
    """

    def __init__(
        self,
        width: int,
        height: int,
        max_depth: int = 50,
        mode: RenderMode = RenderMode.PATH_TRACE,
    ) -> None:
        """Initialize the renderer and clear the render target.

        Raises:
            ValueError: If the dimensions are invalid or max_depth is negative.
        """
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self._width = width
        self._height = height
        self.max_depth = max_depth
        self.mode = RenderMode(mode)
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard accumulated samples, keeping the dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Change the image dimensions and discard accumulated samples."""
        self._width = width
        self._height = height
        setup_render_target(width, height)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add samples in batches, optionally reporting progress.

        Args:
            num_samples: Total number of samples per pixel to add.
            batch_size: Samples per pixel rendered between callbacks.
            callback: Called after each batch with
                (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Add samples in batches, yielding progress after each batch.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"{current}/{target} samples")
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self.max_depth, self.mode)
            remaining -= batch
            logger.info("Accumulated %d/%d samples per pixel", self.sample_count, target_samples)
            yield (self.sample_count, target_samples)

    def get_image_numpy(self, gamma_correct: bool = False) -> npt.NDArray[np.float64]:
        """Get the averaged image as floats in [0, 1].

        Args:
            gamma_correct: Apply gamma-2 correction (square root).

        Returns:
            Array of shape (height, width, 3), top row first.
        """
        sums, samples = get_accumulated_image_numpy()
        return average_samples(sums, samples, gamma_correct)

    def get_image_uint8(self, gamma_correct: bool = True) -> npt.NDArray[np.uint8]:
        """Get the quantised 8-bit image.

        Returns:
            Array of shape (height, width, 3) with dtype uint8, top row first.
        """
        sums, samples = get_accumulated_image_numpy()
        return quantize(sums, samples, gamma_correct)

    def save_image(self, filepath: str | Path, gamma_correct: bool = True) -> Path:
        """Save the quantised image (.ppm as text, other formats via Pillow)."""
        return save_image(self.get_image_uint8(gamma_correct), filepath)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count}, mode={self.mode.name})"
        )
