"""Image quantisation and export.

Rendered images leave the integrator as per-pixel color sums. This module
turns them into 8-bit pixels and writes them to disk:

    c = sum / samples
    c = sqrt(c)              (gamma 2, optional)
    c = clamp(c, 0, 0.999)
    byte = int(256 * c)

Supported formats:
    - PPM (plain-text P3, written by PPMWriter)
    - PNG and anything else Pillow can write

Example:
    >>> import numpy as np
    >>> from pathtracer.preview.export import quantize
    >>> quantize(np.full((1, 1, 3), 0.25), samples=1)
    array([[[128, 128, 128]]], dtype=uint8)
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Upper clamp so that 256 * c stays below 256
MAX_INTENSITY = 0.999


def average_samples(
    sums: npt.NDArray[np.floating],
    samples: int,
    gamma_correct: bool = True,
) -> npt.NDArray[np.float64]:
    """Average accumulated color sums and optionally gamma-correct them.

    Args:
        sums: Per-pixel color sums, any shape ending in 3.
        samples: Samples accumulated into each pixel.
        gamma_correct: Apply gamma 2 (square root).

    Returns:
        Colors clamped to [0, MAX_INTENSITY].

    Raises:
        ValueError: If samples is not positive.
    """
    if samples <= 0:
        raise ValueError(f"samples must be positive, got {samples}")

    image = np.asarray(sums, dtype=np.float64) / samples
    image = np.maximum(image, 0.0)
    if gamma_correct:
        image = np.sqrt(image)
    return np.clip(image, 0.0, MAX_INTENSITY)


def quantize(
    sums: npt.NDArray[np.floating],
    samples: int,
    gamma_correct: bool = True,
) -> npt.NDArray[np.uint8]:
    """Convert accumulated color sums to 8-bit pixels.

    Args:
        sums: Per-pixel color sums, any shape ending in 3.
        samples: Samples accumulated into each pixel.
        gamma_correct: Apply gamma 2 (square root) before quantising.

    Returns:
        Array of the same shape with dtype uint8, each value in [0, 255].
    """
    image = average_samples(sums, samples, gamma_correct)
    return (256.0 * image).astype(np.uint8)


class PPMWriter:
    """Streaming writer for plain-text (P3) PPM images.

    The header ``P3\\n<width> <height>\\n255\\n`` is written on open, followed
    by one ``r g b`` line per pixel in row-major order, top row first.

    Example:
        >>> with PPMWriter("out.ppm", 2, 1) as writer:
        ...     writer.write_pixel(255, 0, 0)
        ...     writer.write_pixel(0, 0, 255)
    """

    def __init__(self, path: str | Path, width: int, height: int) -> None:
        """Open the file and write the header.

        Raises:
            ValueError: If width or height is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"PPM dimensions must be positive, got {width}x{height}")

        self.path = Path(path)
        self.width = width
        self.height = height
        self._pixels_written = 0
        self._file: TextIO | None = self.path.open("w", encoding="ascii")
        self._file.write(f"P3\n{width} {height}\n255\n")

    def write_pixel(self, r: int, g: int, b: int) -> None:
        """Append one pixel.

        Raises:
            ValueError: If the writer is closed or the image is already full.
        """
        if self._file is None:
            raise ValueError("PPMWriter is closed")
        if self._pixels_written >= self.width * self.height:
            raise ValueError(f"Image already holds {self.width * self.height} pixels")

        self._file.write(f"{int(r)} {int(g)} {int(b)}\n")
        self._pixels_written += 1

    def write_image(self, image: npt.NDArray[np.uint8]) -> None:
        """Append every pixel of an (height, width, 3) array, top row first."""
        if image.shape != (self.height, self.width, 3):
            raise ValueError(
                f"Expected image of shape {(self.height, self.width, 3)}, got {image.shape}"
            )
        for row in image:
            for r, g, b in row:
                self.write_pixel(r, g, b)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            if self._pixels_written != self.width * self.height:
                logger.warning(
                    "%s closed after %d of %d pixels",
                    self.path,
                    self._pixels_written,
                    self.width * self.height,
                )

    def __enter__(self) -> PPMWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def save_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> Path:
    """Write an 8-bit (height, width, 3) image as a P3 PPM file."""
    height, width = image.shape[:2]
    with PPMWriter(filepath, width, height) as writer:
        writer.write_image(image)
    return Path(filepath)


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> Path:
    """Write an 8-bit (height, width, 3) image with Pillow.

    The format follows the file extension.
    """
    pil_image = PILImage.fromarray(np.ascontiguousarray(image, dtype=np.uint8))
    pil_image.save(filepath)
    return Path(filepath)


def save_image(image: npt.NDArray[np.uint8], filepath: str | Path) -> Path:
    """Write an 8-bit image, choosing the writer from the file extension.

    ``.ppm`` files are written as plain-text P3; everything else goes
    through Pillow.

    Returns:
        The path written.
    """
    path = Path(filepath)
    if path.suffix.lower() == ".ppm":
        save_ppm(image, path)
    else:
        save_png(image, path)
    logger.info("Saved %dx%d image to %s", image.shape[1], image.shape[0], path)
    return path


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
