"""Render settings.

``RenderSettings`` collects the sampling parameters of a render in one
validated object that can be built from CLI arguments or a dictionary.

Example:
    >>> from pathtracer.config import RenderSettings
    >>> settings = RenderSettings(width=400, samples_per_pixel=50)
    >>> settings.height
    225
"""

from dataclasses import asdict, dataclass, fields
from typing import Any

RENDER_MODES = ("path", "normals")


@dataclass
class RenderSettings:
    """Parameters of a render.

    Attributes:
        width: Image width in pixels.
        aspect_ratio: Image width divided by height; the height is derived.
        samples_per_pixel: Jittered samples averaged into each pixel.
        max_depth: Bounce budget per path.
        gamma_correct: Apply gamma 2 before quantising.
        seed: Seed of the Taichi runtime random generator.
        mode: Render mode name ('path' or 'normals').
        batch_size: Samples per pixel rendered between progress reports.
    """

    width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = 50
    gamma_correct: bool = True
    seed: int = 0
    mode: str = "path"
    batch_size: int = 10

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError(f"width must be positive, got {self.width}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")
        self.mode = self.mode.lower()
        if self.mode not in RENDER_MODES:
            raise ValueError(f"mode must be one of {RENDER_MODES}, got {self.mode!r}")

    @property
    def height(self) -> int:
        """Image height derived from width and aspect ratio (at least 1)."""
        return max(1, int(self.width / self.aspect_ratio))

    def to_dict(self) -> dict[str, Any]:
        """Export the settings to a dictionary (for JSON serialization)."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderSettings":
        """Build settings from a dictionary, ignoring unknown keys.

        Raises:
            ValueError: If a value is invalid.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
