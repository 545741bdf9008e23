"""Preview module for output and visualization.

Components:
    export: Quantisation, PPM writer and Pillow export
    display: Matplotlib preview
"""

from pathtracer.preview.display import show_image, show_preview
from pathtracer.preview.export import (
    PPMWriter,
    average_samples,
    compute_rmse,
    quantize,
    save_image,
    save_png,
    save_ppm,
)

__all__ = [
    "show_preview",
    "show_image",
    "PPMWriter",
    "average_samples",
    "quantize",
    "save_image",
    "save_png",
    "save_ppm",
    "compute_rmse",
]
