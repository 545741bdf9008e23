"""Matplotlib-based preview display for rendered images.

Example:
    >>> from pathtracer.preview.display import show_preview
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> show_preview(renderer)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from pathtracer.core.progressive import ProgressiveRenderer


def show_image(
    image: npt.NDArray[np.uint8],
    *,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 4.5),
    block: bool = True,
) -> None:
    """Display an 8-bit (height, width, 3) image in a Matplotlib figure.

    Args:
        image: The image, top row first.
        title: Optional figure title.
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until the figure is closed.
    """
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(image)
    ax.axis("off")
    if title is not None:
        ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    gamma_correct: bool = True,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 4.5),
    block: bool = True,
) -> None:
    """Display the renderer's current image.

    The default title shows the accumulated sample count and render mode.
    """
    if title is None:
        title = f"Render Preview - {renderer.sample_count} SPP ({renderer.mode.name.lower()})"

    show_image(
        renderer.get_image_uint8(gamma_correct=gamma_correct),
        title=title,
        figsize=figsize,
        block=block,
    )
