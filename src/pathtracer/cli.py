"""Command-line renderer.

Usage:
    pathtracer [options]
    python -m pathtracer [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --aspect-ratio RATIO    Width divided by height (default: 16/9)
    --samples SAMPLES       Samples per pixel (default: 100)
    --max-depth DEPTH       Bounce budget per path (default: 50)
    --seed SEED             Random generator seed (default: 0)
    --mode {path,normals}   Render mode (default: path)
    --scene NAME            Preset scene (default: default)
    --scene-file PATH       JSON scene file, replaces the preset's entities
    --no-gamma              Skip gamma correction
    --arch {cpu,gpu}        Taichi backend (default: cpu)
    --batch-size SIZE       Samples per progress update (default: 10)
    --output OUTPUT         Output file, .ppm or any Pillow format (default: image.ppm)
    --preview               Show the result in a Matplotlib window
    -v, --verbose           Debug logging
    -q, --quiet             Only log warnings and errors

Example:
    pathtracer --width 200 --samples 20 --output spheres.png
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

from pathtracer.config import RENDER_MODES, RenderSettings

logger = logging.getLogger(__name__)

SCENE_NAMES = ("default", "showcase", "normals")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    defaults = RenderSettings()
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a scene of spheres with Monte Carlo path tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=defaults.width, help="Image width in pixels")
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=defaults.aspect_ratio,
        help="Image width divided by height",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=defaults.samples_per_pixel,
        help="Samples per pixel",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=defaults.max_depth,
        help="Bounce budget per path",
    )
    parser.add_argument("--seed", type=int, default=defaults.seed, help="Random generator seed")
    parser.add_argument("--mode", choices=RENDER_MODES, default=defaults.mode, help="Render mode")
    parser.add_argument("--scene", choices=SCENE_NAMES, default="default", help="Preset scene")
    parser.add_argument(
        "--scene-file",
        type=Path,
        default=None,
        help="JSON scene file with an 'entities' list; replaces the preset's entities",
    )
    parser.add_argument("--no-gamma", action="store_true", help="Skip gamma correction")
    parser.add_argument("--arch", choices=("cpu", "gpu"), default="cpu", help="Taichi backend")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=defaults.batch_size,
        help="Samples per progress update",
    )
    parser.add_argument("--output", type=Path, default=Path("image.ppm"), help="Output file")
    parser.add_argument("--preview", action="store_true", help="Show the result in a window")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def settings_from_args(args: argparse.Namespace) -> RenderSettings:
    """Build validated render settings from parsed arguments.

    Raises:
        ValueError: If an argument value is invalid.
    """
    return RenderSettings(
        width=args.width,
        aspect_ratio=args.aspect_ratio,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        gamma_correct=not args.no_gamma,
        seed=args.seed,
        mode=args.mode,
        batch_size=args.batch_size,
    )


def render(
    settings: RenderSettings,
    output_path: Path,
    scene_name: str = "default",
    scene_file: Path | None = None,
    preview: bool = False,
) -> Path:
    """Build the scene, render it and save the image.

    Taichi must already be initialised.

    Args:
        settings: Render settings.
        output_path: Where to write the image.
        scene_name: Name of the preset providing the camera and entities.
        scene_file: Optional JSON scene whose entities replace the preset's.
        preview: Show the result in a Matplotlib window.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.camera import setup_camera
    from pathtracer.core.integrator import RenderMode
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.scene.presets import PRESETS

    scene, camera = PRESETS[scene_name](aspect_ratio=settings.aspect_ratio)
    if scene_file is not None:
        with scene_file.open(encoding="utf-8") as fh:
            scene.from_dict(json.load(fh))
    logger.info("Scene %r with %d entities", scene_name, len(scene))

    setup_camera(camera)

    renderer = ProgressiveRenderer(
        settings.width,
        settings.height,
        max_depth=settings.max_depth,
        mode=RenderMode.from_name(settings.mode),
    )

    logger.info(
        "Rendering %dx%d, %d samples per pixel, depth %d",
        settings.width,
        settings.height,
        settings.samples_per_pixel,
        settings.max_depth,
    )
    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0.0
        logger.debug("Progress: %d/%d samples (%.1f spp/s)", current, target, samples_per_sec)

    renderer.render(
        num_samples=settings.samples_per_pixel,
        batch_size=settings.batch_size,
        callback=progress_callback,
    )

    saved = renderer.save_image(output_path, gamma_correct=settings.gamma_correct)
    logger.info("Saved to %s in %.2fs", saved.absolute(), time.time() - start_time)

    if preview:
        from pathtracer.preview.display import show_preview

        show_preview(renderer, gamma_correct=settings.gamma_correct)

    return saved


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        settings = settings_from_args(args)

        from pathtracer.runtime import init_taichi

        init_taichi(arch=args.arch, seed=settings.seed)
        render(
            settings,
            args.output,
            scene_name=args.scene,
            scene_file=args.scene_file,
            preview=args.preview,
        )
        return 0
    except Exception:
        logger.exception("Render failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
