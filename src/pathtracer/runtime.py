"""Taichi runtime initialisation.

Modules that hold Taichi fields (geometry storage, camera, render target)
allocate them at import time, so ``init_taichi`` must run before importing
them.
"""

import logging

import taichi as ti

logger = logging.getLogger(__name__)

ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
}


def init_taichi(arch: str = "cpu", seed: int = 0, debug: bool = False) -> str:
    """Initialise Taichi in double precision with a seeded random generator.

    The seed fixes the runtime random generator used for sampling and
    scattering, so renders with the same seed and settings are repeatable
    on a given backend.

    Args:
        arch: 'cpu' or 'gpu'. GPU initialisation falls back to CPU on failure.
        seed: Seed of the runtime random generator.
        debug: Enable Taichi debug mode (bounds checks).

    Returns:
        The name of the backend that was initialised.

    Raises:
        ValueError: If arch is not a known backend name.
    """
    if arch not in ARCHS:
        raise ValueError(f"Unknown arch {arch!r} (expected one of {sorted(ARCHS)})")

    options = {"default_fp": ti.f64, "random_seed": seed, "debug": debug}

    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu, **options)
            logger.info("Using GPU backend (seed=%d)", seed)
            return "gpu"
        except Exception:
            logger.warning("GPU initialisation failed, falling back to CPU", exc_info=True)

    ti.init(arch=ti.cpu, **options)
    logger.info("Using CPU backend (seed=%d)", seed)
    return "cpu"
