"""Pytest configuration for path tracer tests.

Taichi is initialised once per session; modules that allocate Taichi fields
are imported inside fixtures and tests, after initialisation.
"""

import pytest

from pathtracer.runtime import init_taichi


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate fields allocated by modules imported earlier in the session.
    """
    init_taichi(arch="cpu", seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_scene_and_render_target():
    """Clear scene storage and the render target around each test."""
    from pathtracer.core.integrator import clear_render_target
    from pathtracer.scene.world import clear_world

    def _clear_all():
        clear_world()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()
