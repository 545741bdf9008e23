"""Ready-made scenes.

Each factory fills a fresh ``Scene`` (replacing the active one) and returns it
together with a matching camera.

Example:
    >>> from pathtracer.runtime import init_taichi
    >>> init_taichi()
    >>> from pathtracer.camera.camera import setup_camera
    >>> from pathtracer.scene.presets import create_default_scene
    >>>
    >>> scene, camera = create_default_scene()
    >>> setup_camera(camera)
"""

from dataclasses import dataclass

from pathtracer.camera.camera import Camera
from pathtracer.materials.dielectric import Dielectric
from pathtracer.materials.diffuse import Diffuse
from pathtracer.materials.metal import Metal
from pathtracer.scene.entities import SphereEntity
from pathtracer.scene.world import Scene

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0


@dataclass
class DefaultSceneParams:
    """Parameters of the default two-sphere scene.

    Attributes:
        sphere_albedo: Albedo of the small sphere (reddish by default).
        ground_albedo: Albedo of the ground sphere (yellow-green by default).
        viewport_height: Height of the viewport in world units.
        focal_length: Distance from the eye to the viewport.
    """

    sphere_albedo: tuple[float, float, float] = (0.7, 0.3, 0.3)
    ground_albedo: tuple[float, float, float] = (0.8, 0.8, 0.0)
    viewport_height: float = 2.0
    focal_length: float = 1.0


def create_default_scene(
    params: DefaultSceneParams | None = None,
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[Scene, Camera]:
    """Create a diffuse sphere resting on a large ground sphere.

    The camera sits at the origin looking down -Z with a viewport of height 2
    at focal length 1.

    Args:
        params: Optional scene parameters. Defaults are used when omitted.
        aspect_ratio: Image width divided by height.

    Returns:
        Tuple of (scene, camera).
    """
    if params is None:
        params = DefaultSceneParams()

    scene = Scene()
    scene.add(SphereEntity((0.0, 0.0, -1.0), 0.5, Diffuse(params.sphere_albedo)))
    scene.add(SphereEntity(GROUND_CENTER, GROUND_RADIUS, Diffuse(params.ground_albedo)))

    camera = Camera.from_viewport(
        origin=(0.0, 0.0, 0.0),
        aspect_ratio=aspect_ratio,
        viewport_height=params.viewport_height,
        focal_length=params.focal_length,
    )
    return scene, camera


def create_material_showcase_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[Scene, Camera]:
    """Create three spheres in a row: glass, diffuse and fuzzy metal.

    The glass sphere contains a smaller sphere with the inverse index of
    refraction, which renders as a hollow bubble.
    """
    scene = Scene()
    scene.add(SphereEntity(GROUND_CENTER, GROUND_RADIUS, Diffuse((0.8, 0.8, 0.0))))
    scene.add(SphereEntity((0.0, 0.0, -1.0), 0.5, Diffuse((0.1, 0.2, 0.5))))
    scene.add(SphereEntity((-1.0, 0.0, -1.0), 0.5, Dielectric(1.5)))
    scene.add(SphereEntity((-1.0, 0.0, -1.0), 0.4, Dielectric(1.0 / 1.5)))
    scene.add(SphereEntity((1.0, 0.0, -1.0), 0.5, Metal((0.8, 0.6, 0.2), fuzz=0.3)))

    camera = Camera.look_at(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


def create_normals_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[Scene, Camera]:
    """Create the default layout with the small sphere shaded by its normal.

    Intended for the normals render mode.
    """
    scene = Scene()
    scene.add(
        SphereEntity(
            (0.0, 0.0, -1.0),
            0.5,
            Diffuse((0.7, 0.3, 0.3)),
            render_normal_as_color=True,
        )
    )
    scene.add(SphereEntity(GROUND_CENTER, GROUND_RADIUS, Diffuse((0.8, 0.8, 0.0))))
    return scene, Camera.from_viewport(aspect_ratio=aspect_ratio)


PRESETS = {
    "default": create_default_scene,
    "showcase": create_material_showcase_scene,
    "normals": create_normals_scene,
}
