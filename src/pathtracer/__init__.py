"""Monte Carlo path tracer built on Taichi.

Renders scenes of spheres with diffuse, metal and dielectric materials by
tracing jittered camera rays, scattering them at every hit and averaging the
results into an 8-bit image.

Subpackages:
    core: Ray utilities, the path tracing integrator and progressive rendering
    geometry: Hit records, the shape registry and the sphere primitive
    materials: Material descriptions and their scattering functions
    scene: Entity descriptions, the scene container and preset scenes
    camera: Viewport camera and primary ray generation
    preview: Quantisation, PPM/PNG export and Matplotlib preview

Modules that allocate Taichi fields (``geometry.sphere``, ``scene.world``,
``camera.camera``, ``core.integrator``) must be imported after
``pathtracer.runtime.init_taichi()``.
"""

__version__ = "0.1.0"
