"""Tests for plugging new shape kinds into the scene.

Tests cover:
- A kind registered from outside the package is accepted by Scene.add
- Closest-hit dispatch picks the nearer surface across kinds
- Late registration warning and unregistering
"""

import logging
from dataclasses import dataclass

import pytest
import taichi as ti

MAX_PLANES = 4


@dataclass(frozen=True)
class HorizontalPlane:
    """Test entity: the plane y = height with a diffuse albedo."""

    height: float
    albedo: tuple[float, float, float] = (0.2, 0.9, 0.2)

    @property
    def kind(self):
        from pathtracer.geometry.hittable import EntityKind

        return EntityKind.PLANE


@pytest.fixture
def plane_shape():
    """Register a horizontal plane kind, unregistering it afterwards."""
    from pathtracer.core.ray import Ray, ray_at, real, vec3
    from pathtracer.geometry.hittable import (
        EntityKind,
        HitRecord,
        Intersectable,
        face_normal,
        make_miss_record,
        register_shape,
        unregister_shape,
    )
    from pathtracer.materials.material import Material, MaterialKind

    plane_count = ti.field(dtype=ti.i32, shape=())
    plane_heights = ti.field(dtype=ti.f64, shape=MAX_PLANES)
    plane_albedos = ti.Vector.field(3, dtype=ti.f64, shape=MAX_PLANES)

    def add(entity):
        idx = int(plane_count[None])
        plane_heights[idx] = entity.height
        plane_albedos[idx] = list(entity.albedo)
        plane_count[None] = idx + 1
        return idx

    def clear():
        plane_count[None] = 0

    def count():
        return int(plane_count[None])

    @ti.func
    def intersect_planes(ray: Ray, t_min: real, t_max: real) -> HitRecord:
        closest_t = t_max
        result = make_miss_record()

        ti.loop_config(serialize=True)
        for i in range(plane_count[None]):
            if ray.direction.y != 0.0:
                t = (plane_heights[i] - ray.origin.y) / ray.direction.y
                if t_min <= t and t <= closest_t:
                    closest_t = t
                    front_face, normal = face_normal(ray.direction, vec3(0.0, 1.0, 0.0))
                    result = HitRecord(
                        hit=1,
                        t=t,
                        point=ray_at(ray, t),
                        normal=normal,
                        front_face=front_face,
                        material=Material(
                            kind=int(MaterialKind.DIFFUSE),
                            albedo=plane_albedos[i],
                            fuzz=0.0,
                            refraction_index=1.0,
                        ),
                        render_normal_as_color=0,
                    )
        return result

    register_shape(
        Intersectable(
            kind=EntityKind.PLANE,
            add=add,
            clear=clear,
            count=count,
            intersect=intersect_planes,
        )
    )
    yield
    unregister_shape(EntityKind.PLANE)


def _cast(origin, direction):
    """Run hit_world in a freshly compiled kernel; return (hit, t, albedo)."""
    from pathtracer.core.ray import Ray, vec3
    from pathtracer.scene.world import hit_world

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f64, shape=())
    albedo = ti.Vector.field(3, dtype=ti.f64, shape=())

    @ti.kernel
    def test_kernel(ox: ti.f64, oy: ti.f64, oz: ti.f64, dx: ti.f64, dy: ti.f64, dz: ti.f64):
        ray = Ray(origin=vec3(ox, oy, oz), direction=vec3(dx, dy, dz))
        rec = hit_world(ray, 0.001, 1e30)
        hit[None] = rec.hit
        t[None] = rec.t
        albedo[None] = rec.material.albedo

    test_kernel(*origin, *direction)
    return hit[None], t[None], tuple(albedo[None].to_numpy())


class TestRegisteredShapeKind:
    """Tests for a shape kind registered outside the package."""

    def test_scene_add_accepts_registered_kind(self, plane_shape):
        """Test Scene.add stores entities of the new kind."""
        from pathtracer.geometry.hittable import EntityKind, get_shape
        from pathtracer.scene.world import Scene

        scene = Scene()
        assert scene.add(HorizontalPlane(-0.5)) == 0
        assert get_shape(EntityKind.PLANE).count() == 1
        assert len(scene) == 1

        scene.clear()
        assert get_shape(EntityKind.PLANE).count() == 0

    @pytest.mark.parametrize("plane_first", [True, False])
    @pytest.mark.parametrize(
        "height, expected_t, expect_plane",
        [(-0.5, 0.5, True), (-3.0, 1.5, False)],
        ids=["plane-nearer", "sphere-nearer"],
    )
    def test_closest_hit_across_kinds(
        self, plane_shape, plane_first, height, expected_t, expect_plane
    ):
        """Test the nearer of a plane and a sphere wins regardless of insertion order."""
        from pathtracer.materials.diffuse import Diffuse
        from pathtracer.scene.entities import SphereEntity
        from pathtracer.scene.world import Scene

        plane = HorizontalPlane(height, albedo=(0.2, 0.9, 0.2))
        # Sphere top at y = -1.5, straight below the ray origin
        sphere = SphereEntity((0.0, -2.0, 0.0), 0.5, Diffuse((0.9, 0.1, 0.1)))

        scene = Scene()
        for entity in (plane, sphere) if plane_first else (sphere, plane):
            scene.add(entity)

        hit, t, albedo = _cast((0.0, 0.0, 0.0), (0.0, -1.0, 0.0))
        assert hit == 1
        assert t == pytest.approx(expected_t)
        expected_albedo = plane.albedo if expect_plane else sphere.material.albedo
        assert albedo == pytest.approx(expected_albedo)

    def test_miss_when_pointing_away(self, plane_shape):
        """Test a ray parallel to the plane and away from the sphere misses."""
        from pathtracer.scene.entities import SphereEntity
        from pathtracer.scene.world import Scene

        scene = Scene()
        scene.add(HorizontalPlane(-0.5))
        scene.add(SphereEntity((0.0, -2.0, 0.0), 0.5))

        hit, _, _ = _cast((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        assert hit == 0


class TestRegistryBookkeeping:
    """Tests for registration after compilation and removal."""

    def _plane_entry(self):
        from pathtracer.geometry.hittable import EntityKind, Intersectable, get_shape

        sphere = get_shape(EntityKind.SPHERE)
        return Intersectable(
            kind=EntityKind.PLANE,
            add=sphere.add,
            clear=sphere.clear,
            count=sphere.count,
            intersect=sphere.intersect,
        )

    def test_late_registration_warns(self, caplog, monkeypatch):
        """Test registering after a dispatch kernel compiled logs a warning."""
        from pathtracer.geometry import hittable

        monkeypatch.setattr(hittable, "_dispatch_compiled", True)
        with caplog.at_level(logging.WARNING, logger="pathtracer.geometry.hittable"):
            hittable.register_shape(self._plane_entry())
        hittable.unregister_shape(hittable.EntityKind.PLANE)

        assert "registered after a scene query kernel was compiled" in caplog.text

    def test_early_registration_is_silent(self, caplog, monkeypatch):
        """Test registering before any dispatch kernel compiled does not warn."""
        from pathtracer.geometry import hittable

        monkeypatch.setattr(hittable, "_dispatch_compiled", False)
        with caplog.at_level(logging.WARNING, logger="pathtracer.geometry.hittable"):
            hittable.register_shape(self._plane_entry())
        hittable.unregister_shape(hittable.EntityKind.PLANE)

        assert caplog.records == []

    def test_compiling_dispatch_marks_registry(self, monkeypatch):
        """Test reading the intersectors for compilation sets the compiled flag."""
        from pathtracer.geometry import hittable

        monkeypatch.setattr(hittable, "_dispatch_compiled", False)
        hittable.registered_intersectors()
        assert hittable._dispatch_compiled is True

    def test_unregister_removes_kind(self):
        """Test an unregistered kind is reported as unsupported again."""
        from pathtracer.geometry.hittable import (
            EntityKind,
            get_shape,
            register_shape,
            unregister_shape,
        )

        entry = self._plane_entry()
        register_shape(entry)
        assert unregister_shape(EntityKind.PLANE) is entry
        with pytest.raises(NotImplementedError):
            get_shape(EntityKind.PLANE)
        with pytest.raises(NotImplementedError):
            unregister_shape(EntityKind.PLANE)
