"""Python-side entity descriptions and their dictionary form.

Entities are immutable descriptions handed to ``Scene.add``. They carry no
Taichi state, so they can be created before the runtime is initialised.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar

from pathtracer.geometry.hittable import EntityKind
from pathtracer.materials.dielectric import Dielectric
from pathtracer.materials.diffuse import DEFAULT_MATERIAL, Diffuse
from pathtracer.materials.material import SurfaceMaterial
from pathtracer.materials.metal import Metal

MATERIAL_TYPES: dict[str, type[SurfaceMaterial]] = {
    Diffuse.type_name: Diffuse,
    Metal.type_name: Metal,
    Dielectric.type_name: Dielectric,
}


def material_from_dict(data: dict[str, Any]) -> SurfaceMaterial:
    """Build a material from its dictionary form.

    Raises:
        ValueError: If the material type is unknown or a parameter is invalid.
    """
    params = dict(data)
    type_name = str(params.pop("type", "")).lower()
    material_cls = MATERIAL_TYPES.get(type_name)
    if material_cls is None:
        raise ValueError(f"Unknown material type: {type_name!r}")
    try:
        if "albedo" in params:
            params["albedo"] = tuple(params["albedo"])
        return material_cls(**params)
    except TypeError as exc:
        raise ValueError(f"Invalid {type_name} material parameters: {exc}") from exc


@dataclass(frozen=True)
class SphereEntity:
    """A sphere in the scene.

    Attributes:
        center: The center point as (x, y, z).
        radius: The radius (must be positive).
        material: The surface material. Defaults to black diffuse.
        render_normal_as_color: Shade by surface normal in the normals
            render mode (diagnostic only).
    """

    kind: ClassVar[EntityKind] = EntityKind.SPHERE
    type_name: ClassVar[str] = "sphere"

    center: tuple[float, float, float]
    radius: float
    material: SurfaceMaterial = field(default=DEFAULT_MATERIAL)
    render_normal_as_color: bool = False

    def __post_init__(self) -> None:
        if len(self.center) != 3:
            raise ValueError(f"Sphere center must have 3 components, got {len(self.center)}")
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius = {self.radius} must be positive.")
        object.__setattr__(self, "center", tuple(float(c) for c in self.center))
        object.__setattr__(self, "radius", float(self.radius))

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dictionary."""
        return {
            "type": self.type_name,
            "center": list(self.center),
            "radius": self.radius,
            "material": self.material.to_dict(),
            "render_normal_as_color": self.render_normal_as_color,
        }


def entity_from_dict(data: dict[str, Any]) -> SphereEntity:
    """Build an entity from its dictionary form.

    Raises:
        ValueError: If the entity type is unknown or a parameter is invalid.
        NotImplementedError: If the type names a kind without geometry support.
    """
    type_name = str(data.get("type", "")).lower()
    if type_name != SphereEntity.type_name:
        reserved = {kind.name.lower() for kind in EntityKind}
        if type_name in reserved:
            raise NotImplementedError(f"Entity kind {type_name!r} has no intersection support")
        raise ValueError(f"Unknown entity type: {type_name!r}")

    material_data = data.get("material")
    material = material_from_dict(material_data) if material_data else DEFAULT_MATERIAL
    try:
        return SphereEntity(
            center=tuple(data.get("center", (0.0, 0.0, 0.0))),
            radius=data.get("radius", 1.0),
            material=material,
            render_normal_as_color=bool(data.get("render_normal_as_color", False)),
        )
    except TypeError as exc:
        raise ValueError(f"Invalid sphere parameters: {exc}") from exc
