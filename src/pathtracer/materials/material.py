"""Material kinds and the kernel-side material record.

Every entity owns one material. On the Python side materials are described by
small immutable dataclasses (``Diffuse``, ``Metal``, ``Dielectric``) that
validate their parameters; on the Taichi side they are flattened into the
``Material`` struct, which is copied by value into each hit record.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, ClassVar

import taichi as ti

from pathtracer.core.ray import real, vec3


class MaterialKind(IntEnum):
    """Tags for the material variants understood by the scatter dispatcher."""

    DIFFUSE = 0
    METAL = 1
    DIELECTRIC = 2


@ti.dataclass
class Material:
    """Kernel-side material record.

    Only the fields relevant to ``kind`` are meaningful.

    Attributes:
        kind: The MaterialKind tag.
        albedo: Reflectance per channel (diffuse and metal).
        fuzz: Reflection blur radius in [0, 1] (metal).
        refraction_index: Index of refraction (dielectric).
    """

    kind: ti.i32
    albedo: vec3
    fuzz: real
    refraction_index: real


def validate_albedo(albedo: tuple[float, float, float]) -> tuple[float, float, float]:
    """Check an RGB reflectance triple and return it as a float tuple.

    Raises:
        ValueError: If the triple does not have three components, or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )
    return (float(albedo[0]), float(albedo[1]), float(albedo[2]))


@dataclass(frozen=True)
class SurfaceMaterial:
    """Base class of the Python-side material descriptions.

    Subclasses set ``kind`` and ``type_name`` and implement ``packed`` and
    ``params``.
    """

    kind: ClassVar[MaterialKind]
    type_name: ClassVar[str]

    def packed(self) -> tuple[int, tuple[float, float, float], float, float]:
        """Flatten into ``(kind, albedo, fuzz, refraction_index)`` for field storage."""
        raise NotImplementedError

    def params(self) -> dict[str, Any]:
        """Return the constructor parameters as JSON-compatible values."""
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a dictionary tagged with the material type name."""
        return {"type": self.type_name, **self.params()}
