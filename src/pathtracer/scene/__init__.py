"""Scene module.

Components:
    entities: Immutable entity descriptions and their dictionary form
    world: Closest-hit dispatch and the Scene container
    presets: Ready-made scenes with matching cameras

Only ``entities`` is imported here; ``world`` and ``presets`` allocate Taichi
fields and must be imported after init_taichi().
"""

from .entities import SphereEntity, entity_from_dict, material_from_dict

__all__ = [
    "SphereEntity",
    "entity_from_dict",
    "material_from_dict",
]
