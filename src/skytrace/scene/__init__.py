"""Scene module: primitive storage, scene building and preset scenes.

Components:
    intersection: Sphere storage and closest-hit queries
    manager: SceneManager with the unified material id space
    presets: Named scenes built in code

Scene data lives in Structure-of-Arrays Taichi fields, so only one scene
is live at a time. Each SceneManager keeps its own record and uploads it
again before it is rendered.
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneManager,
    SphereInfo,
)
from .presets import SCENES, create_default_scene, create_material_scene, create_scene

__all__ = [
    # Intersection
    "MAX_SPHERES",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    # Manager
    "MAX_MATERIALS",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneManager",
    # Presets
    "SCENES",
    "create_default_scene",
    "create_material_scene",
    "create_scene",
]
