"""Programmatically assembled scenes.

There is no scene file format; scenes are built in code. This module holds
the scenes the command-line renderer knows by name:

    default: a diffuse sphere resting on a huge ground sphere
    materials: ground plus a glass, a diffuse and a fuzzy metal sphere

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.scene.presets import create_scene
    >>> scene = create_scene("default")
"""

from collections.abc import Callable

from skytrace.scene.manager import SceneManager

GROUND_CENTER = (0.0, -100.5, -1.0)
GROUND_RADIUS = 100.0


def create_default_scene() -> SceneManager:
    """Create the two-sphere scene.

    A grey Lambertian sphere of radius 0.5 at (0, 0, -1) sits on a ground
    sphere of radius 100 centered at (0, -100.5, -1). Both share one material.
    """
    scene = SceneManager()
    grey = scene.add_lambertian_material((0.5, 0.5, 0.5))
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, grey)
    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, grey)
    return scene


def create_material_scene() -> SceneManager:
    """Create a scene exercising every material kind.

    From left to right: a hollow glass sphere (an outer shell of index 1.5
    and an inner sphere of index 1/1.5 modelling the trapped air), a blue
    diffuse sphere, and a fuzzy gold metal sphere, over a yellow-green ground.
    """
    scene = SceneManager()
    ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
    center = scene.add_lambertian_material((0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(1.5)
    bubble = scene.add_dielectric_material(1.0 / 1.5)
    gold = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=1.0)

    scene.add_sphere(GROUND_CENTER, GROUND_RADIUS, ground)
    scene.add_sphere((0.0, 0.0, -1.2), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.4, bubble)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
    return scene


SCENES: dict[str, Callable[[], SceneManager]] = {
    "default": create_default_scene,
    "materials": create_material_scene,
}


def create_scene(name: str) -> SceneManager:
    """Build a named scene.

    Raises:
        ValueError: If the name is not one of SCENES.
    """
    try:
        factory = SCENES[name]
    except KeyError:
        raise ValueError(
            f"Unknown scene {name!r}, expected one of {sorted(SCENES)}"
        ) from None
    return factory()
