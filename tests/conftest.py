"""Pytest configuration for skytrace tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.

Modules that declare Taichi fields are imported inside tests and fixtures,
after ti.init() has run.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene and material storage and reseed the sampler around each test."""
    from skytrace.core.sampling import seed_sampler
    from skytrace.materials.dielectric import clear_dielectric_materials
    from skytrace.materials.lambertian import clear_lambertian_materials
    from skytrace.materials.metal import clear_metal_materials
    from skytrace.scene.intersection import clear_scene
    from skytrace.scene.manager import SceneManager, _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        SceneManager._live = None

    _clear_all()
    seed_sampler(1234)

    yield

    _clear_all()
