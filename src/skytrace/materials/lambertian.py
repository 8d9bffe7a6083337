"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters light around the surface normal. The scattered
direction is the hit normal plus a uniformly distributed unit vector, which
yields a cosine-weighted distribution over the hemisphere. With that sampling
the BRDF and cosine terms cancel against the pdf, leaving the albedo as the
attenuation.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)
"""

import logging

import taichi as ti
import taichi.math as tm

from skytrace.core.ray import near_zero
from skytrace.core.sampling import STREAM_SCATTER, random_unit_vector

logger = logging.getLogger(__name__)

vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Sample a scattered ray direction for a Lambertian material.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The surface normal at the hit point (unit length).

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: normal + random unit vector, or the bare
          normal when that sum is degenerate. Not normalized.
        - attenuation: The albedo.
        - did_scatter: Always 1, diffuse surfaces never absorb a ray outright.
    """
    scattered_direction = normal + random_unit_vector(STREAM_SCATTER)

    # The random vector can cancel the normal almost exactly
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clamp_albedo(albedo: tuple[float, float, float]) -> tuple[float, float, float]:
    """Clamp every albedo component into [0, 1].

    Components outside the range would create energy at every bounce; they
    are clamped rather than rejected and a warning is logged.
    """
    clamped = tuple(min(max(float(c), 0.0), 1.0) for c in albedo)
    if clamped != tuple(float(c) for c in albedo):
        logger.warning("Albedo %s clamped to %s", tuple(albedo), clamped)
    return clamped


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Components are clamped to [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    r, g, b = clamp_albedo(albedo)
    lambertian_albedos[idx] = [r, g, b]
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]
