"""Dielectric (glass/water) material implementation.

Dielectrics refract light that enters them and reflect part of it:

    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for the reflectance probability
    - Total internal reflection when the ratio times sin(theta) exceeds 1

Each scatter picks reflection or refraction at random with the Schlick
probability, so a converged pixel blends both. An index of exactly 1 is no
interface at all: rays pass through undeviated at every angle. Dielectrics absorb nothing.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face
    >>> # )
"""

import logging

import taichi as ti
import taichi.math as tm

from skytrace.core.ray import reflect, refract, schlick_reflectance
from skytrace.core.sampling import STREAM_SCATTER, random_float

logger = logging.getLogger(__name__)

vec3 = tm.vec3


@ti.func
def refraction_ratio_for(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Return 1/ior when entering the medium, ior when leaving it."""
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def cannot_refract(unit_direction: vec3, normal: vec3, refraction_ratio: ti.f32) -> ti.i32:
    """Return 1 if Snell's law has no solution (total internal reflection)."""
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    return refraction_ratio * sin_theta > 1.0


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Compute scattered ray direction for dielectric material.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal facing the incident ray (unit length).
        front_face: 1 if the ray hits the outside of the surface,
            0 if it travels inside the material.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected or refracted direction (unit length).
        - attenuation: White, clear glass absorbs nothing.
        - did_scatter: Always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ratio = refraction_ratio_for(ior, front_face)

    unit_direction = tm.normalize(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)

    scattered_direction = refract(unit_direction, normal, ratio)
    # Matching indices leave no interface to reflect from
    if ratio != 1.0:
        if cannot_refract(unit_direction, normal, ratio) or (
            schlick_reflectance(cos_theta, ratio) > random_float(STREAM_SCATTER)
        ):
            scattered_direction = reflect(unit_direction, normal)

    return scattered_direction, attenuation, 1


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Compute the Schlick reflectance a ray would see at this surface.

    Returns 0 when the indices on both sides match.
    """
    ratio = refraction_ratio_for(ior, front_face)
    unit_direction = tm.normalize(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    reflectance = 0.0
    if ratio != 1.0:
        reflectance = schlick_reflectance(cos_theta, ratio)
    return reflectance


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be positive.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if not ior > 0.0:
        raise ValueError(
            f"Index of refraction = {ior} is not positive. "
            "Refraction ratios are undefined for a non-positive IOR."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    if ior < 1.0:
        logger.debug(
            "Dielectric %d has ior %s below 1, modelling a less dense pocket", idx, ior
        )
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]
