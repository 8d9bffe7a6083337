"""Light transport for the sky-lit ray tracer.

This module holds the trace itself: material dispatch, the sky background
and the bounded bounce recursion, plus the kernels the camera drives.

The trace follows a camera ray through the scene:

    - depth exhausted: black, no more light is gathered
    - hit, absorbed by the material: black
    - hit, scattered: attenuation * trace(scattered ray, depth - 1)
    - miss: the sky gradient, white at the bottom and blue at the top

Taichi functions cannot recurse, so the recursion is unrolled into a loop
that multiplies the attenuations as it goes; the product of attenuations
times the terminal color is exactly the recursive result.

All kernels serialize their outer loop, so pixels, samples and bounces run
in order and the random streams advance deterministically.
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from skytrace.camera.camera import get_ray
from skytrace.core.interval import T_MAX, T_MIN, make_interval
from skytrace.core.ray import make_ray
from skytrace.geometry.sphere import HitRecord
from skytrace.materials.dielectric import get_dielectric_ior, scatter_dielectric
from skytrace.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from skytrace.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from skytrace.scene.intersection import intersect_scene
from skytrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

SKY_HORIZON_COLOR = (1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = (0.5, 0.7, 1.0)

# Widest image a single scanline buffer holds
MAX_IMAGE_WIDTH = 4096

_row_buffer = ti.Vector.field(3, dtype=ti.f32, shape=MAX_IMAGE_WIDTH)


def check_render_width(width: int) -> None:
    """Raise ValueError if a scanline of this width does not fit the buffer."""
    if width > MAX_IMAGE_WIDTH:
        raise ValueError(
            f"Image width {width} exceeds maximum supported ({MAX_IMAGE_WIDTH})"
        )


# =============================================================================
# Background and Material Dispatch
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Blend white and sky blue by the height of the unit direction.

    Args:
        direction: Ray direction (any non-zero length).

    Returns:
        White for straight down, sky blue for straight up.
    """
    unit_direction = tm.normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    horizon = vec3(SKY_HORIZON_COLOR[0], SKY_HORIZON_COLOR[1], SKY_HORIZON_COLOR[2])
    zenith = vec3(SKY_ZENITH_COLOR[0], SKY_ZENITH_COLOR[1], SKY_ZENITH_COLOR[2])
    return (1.0 - a) * horizon + a * zenith


@ti.func
def scatter_material(incident_direction: vec3, rec: HitRecord):
    """Dispatch to the scattering function of the hit material.

    Args:
        incident_direction: Direction of the ray that produced rec.
        rec: The hit record (normal faces the incoming ray).

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is 0 if the ray was absorbed. Unknown material ids
        absorb the ray.
    """
    mat_type = get_material_type(rec.material_id)
    type_index = get_material_type_index(rec.material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(albedo, rec.normal)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, rec.normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, rec.normal, rec.front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Trace
# =============================================================================


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Compute the color seen along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        max_depth: Bounce budget. Each hit spends one; 0 returns black.

    Returns:
        The gathered color (RGB, linear).
    """
    color = vec3(0.0, 0.0, 0.0)
    ray_origin = origin
    ray_direction = direction

    # Product of all attenuations along the path so far
    throughput = vec3(1.0, 1.0, 1.0)

    # Cleared once the path escapes to the sky or is absorbed
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(make_ray(ray_origin, ray_direction), make_interval(T_MIN, T_MAX))

            if rec.hit == 0:
                color = throughput * sky_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = scatter_material(ray_direction, rec)
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    # A path still active here ran out of depth and contributes black
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_row(
    pixel_j: ti.i32,
    width: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    pixel_samples_scale: ti.f32,
):
    """Render one scanline into the row buffer."""
    ti.loop_config(serialize=True)
    for i in range(width):
        pixel_color = vec3(0.0, 0.0, 0.0)
        for _ in range(samples_per_pixel):
            ray = get_ray(i, pixel_j)
            pixel_color += ray_color(ray.origin, ray.direction, max_depth)
        _row_buffer[i] = pixel_samples_scale * pixel_color


@ti.kernel
def _trace_single(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Trace a single given ray. Used for testing individual paths."""
    return ray_color(origin, direction, max_depth)


@ti.kernel
def _sky_single(direction: vec3) -> vec3:
    return sky_color(direction)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_row(
    pixel_j: int,
    width: int,
    samples_per_pixel: int,
    max_depth: int,
    pixel_samples_scale: float,
) -> npt.NDArray[np.float32]:
    """Render one scanline with the camera currently set up.

    Args:
        pixel_j: Row index (0 = top).
        width: Number of pixels in the row.
        samples_per_pixel: Samples averaged per pixel.
        max_depth: Bounce budget per sample.
        pixel_samples_scale: Factor applied to the summed samples,
            normally 1 / samples_per_pixel.

    Returns:
        Linear colors of the row, shape (width, 3).

    Raises:
        ValueError: If width exceeds MAX_IMAGE_WIDTH.
    """
    check_render_width(width)
    _render_row(pixel_j, width, samples_per_pixel, max_depth, pixel_samples_scale)
    return _row_buffer.to_numpy()[:width].astype(np.float32)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
) -> tuple[float, float, float]:
    """Trace one ray through the current scene from Python.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z).
        max_depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) color values.
    """
    color = _trace_single(vec3(*origin), vec3(*direction), max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def sky_color_at(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Evaluate the sky gradient for a direction from Python."""
    color = _sky_single(vec3(*direction))
    return (float(color[0]), float(color[1]), float(color[2]))
