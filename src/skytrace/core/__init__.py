"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    interval: Closed real intervals for ray parameter ranges
    sampling: Seeded random streams and Monte Carlo sampling
    integrator: Sky background, material dispatch and the bounce loop

Only the field-free modules are imported here. sampling and integrator
declare Taichi fields, so import them directly after ti.init():

    from skytrace.core.sampling import seed_sampler
    from skytrace.core.integrator import trace_ray
"""

from .interval import (
    INFINITY,
    T_MAX,
    T_MIN,
    Interval,
    empty_interval,
    interval_clamp,
    interval_contains,
    interval_size,
    interval_surrounds,
    make_interval,
    universe_interval,
)
from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "Interval",
    "INFINITY",
    "T_MIN",
    "T_MAX",
    "make_interval",
    "empty_interval",
    "universe_interval",
    "interval_size",
    "interval_contains",
    "interval_surrounds",
    "interval_clamp",
]
