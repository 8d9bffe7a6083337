"""Seeded random streams and Monte Carlo sampling utilities.

The renderer draws random numbers from explicit generator state kept in a
Taichi field rather than from the runtime's implicit generator, so a render
is reproducible from its seed alone. Two independent xorshift32 streams are
kept:

    STREAM_CAMERA: sub-pixel jitter for antialiasing
    STREAM_SCATTER: diffuse/fuzz sampling and the dielectric reflect-or-refract choice

Streams are seeded from a NumPy Generator on the Python side. The render
kernels are serialized, so each stream is advanced by exactly one thread.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.core.sampling import seed_sampler, random_unit_vector
    >>> seed_sampler(1234)
    >>> # Use random_unit_vector(STREAM_SCATTER) within a Taichi kernel
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from skytrace.core.ray import length_squared

vec3 = tm.vec3

STREAM_CAMERA = 0
STREAM_SCATTER = 1
NUM_STREAMS = 2

# Bound on rejection-sampling attempts
MAX_REJECTION_TRIES = 100

# Maps the top 24 bits of a draw onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0

_FALLBACK_STATE = 123456789

_rng_state = ti.field(dtype=ti.u32, shape=NUM_STREAMS)


def seed_sampler(seed: int | None = None) -> None:
    """Seed every random stream.

    Args:
        seed: Seed for the NumPy generator that derives the per-stream
            states. None draws fresh entropy from the operating system.
    """
    rng = np.random.default_rng(seed)
    # xorshift32 must never hold a zero state
    states = rng.integers(1, 2**32, size=NUM_STREAMS, dtype=np.uint64)
    _rng_state.from_numpy(states.astype(np.uint32))


def get_sampler_state() -> tuple[int, ...]:
    """Get the current state of every stream (for tests and debugging)."""
    return tuple(int(s) for s in _rng_state.to_numpy())


@ti.func
def _next_u32(stream: ti.i32) -> ti.u32:
    x = _rng_state[stream]
    # An unseeded stream would stay at zero forever
    if x == ti.u32(0):
        x = ti.u32(_FALLBACK_STATE)
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    _rng_state[stream] = x
    return x


@ti.func
def random_float(stream: ti.i32) -> ti.f32:
    """Draw a uniform real in [0, 1) from the given stream."""
    return ti.cast(_next_u32(stream) >> ti.u32(8), ti.f32) * _INV_2_24


@ti.func
def random_range(stream: ti.i32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Draw a uniform real in [lo, hi) from the given stream."""
    return lo + (hi - lo) * random_float(stream)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling to generate uniformly distributed points
    within the unit sphere. Points too close to the origin are rejected as
    well so the result can always be normalized.

    Returns:
        A random point with 1e-20 < length^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p = vec3(
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
            )
            lensq = length_squared(p)
            if 1e-20 < lensq and lensq < 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.5)
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere."""
    return tm.normalize(random_in_unit_sphere(stream))


@ti.func
def random_on_hemisphere(stream: ti.i32, normal: vec3) -> vec3:
    """Generate a random unit vector on the hemisphere around a normal.

    Args:
        stream: The random stream to draw from.
        normal: The normal defining the hemisphere orientation.

    Returns:
        A random unit vector whose dot product with normal is non-negative.
    """
    on_sphere = random_unit_vector(stream)
    result = on_sphere
    if tm.dot(on_sphere, normal) < 0.0:
        result = -on_sphere
    return result


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIES):
        if not found:
            p = vec3(
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.0)
    return p


@ti.func
def sample_square(stream: ti.i32) -> vec3:
    """Return the offset to a random point in the [-0.5, 0.5]^2 unit square."""
    return vec3(random_float(stream) - 0.5, random_float(stream) - 0.5, 0.0)
