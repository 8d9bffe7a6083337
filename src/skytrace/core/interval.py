"""Closed real intervals used to bound intersection parameters.

An Interval carries the acceptable range of the ray parameter t. The lower
bound keeps bounce rays from re-hitting the surface they leave, the upper
bound shrinks as the scene aggregate finds closer hits.
"""

import taichi as ti
import taichi.math as tm

INFINITY = float("inf")

# Smallest t accepted for any hit, suppresses self-intersection ("shadow acne")
T_MIN = 0.001

# Unbounded upper limit for primary and bounce rays
T_MAX = INFINITY


@ti.dataclass
class Interval:
    """A range [min, max] over the reals.

    Attributes:
        min: Lower bound.
        max: Upper bound. An interval with min > max is empty.
    """

    min: ti.f32
    max: ti.f32


@ti.func
def make_interval(lo: ti.f32, hi: ti.f32) -> Interval:
    return Interval(min=lo, max=hi)


@ti.func
def empty_interval() -> Interval:
    return Interval(min=INFINITY, max=-INFINITY)


@ti.func
def universe_interval() -> Interval:
    return Interval(min=-INFINITY, max=INFINITY)


@ti.func
def interval_size(interval: Interval) -> ti.f32:
    return interval.max - interval.min


@ti.func
def interval_contains(interval: Interval, x: ti.f32) -> ti.i32:
    """Return 1 if min <= x <= max."""
    return interval.min <= x and x <= interval.max


@ti.func
def interval_surrounds(interval: Interval, x: ti.f32) -> ti.i32:
    """Return 1 if min < x < max.

    Intersection routines accept a root only when the interval surrounds it.
    """
    return interval.min < x and x < interval.max


@ti.func
def interval_clamp(interval: Interval, x: ti.f32) -> ti.f32:
    return tm.clamp(x, interval.min, interval.max)
