"""Unit tests for Interval and its predicates."""

import pytest
import taichi as ti


class TestIntervalPredicates:
    """contains is inclusive, surrounds is strict."""

    @pytest.mark.parametrize(
        "x, contains, surrounds",
        [
            (0.5, 1, 1),
            (0.0, 1, 0),
            (1.0, 1, 0),
            (-0.1, 0, 0),
            (1.1, 0, 0),
        ],
    )
    def test_contains_and_surrounds(self, x, contains, surrounds):
        from skytrace.core.interval import interval_contains, interval_surrounds, make_interval

        contains_result = ti.field(dtype=ti.i32, shape=())
        surrounds_result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(value: ti.f32):
            interval = make_interval(0.0, 1.0)
            contains_result[None] = interval_contains(interval, value)
            surrounds_result[None] = interval_surrounds(interval, value)

        test_kernel(x)
        assert contains_result[None] == contains
        assert surrounds_result[None] == surrounds

    def test_size(self):
        from skytrace.core.interval import interval_size, make_interval

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = interval_size(make_interval(-2.0, 3.0))

        test_kernel()
        assert result[None] == pytest.approx(5.0)

    def test_empty_contains_nothing(self):
        from skytrace.core.interval import empty_interval, interval_contains

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = interval_contains(empty_interval(), 0.0)

        test_kernel()
        assert result[None] == 0

    def test_universe_surrounds_everything_finite(self):
        from skytrace.core.interval import interval_surrounds, universe_interval

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = interval_surrounds(universe_interval(), 1.0e30)

        test_kernel()
        assert result[None] == 1

    @pytest.mark.parametrize("x, expected", [(-1.0, 0.0), (0.5, 0.5), (2.0, 0.999)])
    def test_clamp(self, x, expected):
        from skytrace.core.interval import interval_clamp, make_interval

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(value: ti.f32):
            result[None] = interval_clamp(make_interval(0.0, 0.999), value)

        test_kernel(x)
        assert result[None] == pytest.approx(expected, abs=1e-6)


class TestHitRange:
    def test_hit_range_bounds(self):
        from skytrace.core.interval import INFINITY, T_MAX, T_MIN

        assert T_MIN == pytest.approx(0.001)
        assert T_MAX == INFINITY
