"""Tests for the escape-time evaluator and the pixel to plane mapping."""

import math

import pytest

from bloom_fractal import (
    DEFAULT_MAX_ITER,
    ComplexBoundingBox,
    escape_count,
    iterate_point,
)


class TestIteratePoint:

    def test_origin_is_member(self):
        assert iterate_point(0j) is None

    def test_one_escapes_at_three(self):
        # 0 -> 1 -> 2 -> 5
        assert iterate_point(1 + 0j) == 3

    def test_cap_turns_escape_into_membership(self):
        assert iterate_point(1 + 0j, max_iter=3) is None
        assert iterate_point(1 + 0j, max_iter=4) == 3

    def test_boundary_point_stays_bounded(self):
        # the orbit of -2 sits on |z| = 2 and never leaves the closed disc
        assert iterate_point(-2 + 0j) is None

    def test_two_escapes_at_two(self):
        assert iterate_point(2 + 0j) == 2

    def test_far_point_escapes_immediately(self):
        assert iterate_point(3 + 0j) == 1
        assert iterate_point(10 + 10j) == 1

    def test_complex_point(self):
        # 0 -> -1+i -> -1-i -> -1+3i
        assert iterate_point(-1 + 1j) == 3

    @pytest.mark.parametrize("c", [0.25 + 0j, -1 + 0j, -0.1 + 0.1j, 1j])
    def test_members(self, c):
        assert iterate_point(c) is None

    def test_result_in_range(self):
        for c in (0.3 + 0.5j, -0.75 + 0.1j, 0.26 + 0j):
            n = iterate_point(c, max_iter=50)
            assert n is None or 0 <= n < 50

    def test_default_cap(self):
        assert DEFAULT_MAX_ITER == 1000

    def test_raw_kernel_sentinel(self):
        assert escape_count(0.0, 0.0, 10) == -1
        assert escape_count(1.0, 0.0, 10) == 3


class TestComplexBoundingBox:

    @pytest.fixture
    def box(self):
        return ComplexBoundingBox(-2 + 1j, (3.0, 2.0))

    def test_upper_left_pixel_is_upper_left_corner(self, box):
        assert box.map_pixel_to_point((0, 0), (300, 200)) == -2 + 1j

    def test_pixel_steps(self, box):
        point = box.map_pixel_to_point((150, 100), (300, 200))
        assert point.real == pytest.approx(-0.5)
        assert point.imag == pytest.approx(0.0)

    def test_last_pixel_stays_inside(self, box):
        point = box.map_pixel_to_point((299, 199), (300, 200))
        assert -2.0 < point.real < 1.0
        assert -1.0 < point.imag < 1.0
        assert point.real == pytest.approx(1.0 - 3.0 / 300)
        assert point.imag == pytest.approx(-1.0 + 2.0 / 200)

    def test_opposite_corner(self):
        box = ComplexBoundingBox(-1 + 1j, (2.0, 2.0))
        assert box.map_pixel_to_point((0, 0), (100, 100)) == -1 + 1j
        assert box.map_pixel_to_point((100, 100), (100, 100)) == 1 - 1j

    def test_imaginary_axis_points_up(self, box):
        top = box.map_pixel_to_point((0, 0), (300, 200))
        lower = box.map_pixel_to_point((0, 10), (300, 200))
        assert lower.imag < top.imag

    def test_from_height(self):
        box = ComplexBoundingBox.from_height(-2 + 1.2j, 2.4, 1.5)
        assert box.dims == pytest.approx((3.6, 2.4))
        assert box.width == pytest.approx(3.6)
        assert box.height == 2.4
        assert box.upper_left == -2 + 1.2j

    def test_accepts_real_upper_left(self):
        box = ComplexBoundingBox(-1, (2, 2))
        assert isinstance(box.upper_left, complex)
        assert box.dims == (2.0, 2.0)

    @pytest.mark.parametrize("dims", [(0.0, 1.0), (1.0, -1.0), (math.inf, 1.0), (1.0, math.nan)])
    def test_rejects_bad_dims(self, dims):
        with pytest.raises(ValueError):
            ComplexBoundingBox(0j, dims)

    def test_is_immutable(self, box):
        with pytest.raises(AttributeError):
            box.dims = (1.0, 1.0)
