"""
Tests for revolution profiles and arc-length parameterization.

Pure math - no geometry engine needed.
"""

import math
import pytest

from knobgen.core.profile import (
    Profile,
    ProfilePoint,
    build_profile,
    pad_segments,
    smooth,
)


class TestSmooth:
    """Power-law blend."""

    def test_endpoints(self):
        for smoothing in (0.0, 0.3, -0.7, 1.0):
            assert smooth(0.0, smoothing) == pytest.approx(0.0)
            assert smooth(1.0, smoothing) == pytest.approx(1.0)

    def test_zero_smoothing_is_linear(self):
        assert smooth(0.25, 0.0) == pytest.approx(0.25)
        assert smooth(0.25, 0.0, opposite=True) == pytest.approx(0.25)

    def test_half_smoothing_is_quadratic(self):
        assert smooth(0.5, 0.5) == pytest.approx(0.25)
        assert smooth(0.5, 0.5, opposite=True) == pytest.approx(0.75)

    def test_sign_of_smoothing_ignored(self):
        assert smooth(0.3, -0.5) == pytest.approx(smooth(0.3, 0.5))

    def test_clamps_value(self):
        assert smooth(-1.0, 0.5) == 0.0
        assert smooth(2.0, 0.5) == 1.0


class TestPadSegments:

    def test_single_segment_padded_both_ends(self):
        padded = pad_segments([ProfilePoint(radius=7, height_ratio=0.4)])
        assert [s.height_ratio for s in padded] == [0.0, 0.4, 1.0]
        assert all(s.radius == 7 for s in padded)

    def test_sorted_by_ratio(self):
        padded = pad_segments([
            ProfilePoint(radius=3, height_ratio=1.0),
            ProfilePoint(radius=5, height_ratio=0.0),
        ])
        assert [s.radius for s in padded] == [5, 3]

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            pad_segments([])


class TestBuildProfile:

    def test_cylinder(self):
        profile = build_profile([ProfilePoint(15, 0.0), ProfilePoint(15, 1.0)], 30)
        assert profile.side == ((15, 0.0), (15, 30.0))
        assert profile.points[0] == (0.0, 0.0)
        assert profile.points[-1] == (0.0, 30.0)
        assert profile.length == pytest.approx(30.0)
        assert profile.height == pytest.approx(30.0)
        assert profile.max_radius == 15
        assert profile.is_cylindrical

    def test_cone_length_is_slant_height(self):
        profile = build_profile([ProfilePoint(10, 0.0), ProfilePoint(5, 1.0)], 10)
        assert profile.length == pytest.approx(math.hypot(5, 10))
        assert not profile.is_cylindrical

    def test_smoothed_span_is_tessellated(self):
        profile = build_profile([ProfilePoint(10, 0.0), ProfilePoint(5, 1.0, smoothing=0.5)], 10)
        assert len(profile.side) > 2
        heights = [y for _, y in profile.side]
        assert heights == sorted(heights)
        assert profile.side[0] == (10, 0.0)
        assert profile.side[-1] == pytest.approx((5, 10.0))

    def test_too_few_points_raises(self):
        with pytest.raises(ValueError):
            Profile([(1.0, 0.0)])


class TestArcLength:
    """info_at and distance_at."""

    @pytest.fixture
    def cone(self):
        return build_profile([ProfilePoint(10, 0.0), ProfilePoint(5, 1.0)], 10)

    def test_cylinder_info(self):
        profile = build_profile([ProfilePoint(15, 0.0), ProfilePoint(15, 1.0)], 30)
        info = profile.info_at(15)
        assert info.x == pytest.approx(15)
        assert info.y == pytest.approx(15)
        assert info.tangent_angle == pytest.approx(0.0, abs=1e-12)
        assert info.height_ratio == pytest.approx(0.5)

    def test_inward_lean_is_positive(self, cone):
        info = cone.info_at(cone.length / 2)
        assert info.tangent_angle > 0
        assert info.tangent_angle == pytest.approx(math.atan2(5, 10))

    def test_distance_clamped(self, cone):
        assert cone.info_at(-5).y == pytest.approx(0.0)
        assert cone.info_at(cone.length + 5).y == pytest.approx(10.0)

    def test_distance_at_inverts_info_at(self, cone):
        for ratio in (0.0, 0.25, 0.5, 1.0):
            distance = cone.distance_at(ratio)
            assert cone.info_at(distance).height_ratio == pytest.approx(ratio)

    def test_distance_at_on_smoothed_profile(self):
        profile = build_profile([ProfilePoint(10, 0.0), ProfilePoint(5, 1.0, smoothing=1.0)], 20)
        for ratio in (0.1, 0.5, 0.9):
            assert profile.info_at(profile.distance_at(ratio)).y == pytest.approx(20 * ratio)

    def test_hint_slot_gives_same_answer(self):
        profile = build_profile([ProfilePoint(10, 0.0), ProfilePoint(5, 1.0, smoothing=1.0)], 20)
        distance = profile.length * 0.7
        plain = profile.info_at(distance)
        hinted = profile.info_at(distance, hint_slot=len(profile.side) - 1)
        assert hinted == plain
