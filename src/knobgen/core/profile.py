"""
Revolution profiles and arc-length parameterization.

A profile is the 2D cross-section (x = radius, y = height) that gets revolved
around the vertical axis. Surface features address it by cumulative distance
along the side curve so that spacing stays uniform on tapered bodies.

Pure math - no build123d dependency.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

# Points per millimetre of chord when tessellating a smoothed span
TESSELLATION_DENSITY = 1.0

Point2 = Tuple[float, float]


def smooth(value: float, smoothing: float, opposite: bool = False) -> float:
    """
    Power-law blend used for profile spans, taper scaling and twist.

    Args:
        value: Position along the blend, 0 to 1
        smoothing: Blend strength (0 = linear), absolute value is used
        opposite: Flip the blend so it changes fast at the start instead of the end

    Returns:
        Blended value, 0 to 1
    """
    factor = 1 + 2 * abs(smoothing)
    value = min(1.0, max(0.0, value))
    if opposite:
        return 1 - math.pow(1 - value, factor)
    return math.pow(value, factor)


@dataclass(frozen=True)
class ProfilePoint:
    """One profile segment: radius at a height ratio, and how the span
    arriving at it from below is smoothed."""
    radius: float
    height_ratio: float
    smoothing: float = 0.0


@dataclass(frozen=True)
class ProfileInfo:
    """Position and slope of a profile at a given arc length."""
    x: float
    y: float
    tangent_angle: float
    height_ratio: float
    slot: int


def _tessellate_span(start: Point2, end: Point2, smoothing: float) -> List[Point2]:
    """Tessellate the chord between two segments, bowing x by the blend."""
    distance = math.dist(start, end)
    subdivisions = round(distance * TESSELLATION_DENSITY)
    if subdivisions < 1:
        return [start, end]

    opposite = smoothing < 0
    x_diff = end[0] - start[0]
    y_diff = end[1] - start[1]
    points = []
    for i in range(subdivisions + 1):
        t = i / subdivisions
        points.append((
            start[0] + x_diff * smooth(t, smoothing, opposite),
            start[1] + y_diff * t,
        ))
    return points


def pad_segments(segments: Sequence[ProfilePoint]) -> List[ProfilePoint]:
    """
    Sort segments by height ratio and pad the 0 and 1 endpoints.

    Missing endpoints reuse the nearest given radius.

    Raises:
        ValueError: If no segments are given
    """
    if not segments:
        raise ValueError("A profile needs at least one segment")

    ordered = sorted(segments, key=lambda s: s.height_ratio)
    if ordered[0].height_ratio > 0:
        ordered.insert(0, ProfilePoint(ordered[0].radius, 0.0))
    if ordered[-1].height_ratio < 1:
        ordered.append(ProfilePoint(ordered[-1].radius, 1.0))
    return ordered


class Profile:
    """
    Tessellated revolution cross-section plus its arc-length table.

    Attributes:
        side: Side curve points from bottom to top (no axis points)
        points: Closed axis-to-axis loop used for revolution
        lengths: Cumulative arc length at each side point, starting at 0
        length: Total arc length of the side curve
        height: Vertical extent of the side curve
    """

    def __init__(self, side: Sequence[Point2]):
        if len(side) < 2:
            raise ValueError(f"Profile side needs at least 2 points, got {len(side)}")

        self.side: Tuple[Point2, ...] = tuple(side)
        self.points: Tuple[Point2, ...] = (
            (0.0, self.side[0][1]),
        ) + self.side + (
            (0.0, self.side[-1][1]),
        )

        lengths = [0.0]
        for previous, current in zip(self.side, self.side[1:]):
            lengths.append(lengths[-1] + math.dist(previous, current))
        self.lengths: Tuple[float, ...] = tuple(lengths)

    @property
    def length(self) -> float:
        return self.lengths[-1]

    @property
    def height(self) -> float:
        return self.side[-1][1] - self.side[0][1]

    @property
    def max_radius(self) -> float:
        return max(x for x, _ in self.side)

    @property
    def is_cylindrical(self) -> bool:
        first = self.side[0][0]
        return all(math.isclose(x, first) for x, _ in self.side)

    def info_at(self, distance: float, hint_slot: Optional[int] = None) -> ProfileInfo:
        """
        Position and tangent at a distance measured along the side curve.

        Args:
            distance: Arc length from the bottom of the profile
            hint_slot: Table slot to start scanning from (callers walking
                upward pass the previous result's slot)

        Returns:
            ProfileInfo with interpolated x/y and the tangent angle, where 0
            means a vertical wall and positive values lean toward the axis
        """
        distance = min(max(distance, 0.0), self.length)
        last_slot = len(self.lengths) - 2

        slot = 0 if hint_slot is None else min(max(hint_slot, 0), last_slot)
        if distance < self.lengths[slot]:
            slot = 0
        while slot < last_slot and distance >= self.lengths[slot + 1]:
            slot += 1

        start_d = self.lengths[slot]
        end_d = self.lengths[slot + 1]
        span = end_d - start_d
        ratio = (distance - start_d) / span if span > 0 else 1.0

        (x1, y1), (x2, y2) = self.side[slot], self.side[slot + 1]
        y = y1 + (y2 - y1) * ratio
        return ProfileInfo(
            x=x1 + (x2 - x1) * ratio,
            y=y,
            tangent_angle=math.atan2(y2 - y1, x2 - x1) - math.pi / 2,
            height_ratio=(y - self.side[0][1]) / self.height if self.height > 0 else 0.0,
            slot=slot,
        )

    def distance_at(self, height_ratio: float) -> float:
        """
        Arc length at a ratio of the profile height (inverse of info_at).

        Args:
            height_ratio: 0 at the bottom of the profile, 1 at the top

        Returns:
            Distance along the side curve
        """
        height = self.side[0][1] + height_ratio * self.height
        last = len(self.side) - 1

        slot = 1
        while slot < last and self.side[slot][1] < height:
            slot += 1

        start_y = self.side[slot - 1][1]
        end_y = self.side[slot][1]
        span = end_y - start_y
        ratio = (height - start_y) / span if span > 0 else 1.0
        ratio = min(max(ratio, 0.0), 1.0)
        return self.lengths[slot - 1] + (self.lengths[slot] - self.lengths[slot - 1]) * ratio


def build_profile(segments: Sequence[ProfilePoint], height: float) -> Profile:
    """
    Build a Profile from segments and an overall height.

    Each pair of consecutive segments is joined by a straight span, or a
    tessellated blended span when the upper segment has non-zero smoothing.

    Args:
        segments: Profile segments (any order; padded to ratios 0 and 1)
        height: Overall height in mm

    Returns:
        Profile
    """
    ordered = pad_segments(segments)
    anchors = [(s.radius, s.height_ratio * height) for s in ordered]

    side: List[Point2] = [anchors[0]]
    for upper, anchor_lo, anchor_hi in zip(ordered[1:], anchors, anchors[1:]):
        if upper.smoothing:
            span = _tessellate_span(anchor_lo, anchor_hi, upper.smoothing)
        else:
            span = [anchor_lo, anchor_hi]
        side.extend(span[1:])

    return Profile(side)
