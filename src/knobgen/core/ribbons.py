"""
Ribbon features: longitudinal splines and keys, and helical threads.

A ribbon is a stack of closed cross-section loops stitched into one solid,
with collapsed centroid caps at both ends. Splines stack horizontal loops
along the profile's arc length; threads sweep a trapezoid along a helix
that follows the profile.
"""

import logging
import math
from typing import List, Optional

from build123d import Rot

from ..enums import KnobPart
from .engine import GeometryEngine, Point3, centroid
from .profile import TESSELLATION_DENSITY, Profile, smooth
from .registry import FeatureSolid

logger = logging.getLogger(__name__)

# Points along each edge of a spline cross-section
EDGE_POINTS = 18

# Ribbon bases are sunk this far into the surface they sit on (mm)
RIBBON_OVERLAP = 0.05

# Minimum helix steps per thread turn
MIN_THREAD_STEPS = 12

# Trapezoidal thread: root flat P/4, crest flat P/8
THREAD_BASE_HALF_WIDTH = 3 / 8
THREAD_CREST_HALF_WIDTH = 1 / 16


def _horizontal(angle: float, radius: float, z: float) -> Point3:
    return (radius * math.cos(angle), radius * math.sin(angle), z)


def _close(loop: List[Point3]) -> List[Point3]:
    return loop + loop[:1]


def _capped(paths: List[List[Point3]]) -> List[List[Point3]]:
    """Add collapsed centroid loops before the first and after the last path."""
    n = len(paths[0])
    return (
        [[centroid(paths[0][:-1])] * n]
        + paths
        + [[centroid(paths[-1][:-1])] * n]
    )


def tooth_section(
    root_thickness: float,
    thickness: float,
    height: float,
    radius: float,
    smoothing: float,
    z: float,
    offset: float = 0.0,
    direction: int = 1,
) -> List[Point3]:
    """
    Closed horizontal tooth loop at height ``z``.

    The root spans ``root_thickness`` radians at ``radius``, the tip spans
    ``thickness`` radians ``height`` further along ``direction`` (+1 away
    from the axis, -1 toward it). Flanks follow the smoothing blend.
    """
    base_r = radius - direction * RIBBON_OVERLAP
    tip_r = radius + direction * height
    opposite = smoothing <= 0
    s = abs(smoothing)

    def flank_radius(t):
        return radius + direction * height * smooth(t, s, opposite)

    loop = []
    for i in range(EDGE_POINTS + 1):
        loop.append(_horizontal(offset - root_thickness / 2 + root_thickness * i / EDGE_POINTS, base_r, z))
    for i in range(1, EDGE_POINTS):
        t = i / EDGE_POINTS
        half = root_thickness / 2 + (thickness - root_thickness) / 2 * t
        loop.append(_horizontal(offset + half, flank_radius(t), z))
    for i in range(EDGE_POINTS + 1):
        loop.append(_horizontal(offset + thickness / 2 - thickness * i / EDGE_POINTS, tip_r, z))
    for i in range(1, EDGE_POINTS):
        t = 1 - i / EDGE_POINTS
        half = root_thickness / 2 + (thickness - root_thickness) / 2 * t
        loop.append(_horizontal(offset - half, flank_radius(t), z))
    return _close(loop)


def key_section(
    width: float,
    height: float,
    radius: float,
    z: float,
    offset: float = 0.0,
    direction: int = 1,
) -> List[Point3]:
    """
    Closed horizontal key loop at height ``z``: parallel walls ``width`` mm
    apart, a base arc on the surface and a flat end ``height`` further out
    (or in, for ``direction`` -1).
    """
    base_r = max(radius - direction * RIBBON_OVERLAP, width / 2)
    half_angle = math.asin(min(1.0, width / 2 / base_r))
    tip = radius + direction * height
    cos_o, sin_o = math.cos(offset), math.sin(offset)

    def local(radial, lateral):
        return (radial * cos_o - lateral * sin_o, radial * sin_o + lateral * cos_o, z)

    loop = []
    for i in range(EDGE_POINTS + 1):
        a = -half_angle + 2 * half_angle * i / EDGE_POINTS
        loop.append(local(base_r * math.cos(a), base_r * math.sin(a)))
    wall_start = base_r * math.cos(half_angle)
    for i in range(1, EDGE_POINTS):
        loop.append(local(wall_start + (tip - wall_start) * i / EDGE_POINTS, width / 2))
    for i in range(EDGE_POINTS + 1):
        loop.append(local(tip, width / 2 - width * i / EDGE_POINTS))
    for i in range(1, EDGE_POINTS):
        loop.append(local(tip + (wall_start - tip) * i / EDGE_POINTS, -width / 2))
    return _close(loop)


def _taper_ratio(y: float, mid: float, limit: float) -> float:
    span = limit - mid
    if abs(span) < 1e-9:
        return 0.0
    return (y - mid) / span


def build_spline(
    engine: GeometryEngine,
    config,
    profile: Profile,
    balance: float = 0.5,
    on_cavity: bool = False,
) -> Optional[FeatureSolid]:
    """
    Build a spline (tooth) or key ribbon plus its rotated copies.

    Args:
        engine: Geometry engine
        config: SplineConfig
        profile: Body or cavity profile the ribbon follows
        balance: Height ratio where the taper scale is 1
        on_cavity: Whether the profile is the cavity's

    Returns:
        FeatureSolid, or None for a zero count, zero height, missing
        thickness/width or empty range
    """
    if config.count < 1 or not config.height:
        logger.debug("Spline without count or height skipped")
        return None
    is_key = bool(config.width)
    if not is_key and not config.thickness:
        logger.debug("Spline without thickness or width skipped")
        return None

    start = profile.distance_at(config.range[0])
    end = profile.distance_at(config.range[1])
    if end - start <= 0:
        logger.debug("Spline range is empty, skipped")
        return None

    # Material side: subtractive features cut into the body, additive ones
    # stand out into free space
    direction = -1 if config.substractive != on_cavity else 1
    root_thickness = config.root_thickness if config.root_thickness is not None else config.thickness

    bottom = profile.side[0][1]
    mid = bottom + profile.height * balance
    abs_start = bottom + profile.height * config.range[0]
    abs_end = bottom + profile.height * config.range[1]
    scale_opposite = config.scale_smoothing < 0
    angle_opposite = config.angle_smoothing < 0

    stations = max(1, math.ceil((end - start) * TESSELLATION_DENSITY))
    paths = []
    for i in range(stations + 1):
        info = profile.info_at(start + (end - start) * i / stations)
        if info.y >= mid:
            s = 1 + (config.top_scale - 1) * smooth(
                _taper_ratio(info.y, mid, abs_end), config.scale_smoothing, scale_opposite)
        else:
            s = 1 + (config.bottom_scale - 1) * smooth(
                _taper_ratio(info.y, mid, abs_start), config.scale_smoothing, scale_opposite)
        twist = config.angle * smooth(i / stations, config.angle_smoothing, angle_opposite)

        if is_key:
            paths.append(key_section(
                config.width * s, abs(config.height) * s, info.x, info.y, twist, direction))
        else:
            paths.append(tooth_section(
                root_thickness * s, config.thickness * s, abs(config.height) * s,
                info.x, config.smoothing, info.y, twist, direction))

    family = KnobPart.INTERNAL_SPLINES if on_cavity else KnobPart.SPLINES
    base = engine.build_ribbon(_capped(paths), flip=direction > 0, name=f"{family.value}.base")

    step = 2 * math.pi / config.count
    instances = [
        engine.instance(base, Rot(Z=math.degrees(step * i)), name=f"{family.value}.{i}")
        for i in range(1, config.count)
    ]
    logger.debug(f"Spline: {stations} stations, {config.count} copies, subtractive={config.substractive}")
    return FeatureSolid(family=family, base=base, instances=instances, subtractive=config.substractive)


def _taper_factor(turns: float, taper: float) -> float:
    """Cosine ramp from 0 to 1 over ``taper`` turns."""
    if taper <= 0 or turns >= taper:
        return 1.0
    return 0.5 - 0.5 * math.cos(math.pi * max(turns, 0.0) / taper)


def thread_section(profile: Profile, distance: float, angle: float, pitch: float, depth: float, hint_slot=None):
    """Trapezoid loop for one helix step, and the profile slot it used."""
    info = profile.info_at(distance, hint_slot)
    # Tangent and outward normal of the profile in the (radius, height) plane
    t_r, t_z = -math.sin(info.tangent_angle), math.cos(info.tangent_angle)
    n_r, n_z = math.cos(info.tangent_angle), math.sin(info.tangent_angle)
    cos_a, sin_a = math.cos(angle), math.sin(angle)

    corners = (
        (-RIBBON_OVERLAP, -THREAD_BASE_HALF_WIDTH * pitch),
        (-RIBBON_OVERLAP, THREAD_BASE_HALF_WIDTH * pitch),
        (depth, THREAD_CREST_HALF_WIDTH * pitch),
        (depth, -THREAD_CREST_HALF_WIDTH * pitch),
    )
    loop = []
    for n, w in corners:
        r = info.x + n * n_r + w * t_r
        z = info.y + n * n_z + w * t_z
        loop.append((r * cos_a, r * sin_a, z))
    return _close(loop), info.slot


def build_thread(engine: GeometryEngine, config, profile: Profile, internal: bool = False) -> Optional[FeatureSolid]:
    """
    Build a helical thread ribbon following the profile.

    The range is inset by half a pitch at each end and walked in whole
    turns; each turn gets a step count proportional to its circumference.
    Internal threads are cut from the body.

    Returns:
        FeatureSolid, or None for zero pitch or depth, or a range shorter
        than one turn
    """
    if not config.pitch or config.pitch <= 0 or not config.depth:
        logger.debug("Thread without pitch or depth skipped")
        return None

    pitch = config.pitch
    start = profile.distance_at(config.range[0]) + pitch / 2
    end = profile.distance_at(config.range[1]) - pitch / 2
    turns = math.floor((end - start) / pitch + 1e-9)
    if turns < 1:
        logger.debug("Thread range is shorter than one turn, skipped")
        return None

    hand = -1 if config.left_handed else 1
    total = turns * pitch
    paths = []
    slot = None
    for turn in range(turns):
        r0 = profile.info_at(start + turn * pitch).x
        r1 = profile.info_at(start + (turn + 1) * pitch).x
        steps = max(MIN_THREAD_STEPS, round(2 * math.pi * (r0 + r1) / 2 * TESSELLATION_DENSITY))
        last = turn == turns - 1
        for k in range(steps + 1 if last else steps):
            progress = turn + k / steps
            travelled = progress * pitch
            factor = min(
                _taper_factor(progress, config.taper_bottom),
                _taper_factor((total - travelled) / pitch, config.taper_top),
            )
            loop, slot = thread_section(
                profile, start + travelled, hand * 2 * math.pi * progress,
                pitch, abs(config.depth) * factor, slot,
            )
            paths.append(loop)

    family = KnobPart.INTERNAL_THREADS if internal else KnobPart.THREADS
    base = engine.build_ribbon(_capped(paths), flip=config.left_handed, name=f"{family.value}.helix")
    logger.debug(f"Thread: {turns} turns, {len(paths)} sections, internal={internal}")
    return FeatureSolid(family=family, base=base, subtractive=internal)
