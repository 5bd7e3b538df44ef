"""
Revolved body and cavity solids, and pointer wedges.
"""

import logging
import math
from typing import List, Optional, Tuple

from .engine import GeometryEngine, Point2, Solid
from .profile import Profile, ProfilePoint, build_profile

logger = logging.getLogger(__name__)

# Cavity extends this far below the body's bottom face so the cut is clean
CUT_OVERLAP = 0.1


def segments_of(config) -> List[ProfilePoint]:
    """Profile segments of a body/cavity config (legacy radii already expanded)."""
    return [
        ProfilePoint(radius=s.radius, height_ratio=s.height_ratio, smoothing=s.smoothing)
        for s in config.segments
    ]


def revolve_profile(
    engine: GeometryEngine,
    profile: Profile,
    sides: Optional[int],
    angular_offset: float = 0.0,
    overlap: float = 0.0,
    name: str = "lathe",
) -> Solid:
    """
    Revolve a profile around the vertical axis.

    Args:
        engine: Geometry engine
        profile: Profile to revolve
        sides: Facet count, smooth lathe when below 3
        angular_offset: Rigid rotation about the axis after revolving (radians)
        overlap: Extend the bottom face downward by this much

    Returns:
        Revolved solid
    """
    points: List[Point2] = list(profile.points)
    if overlap > 0:
        bottom_x, bottom_y = profile.side[0]
        points[0] = (0.0, bottom_y - overlap)
        points.insert(1, (bottom_x, bottom_y - overlap))

    solid = engine.revolve(points, sides if sides and sides >= 3 else None, name=name)
    if angular_offset:
        engine.rotate(solid, angular_offset)
    return solid


def build_body(engine: GeometryEngine, config) -> Tuple[Profile, Optional[Solid]]:
    """
    Build the outer body profile and its revolved solid.

    The solid is None when the profile has no height or no radius, as
    happens to a body edited down to zero.
    """
    profile = build_profile(segments_of(config), config.height)
    if profile.height <= 0 or profile.max_radius <= 0:
        logger.debug("Body profile is degenerate, no body solid")
        return profile, None
    logger.info(
        f"Body: height {profile.height:.2f} mm, max radius {profile.max_radius:.2f} mm, "
        f"{len(profile.side)} profile points"
    )
    return profile, revolve_profile(engine, profile, config.sides, name="body")


def build_cavity(engine: GeometryEngine, config) -> Tuple[Optional[Profile], Optional[Solid]]:
    """
    Build the cavity profile and its revolved solid.

    Returns:
        (profile, solid). The solid is None when the cavity is missing or
        degenerate (zero height, zero radius, zero arc length); the profile
        is still returned when it could be built so internal features can
        tell the two apart.
    """
    if config is None or not config.height or not config.segments:
        return None, None

    profile = build_profile(segments_of(config), config.height)
    if profile.length <= 0 or profile.max_radius <= 0:
        logger.debug("Cavity profile is degenerate, no cavity solid")
        return profile, None

    solid = revolve_profile(
        engine, profile, config.sides,
        angular_offset=config.angular_offset,
        overlap=CUT_OVERLAP,
        name="cavity",
    )
    logger.info(f"Cavity: height {profile.height:.2f} mm, max radius {profile.max_radius:.2f} mm")
    return profile, solid


def _polar(angle: float, radius: float) -> Point2:
    # Angle measured from +Y toward +X
    return (math.sin(angle) * radius, math.cos(angle) * radius)


def build_pointer(engine: GeometryEngine, config, body_height: float) -> Optional[Solid]:
    """
    Build a pointer wedge: a quad in the horizontal plane extruded vertically.

    The wedge spans ``widthStart`` radians at ``radialOffset`` and
    ``widthEnd`` radians ``length`` further out, centred on ``angle`` and
    vertically on ``position`` times the body height.
    """
    if not config.height or config.length <= 0:
        logger.debug("Pointer without height or length skipped")
        return None

    inner = config.radial_offset
    outer = config.radial_offset + config.length
    section = [
        _polar(config.angle - config.width_start / 2, inner),
        _polar(config.angle + config.width_start / 2, inner),
        _polar(config.angle + config.width_end / 2, outer),
        _polar(config.angle - config.width_end / 2, outer),
    ]
    area = 0.5 * abs(sum(
        x1 * y2 - x2 * y1 for (x1, y1), (x2, y2) in zip(section, section[1:] + section[:1])
    ))
    if area <= 1e-9:
        logger.debug("Pointer section has no area, skipped")
        return None

    z = body_height * config.position - config.height / 2
    path = [(0.0, 0.0, z), (0.0, 0.0, z + config.height)]
    return engine.extrude_along_path(section, path, capped=True, name="pointer")
