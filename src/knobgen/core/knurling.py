"""
Knurling: a small primitive repeated in columns around the body and rows
along its profile.

Every copy is an instance of one template solid. Rows follow the profile's
arc length, so on a tapered body each copy sits at the local radius and is
tilted to lie flush with the slanted wall.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from build123d import Pos, Rot

from ..enums import KnobPart, KnurlShape
from .engine import GeometryEngine, Point3, Solid
from .profile import Profile
from .registry import FeatureSolid

logger = logging.getLogger(__name__)

# Maximum number of angular columns
MAX_KNURL_COLUMNS = 100

# Facets around round knurl primitives
ROUND_SEGMENTS = 16


@dataclass
class KnurlPlacement:
    """Where one copy goes: column angle, arc-length centre and depth scale."""
    column: int
    angle: float
    distance: float
    depth_scale: float = 1.0


def _ring(radius: float, x: float, segments: int = ROUND_SEGMENTS) -> List[Point3]:
    points = [
        (x, radius * math.cos(2 * math.pi * k / segments), radius * math.sin(2 * math.pi * k / segments))
        for k in range(segments)
    ]
    return points + points[:1]


def build_primitive(engine: GeometryEngine, config) -> Solid:
    """
    Build the knurl primitive in its local frame.

    The base sits on the x = 0 plane and the shape grows toward +X by
    ``depth``; ``size_x`` spans Y and ``size_y`` spans Z.
    """
    half_x = config.size_x / 2
    half_y = config.size_y / 2
    depth = config.depth
    shape = config.shape

    if shape == KnurlShape.PYRAMID:
        base = [(0.0, -half_x, -half_y), (0.0, half_x, -half_y), (0.0, half_x, half_y), (0.0, -half_x, half_y)]
        base.append(base[0])
        n = len(base)
        return engine.build_ribbon(
            [[(0.0, 0.0, 0.0)] * n, base, [(depth, 0.0, 0.0)] * n],
            name="knurl.pyramid",
        )

    if shape in (KnurlShape.CONE, KnurlShape.CYLINDER):
        bottom = _ring(half_x, 0.0)
        n = len(bottom)
        if shape == KnurlShape.CONE:
            rings = [[(0.0, 0.0, 0.0)] * n, bottom, [(depth, 0.0, 0.0)] * n]
        else:
            rings = [[(0.0, 0.0, 0.0)] * n, bottom, _ring(half_x, depth), [(depth, 0.0, 0.0)] * n]
        return engine.build_ribbon(rings, name=f"knurl.{shape.value}")

    if shape == KnurlShape.RECTANGLE:
        section = [(-half_x, -half_y), (half_x, -half_y), (half_x, half_y), (-half_x, half_y)]
    else:
        section = [(0.0, half_y), (-half_x, -half_y), (half_x, -half_y)]

    return engine.extrude_along_path(
        section, [(0.0, 0.0, 0.0), (depth, 0.0, 0.0)], capped=True,
        name=f"knurl.{shape.value}",
    )


def plan_knurling(config, profile: Profile) -> List[KnurlPlacement]:
    """
    Compute every knurl copy without touching the geometry engine.

    Rows are cells of ``size_y + vertical_spacing`` along the arc length,
    offset per column by ``column * vertical_offset`` modulo the cell length.
    A cell is used when it ends inside the range; the copy sits at the
    cell centre.
    """
    columns = min(int(config.radial_count), MAX_KNURL_COLUMNS)
    if columns < 1:
        return []

    start = profile.distance_at(config.range[0])
    end = profile.distance_at(config.range[1])
    step = config.size_y + config.vertical_spacing
    if step <= 0 or end - start < step:
        return []

    taper = config.depth_smoothing * profile.height
    column_step = 2 * math.pi / columns
    eps = 1e-9

    placements = []
    for column in range(columns):
        cell = start + math.fmod(column * config.vertical_offset, step)
        if cell < start:
            cell += step
        while cell + step <= end + eps:
            centre = cell + step / 2
            depth_scale = 1.0
            if taper > 0:
                depth_scale = min(1.0, min(centre - start, end - centre) / taper)
            if depth_scale > 0:
                placements.append(KnurlPlacement(
                    column=column,
                    angle=column * column_step,
                    distance=centre,
                    depth_scale=depth_scale,
                ))
            cell += step
    return placements


def placement_location(placement: KnurlPlacement, profile: Profile, config, hint_slot=None):
    """Location of one copy, and the profile slot it landed in."""
    info = profile.info_at(placement.distance, hint_slot)
    location = (
        Rot(Z=math.degrees(placement.angle))
        * Pos(info.x, 0, info.y)
        * Rot(Y=-math.degrees(info.tangent_angle))
        * Pos(-(1 - config.rise) * config.depth * placement.depth_scale, 0, 0)
        * Rot(X=math.degrees(config.shape_rotation))
    )
    return location, info.slot


def build_knurling(engine: GeometryEngine, config, profile: Profile) -> Optional[FeatureSolid]:
    """
    Build one knurling feature on the body profile.

    Returns:
        FeatureSolid whose template base is not placed, or None when the
        size, depth, count or range cannot produce a visible copy
    """
    if not (config.size_x and config.size_y and config.depth):
        logger.debug("Knurling without size or depth skipped")
        return None

    placements = plan_knurling(config, profile)
    if not placements:
        logger.debug("Knurling range holds no rows, skipped")
        return None

    base = build_primitive(engine, config)
    instances = []
    slot = None
    for placement in sorted(placements, key=lambda p: (p.distance, p.column)):
        location, slot = placement_location(placement, profile, config, slot)
        instances.append(engine.instance(
            base, location,
            depth_scale=placement.depth_scale,
            name=f"knurl.{placement.column}",
        ))

    columns = len({p.column for p in placements})
    logger.debug(f"Knurling: {len(instances)} copies in {columns} columns")
    return FeatureSolid(
        family=KnobPart.KNURLING,
        base=base,
        instances=instances,
        template=True,
    )
