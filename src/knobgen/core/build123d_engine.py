"""
Geometry engine backed by build123d and OCP (OpenCascade).

Smooth lathes use build123d's sketch + revolve. Faceted lathes, ribbons and
extrusions are stitched from planar triangles, sewn into a shell and closed
into a solid the same way ``geometry_repair`` rebuilds broken topology.
"""

import logging
import math
from typing import List, Optional, Sequence

from OCP.BRepAlgoAPI import BRepAlgoAPI_Cut
from OCP.BRepBuilderAPI import BRepBuilderAPI_MakeFace, BRepBuilderAPI_MakePolygon
from OCP.gp import gp_Pnt

from build123d import (
    Axis, BuildLine, BuildPart, BuildSketch, Location, Part, Plane, Polyline,
    Rot, make_face, revolve, scale,
)

from .engine import (
    GeometryEngine, GeometryEngineError, Handle, Instance, Point2, Point3,
    Solid, Triangle, ribbon_triangles,
)
from .geometry_repair import repair_geometry, sew_faces

logger = logging.getLogger(__name__)

# Tessellation tolerances used for triangle export
LINEAR_TOLERANCE = 0.01
ANGULAR_TOLERANCE = 0.2


def _dedupe_loop(points: Sequence[Point2]) -> List[Point2]:
    """Drop consecutive duplicates and a repeated closing point."""
    loop: List[Point2] = []
    for p in points:
        if not loop or math.dist(p, loop[-1]) > 1e-9:
            loop.append((float(p[0]), float(p[1])))
    if len(loop) > 1 and math.dist(loop[0], loop[-1]) <= 1e-9:
        loop.pop()
    return loop


def _triangle_faces(triangles: Sequence[Triangle]):
    for a, b, c in triangles:
        polygon = BRepBuilderAPI_MakePolygon(gp_Pnt(*a), gp_Pnt(*b), gp_Pnt(*c), True)
        if not polygon.IsDone():
            continue
        face = BRepBuilderAPI_MakeFace(polygon.Wire(), True)
        if face.IsDone():
            yield face.Face()


def solid_from_triangles(triangles: Sequence[Triangle]):
    """
    Sew planar triangles into a closed solid.

    Raises:
        GeometryEngineError: If the triangles do not close into a solid
    """
    part = sew_faces(_triangle_faces(triangles))
    if part is None:
        raise GeometryEngineError(f"Could not sew {len(triangles)} triangles into a solid")
    return part


class Build123dEngine(GeometryEngine):
    """GeometryEngine producing build123d Parts."""

    def revolve(self, points: Sequence[Point2], sides: Optional[int] = None, name: str = "lathe") -> Solid:
        loop = _dedupe_loop(points)
        if len(loop) < 3:
            raise GeometryEngineError(f"Lathe loop needs at least 3 distinct points, got {len(loop)}")

        if sides is not None and sides >= 3:
            logger.debug(f"Revolving {name} with {sides} facets")
            path_array = []
            for k in range(sides + 1):
                theta = 2 * math.pi * (k % sides) / sides
                cos_t, sin_t = math.cos(theta), math.sin(theta)
                path_array.append([(r * cos_t, r * sin_t, h) for r, h in loop])
            part = solid_from_triangles(ribbon_triangles(path_array))
        else:
            logger.debug(f"Revolving {name} (smooth)")
            with BuildPart() as lathe:
                with BuildSketch(Plane.XZ):
                    with BuildLine():
                        Polyline(*loop, close=True)
                    make_face()
                revolve(axis=Axis.Z)
            part = lathe.part

        return self._register(Solid(name=name, shape=part))

    def build_ribbon(self, path_array: Sequence[Sequence[Point3]], flip: bool = False, name: str = "ribbon") -> Solid:
        part = solid_from_triangles(ribbon_triangles(path_array, flip=flip))
        return self._register(Solid(name=name, shape=part))

    def instance(self, solid: Solid, location: Location, depth_scale: float = 1.0, name: str = "") -> Instance:
        self._check_live(solid)
        return self._register(Instance(
            source=solid, location=location, depth_scale=depth_scale,
            name=name or f"{solid.name}.instance",
        ))

    def rotate(self, solid: Solid, angle: float) -> Solid:
        self._check_live(solid)
        if angle:
            solid.shape = Rot(Z=math.degrees(angle)) * solid.shape
        return solid

    def native(self, handle: Handle):
        """build123d shape for a handle, with instance placement applied."""
        self._check_live(handle)
        if isinstance(handle, Solid):
            return handle.shape
        shape = handle.source.shape
        if handle.depth_scale != 1.0:
            shape = scale(shape, by=(handle.depth_scale, 1, 1))
        return shape.moved(handle.location)

    def boolean_subtract(self, a: Handle, b: Handle, name: str = "combined") -> Solid:
        shape_a = self.native(a)
        shape_b = self.native(b)

        cut_op = BRepAlgoAPI_Cut(shape_a.wrapped, shape_b.wrapped)
        cut_op.Build()
        if cut_op.IsDone():
            result = Part(cut_op.Shape())
        else:
            logger.warning(f"OCP cut failed for {name}, using build123d operator")
            result = shape_a - shape_b

        result = repair_geometry(result)
        return self._register(Solid(name=name, shape=result))

    def triangles(self, handle: Handle) -> List[Triangle]:
        shape = self.native(handle)
        vertices, indices = shape.tessellate(LINEAR_TOLERANCE, ANGULAR_TOLERANCE)
        return [
            tuple((vertices[i].X, vertices[i].Y, vertices[i].Z) for i in tri)
            for tri in indices
        ]

    def volume(self, handle: Handle) -> float:
        return self.native(handle).volume

    def _release(self, handle: Handle) -> None:
        if isinstance(handle, Solid):
            handle.shape = None
