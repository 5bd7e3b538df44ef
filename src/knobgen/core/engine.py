"""
Geometry engine interface and solid handles.

The knob kernel never touches a CAD kernel directly. It asks an engine for
revolutions, ribbons, instances and boolean subtractions, and gets back
opaque handles that it owns and must dispose exactly once.

Engines track every live handle so leaks and double disposal are caught.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Iterator, List, Optional, Sequence, Tuple, Union

from build123d import Location

logger = logging.getLogger(__name__)

Point2 = Tuple[float, float]
Point3 = Tuple[float, float, float]
Triangle = Tuple[Point3, Point3, Point3]

_handle_ids = count(1)


class GeometryEngineError(RuntimeError):
    """Raised when a handle is used after disposal or disposed twice."""


@dataclass(eq=False)
class Solid:
    """Engine-owned solid. ``shape`` holds the engine's native object."""
    name: str
    shape: Any = None
    id: int = field(default_factory=lambda: next(_handle_ids))


@dataclass(eq=False)
class Instance:
    """Placed copy of a Solid sharing its geometry.

    ``depth_scale`` stretches the copy along the source's local X axis
    before ``location`` is applied.
    """
    source: Solid
    location: Location
    depth_scale: float = 1.0
    name: str = ""
    id: int = field(default_factory=lambda: next(_handle_ids))


Handle = Union[Solid, Instance]


def _sub(a: Point3, b: Point3) -> Point3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _cross(a: Point3, b: Point3) -> Point3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _normalized(v: Point3) -> Point3:
    length = math.sqrt(v[0] ** 2 + v[1] ** 2 + v[2] ** 2)
    if length == 0:
        return (0.0, 0.0, 0.0)
    return (v[0] / length, v[1] / length, v[2] / length)


def is_degenerate(triangle: Triangle, tolerance: float = 1e-12) -> bool:
    """True when a triangle has (almost) no area."""
    v0, v1, v2 = triangle
    n = _cross(_sub(v2, v1), _sub(v0, v1))
    return n[0] ** 2 + n[1] ** 2 + n[2] ** 2 <= tolerance


def centroid(points: Sequence[Point3]) -> Point3:
    """Barycenter of a point loop."""
    n = len(points)
    return (
        sum(p[0] for p in points) / n,
        sum(p[1] for p in points) / n,
        sum(p[2] for p in points) / n,
    )


def ribbon_triangles(path_array: Sequence[Sequence[Point3]], flip: bool = False) -> List[Triangle]:
    """
    Stitch consecutive paths into triangles.

    Every path must have the same number of points. Degenerate triangles
    (collapsed caps, axis points) are dropped.
    """
    triangles: List[Triangle] = []
    for lower, upper in zip(path_array, path_array[1:]):
        if len(lower) != len(upper):
            raise ValueError(
                f"Ribbon paths must have equal length, got {len(lower)} and {len(upper)}"
            )
        for j in range(len(lower) - 1):
            a, b = lower[j], lower[j + 1]
            c, d = upper[j + 1], upper[j]
            for tri in ((a, b, c), (a, c, d)):
                if flip:
                    tri = (tri[0], tri[2], tri[1])
                if not is_degenerate(tri):
                    triangles.append(tri)
    return triangles


def section_frame(direction: Point3) -> Tuple[Point3, Point3]:
    """
    In-plane axes (u, v) for a cross-section swept along ``direction``.

    A vertical sweep maps u, v to world X, Y.
    """
    d = _normalized(direction)
    if abs(d[0]) < 1e-9 and abs(d[1]) < 1e-9:
        if d[2] >= 0:
            return (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)
        return (1.0, 0.0, 0.0), (0.0, -1.0, 0.0)
    u = _normalized(_cross((0.0, 0.0, 1.0), d))
    v = _cross(d, u)
    return u, v


class GeometryEngine(ABC):
    """
    Abstract solid-geometry capability consumed by the knob kernel.

    Subclasses implement the native operations; this base class keeps the
    live-handle table shared by every engine.
    """

    def __init__(self):
        self._live = {}

    # ─── Accounting ──────────────────────────────────────────────────────

    def _register(self, handle: Handle) -> Handle:
        self._live[handle.id] = handle
        return handle

    def is_live(self, handle: Handle) -> bool:
        return handle.id in self._live

    @property
    def live_count(self) -> int:
        return len(self._live)

    def live_handles(self) -> Iterator[Handle]:
        return iter(list(self._live.values()))

    def _check_live(self, handle: Handle) -> None:
        if handle.id not in self._live:
            raise GeometryEngineError(f"Handle {handle.name or handle.id!r} is not live")

    def dispose(self, handle: Handle) -> None:
        """
        Release a solid or instance.

        Raises:
            GeometryEngineError: If the handle was already disposed
        """
        self._check_live(handle)
        del self._live[handle.id]
        self._release(handle)

    # ─── Native operations ──────────────────────────────────────────────

    @abstractmethod
    def revolve(self, points: Sequence[Point2], sides: Optional[int] = None, name: str = "lathe") -> Solid:
        """Revolve a closed (radius, height) loop around the vertical axis.

        ``sides`` >= 3 facets the revolution, otherwise it is smooth.
        """

    @abstractmethod
    def build_ribbon(self, path_array: Sequence[Sequence[Point3]], flip: bool = False, name: str = "ribbon") -> Solid:
        """Stitch a sequence of equal-length 3D paths into a closed solid."""

    @abstractmethod
    def instance(self, solid: Solid, location: Location, depth_scale: float = 1.0, name: str = "") -> Instance:
        """Place a copy of ``solid`` that shares its geometry."""

    @abstractmethod
    def rotate(self, solid: Solid, angle: float) -> Solid:
        """Rotate ``solid`` in place about the vertical axis (radians)."""

    @abstractmethod
    def boolean_subtract(self, a: Handle, b: Handle, name: str = "combined") -> Solid:
        """Return a new solid ``a - b``. Inputs stay live."""

    @abstractmethod
    def triangles(self, handle: Handle) -> List[Triangle]:
        """World-space triangles of a solid or instance."""

    @abstractmethod
    def volume(self, handle: Handle) -> float:
        """Enclosed volume in mm³."""

    def _release(self, handle: Handle) -> None:
        """Free native resources of a handle that was just unregistered."""

    # ─── Derived operations ─────────────────────────────────────────────

    def extrude_along_path(
        self,
        cross_section: Sequence[Point2],
        path: Sequence[Point3],
        capped: bool = True,
        name: str = "extrusion",
    ) -> Solid:
        """
        Sweep a closed 2D cross-section along a polyline path.

        The section plane at each path point is perpendicular to the local
        path direction (see ``section_frame``). Caps collapse the first and
        last loops to their centroids.
        """
        if len(path) < 2:
            raise ValueError(f"Extrusion path needs at least 2 points, got {len(path)}")

        loop = list(cross_section)
        if loop[0] != loop[-1]:
            loop.append(loop[0])

        paths = []
        for i, origin in enumerate(path):
            ahead = path[min(i + 1, len(path) - 1)]
            behind = path[max(i - 1, 0)]
            u, v = section_frame(_sub(ahead, behind))
            paths.append([
                (
                    origin[0] + p[0] * u[0] + p[1] * v[0],
                    origin[1] + p[0] * u[1] + p[1] * v[1],
                    origin[2] + p[0] * u[2] + p[1] * v[2],
                )
                for p in loop
            ])

        if capped:
            paths.insert(0, [centroid(paths[0][:-1])] * len(loop))
            paths.append([centroid(paths[-1][:-1])] * len(loop))

        return self.build_ribbon(paths, name=name)
