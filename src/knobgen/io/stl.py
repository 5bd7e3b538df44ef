"""
ASCII STL output.

Triangles arrive in world space with the engine's winding; normals are
recomputed from the winding rather than taken from the engine.

No build123d dependency, so meshes can be written from plain tuples.
"""

import math
from pathlib import Path
from typing import Iterable, Sequence, Tuple, Union

STL_NAME = "stlmesh"

Vertex = Tuple[float, float, float]


def facet_normal(triangle: Sequence[Vertex]) -> Vertex:
    """Unit normal (v2 - v1) x (v0 - v1); zero for degenerate triangles."""
    v0, v1, v2 = triangle
    a = (v2[0] - v1[0], v2[1] - v1[1], v2[2] - v1[2])
    b = (v0[0] - v1[0], v0[1] - v1[1], v0[2] - v1[2])
    n = (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )
    length = math.sqrt(n[0] ** 2 + n[1] ** 2 + n[2] ** 2)
    if length == 0:
        return (0.0, 0.0, 0.0)
    return (n[0] / length, n[1] / length, n[2] / length)


def _fmt(value: float) -> str:
    return repr(float(value))


def iter_stl_lines(triangles: Iterable[Sequence[Vertex]], name: str = STL_NAME):
    """Yield the lines of an ASCII STL document."""
    yield f"solid {name}"
    for triangle in triangles:
        n = facet_normal(triangle)
        yield f"facet normal {_fmt(n[0])} {_fmt(n[1])} {_fmt(n[2])}"
        yield "\touter loop"
        for vertex in triangle:
            yield f"\t\tvertex {_fmt(vertex[0])} {_fmt(vertex[1])} {_fmt(vertex[2])}"
        yield "\tendloop"
        yield "endfacet"
    yield f"endsolid {name}"


def to_stl(triangles: Iterable[Sequence[Vertex]], name: str = STL_NAME) -> str:
    """ASCII STL text for a triangle soup."""
    return "\n".join(iter_stl_lines(triangles, name)) + "\n"


def write_stl(triangles: Iterable[Sequence[Vertex]], filepath: Union[str, Path], name: str = STL_NAME) -> int:
    """
    Write triangles as ASCII STL.

    Returns:
        Number of facets written
    """
    count = 0
    with open(Path(filepath), 'w') as f:
        for line in iter_stl_lines(triangles, name):
            if line.startswith("facet"):
                count += 1
            f.write(line + "\n")
    return count
