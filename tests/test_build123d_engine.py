"""
Tests for the build123d/OCP geometry engine and full knob builds.

These build real OpenCascade solids - slow.
"""

import math
import pytest

from build123d import Pos, Rot, Solid

from knobgen.core.build123d_engine import Build123dEngine, solid_from_triangles
from knobgen.core.engine import ribbon_triangles
from knobgen.core.engine import GeometryEngineError
from knobgen.core.geometry_repair import repair_geometry
from knobgen.core.knob import KnobModel

pytestmark = pytest.mark.slow


@pytest.fixture
def b3d():
    return Build123dEngine()


def _cylinder_loop(radius, height):
    return [(0, 0), (radius, 0), (radius, height), (0, height)]


class TestPrimitives:

    def test_smooth_revolve(self, b3d):
        solid = b3d.revolve(_cylinder_loop(15, 30))
        assert b3d.volume(solid) == pytest.approx(math.pi * 15 ** 2 * 30, rel=1e-3)
        assert solid.shape.is_valid

    def test_faceted_revolve(self, b3d):
        solid = b3d.revolve(_cylinder_loop(10, 5), sides=6)
        hexagon = 1.5 * math.sqrt(3) * 10 ** 2
        assert b3d.volume(solid) == pytest.approx(hexagon * 5, rel=1e-3)

    def test_degenerate_loop_rejected(self, b3d):
        with pytest.raises(GeometryEngineError):
            b3d.revolve([(0, 0), (0, 0), (5, 0)])

    def test_extruded_box(self, b3d):
        square = [(-1, -1), (1, -1), (1, 1), (-1, 1)]
        solid = b3d.extrude_along_path(square, [(0, 0, 0), (0, 0, 5)])
        assert b3d.volume(solid) == pytest.approx(20, rel=1e-3)
        assert solid.shape.is_valid

    def test_sewn_triangles_form_a_solid(self):
        square = [(0, 0, 0), (2, 0, 0), (2, 2, 0), (0, 2, 0), (0, 0, 0)]
        top = [(x, y, 3) for x, y, _ in square]
        centre = [(1, 1, 0)] * 5
        apex = [(1, 1, 3)] * 5
        shape = solid_from_triangles(ribbon_triangles([centre, square, top, apex]))
        assert isinstance(shape, Solid)
        assert shape.volume == pytest.approx(12, rel=1e-3)

    def test_instance_shares_geometry(self, b3d):
        square = [(-1, -1), (1, -1), (1, 1), (-1, 1)]
        solid = b3d.extrude_along_path(square, [(0, 0, 0), (0, 0, 5)])
        copy = b3d.instance(solid, Pos(10, 0, 0), depth_scale=0.5)
        assert b3d.volume(copy) == pytest.approx(10, rel=1e-3)
        center = b3d.native(copy).bounding_box().center()
        assert center.X == pytest.approx(10, abs=1e-3)

    def test_rotate_in_place(self, b3d):
        square = [(4, -1), (6, -1), (6, 1), (4, 1)]
        solid = b3d.extrude_along_path(square, [(0, 0, 0), (0, 0, 5)])
        assert b3d.rotate(solid, math.pi / 2) is solid
        center = solid.shape.bounding_box().center()
        assert center.X == pytest.approx(0, abs=1e-3)
        assert center.Y == pytest.approx(5, abs=1e-3)

    def test_boolean_subtract(self, b3d):
        outer = b3d.revolve(_cylinder_loop(10, 10))
        inner = b3d.revolve(_cylinder_loop(5, 10))
        result = b3d.boolean_subtract(outer, inner)
        assert b3d.volume(result) == pytest.approx(math.pi * 75 * 10, rel=1e-3)
        assert b3d.is_live(outer) and b3d.is_live(inner)

    def test_subtract_instance(self, b3d):
        outer = b3d.revolve(_cylinder_loop(10, 10))
        square = [(-1, -1), (1, -1), (1, 1), (-1, 1)]
        cutter = b3d.extrude_along_path(square, [(0, 0, -1), (0, 0, 11)])
        placed = b3d.instance(cutter, Rot(Z=45))
        result = b3d.boolean_subtract(outer, placed)
        assert b3d.volume(result) == pytest.approx(math.pi * 100 * 10 - 40, rel=1e-3)

    def test_triangles(self, b3d):
        solid = b3d.revolve(_cylinder_loop(5, 5), sides=8)
        triangles = b3d.triangles(solid)
        assert len(triangles) >= 8 * 2 + 2 * 6
        assert all(len(t) == 3 for t in triangles)

    def test_disposed_handle_rejected(self, b3d):
        solid = b3d.revolve(_cylinder_loop(5, 5))
        b3d.dispose(solid)
        assert solid.shape is None
        with pytest.raises(GeometryEngineError):
            b3d.volume(solid)


class TestGeometryRepair:

    def test_valid_part_returned_unchanged(self, b3d):
        solid = b3d.revolve(_cylinder_loop(5, 5))
        assert repair_geometry(solid.shape) is solid.shape


class TestKnobBuild:

    def test_cavity_and_surface(self, knob_dict):
        knob = KnobModel(knob_dict)
        body_volume = knob.engine.volume(knob.body_solid)
        final_volume = knob.engine.volume(knob.final_solid)
        cavity = math.pi * 5 ** 2 * 8
        assert final_volume == pytest.approx(body_volume - cavity, rel=1e-2)

        box = knob.engine.native(knob.final_solid).bounding_box()
        assert box.max.X == pytest.approx(15, abs=1e-2)
        knob.dispose()
        assert knob.live_count == 0

    def test_subtractive_ribs_remove_material(self, demo_knob_dict):
        knob = KnobModel(demo_knob_dict)
        with_ribs = knob.engine.volume(knob.final_solid)

        plain = dict(demo_knob_dict["knob"], surface={})
        knob.update(plain, parts=["splines"])
        without_ribs = knob.engine.volume(knob.final_solid)

        assert with_ribs < without_ribs
        knob.dispose()

    def test_export(self, knob_dict, tmp_path):
        knob = KnobModel(knob_dict)
        stl = tmp_path / "knob.stl"
        step = tmp_path / "knob.step"
        knob.export_stl(str(stl))
        knob.export_step(str(step))

        text = stl.read_text()
        assert text.startswith("solid")
        assert "facet normal" in text
        assert step.stat().st_size > 0
        knob.dispose()
