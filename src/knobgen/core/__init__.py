"""
Knobgen Core - profile math and the solid-geometry kernel.

Example:
    >>> from knobgen.core import KnobModel
    >>> from knobgen.io import load_knob_json
    >>>
    >>> knob = KnobModel(load_knob_json("knob.json"))
    >>> knob.update(knob.config, parts=["knurling"], index=0)
    >>> knob.export_stl("knob.stl")
"""

# Profile math is always available (no build123d dependency)
from .profile import (
    TESSELLATION_DENSITY,
    Profile,
    ProfileInfo,
    ProfilePoint,
    build_profile,
    smooth,
)

from .engine import GeometryEngine, GeometryEngineError, Instance, Solid
from .build123d_engine import Build123dEngine
from .registry import FeatureSolid, SolidRegistry
from .compositor import BooleanCompositor
from .solids import CUT_OVERLAP, build_body, build_cavity, build_pointer, revolve_profile
from .knurling import MAX_KNURL_COLUMNS, build_knurling, plan_knurling
from .ribbons import build_spline, build_thread
from .knob import DEPENDENTS, KnobModel, resolve_parts

__all__ = [
    # Profile
    "TESSELLATION_DENSITY",
    "Profile",
    "ProfileInfo",
    "ProfilePoint",
    "build_profile",
    "smooth",

    # Engine
    "GeometryEngine",
    "GeometryEngineError",
    "Solid",
    "Instance",
    "Build123dEngine",

    # Builders
    "CUT_OVERLAP",
    "revolve_profile",
    "build_body",
    "build_cavity",
    "build_pointer",
    "MAX_KNURL_COLUMNS",
    "build_knurling",
    "plan_knurling",
    "build_spline",
    "build_thread",

    # Composition and orchestration
    "FeatureSolid",
    "SolidRegistry",
    "BooleanCompositor",
    "DEPENDENTS",
    "KnobModel",
    "resolve_parts",
]
