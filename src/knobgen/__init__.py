"""
Knobgen - parametric 3D-printable knob generator.

Builds a knob from a declarative configuration: a revolved body, an optional
cavity, knurling, splines, keys, threads and pointer wedges.

Example:
    >>> from knobgen import KnobModel, load_knob_json
    >>>
    >>> knob = KnobModel(load_knob_json("knob.json"))
    >>> knob.export_stl("knob.stl")
    >>> knob.export_step("knob.step")

Note: All imports are lazy-loaded. Configuration models can be imported
without triggering geometry (build123d) imports.
"""

__version__ = "0.1.0"

_ENUMS = {"KnurlShape", "KnobPart", "UpdateState"}

_IO = {
    "load_knob_json",
    "save_knob_json",
    "KnobConfig",
    "BodyConfig",
    "HoleConfig",
    "PointerConfig",
    "SurfaceConfig",
    "KnurlingConfig",
    "SplineConfig",
    "ThreadConfig",
    "ProfileSegment",
}

_CORE = {
    "KnobModel",
    "Build123dEngine",
    "GeometryEngine",
    "GeometryEngineError",
    "Profile",
    "build_profile",
}

# Cache for lazy-loaded modules
_modules = {}


def __getattr__(name):
    """Lazy load submodules when their attributes are accessed."""
    if name in _ENUMS:
        if "enums" not in _modules:
            from . import enums
            _modules["enums"] = enums
        return getattr(_modules["enums"], name)

    if name in _IO:
        if "io" not in _modules:
            from . import io
            _modules["io"] = io
        return getattr(_modules["io"], name)

    if name in _CORE:
        if "core" not in _modules:
            from . import core
            _modules["core"] = core
        return getattr(_modules["core"], name)

    raise AttributeError(f"module 'knobgen' has no attribute {name!r}")


__all__ = ["__version__"] + sorted(_ENUMS | _IO | _CORE)
