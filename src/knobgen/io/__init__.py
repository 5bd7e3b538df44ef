"""
Knobgen IO - configuration loaders and STL output.

Example:
    >>> from knobgen.io import load_knob_json, save_knob_json
    >>>
    >>> config = load_knob_json("knob.json")
    >>> save_knob_json(config, "knob-copy.json")
"""

from .loaders import (
    load_knob_json,
    save_knob_json,
    parse_knob_config,
    require_body_profile,
    knob_config_to_dict,
    merge_model,
    copy_model,
    KnobConfig,
    BodyConfig,
    HoleConfig,
    PointerConfig,
    SurfaceConfig,
    KnurlingConfig,
    SplineConfig,
    ThreadConfig,
    ProfileSegment,
)

from .stl import facet_normal, to_stl, write_stl

__all__ = [
    # Loaders
    "load_knob_json",
    "save_knob_json",
    "parse_knob_config",
    "require_body_profile",
    "knob_config_to_dict",
    "merge_model",
    "copy_model",

    # Configuration
    "KnobConfig",
    "BodyConfig",
    "HoleConfig",
    "PointerConfig",
    "SurfaceConfig",
    "KnurlingConfig",
    "SplineConfig",
    "ThreadConfig",
    "ProfileSegment",

    # STL
    "facet_normal",
    "to_stl",
    "write_stl",
]
