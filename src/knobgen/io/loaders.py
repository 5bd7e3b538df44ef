"""
JSON input/output for knob configurations.

Accepts the camelCase keys used by knob configuration files as well as the
snake_case field names, the legacy ``radius``/``topRadius``/``bottomRadius``
body description and the ``screwHole`` name for the cavity.

Uses Pydantic for validation, defaults and enum coercion.
"""

import json
from math import pi
from pathlib import Path
from typing import ClassVar, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, root_validator, validator

from ..enums import KnurlShape


# Check Pydantic version for API compatibility
try:
    from pydantic import __version__ as PYDANTIC_VERSION
    PYDANTIC_V2 = int(PYDANTIC_VERSION.split('.')[0]) >= 2
except (ImportError, ValueError):
    PYDANTIC_V2 = False


def _rename(data: dict, old: str, new: str, *also: str) -> None:
    """Move ``old`` to ``new`` unless ``new`` (or an equivalent) is present."""
    if old in data and new not in data and not any(k in data for k in also):
        data[new] = data.pop(old)


def _clamp_range(v):
    lo, hi = sorted(float(x) for x in v)
    return (min(max(lo, 0.0), 1.0), min(max(hi, 0.0), 1.0))


if PYDANTIC_V2:
    from pydantic import ConfigDict

    class _KnobModel(BaseModel):
        model_config = ConfigDict(extra='ignore', populate_by_name=True, use_enum_values=False)
else:
    class _KnobModel(BaseModel):
        class Config:
            extra = 'ignore'
            allow_population_by_field_name = True
            use_enum_values = False  # Keep as enum internally


class ProfileSegment(_KnobModel):
    """One profile segment: radius at a height ratio, and the span smoothing."""
    radius: float = 0.0
    height_ratio: float = Field(0.0, alias='heightRatio')
    smoothing: float = 0.0

    @root_validator(pre=True)
    def accept_height_key(cls, values):
        if isinstance(values, dict):
            values = dict(values)
            _rename(values, 'height', 'heightRatio', 'height_ratio')
        return values

    @validator('smoothing')
    def clamp_smoothing(cls, v):
        return min(max(v, -1.0), 1.0)


class _RevolvedConfig(_KnobModel):
    """Shared fields of the body and the cavity."""
    DEFAULT_BALANCE: ClassVar[float] = 0.5

    height: float = 0.0
    sides: int = 0
    balance: float = 0.5
    segments: List[ProfileSegment] = Field(default_factory=list)

    @root_validator(pre=True)
    def expand_legacy_radii(cls, values):
        """
        Turn ``radius``/``topRadius``/``bottomRadius``/``smoothing`` into
        three segments when no segment list is given.
        """
        if not isinstance(values, dict):
            return values
        values = dict(values)
        if values.get('segments'):
            return values

        radius = values.get('radius')
        bottom = values.get('bottomRadius', values.get('bottom_radius'))
        top = values.get('topRadius', values.get('top_radius'))
        if radius is None:
            radius = bottom if bottom is not None else top
        if radius is None:
            return values

        bottom = radius if bottom is None else bottom
        top = radius if top is None else top
        smoothing = values.get('smoothing') or 0.0
        values['segments'] = [
            {'radius': bottom, 'heightRatio': 0.0},
            {'radius': radius, 'heightRatio': values.get('balance', cls.DEFAULT_BALANCE), 'smoothing': -smoothing},
            {'radius': top, 'heightRatio': 1.0, 'smoothing': smoothing},
        ]
        return values

    @validator('segments')
    def normalize_segments(cls, v, values):
        """Sort by ratio; absolute heights (any ratio above 1) become ratios."""
        height = values.get('height') or 0.0
        if height > 0 and any(s.height_ratio > 1 for s in v):
            v = [
                ProfileSegment(radius=s.radius, heightRatio=s.height_ratio / height, smoothing=s.smoothing)
                for s in v
            ]
        return sorted(v, key=lambda s: s.height_ratio)


class BodyConfig(_RevolvedConfig):
    """
    Outer body: height, facet count and profile segments.

    A body without segments is valid on its own so partial updates can
    carry just the fields they change; ``require_body_profile`` checks a
    complete configuration.
    """


class PointerConfig(_KnobModel):
    """Additive wedge attached to the body. Angles in radians."""
    angle: float = 0.0
    radial_offset: float = Field(0.0, alias='radialOffset')
    position: float = 0.0
    length: float = 0.0
    height: float = 0.0
    width_start: float = Field(pi / 10, alias='widthStart')
    width_end: float = Field(0.0, alias='widthEnd')


class KnurlingConfig(_KnobModel):
    """Knurling pattern over a range of the body profile."""
    shape: KnurlShape = KnurlShape.PYRAMID
    size_x: float = Field(0.0, alias='sizeX')
    size_y: float = Field(0.0, alias='sizeY')
    depth: float = 0.0
    radial_count: int = Field(1, alias='radialCount')
    vertical_offset: float = Field(0.0, alias='verticalOffset')
    vertical_spacing: float = Field(0.0, alias='verticalSpacing')
    rise: float = 0.9
    range: Tuple[float, float] = (0.0, 1.0)
    shape_rotation: float = Field(0.0, alias='shapeRotation')
    depth_smoothing: float = Field(0.0, alias='depthSmoothing')

    @root_validator(pre=True)
    def accept_width_height(cls, values):
        if isinstance(values, dict):
            values = dict(values)
            _rename(values, 'width', 'sizeX', 'size_x')
            _rename(values, 'height', 'sizeY', 'size_y')
        return values

    @validator('shape', pre=True)
    def coerce_shape(cls, v):
        if v is None:
            return KnurlShape.PYRAMID
        if isinstance(v, str):
            return KnurlShape(v.lower())
        return v

    @validator('range', pre=True)
    def coerce_range(cls, v):
        return _clamp_range(v)


class SplineConfig(_KnobModel):
    """
    Ribs (``thickness`` in radians) or keys (``width`` in mm) along a
    profile, repeated ``count`` times around the axis.
    """
    count: int = 1
    range: Tuple[float, float] = (0.0, 1.0)
    height: float = 0.0
    thickness: Optional[float] = None
    root_thickness: Optional[float] = Field(None, alias='rootThickness')
    width: Optional[float] = None
    smoothing: float = 0.0
    top_scale: float = Field(1.0, alias='topScale')
    bottom_scale: float = Field(1.0, alias='bottomScale')
    scale_smoothing: float = Field(0.0, alias='scaleSmoothing')
    angle: float = 0.0
    angle_smoothing: float = Field(0.0, alias='angleSmoothing')
    substractive: bool = False

    @root_validator(pre=True)
    def accept_subtractive(cls, values):
        if isinstance(values, dict):
            values = dict(values)
            _rename(values, 'subtractive', 'substractive')
        return values

    @validator('range', pre=True)
    def coerce_range(cls, v):
        return _clamp_range(v)


class ThreadConfig(_KnobModel):
    """Helical thread; tapers are in turns."""
    pitch: float = 0.0
    depth: float = 0.0
    left_handed: bool = Field(False, alias='leftHanded')
    range: Tuple[float, float] = (0.0, 1.0)
    taper_top: float = Field(0.0, alias='taperTop')
    taper_bottom: float = Field(0.0, alias='taperBottom')

    @validator('range', pre=True)
    def coerce_range(cls, v):
        return _clamp_range(v)


class HoleConfig(_RevolvedConfig):
    """Cavity revolved inside the body, with its internal features."""
    DEFAULT_BALANCE: ClassVar[float] = 1.0

    balance: float = 1.0
    angular_offset: float = Field(0.0, alias='angularOffset')
    splines: List[SplineConfig] = Field(default_factory=list)
    threads: List[ThreadConfig] = Field(default_factory=list)

    @root_validator(pre=True)
    def accept_angle(cls, values):
        if isinstance(values, dict):
            values = dict(values)
            _rename(values, 'angle', 'angularOffset', 'angular_offset')
        return values


class SurfaceConfig(_KnobModel):
    """Features on the outer body surface."""
    knurling: List[KnurlingConfig] = Field(default_factory=list)
    splines: List[SplineConfig] = Field(default_factory=list)
    threads: List[ThreadConfig] = Field(default_factory=list)


class KnobConfig(_KnobModel):
    """Complete knob configuration."""
    body: BodyConfig
    pointers: List[PointerConfig] = Field(default_factory=list)
    screw_hole: Optional[HoleConfig] = Field(None, alias='screwHole')
    surface: SurfaceConfig = Field(default_factory=SurfaceConfig)

    @root_validator(pre=True)
    def accept_cavity(cls, values):
        if isinstance(values, dict):
            values = dict(values)
            _rename(values, 'cavity', 'screwHole', 'screw_hole')
        return values

    @property
    def cavity(self) -> Optional[HoleConfig]:
        return self.screw_hole


def _parse_obj(model_class, data: dict):
    """Parse dict to model, handling both Pydantic v1 and v2."""
    if PYDANTIC_V2:
        return model_class.model_validate(data)
    else:
        return model_class.parse_obj(data)


def _to_dict(model, by_alias: bool = False, exclude_unset: bool = False) -> dict:
    """Convert model to dict, handling both Pydantic v1 and v2."""
    if PYDANTIC_V2:
        return model.model_dump(exclude_none=True, by_alias=by_alias, exclude_unset=exclude_unset)
    else:
        return model.dict(exclude_none=True, by_alias=by_alias, exclude_unset=exclude_unset)


def merge_model(stored, incoming):
    """
    Field-level merge: fields explicitly set on ``incoming`` override
    ``stored``, everything else is kept.
    """
    data = _to_dict(stored, by_alias=True)
    data.update(_to_dict(incoming, by_alias=True, exclude_unset=True))
    return _parse_obj(type(stored), data)


def copy_model(model):
    """Independent snapshot of a model."""
    return _parse_obj(type(model), _to_dict(model, by_alias=True))


def require_body_profile(body: BodyConfig) -> BodyConfig:
    """
    Check that a body (parsed whole, or merged) describes a profile.

    Raises:
        ValueError: If the body has no segments
    """
    if not body.segments:
        raise ValueError("body needs at least one profile segment (or a radius)")
    return body


def parse_knob_config(data, partial: bool = False) -> KnobConfig:
    """
    KnobConfig from a dict (optionally wrapped in ``knob``) or a KnobConfig.

    Args:
        data: Configuration dict or KnobConfig
        partial: Accept a body without segments, for update payloads that
            are merged into a stored configuration
    """
    if not isinstance(data, KnobConfig):
        if 'knob' in data:
            data = data['knob']
        if 'body' not in data:
            raise ValueError("Invalid knob JSON - must contain a 'body' section")
        data = _parse_obj(KnobConfig, data)
    if not partial:
        require_body_profile(data.body)
    return data


def load_knob_json(filepath: Union[str, Path]) -> KnobConfig:
    """
    Load a knob configuration from JSON.

    Args:
        filepath: Path to JSON file

    Returns:
        KnobConfig with defaults filled in

    Raises:
        FileNotFoundError: If file doesn't exist
        ValidationError: If values are malformed
        ValueError: If the body section is missing
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"Knob file not found: {filepath}")

    with open(filepath, 'r') as f:
        data = json.load(f)

    return parse_knob_config(data)


def knob_config_to_dict(config: KnobConfig) -> dict:
    """JSON-ready dict with camelCase keys and enum values."""
    data = _to_dict(config, by_alias=True)

    def convert(obj):
        if isinstance(obj, dict):
            return {k: convert(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [convert(v) for v in obj]
        elif hasattr(obj, 'value'):  # Enum
            return obj.value
        return obj

    return convert(data)


def save_knob_json(config: KnobConfig, filepath: Union[str, Path]) -> None:
    """
    Save a knob configuration as JSON with camelCase keys.

    Args:
        config: Knob configuration
        filepath: Path to save JSON file
    """
    with open(Path(filepath), 'w') as f:
        json.dump(knob_config_to_dict(config), f, indent=2)
