"""
Pytest configuration and shared fixtures for knobgen tests.
"""

import json
import math
import pytest
from pathlib import Path

from tests.helpers.recording_engine import RecordingEngine


# ─── Engines ─────────────────────────────────────────────────────────────


@pytest.fixture
def engine():
    """Fresh in-memory engine (no OpenCascade)."""
    return RecordingEngine()


# ─── Raw configuration dicts ─────────────────────────────────────────────


@pytest.fixture
def cylinder_body():
    """Smooth cylinder, radius 15 mm, height 30 mm."""
    return _cylinder_body()


@pytest.fixture
def knob_dict():
    """Body with a cavity, one knurling pattern and one additive spline."""
    return _knob_dict()


@pytest.fixture
def demo_knob_dict():
    """Legacy-format knob with pointer, screw hole and subtractive ribs."""
    return _demo_knob_dict()


@pytest.fixture
def temp_json_file(tmp_path, knob_dict):
    """Knob JSON file on disk."""
    path = tmp_path / "knob.json"
    path.write_text(json.dumps(knob_dict, indent=2))
    return path


# ─── Helper functions (no pytest dependency) ──────────────────────────────


def _cylinder_body():
    return {
        "height": 30,
        "segments": [
            {"radius": 15, "heightRatio": 0},
            {"radius": 15, "heightRatio": 1},
        ],
    }


def _knurling():
    return {
        "shape": "pyramid",
        "sizeX": 2,
        "sizeY": 2,
        "depth": 1,
        "radialCount": 10,
        "verticalSpacing": 1,
    }


def _spline(**overrides):
    spline = {
        "count": 3,
        "height": 2,
        "thickness": math.pi / 20,
        "rootThickness": math.pi / 12,
    }
    spline.update(overrides)
    return spline


def _knob_dict():
    return {
        "body": _cylinder_body(),
        "screwHole": {
            "height": 8,
            "segments": [
                {"radius": 5, "heightRatio": 0},
                {"radius": 5, "heightRatio": 1},
            ],
        },
        "surface": {
            "knurling": [_knurling()],
            "splines": [_spline()],
        },
    }


def _demo_knob_dict():
    return {
        "knob": {
            "body": {"radius": 15, "height": 30, "balance": 0.5},
            "screwHole": {"radius": 5, "height": 8, "balance": 1},
            "pointers": [{
                "height": 15,
                "radialOffset": 10,
                "position": 0.75,
                "length": 2,
                "widthStart": 0.25,
                "widthEnd": 0.02,
            }],
            "surface": {
                "splines": [{
                    "rootThickness": math.pi / 6,
                    "thickness": math.pi / 10,
                    "height": 4,
                    "count": 3,
                    "substractive": True,
                }],
            },
        }
    }
