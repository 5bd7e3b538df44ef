"""Type-safe enums for knob configuration and incremental updates."""

from enum import Enum


class KnurlShape(Enum):
    """Primitive used for a single knurling instance"""
    PYRAMID = "pyramid"      # Square pyramid, apex pointing outward
    CONE = "cone"            # Round base, apex pointing outward
    CYLINDER = "cylinder"    # Round stud
    RECTANGLE = "rectangle"  # Box stud
    TRIANGLE = "triangle"    # Triangular prism


class KnobPart(Enum):
    """Regenerable parts of a knob.

    Leaf families own solids; BODY, CAVITY and SURFACE are also cascade
    nodes (see ``knobgen.core.knob.DEPENDENTS``).
    """
    BODY = "body"
    POINTERS = "pointers"
    CAVITY = "cavity"
    SURFACE = "surface"
    KNURLING = "knurling"
    SPLINES = "splines"
    THREADS = "threads"
    INTERNAL_SPLINES = "internalSplines"
    INTERNAL_THREADS = "internalThreads"

    @classmethod
    def coerce(cls, value):
        """Accept enum members, values, or the legacy ``screwHole`` name."""
        if isinstance(value, cls):
            return value
        if value == "screwHole":
            return cls.CAVITY
        return cls(value)


class UpdateState(Enum):
    """Phases of ``KnobModel.update``"""
    IDLE = "idle"
    RESOLVING = "resolving"          # Expanding requested parts into the cascade
    REGENERATING = "regenerating"    # Rebuilding solids part by part
    RECOMBINING = "recombining"      # Boolean resolve of the subtraction set
