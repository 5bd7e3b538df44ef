"""
Ownership table for every solid a knob creates.

Solids are stored per family as a list parallel to the family's config
array, so bulk replacement and single-index replacement are the same
operation on different slices.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from ..enums import KnobPart
from .engine import GeometryEngine, Handle, Instance, Solid

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class FeatureSolid:
    """
    A feature solid plus the instances placed from it.

    Attributes:
        family: Part family that owns this feature
        base: Solid the instances share geometry with
        instances: Placed copies of ``base``
        subtractive: Whether the feature is cut from the body
        template: True when ``base`` itself is not part of the output
            (knurling places every copy as an instance)
    """
    family: KnobPart
    base: Solid
    instances: List[Instance] = field(default_factory=list)
    subtractive: bool = False
    template: bool = False

    def parts(self) -> Iterator[Handle]:
        """Handles that make up the visible feature."""
        if not self.template:
            yield self.base
        yield from self.instances

    def handles(self) -> Iterator[Handle]:
        """Every owned handle, instances first so they go before their source."""
        yield from self.instances
        yield self.base

    def __len__(self) -> int:
        return len(self.instances) + (0 if self.template else 1)


class SolidRegistry:
    """Solids keyed by (family, index), disposed through the engine."""

    def __init__(self, engine: GeometryEngine):
        self.engine = engine
        self._slots: Dict[KnobPart, List[Optional[FeatureSolid]]] = {}

    def family(self, family: KnobPart) -> List[Optional[FeatureSolid]]:
        """Slots of a family (None where an element produced no solid)."""
        return self._slots.setdefault(family, [])

    def get(self, family: KnobPart, index: int = 0) -> Optional[FeatureSolid]:
        slots = self._slots.get(family, [])
        return slots[index] if index < len(slots) else None

    def put(self, family: KnobPart, index: int, feature: Optional[FeatureSolid]) -> None:
        """Store a feature in an empty slot, growing the family as needed."""
        slots = self.family(family)
        while len(slots) <= index:
            slots.append(None)
        if slots[index] is not None:
            raise ValueError(f"Slot {family.value}[{index}] is still occupied")
        slots[index] = feature

    def release(self, family: KnobPart, index: int) -> Optional[FeatureSolid]:
        """Dispose the solids in one slot and empty it. Returns what was there."""
        slots = self._slots.get(family, [])
        if index >= len(slots) or slots[index] is None:
            return None
        feature = slots[index]
        slots[index] = None
        for handle in feature.handles():
            self.engine.dispose(handle)
        return feature

    def release_family(self, family: KnobPart) -> List[FeatureSolid]:
        """Dispose every solid of a family and forget its slots."""
        released = []
        for index in range(len(self._slots.get(family, []))):
            feature = self.release(family, index)
            if feature is not None:
                released.append(feature)
        self._slots[family] = []
        if released:
            logger.debug(f"Released {len(released)} {family.value} solid group(s)")
        return released

    def features(self, family: Optional[KnobPart] = None) -> Iterator[FeatureSolid]:
        """Live features, of one family or all of them in family order."""
        families = [family] if family is not None else list(self._slots)
        for fam in families:
            for feature in self._slots.get(fam, []):
                if feature is not None:
                    yield feature

    def clear(self) -> None:
        for family in list(self._slots):
            self.release_family(family)
