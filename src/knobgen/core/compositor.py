"""
Boolean composition of the body with everything cut from it.
"""

import logging
from typing import List, Optional

from .engine import GeometryEngine, Handle, Solid
from .registry import FeatureSolid

logger = logging.getLogger(__name__)


class BooleanCompositor:
    """
    Ordered subtraction set plus a dirty flag.

    Members are feature groups (a cavity, a subtractive spline with its
    copies, an internal thread). ``resolve`` subtracts every handle of every
    member from the body, pairwise in insertion order, only when something
    changed since the last resolve.

    The final solid is the body itself when the set is empty; otherwise it
    is a solid owned by the compositor.
    """

    def __init__(self, engine: GeometryEngine):
        self.engine = engine
        self.body: Optional[Solid] = None
        self._members: List[FeatureSolid] = []
        self._final: Optional[Solid] = None
        self.dirty = True
        self.boolean_passes = 0

    @property
    def members(self) -> List[FeatureSolid]:
        return list(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, member: FeatureSolid) -> bool:
        return any(m is member for m in self._members)

    def set_body(self, body: Solid) -> None:
        self.body = body
        self.dirty = True

    def add(self, member: FeatureSolid) -> None:
        if member in self:
            return
        self._members.append(member)
        self.dirty = True

    def discard(self, member: FeatureSolid) -> None:
        """Remove a member (no-op when it is not in the set)."""
        kept = [m for m in self._members if m is not member]
        if len(kept) != len(self._members):
            self._members = kept
            self.dirty = True

    @property
    def final(self) -> Optional[Solid]:
        """Current composite, or the body when nothing is subtracted."""
        return self._final if self._final is not None else self.body

    def _drop_composite(self) -> None:
        if self._final is not None:
            self.engine.dispose(self._final)
            self._final = None

    def resolve(self) -> Optional[Solid]:
        """
        Recompute the composite when dirty.

        Returns:
            The final solid
        """
        if not self.dirty:
            return self.final

        self._drop_composite()
        self.dirty = False

        if self.body is None or not self._members:
            return self.body

        cutters: List[Handle] = [h for member in self._members for h in member.parts()]
        logger.info(f"Subtracting {len(cutters)} solid(s) in {len(self._members)} group(s) from body")

        current: Solid = self.body
        for i, cutter in enumerate(cutters):
            result = self.engine.boolean_subtract(current, cutter, name=f"combined.{i}")
            if current is not self.body:
                self.engine.dispose(current)
            current = result

        self._final = current
        self.boolean_passes += 1
        return self._final

    def dispose(self) -> None:
        """Dispose the composite. Body and members belong to their owners."""
        self._drop_composite()
        self._members = []
        self.body = None
        self.dirty = True
