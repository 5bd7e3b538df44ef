"""
Knob model: owns the configuration snapshot, every live solid and the
boolean composite, and regenerates only what an update touches.

Parts form a small dependency graph. Updating a part regenerates it and
everything downstream of it, in a fixed order, then recombines the body
with the subtraction set once for the whole batch.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..enums import KnobPart, UpdateState
from ..io.loaders import KnobConfig, copy_model, merge_model, parse_knob_config, require_body_profile
from ..io.stl import to_stl, write_stl
from .compositor import BooleanCompositor
from .engine import GeometryEngine, Handle, Solid, Triangle
from .knurling import build_knurling
from .profile import Profile
from .registry import FeatureSolid, SolidRegistry
from .ribbons import build_spline, build_thread
from .solids import build_body, build_cavity, build_pointer

logger = logging.getLogger(__name__)

# Regenerating a key part also regenerates its dependents
DEPENDENTS: Dict[KnobPart, Tuple[KnobPart, ...]] = {
    KnobPart.BODY: (KnobPart.SURFACE, KnobPart.CAVITY, KnobPart.POINTERS),
    KnobPart.CAVITY: (KnobPart.INTERNAL_SPLINES, KnobPart.INTERNAL_THREADS),
    KnobPart.SURFACE: (KnobPart.KNURLING, KnobPart.SPLINES, KnobPart.THREADS),
}

# Topological order of regeneration
REGENERATION_ORDER: Tuple[KnobPart, ...] = (
    KnobPart.BODY,
    KnobPart.POINTERS,
    KnobPart.CAVITY,
    KnobPart.INTERNAL_SPLINES,
    KnobPart.INTERNAL_THREADS,
    KnobPart.KNURLING,
    KnobPart.SPLINES,
    KnobPart.THREADS,
)

# Families attached to the outer body
SURFACE_FAMILIES = (
    KnobPart.POINTERS,
    KnobPart.KNURLING,
    KnobPart.SPLINES,
    KnobPart.THREADS,
)

# Parts regenerated when an update names none
ALL_PARTS: Tuple[KnobPart, ...] = (
    KnobPart.BODY,
    KnobPart.POINTERS,
    KnobPart.CAVITY,
    KnobPart.KNURLING,
    KnobPart.SPLINES,
    KnobPart.THREADS,
)

# Families backed by a config array
ARRAY_FAMILIES = (
    KnobPart.POINTERS,
    KnobPart.KNURLING,
    KnobPart.SPLINES,
    KnobPart.THREADS,
    KnobPart.INTERNAL_SPLINES,
    KnobPart.INTERNAL_THREADS,
)


def resolve_parts(parts: Iterable) -> Set[KnobPart]:
    """Close a set of parts over DEPENDENTS."""
    pending = [KnobPart.coerce(p) for p in parts]
    closure: Set[KnobPart] = set()
    while pending:
        part = pending.pop()
        if part in closure:
            continue
        closure.add(part)
        pending.extend(DEPENDENTS.get(part, ()))
    return closure


def _family_configs(config: KnobConfig, family: KnobPart) -> List:
    """The config array backing a family (empty when there is no cavity)."""
    if family == KnobPart.POINTERS:
        return config.pointers
    if family == KnobPart.KNURLING:
        return config.surface.knurling
    if family == KnobPart.SPLINES:
        return config.surface.splines
    if family == KnobPart.THREADS:
        return config.surface.threads
    if config.screw_hole is None:
        return []
    if family == KnobPart.INTERNAL_SPLINES:
        return config.screw_hole.splines
    if family == KnobPart.INTERNAL_THREADS:
        return config.screw_hole.threads
    raise ValueError(f"{family.value} is not an array family")


class KnobModel:
    """
    A knob built from a KnobConfig.

    Attributes:
        config: Snapshot of the configuration the solids were built from
        engine: Geometry engine owning every solid
        state: Current UpdateState
        body_profile: Profile of the outer body
        cavity_profile: Profile of the cavity, None without one
    """

    def __init__(self, config, engine: Optional[GeometryEngine] = None):
        if engine is None:
            from .build123d_engine import Build123dEngine
            engine = Build123dEngine()

        self.engine = engine
        self.registry = SolidRegistry(engine)
        self.compositor = BooleanCompositor(engine)
        self.state = UpdateState.IDLE
        self.body_profile: Optional[Profile] = None
        self.cavity_profile: Optional[Profile] = None

        self.config: KnobConfig = copy_model(parse_knob_config(config))
        self.update(self.config)

    # ─── Update protocol ─────────────────────────────────────────────────

    def update(self, config, parts: Optional[Iterable] = None, index: Optional[int] = None) -> None:
        """
        Apply a configuration and regenerate the requested parts.

        Args:
            config: Full KnobConfig (or dict) holding the new values
            parts: Part names or KnobPart members; all parts when omitted.
                Dependents are added automatically.
            index: Element of the named array families to merge and
                rebuild on its own. Omitted, or past the end of the stored
                array, replaces the whole array.
        """
        incoming = parse_knob_config(config, partial=True)

        try:
            self.state = UpdateState.RESOLVING
            named = {KnobPart.coerce(p) for p in parts} if parts else set(ALL_PARTS)
            scheduled = resolve_parts(named)
            logger.debug(f"Update scheduled: {[p.value for p in REGENERATION_ORDER if p in scheduled]}")

            self.state = UpdateState.REGENERATING
            for part in REGENERATION_ORDER:
                if part not in scheduled:
                    continue
                if part == KnobPart.BODY:
                    self._regenerate_body(incoming)
                elif part == KnobPart.CAVITY:
                    self._regenerate_cavity(incoming)
                else:
                    self._regenerate_family(part, incoming, index if part in named else None)

            self.state = UpdateState.RECOMBINING
            if self.compositor.dirty:
                self.compositor.resolve()
        finally:
            self.state = UpdateState.IDLE

    def _regenerate_body(self, incoming: KnobConfig) -> None:
        self.config.body = require_body_profile(merge_model(self.config.body, incoming.body))
        self.registry.release(KnobPart.BODY, 0)

        logger.info("Regenerating body")
        self.body_profile, solid = build_body(self.engine, self.config.body)
        if solid is not None:
            self.registry.put(KnobPart.BODY, 0, FeatureSolid(KnobPart.BODY, solid))
        self.compositor.set_body(solid)

    def _regenerate_cavity(self, incoming: KnobConfig) -> None:
        if incoming.screw_hole is None:
            self.config.screw_hole = None
        elif self.config.screw_hole is None:
            self.config.screw_hole = copy_model(incoming.screw_hole)
        else:
            self.config.screw_hole = merge_model(self.config.screw_hole, incoming.screw_hole)

        released = self.registry.release(KnobPart.CAVITY, 0)
        if released is not None:
            self.compositor.discard(released)

        logger.info("Regenerating cavity")
        self.cavity_profile, solid = build_cavity(self.engine, self.config.screw_hole)
        if solid is None:
            return
        feature = FeatureSolid(KnobPart.CAVITY, solid, subtractive=True)
        self.registry.put(KnobPart.CAVITY, 0, feature)
        self.compositor.add(feature)

    def _regenerate_family(self, family: KnobPart, incoming: KnobConfig, index: Optional[int]) -> None:
        if family not in ARRAY_FAMILIES:
            return

        stored = _family_configs(self.config, family)
        supplied = _family_configs(incoming, family)

        if index is None or index >= len(stored) or index >= len(supplied):
            stored[:] = [copy_model(c) for c in supplied]
            for feature in self.registry.release_family(family):
                self.compositor.discard(feature)

            logger.info(f"Regenerating {family.value}: {len(stored)} element(s)")
            for i, element in enumerate(stored):
                self._place(family, i, self._build(family, element))
        else:
            stored[index] = merge_model(stored[index], supplied[index])
            released = self.registry.release(family, index)
            if released is not None:
                self.compositor.discard(released)

            logger.info(f"Regenerating {family.value}[{index}]")
            self._place(family, index, self._build(family, stored[index]))

    def _place(self, family: KnobPart, index: int, feature: Optional[FeatureSolid]) -> None:
        self.registry.put(family, index, feature)
        if feature is not None and feature.subtractive:
            self.compositor.add(feature)

    def _build(self, family: KnobPart, element) -> Optional[FeatureSolid]:
        """Build one array element into a feature (None when degenerate)."""
        if family in SURFACE_FAMILIES and self.body_solid is None:
            logger.debug(f"No body solid, {family.value} skipped")
            return None
        if family == KnobPart.POINTERS:
            solid = build_pointer(self.engine, element, self.body_profile.height)
            return FeatureSolid(family, solid) if solid is not None else None
        if family == KnobPart.KNURLING:
            return build_knurling(self.engine, element, self.body_profile)
        if family == KnobPart.SPLINES:
            return build_spline(self.engine, element, self.body_profile, balance=self.config.body.balance)
        if family == KnobPart.THREADS:
            return build_thread(self.engine, element, self.body_profile)

        if self.cavity_profile is None or self.cavity_profile.length <= 0:
            logger.debug(f"No cavity profile, {family.value} skipped")
            return None
        if family == KnobPart.INTERNAL_SPLINES:
            return build_spline(self.engine, element, self.cavity_profile, balance=0.5, on_cavity=True)
        return build_thread(self.engine, element, self.cavity_profile, internal=True)

    # ─── Accessors ──────────────────────────────────────────────────────

    @property
    def body_solid(self) -> Optional[Solid]:
        feature = self.registry.get(KnobPart.BODY)
        return feature.base if feature is not None else None

    @property
    def final_solid(self) -> Optional[Solid]:
        """Body minus the subtraction set (the body itself when it is empty)."""
        return self.compositor.final

    @property
    def subtraction_set(self) -> List[FeatureSolid]:
        return self.compositor.members

    def solids(self, family) -> List[FeatureSolid]:
        """Live features of a family, in config order."""
        return list(self.registry.features(KnobPart.coerce(family)))

    @property
    def live_count(self) -> int:
        return self.engine.live_count

    def output_handles(self) -> List[Handle]:
        """The final solid followed by every additive feature handle."""
        handles: List[Handle] = []
        if self.final_solid is not None:
            handles.append(self.final_solid)
        for feature in self.registry.features():
            if feature.family in (KnobPart.BODY, KnobPart.CAVITY) or feature.subtractive:
                continue
            handles.extend(feature.parts())
        return handles

    # ─── Export ─────────────────────────────────────────────────────────

    def triangles(self) -> List[Triangle]:
        """World-space triangles of everything that is printed."""
        triangles: List[Triangle] = []
        for handle in self.output_handles():
            triangles.extend(self.engine.triangles(handle))
        return triangles

    def to_stl(self) -> str:
        return to_stl(self.triangles())

    def export_stl(self, filepath: str) -> None:
        """
        Export to ASCII STL file.

        build123d engines mesh their own shapes; any other engine goes
        through its triangles.
        """
        if hasattr(self.engine, "native"):
            from build123d import export_stl
            from .build123d_engine import ANGULAR_TOLERANCE, LINEAR_TOLERANCE
            export_stl(
                self.compound(),
                filepath,
                tolerance=LINEAR_TOLERANCE,
                angular_tolerance=ANGULAR_TOLERANCE,
                ascii_format=True,
            )
            logger.info(f"Exported knob to {filepath}")
            return

        count = write_stl(self.triangles(), filepath)
        logger.info(f"Exported knob to {filepath} ({count} facets)")

    def compound(self):
        if not hasattr(self.engine, "native"):
            raise TypeError(f"{type(self.engine).__name__} has no native shapes to export")
        from build123d import Compound
        return Compound(children=[self.engine.native(h) for h in self.output_handles()])

    def export_step(self, filepath: str) -> None:
        """Export to STEP file (build123d engine only)."""
        from build123d import export_step
        compound = self.compound()
        logger.info(f"Exporting knob: volume={compound.volume:.2f} mm³")
        export_step(compound, filepath)
        logger.info(f"Exported knob to {filepath}")

    def show(self, **kwargs):
        """
        Display in OCP viewer (requires ocp_vscode).

        Keyword arguments go to ``ocp_vscode.show``.

        Returns:
            The displayed compound, or None when ocp_vscode is missing
        """
        try:
            from ocp_vscode import show as ocp_show
        except ImportError:
            logger.warning("ocp_vscode not installed, nothing to show")
            return None
        compound = self.compound()
        ocp_show(compound, **kwargs)
        return compound

    # ─── Teardown ───────────────────────────────────────────────────────

    def dispose(self) -> None:
        """Release every solid the knob owns."""
        self.compositor.dispose()
        self.registry.clear()
        self.body_profile = None
        self.cavity_profile = None
        logger.debug(f"Knob disposed, {self.engine.live_count} handle(s) still live in engine")
