"""
Shell sewing and post-boolean repair for build123d solids.

Triangle-stitched feature solids and the composite produced by repeated
subtraction both go through here before the knob hands them out.
"""

import logging
from typing import Iterable

from OCP.BRepBuilderAPI import BRepBuilderAPI_MakeSolid, BRepBuilderAPI_Sewing
from OCP.ShapeFix import ShapeFix_Shape, ShapeFix_Solid
from OCP.ShapeUpgrade import ShapeUpgrade_UnifySameDomain
from OCP.TopAbs import TopAbs_FACE, TopAbs_SHELL
from OCP.TopExp import TopExp_Explorer
from OCP.TopoDS import TopoDS

from build123d import Part, Solid

logger = logging.getLogger(__name__)

SEWING_TOLERANCE = 1e-6


def sew_faces(faces: Iterable) -> Solid:
    """
    Sew OCP faces into a closed solid.

    Args:
        faces: TopoDS faces forming a closed surface

    Returns:
        build123d Solid wrapping the fixed solid, or None if the faces do not close
    """
    sewer = BRepBuilderAPI_Sewing(SEWING_TOLERANCE)
    face_count = 0
    for face in faces:
        sewer.Add(face)
        face_count += 1

    if face_count == 0:
        return None

    sewer.Perform()
    shell_explorer = TopExp_Explorer(sewer.SewedShape(), TopAbs_SHELL)
    if not shell_explorer.More():
        logger.debug(f"Sewing {face_count} faces produced no shell")
        return None

    solid_maker = BRepBuilderAPI_MakeSolid(TopoDS.Shell_s(shell_explorer.Current()))
    if not solid_maker.IsDone():
        return None

    # Also orients inside-out shells outward
    solid_fixer = ShapeFix_Solid(solid_maker.Solid())
    solid_fixer.Perform()
    return Solid(solid_fixer.Solid())


def _faces_of(shape):
    explorer = TopExp_Explorer(shape, TopAbs_FACE)
    while explorer.More():
        yield explorer.Current()
        explorer.Next()


def repair_geometry(part: Part) -> Part:
    """
    Repair invalid topology left behind by a boolean subtraction.

    Strategies, first valid result wins: merge same-domain faces, re-sew
    the merged faces, then a general ShapeFix pass. The input is returned
    unchanged when it is already valid or nothing helps.
    """
    if part.is_valid:
        return part

    unifier = ShapeUpgrade_UnifySameDomain(part.wrapped, True, True, True)
    unifier.Build()
    unified = unifier.Shape()

    result = Part(unified)
    if result.is_valid:
        logger.debug("Geometry repair successful (unify)")
        return result

    result = sew_faces(_faces_of(unified))
    if result is not None and result.is_valid:
        logger.debug("Geometry repair successful (sew + solid)")
        return result

    fixer = ShapeFix_Shape(unified)
    fixer.Perform()
    result = Part(fixer.Shape())
    if result.is_valid:
        logger.debug("Geometry repair successful (ShapeFix)")
        return result

    logger.warning("Geometry repair did not produce a valid solid, keeping original")
    return part
