from __future__ import annotations

import logging
import math
from typing import List, Sequence

import numpy as np

from arplan.floorplan.models import CornerCandidate, Point2D
from arplan.floorplan.projector import WorldPlane, vertical_planes
from arplan.settings import CornerDetectionSettings


logger = logging.getLogger(__name__)


def normal_angle_deg(plane_a: WorldPlane, plane_b: WorldPlane) -> float:
    """Angle between the two anchor normals in degrees, 0..180."""
    dot = float(np.clip(np.dot(plane_a.normal, plane_b.normal), -1.0, 1.0))
    return math.degrees(math.acos(dot))


def detect_corner(
    plane_a: WorldPlane,
    plane_b: WorldPlane,
    settings: CornerDetectionSettings | None = None,
) -> CornerCandidate | None:
    """Corner between two vertical anchors, or None when they do not form one.

    The corner is the midpoint of the closest pair of outline points of the
    two anchors, projected onto the floor.
    """
    settings = settings or CornerDetectionSettings()
    angle = normal_angle_deg(plane_a, plane_b)
    if not (settings.min_angle_deg <= angle <= settings.max_angle_deg):
        return None

    center_distance = float(np.linalg.norm(plane_a.center - plane_b.center))
    if center_distance >= settings.max_center_distance:
        return None

    best_midpoint = (plane_a.center + plane_b.center) * 0.5
    best_distance = math.inf
    for edge_a in plane_a.edge_points():
        for edge_b in plane_b.edge_points():
            dist = float(np.linalg.norm(edge_a - edge_b))
            if dist < best_distance:
                best_distance = dist
                best_midpoint = (edge_a + edge_b) * 0.5

    return CornerCandidate(
        position=Point2D(float(best_midpoint[0]), float(best_midpoint[2])),
        plane_id_a=plane_a.id,
        plane_id_b=plane_b.id,
        angle=angle,
    )


def detect_corners(
    planes: Sequence[WorldPlane],
    settings: CornerDetectionSettings | None = None,
) -> List[CornerCandidate]:
    """Check every pair of vertical anchors, in input order."""
    walls = vertical_planes(planes)
    corners: List[CornerCandidate] = []
    for i in range(len(walls)):
        for j in range(i + 1, len(walls)):
            corner = detect_corner(walls[i], walls[j], settings)
            if corner is not None:
                corners.append(corner)
    logger.debug("Detected %d corners among %d vertical anchors", len(corners), len(walls))
    return corners


__all__ = ["detect_corner", "detect_corners", "normal_angle_deg"]
