from __future__ import annotations

from typing import Sequence

import numpy as np

from arplan.floorplan.models import PlaneClassification, RoomSummary
from arplan.floorplan.projector import ClassifierLike, WorldPlane, classify_by_record
from arplan.geometry.contract import DEFAULT_ROOM_HEIGHT, PERPENDICULAR_MAX_DOT


def estimate_room_summary(
    planes: Sequence[WorldPlane],
    classifier: ClassifierLike = classify_by_record,
) -> RoomSummary | None:
    """Estimate room dimensions from the detected anchors.

    Width is the widest vertical anchor. Length is the widest anchor roughly
    perpendicular to it, falling back to the second widest wall.
    Height is the floor to ceiling distance when both were detected, otherwise
    the tallest wall. Returns None without vertical anchors.
    """
    walls = [p for p in planes if p.is_vertical]
    if not walls:
        return None

    classes = [PlaneClassification.parse(classifier(p)) for p in planes]
    floors = [p for p, c in zip(planes, classes) if c == PlaneClassification.FLOOR]
    ceilings = [p for p, c in zip(planes, classes) if c == PlaneClassification.CEILING]

    widest = max(walls, key=lambda w: w.extent_x)
    max_width = widest.extent_x
    max_length = 0.0
    for other in walls:
        if other.id == widest.id:
            continue
        if abs(float(np.dot(widest.normal, other.normal))) < PERPENDICULAR_MAX_DOT:
            max_length = max(max_length, other.extent_x)

    if max_length == 0.0:
        widths = sorted((w.extent_x for w in walls), reverse=True)
        max_length = widths[1] if len(widths) >= 2 else max_width

    height = max((w.extent_z for w in walls), default=DEFAULT_ROOM_HEIGHT)
    if floors and ceilings:
        height = abs(float(ceilings[0].center[1]) - float(floors[0].center[1]))

    vertical_classes = [c for p, c in zip(planes, classes) if p.is_vertical]
    return RoomSummary(
        width=max(max_width, max_length),
        length=min(max_width, max_length),
        height=height,
        wall_count=sum(1 for c in vertical_classes if c not in (PlaneClassification.DOOR, PlaneClassification.WINDOW)),
        door_count=sum(1 for c in vertical_classes if c == PlaneClassification.DOOR),
        window_count=sum(1 for c in vertical_classes if c == PlaneClassification.WINDOW),
    )


__all__ = ["estimate_room_summary"]
