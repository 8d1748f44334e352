from __future__ import annotations

import math

from arplan.floorplan.models import PlaneAlignment, PlaneClassification
from arplan.floorplan.projector import WorldPlane
from arplan.geometry.matrix import Transform


def wall_plane(
    plane_id: str,
    center: tuple[float, float, float],
    yaw_deg: float = 0.0,
    extent_x: float = 4.0,
    extent_z: float = 2.5,
    classification: PlaneClassification | None = None,
    alignment: PlaneAlignment = PlaneAlignment.VERTICAL,
) -> WorldPlane:
    """Vertical anchor whose local X axis is rotated ``yaw_deg`` about world Y.

    The local Z axis points up and the normal (local Y) is horizontal.
    """
    yaw = math.radians(yaw_deg)
    x_axis = (math.cos(yaw), 0.0, math.sin(yaw))
    y_axis = (-math.sin(yaw), 0.0, math.cos(yaw))
    z_axis = (0.0, 1.0, 0.0)
    return WorldPlane(
        id=plane_id,
        transform=Transform.from_axes(center, x_axis, y_axis, z_axis),
        extent_x=extent_x,
        extent_z=extent_z,
        alignment=alignment,
        classification=classification,
    )


def floor_plane(plane_id: str, height: float, classification: PlaneClassification) -> WorldPlane:
    return WorldPlane(
        id=plane_id,
        transform=Transform.from_axes((0.0, height, 0.0)),
        extent_x=5.0,
        extent_z=5.0,
        alignment=PlaneAlignment.HORIZONTAL,
        classification=classification,
    )
