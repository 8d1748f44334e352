"""Top-down projection of vertical wall anchors into 2D wall segments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Protocol, Sequence, Union, runtime_checkable

import numpy as np

from arplan.floorplan.models import (
    PlaneAlignment,
    PlaneClassification,
    Point2D,
    WallSegment,
)
from arplan.geometry.contract import DEFAULT_WALL_THICKNESS, MIN_AXIS_LENGTH
from arplan.geometry.matrix import Transform, normalized


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorldPlane:
    """A plane anchor as delivered by the sensor session.

    ``extent_x`` is the horizontal size along the local X axis and ``extent_z``
    the size along the local Z axis (the height for vertical anchors). The
    plane normal is the local Y axis.
    """
    id: str
    transform: Transform
    extent_x: float
    extent_z: float
    alignment: PlaneAlignment = PlaneAlignment.VERTICAL
    classification: PlaneClassification | None = None

    @property
    def is_vertical(self) -> bool:
        return self.alignment == PlaneAlignment.VERTICAL

    @property
    def center(self) -> np.ndarray:
        return self.transform.translation

    @property
    def normal(self) -> np.ndarray:
        unit = normalized(self.transform.y_axis)
        return unit if unit is not None else np.array([0.0, 0.0, 1.0])

    def edge_points(self) -> List[np.ndarray]:
        """The four outline corners in world space."""
        right = normalized(self.transform.x_axis)
        forward = normalized(self.transform.z_axis)
        if right is None or forward is None:
            return []
        half_w = right * (self.extent_x / 2.0)
        half_h = forward * (self.extent_z / 2.0)
        c = self.center
        return [c + half_w + half_h, c + half_w - half_h, c - half_w + half_h, c - half_w - half_h]


@runtime_checkable
class PlaneClassifier(Protocol):
    def __call__(self, plane: WorldPlane) -> PlaneClassification:
        ...


ClassifierLike = Union[PlaneClassifier, Callable[[WorldPlane], PlaneClassification]]


def classify_by_record(plane: WorldPlane) -> PlaneClassification:
    """Use the stored classification, falling back to alignment."""
    if plane.classification is not None and plane.classification != PlaneClassification.UNKNOWN:
        return plane.classification
    return PlaneClassification.WALL if plane.is_vertical else PlaneClassification.FLOOR


@dataclass(frozen=True)
class ProjectedSegments:
    walls: tuple[WallSegment, ...] = ()
    doors: tuple[WallSegment, ...] = ()
    windows: tuple[WallSegment, ...] = ()

    def __len__(self) -> int:
        return len(self.walls) + len(self.doors) + len(self.windows)


@dataclass
class PlaneProjector:
    """Project vertical anchors onto the floor plane.

    The anchor centre is its world translation with the vertical axis dropped;
    the segment runs along the anchor's local X axis, ``extent_x`` long.
    Anchors whose horizontal axis collapses (magnitude at or below
    ``min_axis_length``) are skipped.
    """
    classifier: ClassifierLike = classify_by_record
    wall_thickness: float = DEFAULT_WALL_THICKNESS
    min_axis_length: float = MIN_AXIS_LENGTH

    def project(self, planes: Iterable[WorldPlane]) -> ProjectedSegments:
        walls: List[WallSegment] = []
        doors: List[WallSegment] = []
        windows: List[WallSegment] = []
        skipped = 0

        for plane in planes:
            if not plane.is_vertical:
                continue
            segment = self.project_plane(plane)
            if segment is None:
                skipped += 1
                continue
            if segment.classification == PlaneClassification.DOOR:
                doors.append(segment)
            elif segment.classification == PlaneClassification.WINDOW:
                windows.append(segment)
            else:
                walls.append(segment)

        if skipped:
            logger.debug("Skipped %d anchors with degenerate horizontal axis", skipped)
        return ProjectedSegments(tuple(walls), tuple(doors), tuple(windows))

    def project_plane(self, plane: WorldPlane) -> WallSegment | None:
        """Project one anchor, or None when it cannot be projected reliably."""
        center_x, _, center_z = (float(v) for v in plane.center)
        axis_x, _, axis_z = (float(v) for v in plane.transform.x_axis)
        direction = normalized((axis_x, axis_z), min_length=self.min_axis_length)
        if direction is None or plane.extent_x <= 0.0:
            return None

        half = plane.extent_x / 2.0
        dx, dz = float(direction[0]) * half, float(direction[1]) * half
        start = Point2D(center_x - dx, center_z - dz)
        end = Point2D(center_x + dx, center_z + dz)
        # extent below float resolution at this distance from the origin
        if start == end:
            return None
        classification = _bucket(PlaneClassification.parse(self.classifier(plane)))
        return WallSegment(
            start=start,
            end=end,
            thickness=self.wall_thickness,
            classification=classification,
            width_meters=float(plane.extent_x),
            height_meters=float(plane.extent_z),
            plane_id=plane.id,
        )


def _bucket(classification: PlaneClassification) -> PlaneClassification:
    # Anything that is neither door nor window is drawn as wall
    if classification in (PlaneClassification.DOOR, PlaneClassification.WINDOW):
        return classification
    return PlaneClassification.WALL


def vertical_planes(planes: Sequence[WorldPlane]) -> List[WorldPlane]:
    return [p for p in planes if p.is_vertical]


__all__ = [
    "WorldPlane",
    "PlaneClassifier",
    "ClassifierLike",
    "classify_by_record",
    "ProjectedSegments",
    "PlaneProjector",
    "vertical_planes",
]
