"""Floor plan generation pipeline.

project anchors -> join each bucket at corners -> bounds -> room summary.
The result is rebuilt from scratch on every call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

from arplan.floorplan.bounds import BoundsCalculator
from arplan.floorplan.joiner import CornerJoiner
from arplan.floorplan.models import CornerCandidate, FloorPlanResult, RoomSummary
from arplan.floorplan.projector import ClassifierLike, PlaneProjector, WorldPlane
from arplan.floorplan.schema import CornerRecord, PlaneRecord
from arplan.settings import FloorPlanSettings


logger = logging.getLogger(__name__)


@dataclass
class FloorPlanGenerator:
    projector: PlaneProjector = field(default_factory=PlaneProjector)
    joiner: CornerJoiner = field(default_factory=CornerJoiner)
    bounds: BoundsCalculator = field(default_factory=BoundsCalculator)

    @classmethod
    def from_settings(cls, settings: FloorPlanSettings) -> "FloorPlanGenerator":
        return cls(
            projector=PlaneProjector(
                wall_thickness=settings.default_wall_thickness,
                min_axis_length=settings.min_axis_length,
            ),
            joiner=CornerJoiner(
                snap_threshold=settings.snap_threshold,
                proximity_threshold=settings.proximity_join_threshold,
                epsilon=settings.join_epsilon,
            ),
            bounds=BoundsCalculator(padding=settings.bounds_padding),
        )

    def generate(
        self,
        planes: Iterable[WorldPlane],
        corners: Sequence[CornerCandidate] = (),
        classifier: ClassifierLike | None = None,
        room_summary: RoomSummary | None = None,
    ) -> FloorPlanResult:
        """Build the top-down plan.

        Args:
            planes: Detected anchors; non-vertical ones are ignored
            corners: Corner candidates used for endpoint snapping
            classifier: Optional classifier overriding the projector's
            room_summary: Measured room dimensions; when absent the plan
                bounds provide width and length

        Returns:
            FloorPlanResult, empty when no anchor could be projected
        """
        projector = self.projector if classifier is None else replace(self.projector, classifier=classifier)
        projected = projector.project(planes)
        if not len(projected):
            return FloorPlanResult.empty()

        walls = tuple(self.joiner.join(projected.walls, corners))
        doors = tuple(self.joiner.join(projected.doors, corners))
        windows = tuple(self.joiner.join(projected.windows, corners))

        bounds = self.bounds.compute(walls + doors + windows)
        if room_summary is not None:
            width, length, height = room_summary.width, room_summary.length, room_summary.height
        else:
            width, length, height = bounds.width, bounds.height, 0.0

        summary = RoomSummary(
            width=width,
            length=length,
            height=height,
            wall_count=len(walls),
            door_count=len(doors),
            window_count=len(windows),
        )
        logger.info(
            "Generated floor plan: %d walls, %d doors, %d windows, %d corners",
            len(walls), len(doors), len(windows), len(corners),
        )
        return FloorPlanResult(walls=walls, doors=doors, windows=windows, bounds=bounds, room_summary=summary)

    def generate_from_records(
        self,
        plane_records: Iterable[PlaneRecord],
        corner_records: Iterable[CornerRecord] = (),
        room_summary: RoomSummary | None = None,
    ) -> FloorPlanResult:
        planes = [record.to_plane() for record in plane_records]
        corners = [record.to_candidate() for record in corner_records]
        return self.generate(planes, corners, room_summary=room_summary)


__all__ = ["FloorPlanGenerator"]
