from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

from arplan.floorplan.models import CornerCandidate, Point2D, WallSegment
from arplan.geometry.contract import (
    CORNER_SNAP_THRESHOLD,
    JOIN_EPSILON,
    PROXIMITY_JOIN_THRESHOLD,
)


logger = logging.getLogger(__name__)

# Endpoint role combinations checked for every segment pair, in this order
ROLE_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("end", "start"),
    ("start", "end"),
    ("end", "end"),
    ("start", "start"),
)


def _with_endpoint(segment: WallSegment, role: str, point: Point2D) -> WallSegment | None:
    """Copy of ``segment`` with one endpoint moved; None if that would collapse it."""
    other = segment.end if role == "start" else segment.start
    if other == point:
        return None
    return replace(segment, **{role: point})


@dataclass
class CornerJoiner:
    """
    Reconcile wall endpoints into a continuous floor plan skeleton.

    Phase 1 snaps the nearer endpoint of every segment owned by a corner's
    anchors onto the corner position. Phase 2 merges nearby endpoints of
    different segments to their midpoint. Both phases are a single pass over
    a working buffer owned by that phase; the input is never mutated and
    nothing is iterated to convergence.
    """
    snap_threshold: float = CORNER_SNAP_THRESHOLD
    proximity_threshold: float = PROXIMITY_JOIN_THRESHOLD
    epsilon: float = JOIN_EPSILON

    def join(self, walls: Sequence[WallSegment], corners: Sequence[CornerCandidate]) -> List[WallSegment]:
        if not walls:
            return []
        snapped = self.snap_to_corners(walls, corners)
        return self.join_by_proximity(snapped)

    def snap_to_corners(
        self,
        walls: Sequence[WallSegment],
        corners: Sequence[CornerCandidate],
    ) -> List[WallSegment]:
        """Phase 1: move at most one endpoint per segment per matching corner."""
        buffer = list(walls)
        snaps = 0
        for corner in corners:
            target = corner.position
            for i, segment in enumerate(buffer):
                if not corner.involves(segment.plane_id):
                    continue
                dist_start = segment.start.distance_to(target)
                dist_end = segment.end.distance_to(target)
                if dist_start < dist_end and dist_start < self.snap_threshold:
                    role = "start"
                elif dist_end < self.snap_threshold:
                    role = "end"
                else:
                    continue
                moved = _with_endpoint(segment, role, target)
                if moved is None:
                    logger.debug("Corner snap would collapse segment %s, skipped", segment.plane_id)
                    continue
                buffer[i] = moved
                snaps += 1
        if snaps:
            logger.debug("Snapped %d endpoints to %d corners", snaps, len(corners))
        return buffer

    def join_by_proximity(self, walls: Sequence[WallSegment]) -> List[WallSegment]:
        """Phase 2: join endpoints whose distance lies strictly inside (epsilon, threshold)."""
        buffer = list(walls)
        joins = 0
        for i in range(len(buffer)):
            for j in range(i + 1, len(buffer)):
                for role_a, role_b in ROLE_PAIRS:
                    point_a: Point2D = getattr(buffer[i], role_a)
                    point_b: Point2D = getattr(buffer[j], role_b)
                    dist = point_a.distance_to(point_b)
                    if not (self.epsilon < dist < self.proximity_threshold):
                        continue
                    mid = point_a.midpoint(point_b)
                    moved_a = _with_endpoint(buffer[i], role_a, mid)
                    moved_b = _with_endpoint(buffer[j], role_b, mid)
                    if moved_a is None or moved_b is None:
                        continue
                    buffer[i], buffer[j] = moved_a, moved_b
                    joins += 1
        if joins:
            logger.debug("Joined %d endpoint pairs by proximity", joins)
        return buffer


__all__ = ["CornerJoiner", "ROLE_PAIRS"]
