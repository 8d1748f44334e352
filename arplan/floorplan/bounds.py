from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from arplan.floorplan.models import Rect, WallSegment
from arplan.geometry.contract import BOUNDS_PADDING


@dataclass
class BoundsCalculator:
    """Axis-aligned bounding rectangle of every segment endpoint, padded uniformly."""
    padding: float = BOUNDS_PADDING

    def compute(self, segments: Iterable[WallSegment]) -> Rect:
        xs: list[float] = []
        ys: list[float] = []
        for segment in segments:
            xs.extend((segment.start.x, segment.end.x))
            ys.extend((segment.start.y, segment.end.y))
        if not xs:
            return Rect.zero()

        min_x, max_x = min(xs) - self.padding, max(xs) + self.padding
        min_y, max_y = min(ys) - self.padding, max(ys) + self.padding
        return Rect(x=min_x, y=min_y, width=max_x - min_x, height=max_y - min_y)


__all__ = ["BoundsCalculator"]
