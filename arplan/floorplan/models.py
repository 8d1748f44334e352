"""Value objects for the top-down floor plan.

All coordinates are metres on the horizontal world plane: ``x`` is world X and
``y`` is world Z. Every object here is rebuilt from scratch on each
regeneration; nothing carries identity across calls.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Tuple

from arplan.exceptions import GeometryValidationError
from arplan.geometry.contract import DEFAULT_WALL_THICKNESS


class PlaneClassification(str, Enum):
    """Semantic class of a detected plane."""
    WALL = "wall"
    FLOOR = "floor"
    CEILING = "ceiling"
    DOOR = "door"
    WINDOW = "window"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "PlaneClassification":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().strip())
        except ValueError:
            return cls.UNKNOWN


class PlaneAlignment(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclass(frozen=True)
class Point2D:
    """2D coordinate point."""
    x: float
    y: float

    def to_tuple(self) -> Tuple[float, float]:
        """Convert to tuple (x, y)."""
        return (self.x, self.y)

    def distance_to(self, other: "Point2D") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def midpoint(self, other: "Point2D") -> "Point2D":
        return Point2D((self.x + other.x) / 2.0, (self.y + other.y) / 2.0)


@dataclass(frozen=True)
class WallSegment:
    """Top-down wall segment.

    Attributes:
        start: First endpoint (metres, XZ plane)
        end: Second endpoint, never equal to ``start``
        thickness: Drawn wall thickness in metres
        classification: wall, door or window
        width_meters: Horizontal extent of the source anchor
        height_meters: Vertical extent of the source anchor
        plane_id: Source anchor id, only used to match corner candidates
    """
    start: Point2D
    end: Point2D
    thickness: float = DEFAULT_WALL_THICKNESS
    classification: PlaneClassification = PlaneClassification.WALL
    width_meters: float = 0.0
    height_meters: float = 0.0
    plane_id: str | None = None

    def __post_init__(self) -> None:
        if self.start == self.end:
            raise GeometryValidationError(
                "wall segment endpoints must differ",
                {"plane_id": str(self.plane_id), "point": str(self.start.to_tuple())},
            )

    @property
    def length(self) -> float:
        return self.start.distance_to(self.end)

    @property
    def midpoint(self) -> Point2D:
        return self.start.midpoint(self.end)

    @property
    def angle(self) -> float:
        """Segment direction in radians."""
        return math.atan2(self.end.y - self.start.y, self.end.x - self.start.x)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": list(self.start.to_tuple()),
            "end": list(self.end.to_tuple()),
            "thickness": self.thickness,
            "classification": self.classification.value,
            "widthMeters": self.width_meters,
            "heightMeters": self.height_meters,
            "planeId": self.plane_id,
            "length": self.length,
        }


@dataclass(frozen=True)
class CornerCandidate:
    """Detected or reconstructed intersection of two wall anchors."""
    position: Point2D
    plane_id_a: str
    plane_id_b: str
    angle: float = 90.0

    def involves(self, plane_id: str | None) -> bool:
        return plane_id is not None and plane_id in (self.plane_id_a, self.plane_id_b)


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def zero(cls) -> "Rect":
        return cls(0.0, 0.0, 0.0, 0.0)

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class RoomSummary:
    width: float
    length: float
    height: float
    wall_count: int = 0
    door_count: int = 0
    window_count: int = 0

    @property
    def area(self) -> float:
        return self.width * self.length

    @property
    def perimeter(self) -> float:
        return 2.0 * (self.width + self.length)

    @property
    def description(self) -> str:
        return f"{self.width:.1f} × {self.length:.1f} m · {self.area:.1f} m²"

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "length": self.length,
            "height": self.height,
            "wallCount": self.wall_count,
            "doorCount": self.door_count,
            "windowCount": self.window_count,
            "area": self.area,
            "perimeter": self.perimeter,
        }


@dataclass(frozen=True)
class FloorPlanResult:
    walls: Tuple[WallSegment, ...] = ()
    doors: Tuple[WallSegment, ...] = ()
    windows: Tuple[WallSegment, ...] = ()
    bounds: Rect = field(default_factory=Rect.zero)
    room_summary: RoomSummary | None = None

    @classmethod
    def empty(cls) -> "FloorPlanResult":
        return cls()

    @property
    def all_segments(self) -> Tuple[WallSegment, ...]:
        return self.walls + self.doors + self.windows

    @property
    def is_empty(self) -> bool:
        return not (self.walls or self.doors or self.windows)

    def to_dict(self) -> dict[str, Any]:
        return {
            "walls": [s.to_dict() for s in self.walls],
            "doors": [s.to_dict() for s in self.doors],
            "windows": [s.to_dict() for s in self.windows],
            "bounds": self.bounds.to_dict(),
            "roomSummary": self.room_summary.to_dict() if self.room_summary else None,
        }


__all__ = [
    "PlaneClassification",
    "PlaneAlignment",
    "Point2D",
    "WallSegment",
    "CornerCandidate",
    "Rect",
    "RoomSummary",
    "FloorPlanResult",
]
