"""Top-down floor plan reconstruction from vertical wall anchors."""

from .bounds import BoundsCalculator
from .corners import detect_corners
from .generator import FloorPlanGenerator
from .joiner import CornerJoiner
from .models import (
    CornerCandidate,
    FloorPlanResult,
    PlaneAlignment,
    PlaneClassification,
    Point2D,
    Rect,
    RoomSummary,
    WallSegment,
)
from .projector import PlaneClassifier, PlaneProjector, WorldPlane, classify_by_record
from .schema import CornerRecord, PlaneRecord, parse_corner_records, parse_plane_records
from .summary import estimate_room_summary

__all__ = [
    "BoundsCalculator",
    "CornerCandidate",
    "CornerJoiner",
    "CornerRecord",
    "FloorPlanGenerator",
    "FloorPlanResult",
    "PlaneAlignment",
    "PlaneClassification",
    "PlaneClassifier",
    "PlaneProjector",
    "PlaneRecord",
    "Point2D",
    "Rect",
    "RoomSummary",
    "WallSegment",
    "WorldPlane",
    "classify_by_record",
    "detect_corners",
    "estimate_room_summary",
    "parse_corner_records",
    "parse_plane_records",
]
