from __future__ import annotations

import pytest

from arplan.exceptions import GeometryValidationError
from arplan.floorplan.bounds import BoundsCalculator
from arplan.floorplan.models import (
    PlaneAlignment,
    PlaneClassification,
    Point2D,
    Rect,
    WallSegment,
)
from arplan.floorplan.projector import PlaneProjector, WorldPlane, classify_by_record
from arplan.geometry.matrix import Transform

from tests.utils_planes import wall_plane


def test_anchor_projects_to_expected_segment():
    """Anchor at (2, *, 3), axis (1, 0, 0), extent 4 -> (0, 3)-(4, 3)."""
    plane = wall_plane("w", (2.0, 1.3, 3.0), yaw_deg=0.0, extent_x=4.0)
    projected = PlaneProjector().project([plane])

    assert len(projected.walls) == 1
    segment = projected.walls[0]
    assert segment.start.x == pytest.approx(0.0)
    assert segment.start.y == pytest.approx(3.0)
    assert segment.end.x == pytest.approx(4.0)
    assert segment.end.y == pytest.approx(3.0)
    assert segment.plane_id == "w"
    assert segment.thickness == pytest.approx(0.15)


@pytest.mark.parametrize("yaw", [0.0, 17.0, 45.0, 90.0, 133.0, -60.0])
def test_segment_length_equals_extent(yaw):
    plane = wall_plane("w", (0.5, 0.0, -1.0), yaw_deg=yaw, extent_x=2.75)
    segment = PlaneProjector().project_plane(plane)
    assert segment is not None
    assert segment.length == pytest.approx(2.75)
    assert segment.width_meters == pytest.approx(2.75)
    assert segment.midpoint.x == pytest.approx(0.5)
    assert segment.midpoint.y == pytest.approx(-1.0)


def test_vertical_axis_anchor_is_skipped():
    """Local X axis pointing straight up has no horizontal component."""
    plane = WorldPlane(
        id="tilted",
        transform=Transform.from_axes((1.0, 1.0, 1.0), x_axis=(0.0, 1.0, 0.0), y_axis=(1.0, 0.0, 0.0), z_axis=(0.0, 0.0, 1.0)),
        extent_x=2.0,
        extent_z=1.0,
    )
    projected = PlaneProjector().project([plane])
    assert len(projected) == 0


def test_horizontal_anchors_are_filtered():
    floor = wall_plane("f", (0.0, 0.0, 0.0), alignment=PlaneAlignment.HORIZONTAL)
    assert len(PlaneProjector().project([floor])) == 0


def test_buckets_by_classification_preserving_order():
    planes = [
        wall_plane("w1", (0.0, 0.0, 0.0)),
        wall_plane("d1", (1.0, 0.0, 0.0), classification=PlaneClassification.DOOR),
        wall_plane("w2", (2.0, 0.0, 0.0), classification=PlaneClassification.CEILING),
        wall_plane("x1", (3.0, 0.0, 0.0), classification=PlaneClassification.WINDOW),
        wall_plane("w3", (4.0, 0.0, 0.0), classification=PlaneClassification.UNKNOWN),
    ]
    projected = PlaneProjector().project(planes)

    assert [s.plane_id for s in projected.walls] == ["w1", "w2", "w3"]
    assert [s.plane_id for s in projected.doors] == ["d1"]
    assert [s.plane_id for s in projected.windows] == ["x1"]
    assert all(s.classification == PlaneClassification.WALL for s in projected.walls)


def test_injected_classifier_is_used():
    planes = [wall_plane("a", (0.0, 0.0, 0.0)), wall_plane("b", (3.0, 0.0, 0.0))]
    projector = PlaneProjector(classifier=lambda p: "door" if p.id == "b" else "wall")
    projected = projector.project(planes)
    assert [s.plane_id for s in projected.doors] == ["b"]
    assert [s.plane_id for s in projected.walls] == ["a"]


def test_classify_by_record_falls_back_to_alignment():
    assert classify_by_record(wall_plane("v", (0.0, 0.0, 0.0))) == PlaneClassification.WALL
    horizontal = wall_plane("h", (0.0, 0.0, 0.0), alignment=PlaneAlignment.HORIZONTAL)
    assert classify_by_record(horizontal) == PlaneClassification.FLOOR


def test_wall_segment_rejects_identical_endpoints():
    with pytest.raises(GeometryValidationError):
        WallSegment(start=Point2D(1.0, 1.0), end=Point2D(1.0, 1.0))


def test_bounds_of_empty_input_is_zero_rect():
    assert BoundsCalculator().compute([]) == Rect.zero()


def test_bounds_pad_every_endpoint():
    segments = [
        WallSegment(Point2D(0.0, 0.0), Point2D(4.0, 0.0)),
        WallSegment(Point2D(4.0, 0.0), Point2D(4.0, 3.0)),
    ]
    rect = BoundsCalculator(padding=0.5).compute(segments)
    assert rect.x == pytest.approx(-0.5)
    assert rect.y == pytest.approx(-0.5)
    assert rect.width == pytest.approx(5.0)
    assert rect.height == pytest.approx(4.0)
    assert rect.max_x == pytest.approx(4.5)


def test_extent_below_float_resolution_is_skipped():
    """A sub-ulp extent far from the origin collapses to one point and is dropped."""
    plane = wall_plane("speck", (100000.0, 0.0, 3.0), extent_x=1e-12)
    assert PlaneProjector().project_plane(plane) is None
    assert len(PlaneProjector().project([plane, wall_plane("w", (0.0, 0.0, 0.0))])) == 1
