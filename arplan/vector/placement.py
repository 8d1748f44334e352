"""Placing a rectangular frame on a wall as seen in a captured still."""

from __future__ import annotations

import math
from typing import Any, List, Sequence, Tuple

from shapely.geometry import Point, Polygon

from arplan.camera.depth import as_xy
from arplan.geometry.contract import DEFAULT_FRAME_SIZE


def _clamp01(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def plane_contains(point: Any, vertices: Sequence[Sequence[float]]) -> bool:
    """True when ``point`` lies inside or on the projected outline of a plane."""
    outline = [tuple(v[:2]) for v in vertices if len(v) >= 2]
    if len(outline) < 3:
        return False
    polygon = Polygon(outline)
    if not polygon.is_valid:
        polygon = polygon.buffer(0)
    if polygon.is_empty:
        return False
    return polygon.covers(Point(as_xy(point)))


def frame_corners_on_plane(
    point: Any,
    projected_vertices: Sequence[Sequence[float]] = (),
    frame_size: float = DEFAULT_FRAME_SIZE,
) -> List[Tuple[float, float]]:
    """Frame corners (TL, TR, BR, BL) centred on ``point``, normalized and clamped.

    ``projected_vertices`` are the host plane's TL, TR, BR, BL outline in the
    image. The frame follows the plane's perspective, sized as ``frame_size``
    of each plane edge; without a usable outline an axis-aligned square of
    side ``frame_size`` is returned.
    """
    px, py = as_xy(point)
    verts = [tuple(v[:2]) for v in projected_vertices if len(v) >= 2]

    if len(verts) >= 4:
        (tlx, tly), (trx, try_), _, (blx, bly) = verts[:4]
        hx, hy = trx - tlx, try_ - tly
        vx, vy = blx - tlx, bly - tly
        h_len = math.hypot(hx, hy)
        v_len = math.hypot(vx, vy)
        if h_len > 0.001 and v_len > 0.001:
            uhx, uhy = hx / h_len, hy / h_len
            uvx, uvy = vx / v_len, vy / v_len
            half_h = frame_size / 2.0 * h_len
            half_v = frame_size / 2.0 * v_len
            corners = [
                (px - uhx * half_h - uvx * half_v, py - uhy * half_h - uvy * half_v),
                (px + uhx * half_h - uvx * half_v, py + uhy * half_h - uvy * half_v),
                (px + uhx * half_h + uvx * half_v, py + uhy * half_h + uvy * half_v),
                (px - uhx * half_h + uvx * half_v, py - uhy * half_h + uvy * half_v),
            ]
            return [(_clamp01(x), _clamp01(y)) for x, y in corners]

    half = frame_size / 2.0
    corners = [
        (px - half, py - half),
        (px + half, py - half),
        (px + half, py + half),
        (px - half, py + half),
    ]
    return [(_clamp01(x), _clamp01(y)) for x, y in corners]


def find_host_plane(point: Any, planes: Sequence[Any]) -> Any | None:
    """First plane record whose projected outline contains ``point``."""
    for plane in planes:
        if plane_contains(point, getattr(plane, "projected_vertices", ())):
            return plane
    return None


__all__ = ["plane_contains", "frame_corners_on_plane", "find_host_plane"]
