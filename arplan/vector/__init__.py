"""Image-space geometry on captured stills: perspective correction and frame placement."""

from .perspective import CorrectedImage, PerspectiveCache, PerspectiveCacheEntry, SourceImage
from .placement import find_host_plane, frame_corners_on_plane, plane_contains

__all__ = [
    "CorrectedImage",
    "PerspectiveCache",
    "PerspectiveCacheEntry",
    "SourceImage",
    "find_host_plane",
    "frame_corners_on_plane",
    "plane_contains",
]
