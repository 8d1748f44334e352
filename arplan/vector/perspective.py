"""Perspective correction of user-selected quadrilaterals with an LRU cache."""

from __future__ import annotations

import hashlib
import math
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import cv2
import numpy as np
from loguru import logger

from arplan.camera.depth import as_xy
from arplan.exceptions import ConfigurationError, GeometryError, ImageDecodeError, NonConvexQuadrilateralError
from arplan.geometry.contract import PERSPECTIVE_CACHE_CAPACITY, QUAD_KEY_DECIMALS
from arplan.settings import PerspectiveSettings


Quad = Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float], Tuple[float, float]]
CacheKey = Tuple[Quad, str, Optional[Tuple[int, int]]]

_INTERPOLATION = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
}


@dataclass(frozen=True, eq=False)
class SourceImage:
    pixels: np.ndarray
    identity: str

    @classmethod
    def from_bytes(cls, data: bytes, identity: str | None = None) -> "SourceImage":
        buffer = np.frombuffer(data, dtype=np.uint8)
        pixels = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
        if pixels is None:
            raise ImageDecodeError("could not decode source image", {"bytes": str(len(data))})
        return cls(pixels=pixels, identity=identity or hashlib.sha1(data).hexdigest())

    @classmethod
    def from_array(cls, pixels: np.ndarray, identity: str | None = None) -> "SourceImage":
        if identity is None:
            digest = hashlib.sha1(str(pixels.shape).encode("utf-8"))
            digest.update(np.ascontiguousarray(pixels).tobytes())
            identity = digest.hexdigest()
        return cls(pixels=pixels, identity=identity)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True, eq=False)
class CorrectedImage:
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_bytes(self, ext: str = ".png") -> bytes:
        ok, encoded = cv2.imencode(ext, self.pixels)
        if not ok:
            raise GeometryError("could not encode corrected image", {"extension": ext})
        return encoded.tobytes()


@dataclass
class PerspectiveCacheEntry:
    key: CacheKey
    image: CorrectedImage
    last_access: int


@dataclass(frozen=True)
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0


def validate_convex_quad(corners: Sequence[Any]) -> List[Tuple[float, float]]:
    """Return the corners as floats if they form a strictly convex quadrilateral.

    Every consecutive edge pair, in the given traversal order, must turn the
    same way; collinear or self-intersecting input is rejected.

    Raises:
        NonConvexQuadrilateralError: If the quad is not strictly convex
    """
    points = [as_xy(c) for c in corners]
    if len(points) != 4:
        raise NonConvexQuadrilateralError(
            "perspective correction needs exactly four corners",
            {"count": str(len(points))},
        )
    if not all(math.isfinite(v) for p in points for v in p):
        raise NonConvexQuadrilateralError("corner coordinates must be finite")

    sign = 0
    for i in range(4):
        ax, ay = points[i]
        bx, by = points[(i + 1) % 4]
        cx, cy = points[(i + 2) % 4]
        cross = (bx - ax) * (cy - by) - (by - ay) * (cx - bx)
        if cross == 0.0:
            raise NonConvexQuadrilateralError("quadrilateral has collinear corners", {"corner": str(i + 1)})
        turn = 1 if cross > 0 else -1
        if sign and turn != sign:
            raise NonConvexQuadrilateralError("quadrilateral is not convex", {"corner": str(i + 1)})
        sign = turn
    return points


def canonical_quad(points: Sequence[Tuple[float, float]]) -> Quad:
    """Clockwise on screen (y down), starting at the top-left corner, rounded."""
    pts = list(points)
    area2 = sum(pts[i][0] * pts[(i + 1) % 4][1] - pts[(i + 1) % 4][0] * pts[i][1] for i in range(4))
    if area2 < 0:
        pts.reverse()
    start = min(range(4), key=lambda i: (pts[i][0] + pts[i][1], pts[i][1], pts[i][0]))
    ordered = pts[start:] + pts[:start]
    rounded = [(round(x, QUAD_KEY_DECIMALS), round(y, QUAD_KEY_DECIMALS)) for x, y in ordered]
    return (rounded[0], rounded[1], rounded[2], rounded[3])


def rectified_size(pixel_quad: np.ndarray) -> Tuple[int, int]:
    """Output size from the longer edge of each opposite pair."""
    tl, tr, br, bl = pixel_quad
    width = max(np.linalg.norm(tr - tl), np.linalg.norm(br - bl))
    height = max(np.linalg.norm(bl - tl), np.linalg.norm(br - tr))
    return max(int(round(width)), 1), max(int(round(height)), 1)


def warp_quad(
    source: SourceImage,
    quad: Quad,
    output_size: Tuple[int, int] | None = None,
    interpolation: int = cv2.INTER_LINEAR,
) -> CorrectedImage:
    """Map a normalized TL, TR, BR, BL quad of ``source`` onto an upright rectangle."""
    scale = np.array([source.width, source.height], dtype=np.float32)
    src = np.array(quad, dtype=np.float32) * scale
    width, height = output_size or rectified_size(src)
    dst = np.array(
        [[0, 0], [width - 1, 0], [width - 1, height - 1], [0, height - 1]],
        dtype=np.float32,
    )
    matrix = cv2.getPerspectiveTransform(src, dst)
    warped = cv2.warpPerspective(source.pixels, matrix, (width, height), flags=interpolation)
    return CorrectedImage(pixels=warped)


class PerspectiveCache:
    """Strict LRU cache of perspective-corrected images.

    Keys are the canonical quad plus the source image identity, so the same
    region selected with a different corner order or winding hits the same
    entry. Capacity is fixed at construction.
    """

    def __init__(self, capacity: int = PERSPECTIVE_CACHE_CAPACITY, interpolation: str = "linear") -> None:
        if capacity < 1:
            raise ConfigurationError("cache capacity must be at least 1", {"capacity": str(capacity)})
        if interpolation not in _INTERPOLATION:
            raise ConfigurationError("unknown interpolation", {"interpolation": interpolation})
        self.capacity = capacity
        self.interpolation = interpolation
        self._entries: "OrderedDict[CacheKey, PerspectiveCacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._tick = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @classmethod
    def from_settings(cls, settings: PerspectiveSettings) -> "PerspectiveCache":
        return cls(capacity=settings.cache_capacity, interpolation=settings.interpolation)

    @staticmethod
    def make_key(corners: Sequence[Any], source: SourceImage, output_size: Tuple[int, int] | None = None) -> CacheKey:
        quad = canonical_quad(validate_convex_quad(corners))
        # rounding can collapse a tiny quad; the stored key must stay convex
        validate_convex_quad(quad)
        return (quad, source.identity, output_size)

    def get(
        self,
        corners: Sequence[Any],
        source: SourceImage,
        output_size: Tuple[int, int] | None = None,
    ) -> CorrectedImage:
        """Return the corrected image for ``corners`` of ``source``, computing it on a miss.

        Raises:
            NonConvexQuadrilateralError: Before any lookup, leaving the cache untouched
        """
        key = self.make_key(corners, source, output_size)
        with self._lock:
            self._tick += 1
            entry = self._entries.get(key)
            if entry is not None:
                entry.last_access = self._tick
                self._entries.move_to_end(key)
                self._hits += 1
                return entry.image

            self._misses += 1
            image = warp_quad(source, key[0], output_size, _INTERPOLATION[self.interpolation])
            if len(self._entries) >= self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("Perspective cache evicted entry for image {}", evicted[1][:12])
            self._entries[key] = PerspectiveCacheEntry(key=key, image=image, last_access=self._tick)
            logger.debug(
                "Perspective cache miss, stored {}x{} image ({} / {})",
                image.width, image.height, len(self._entries), self.capacity,
            )
            return image

    def entries(self) -> List[PerspectiveCacheEntry]:
        """Entries from least to most recently used."""
        with self._lock:
            return list(self._entries.values())

    def keys(self) -> List[CacheKey]:
        with self._lock:
            return list(self._entries.keys())

    @property
    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, evictions=self._evictions)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


__all__ = [
    "CacheStats",
    "CorrectedImage",
    "PerspectiveCache",
    "PerspectiveCacheEntry",
    "SourceImage",
    "canonical_quad",
    "rectified_size",
    "validate_convex_quad",
    "warp_quad",
]
