"""Distance between two normalized points of a captured still image.

Resolution order, first success wins:

1. depth: both points have valid depth; back-project with the rotated,
   output-scaled intrinsics and take the 3D distance
2. reference_plane: intersect both pixel rays with a known camera-space plane
3. snapshot_scale: pixel distance times the capture's own metres-per-pixel
   scale, when the capture recorded one
4. reference_scale: pixel distance times the metres-per-pixel scale averaged
   over AR reference measurements
5. estimate: pixel distance times a fixed metres-per-pixel constant

Normalized coordinates are always converted to pixels with the actual output
resolution before any Euclidean computation. Measuring never raises.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

import numpy as np

from arplan.camera.depth import DepthMap, DepthSampler, as_xy
from arplan.camera.intrinsics import CameraIntrinsics, ImageSize, IntrinsicsRotator
from arplan.exceptions import GeometryError
from arplan.geometry.contract import ESTIMATED_METERS_PER_PIXEL, MIN_REFERENCE_PIXEL_LENGTH
from arplan.geometry.matrix import normalized
from arplan.settings import Settings


logger = logging.getLogger(__name__)


class DistanceMethod(str, Enum):
    DEPTH = "depth"
    REFERENCE_PLANE = "reference_plane"
    SNAPSHOT_SCALE = "snapshot_scale"
    REFERENCE_SCALE = "reference_scale"
    ESTIMATE = "estimate"


@dataclass(frozen=True)
class DistanceResult:
    distance_meters: float
    method: DistanceMethod


@dataclass(frozen=True)
class CaptureGeometry:
    """Everything about a still capture needed to measure on it."""
    intrinsics: CameraIntrinsics | None
    output_size: ImageSize
    depth_map: DepthMap | None = None
    native_size: ImageSize | None = None
    meters_per_pixel: float | None = None


@dataclass(frozen=True)
class ReferencePlane:
    """Known plane in camera space (output orientation), e.g. the wall being measured."""
    point: tuple[float, float, float]
    normal: tuple[float, float, float]

    def intersect(self, ray: np.ndarray) -> np.ndarray | None:
        n = np.asarray(self.normal, dtype=float)
        denom = float(np.dot(n, ray))
        if abs(denom) < 1e-9:
            return None
        t = float(np.dot(n, np.asarray(self.point, dtype=float))) / denom
        if not math.isfinite(t) or t <= 0.0:
            return None
        return ray * t


@dataclass(frozen=True)
class ScaleReference:
    """An AR-measured segment drawn on the same image."""
    point_a: Any
    point_b: Any
    distance_meters: float

    def pixel_length(self, output_size: ImageSize) -> float:
        return pixel_distance(self.point_a, self.point_b, output_size)


def to_pixels(point: Any, output_size: ImageSize) -> tuple[float, float]:
    x, y = as_xy(point)
    return x * output_size.width, y * output_size.height


def pixel_distance(point_a: Any, point_b: Any, output_size: ImageSize) -> float:
    ua, va = to_pixels(point_a, output_size)
    ub, vb = to_pixels(point_b, output_size)
    return math.hypot(ub - ua, vb - va)


@dataclass
class DistanceCalculator:
    sampler: DepthSampler = field(default_factory=DepthSampler)
    rotator: IntrinsicsRotator = field(default_factory=IntrinsicsRotator)
    estimated_meters_per_pixel: float = ESTIMATED_METERS_PER_PIXEL
    reference_plane: ReferencePlane | None = None
    scale_references: Sequence[ScaleReference] = ()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "DistanceCalculator":
        return cls(
            sampler=DepthSampler.from_settings(settings.depth),
            rotator=IntrinsicsRotator(settings.measurement.rotation_degrees),
            estimated_meters_per_pixel=settings.measurement.estimated_meters_per_pixel,
            **kwargs,
        )

    def measure(
        self,
        point_a: Any,
        point_b: Any,
        intrinsics: CameraIntrinsics | None,
        output_size: ImageSize,
        depth_map: DepthMap | None = None,
        native_size: ImageSize | None = None,
        meters_per_pixel: float | None = None,
    ) -> float:
        result = self.measure_detailed(
            point_a, point_b, intrinsics, output_size, depth_map, native_size, meters_per_pixel
        )
        return result.distance_meters

    def measure_capture(self, point_a: Any, point_b: Any, capture: CaptureGeometry) -> DistanceResult:
        return self.measure_detailed(
            point_a, point_b, capture.intrinsics, capture.output_size, capture.depth_map,
            capture.native_size, capture.meters_per_pixel,
        )

    def measure_detailed(
        self,
        point_a: Any,
        point_b: Any,
        intrinsics: CameraIntrinsics | None,
        output_size: ImageSize,
        depth_map: DepthMap | None = None,
        native_size: ImageSize | None = None,
        meters_per_pixel: float | None = None,
    ) -> DistanceResult:
        scaled = self._output_intrinsics(intrinsics, output_size, native_size)

        if scaled is not None and depth_map is not None:
            dist = self._depth_distance(point_a, point_b, scaled, output_size, depth_map)
            if dist is not None:
                return DistanceResult(dist, DistanceMethod.DEPTH)

        if scaled is not None and self.reference_plane is not None:
            dist = self._plane_distance(point_a, point_b, scaled, output_size, self.reference_plane)
            if dist is not None:
                return DistanceResult(dist, DistanceMethod.REFERENCE_PLANE)

        pixels = pixel_distance(point_a, point_b, output_size)
        if meters_per_pixel is not None and _finite_positive(float(meters_per_pixel)) is not None:
            return DistanceResult(pixels * float(meters_per_pixel), DistanceMethod.SNAPSHOT_SCALE)

        scale = self.reference_meters_per_pixel(output_size)
        if scale is not None:
            return DistanceResult(pixels * scale, DistanceMethod.REFERENCE_SCALE)
        return DistanceResult(pixels * self.estimated_meters_per_pixel, DistanceMethod.ESTIMATE)

    def reference_meters_per_pixel(self, output_size: ImageSize) -> float | None:
        """Mean metres-per-pixel over references longer than one pixel."""
        ratios = []
        for ref in self.scale_references:
            length = ref.pixel_length(output_size)
            if length > MIN_REFERENCE_PIXEL_LENGTH and ref.distance_meters > 0.0:
                ratios.append(ref.distance_meters / length)
        if not ratios:
            return None
        return float(np.mean(ratios))

    def _output_intrinsics(
        self,
        intrinsics: CameraIntrinsics | None,
        output_size: ImageSize,
        native_size: ImageSize | None,
    ) -> CameraIntrinsics | None:
        if intrinsics is None:
            return None
        try:
            return self.rotator.for_output_image(intrinsics, output_size, native_size)
        except GeometryError as exc:
            logger.debug("Intrinsics unusable for projection: %s", exc)
            return None

    def _depth_distance(
        self,
        point_a: Any,
        point_b: Any,
        intrinsics: CameraIntrinsics,
        output_size: ImageSize,
        depth_map: DepthMap,
    ) -> float | None:
        sample_a = self.sampler.sample(point_a, depth_map)
        sample_b = self.sampler.sample(point_b, depth_map)
        if not (sample_a.valid and sample_b.valid):
            return None
        world_a = intrinsics.back_project(*to_pixels(point_a, output_size), sample_a.depth)
        world_b = intrinsics.back_project(*to_pixels(point_b, output_size), sample_b.depth)
        return _finite_positive(float(np.linalg.norm(world_b - world_a)))

    def _plane_distance(
        self,
        point_a: Any,
        point_b: Any,
        intrinsics: CameraIntrinsics,
        output_size: ImageSize,
        plane: ReferencePlane,
    ) -> float | None:
        if normalized(plane.normal) is None:
            return None
        hit_a = plane.intersect(intrinsics.ray(*to_pixels(point_a, output_size)))
        hit_b = plane.intersect(intrinsics.ray(*to_pixels(point_b, output_size)))
        if hit_a is None or hit_b is None:
            return None
        return _finite_positive(float(np.linalg.norm(hit_b - hit_a)))


def _finite_positive(value: float) -> float | None:
    return value if math.isfinite(value) and value > 0.0 else None


__all__ = [
    "CaptureGeometry",
    "DistanceCalculator",
    "DistanceMethod",
    "DistanceResult",
    "ReferencePlane",
    "ScaleReference",
    "pixel_distance",
    "to_pixels",
]
