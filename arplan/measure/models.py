"""Measurement value objects.

A measurement's distance is computed once when it is created. Moving the
whole measurement (translate or rotate) keeps the stored distance; moving a
single endpoint recomputes it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Sequence, Tuple

import numpy as np

from arplan.floorplan.models import Point2D
from arplan.geometry.contract import FEET_PER_METER
from arplan.measure.distance import CaptureGeometry, DistanceCalculator, DistanceMethod, ScaleReference


Vector3 = Tuple[float, float, float]


def _vec3(values: Sequence[float]) -> Vector3:
    x, y, z = (float(v) for v in values)
    return (x, y, z)


def _clamp01(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def _clamped(point: Point2D) -> Point2D:
    return Point2D(_clamp01(point.x), _clamp01(point.y))


class MeasurementUnit(str, Enum):
    METERS = "m"
    FEET = "ft"

    def value_from_meters(self, meters: float, feet_factor: float = FEET_PER_METER) -> float:
        if self is MeasurementUnit.FEET:
            return meters * feet_factor
        return meters

    def format(self, meters: float, feet_factor: float = FEET_PER_METER) -> str:
        return f"{self.value_from_meters(meters, feet_factor):.2f} {self.value}"


@dataclass(frozen=True)
class Measurement:
    """World-space measurement between two 3D points."""
    point_a: Vector3
    point_b: Vector3
    distance_meters: float

    @classmethod
    def create(cls, point_a: Sequence[float], point_b: Sequence[float]) -> "Measurement":
        a, b = _vec3(point_a), _vec3(point_b)
        return cls(a, b, float(np.linalg.norm(np.subtract(b, a))))

    @property
    def midpoint(self) -> Vector3:
        return _vec3((np.asarray(self.point_a) + np.asarray(self.point_b)) / 2.0)

    def translated(self, offset: Sequence[float]) -> "Measurement":
        delta = np.asarray(offset, dtype=float)
        return replace(
            self,
            point_a=_vec3(np.asarray(self.point_a) + delta),
            point_b=_vec3(np.asarray(self.point_b) + delta),
        )

    def rotated(self, rotation: np.ndarray, pivot: Sequence[float] | None = None) -> "Measurement":
        """Rotate both endpoints with a 3x3 matrix about ``pivot`` (default midpoint)."""
        r = np.asarray(rotation, dtype=float)
        p = np.asarray(pivot if pivot is not None else self.midpoint, dtype=float)
        return replace(
            self,
            point_a=_vec3(r @ (np.asarray(self.point_a) - p) + p),
            point_b=_vec3(r @ (np.asarray(self.point_b) - p) + p),
        )

    def with_point_a(self, point: Sequence[float]) -> "Measurement":
        return Measurement.create(point, self.point_b)

    def with_point_b(self, point: Sequence[float]) -> "Measurement":
        return Measurement.create(self.point_a, point)


@dataclass(frozen=True)
class ImageMeasurement:
    """Measurement drawn on a captured still, endpoints normalized to the output image."""
    point_a: Point2D
    point_b: Point2D
    distance_meters: float
    is_from_ar: bool = False
    method: DistanceMethod | None = None

    @classmethod
    def create(
        cls,
        point_a: Point2D,
        point_b: Point2D,
        calculator: DistanceCalculator,
        capture: CaptureGeometry,
        is_from_ar: bool = False,
    ) -> "ImageMeasurement":
        a, b = _clamped(point_a), _clamped(point_b)
        result = calculator.measure_capture(a, b, capture)
        return cls(a, b, result.distance_meters, is_from_ar=is_from_ar, method=result.method)

    @property
    def midpoint(self) -> Point2D:
        return self.point_a.midpoint(self.point_b)

    def translated(self, dx: float, dy: float) -> "ImageMeasurement":
        return replace(
            self,
            point_a=_clamped(Point2D(self.point_a.x + dx, self.point_a.y + dy)),
            point_b=_clamped(Point2D(self.point_b.x + dx, self.point_b.y + dy)),
        )

    def rotated(self, angle: float) -> "ImageMeasurement":
        """Rotate about the midpoint by ``angle`` radians."""
        mid = self.midpoint
        half_dx = self.point_b.x - mid.x
        half_dy = self.point_b.y - mid.y
        cos_a, sin_a = math.cos(angle), math.sin(angle)
        new_dx = half_dx * cos_a - half_dy * sin_a
        new_dy = half_dx * sin_a + half_dy * cos_a
        return replace(
            self,
            point_a=_clamped(Point2D(mid.x - new_dx, mid.y - new_dy)),
            point_b=_clamped(Point2D(mid.x + new_dx, mid.y + new_dy)),
        )

    def with_point_a(
        self, point: Point2D, calculator: DistanceCalculator, capture: CaptureGeometry
    ) -> "ImageMeasurement":
        return ImageMeasurement.create(point, self.point_b, calculator, capture, self.is_from_ar)

    def with_point_b(
        self, point: Point2D, calculator: DistanceCalculator, capture: CaptureGeometry
    ) -> "ImageMeasurement":
        return ImageMeasurement.create(self.point_a, point, calculator, capture, self.is_from_ar)

    def as_scale_reference(self) -> ScaleReference:
        return ScaleReference(self.point_a, self.point_b, self.distance_meters)

    def format(self, unit: MeasurementUnit = MeasurementUnit.METERS) -> str:
        return unit.format(self.distance_meters)


__all__ = ["Measurement", "ImageMeasurement", "MeasurementUnit"]
