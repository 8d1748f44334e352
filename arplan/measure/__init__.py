"""Real-world distances on captured stills and in world space."""

from .distance import (
    CaptureGeometry,
    DistanceCalculator,
    DistanceMethod,
    DistanceResult,
    ReferencePlane,
    ScaleReference,
)
from .models import ImageMeasurement, Measurement, MeasurementUnit

__all__ = [
    "CaptureGeometry",
    "DistanceCalculator",
    "DistanceMethod",
    "DistanceResult",
    "ImageMeasurement",
    "Measurement",
    "MeasurementUnit",
    "ReferencePlane",
    "ScaleReference",
]
