from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal, Tuple

import numpy as np

from arplan.exceptions import RecordFormatError
from arplan.geometry.contract import MAX_SENSOR_DEPTH, MIN_SENSOR_DEPTH
from arplan.settings import DepthSettings


@dataclass(frozen=True)
class DepthMap:
    """Depth grid in the sensor's native landscape orientation, rows x cols."""
    values: np.ndarray = field(default_factory=lambda: np.zeros((0, 0), dtype=np.float32))

    def __post_init__(self) -> None:
        arr = np.asarray(self.values, dtype=np.float32)
        if arr.ndim != 2:
            raise RecordFormatError("depth map must be two dimensional", {"ndim": str(arr.ndim)})
        object.__setattr__(self, "values", arr)

    @classmethod
    def from_bytes(cls, data: bytes, width: int, height: int) -> "DepthMap":
        """Decode raw little-endian float32 samples, row-major."""
        expected = width * height * 4
        if width < 0 or height < 0 or len(data) < expected:
            raise RecordFormatError(
                "depth buffer is smaller than width * height floats",
                {"bytes": str(len(data)), "expected": str(expected)},
            )
        values = np.frombuffer(data, dtype="<f4", count=width * height).reshape(height, width)
        return cls(values.astype(np.float32))

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.values.size == 0


@dataclass(frozen=True)
class DepthSample:
    depth: float
    valid: bool

    @classmethod
    def invalid(cls) -> "DepthSample":
        return cls(depth=float("nan"), valid=False)


def as_xy(point: Any) -> Tuple[float, float]:
    if hasattr(point, "x") and hasattr(point, "y"):
        return float(point.x), float(point.y)
    x, y = point
    return float(x), float(y)


def to_landscape(point: Any) -> Tuple[float, float]:
    """Portrait output point -> landscape sensor point: ``(y, 1 - x)``."""
    x, y = as_xy(point)
    return y, 1.0 - x


@dataclass
class DepthSampler:
    """Read metric depth under a normalized output-space point.

    Points outside ``[0, 1]`` are clamped to the grid edge. A sample is
    invalid when non-finite, non-positive or outside ``[min_depth, max_depth]``.
    """
    min_depth: float = MIN_SENSOR_DEPTH
    max_depth: float = MAX_SENSOR_DEPTH
    mode: Literal["nearest", "bilinear"] = "nearest"

    @classmethod
    def from_settings(cls, settings: DepthSettings) -> "DepthSampler":
        return cls(min_depth=settings.min_depth, max_depth=settings.max_depth, mode=settings.mode)

    def is_valid(self, depth: float) -> bool:
        return math.isfinite(depth) and depth > 0.0 and self.min_depth <= depth <= self.max_depth

    def sample(self, point: Any, depth_map: DepthMap) -> DepthSample:
        if depth_map.is_empty:
            return DepthSample.invalid()
        lx, ly = to_landscape(point)
        if not (math.isfinite(lx) and math.isfinite(ly)):
            return DepthSample.invalid()
        lx = min(max(lx, 0.0), 1.0)
        ly = min(max(ly, 0.0), 1.0)
        fx = lx * (depth_map.width - 1)
        fy = ly * (depth_map.height - 1)
        if self.mode == "bilinear":
            return self._bilinear(fx, fy, depth_map)
        return self._nearest(fx, fy, depth_map)

    def _cell(self, depth_map: DepthMap, col: int, row: int) -> float | None:
        col = min(max(col, 0), depth_map.width - 1)
        row = min(max(row, 0), depth_map.height - 1)
        value = float(depth_map.values[row, col])
        return value if self.is_valid(value) else None

    def _nearest(self, fx: float, fy: float, depth_map: DepthMap) -> DepthSample:
        value = self._cell(depth_map, int(math.floor(fx + 0.5)), int(math.floor(fy + 0.5)))
        if value is None:
            return DepthSample.invalid()
        return DepthSample(depth=value, valid=True)

    def _bilinear(self, fx: float, fy: float, depth_map: DepthMap) -> DepthSample:
        x0, y0 = int(math.floor(fx)), int(math.floor(fy))
        x1 = min(x0 + 1, depth_map.width - 1)
        y1 = min(y0 + 1, depth_map.height - 1)
        dx, dy = fx - x0, fy - y0

        corners = [
            self._cell(depth_map, x0, y0),
            self._cell(depth_map, x1, y0),
            self._cell(depth_map, x0, y1),
            self._cell(depth_map, x1, y1),
        ]
        if any(v is None for v in corners):
            # nearest valid neighbour in scan order
            for value in corners:
                if value is not None:
                    return DepthSample(depth=value, valid=True)
            return DepthSample.invalid()

        v00, v10, v01, v11 = corners
        top = v00 * (1.0 - dx) + v10 * dx
        bottom = v01 * (1.0 - dx) + v11 * dx
        return DepthSample(depth=top * (1.0 - dy) + bottom * dy, valid=True)


__all__ = ["DepthMap", "DepthSample", "DepthSampler", "as_xy", "to_landscape"]
