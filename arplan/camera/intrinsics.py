"""Pinhole intrinsics and their sensor-to-output reorientation.

The sensor reports intrinsics in its native landscape orientation while still
images are stored in portrait, rotated 90 degrees. Every projection into the
still image goes through :meth:`IntrinsicsRotator.for_output_image`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from arplan.exceptions import ConfigurationError, GeometryValidationError, RecordFormatError


@dataclass(frozen=True)
class ImageSize:
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class CameraIntrinsics:
    fx: float
    fy: float
    cx: float
    cy: float

    @classmethod
    def from_matrix(cls, matrix: Sequence[Sequence[float]] | np.ndarray) -> "CameraIntrinsics":
        """Read ``[[fx, 0, cx], [0, fy, cy], [0, 0, 1]]``."""
        k = np.asarray(matrix, dtype=float)
        if k.shape != (3, 3):
            raise RecordFormatError("intrinsics must be a 3x3 matrix", {"shape": str(k.shape)})
        return cls(fx=float(k[0, 0]), fy=float(k[1, 1]), cx=float(k[0, 2]), cy=float(k[1, 2]))

    @classmethod
    def from_flat(cls, values: Sequence[float]) -> "CameraIntrinsics":
        """Read the 9-float column-major form (principal point at indices 6/7)."""
        if len(values) != 9:
            raise RecordFormatError("flattened intrinsics must have 9 values", {"length": str(len(values))})
        return cls.from_matrix(np.asarray(values, dtype=float).reshape(3, 3).T)

    def as_matrix(self) -> np.ndarray:
        return np.array(
            [[self.fx, 0.0, self.cx], [0.0, self.fy, self.cy], [0.0, 0.0, 1.0]],
            dtype=float,
        )

    def estimated_native_size(self) -> ImageSize:
        # principal point assumed at the image centre
        return ImageSize(width=2.0 * self.cx, height=2.0 * self.cy)

    def scaled(self, sx: float, sy: float) -> "CameraIntrinsics":
        return CameraIntrinsics(fx=self.fx * sx, fy=self.fy * sy, cx=self.cx * sx, cy=self.cy * sy)

    def back_project(self, u: float, v: float, depth: float) -> np.ndarray:
        """Camera-space point for pixel ``(u, v)`` at ``depth`` metres."""
        return np.array(
            [(u - self.cx) * depth / self.fx, (v - self.cy) * depth / self.fy, depth],
            dtype=float,
        )

    def ray(self, u: float, v: float) -> np.ndarray:
        """Unnormalized camera-space ray through pixel ``(u, v)`` with ``z = 1``."""
        return self.back_project(u, v, 1.0)


@dataclass(frozen=True)
class IntrinsicsRotator:
    rotation_degrees: int = 90

    def __post_init__(self) -> None:
        if self.rotation_degrees != 90:
            raise ConfigurationError(
                "Only a 90 degree sensor-to-output rotation is supported",
                {"rotation_degrees": str(self.rotation_degrees)},
            )

    def to_output_orientation(
        self,
        native: CameraIntrinsics,
        native_width: float | None = None,
    ) -> CameraIntrinsics:
        """Swap the axes for the portrait output.

        ``native_width`` is the landscape width in pixels; when unknown it is
        estimated as ``2 * cx``.
        """
        width = native_width if native_width is not None else 2.0 * native.cx
        return CameraIntrinsics(fx=native.fy, fy=native.fx, cx=native.cy, cy=width - native.cx)

    def for_output_image(
        self,
        native: CameraIntrinsics,
        output_size: ImageSize,
        native_size: ImageSize | None = None,
    ) -> CameraIntrinsics:
        """Rotated intrinsics scaled to the actual output resolution.

        Raises:
            GeometryValidationError: If a focal length is not positive or the
                native or output size is empty
        """
        if native.fx <= 0 or native.fy <= 0:
            raise GeometryValidationError(
                "focal lengths must be positive",
                {"fx": str(native.fx), "fy": str(native.fy)},
            )
        native_size = native_size or native.estimated_native_size()
        if native_size.is_empty or output_size.is_empty:
            raise GeometryValidationError(
                "cannot scale intrinsics for an empty image",
                {"native": f"{native_size.width}x{native_size.height}", "output": f"{output_size.width}x{output_size.height}"},
            )
        rotated = self.to_output_orientation(native, native_size.width)
        # portrait width spans the landscape height and vice versa
        sx = output_size.width / native_size.height
        sy = output_size.height / native_size.width
        return rotated.scaled(sx, sy)


__all__ = ["ImageSize", "CameraIntrinsics", "IntrinsicsRotator"]
