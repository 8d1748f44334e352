"""Sensor-side geometry: camera intrinsics and depth maps."""

from .depth import DepthMap, DepthSample, DepthSampler, as_xy, to_landscape
from .intrinsics import CameraIntrinsics, ImageSize, IntrinsicsRotator

__all__ = [
    "CameraIntrinsics",
    "DepthMap",
    "DepthSample",
    "DepthSampler",
    "ImageSize",
    "IntrinsicsRotator",
    "as_xy",
    "to_landscape",
]
