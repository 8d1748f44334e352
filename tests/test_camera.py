from __future__ import annotations

import numpy as np
import pytest

from arplan.camera.depth import DepthMap, DepthSampler, to_landscape
from arplan.camera.intrinsics import CameraIntrinsics, ImageSize, IntrinsicsRotator
from arplan.exceptions import ConfigurationError, GeometryValidationError, RecordFormatError
from arplan.floorplan.models import Point2D


NATIVE = CameraIntrinsics(fx=1000.0, fy=1010.0, cx=960.0, cy=720.0)


def test_rotation_swaps_focal_lengths():
    rotated = IntrinsicsRotator().to_output_orientation(NATIVE)
    assert rotated.fx == NATIVE.fy
    assert rotated.fy == NATIVE.fx


def test_rotation_moves_principal_point():
    rotated = IntrinsicsRotator().to_output_orientation(NATIVE, native_width=1920.0)
    assert rotated.cx == pytest.approx(720.0)
    assert rotated.cy == pytest.approx(1920.0 - 960.0)


def test_rotation_estimates_native_width_from_principal_point():
    off_centre = CameraIntrinsics(fx=1000.0, fy=1000.0, cx=950.0, cy=700.0)
    rotated = IntrinsicsRotator().to_output_orientation(off_centre)
    assert rotated.cy == pytest.approx(950.0)


def test_only_quarter_turn_is_supported():
    with pytest.raises(ConfigurationError):
        IntrinsicsRotator(rotation_degrees=180)


def test_for_output_image_scales_to_actual_resolution():
    """1920x1440 landscape sensor, 720x960 portrait still."""
    out = IntrinsicsRotator().for_output_image(NATIVE, ImageSize(720, 960), ImageSize(1920, 1440))
    assert out.fx == pytest.approx(505.0)
    assert out.fy == pytest.approx(500.0)
    assert out.cx == pytest.approx(360.0)
    assert out.cy == pytest.approx(480.0)


def test_for_output_image_rejects_empty_sizes():
    with pytest.raises(GeometryValidationError):
        IntrinsicsRotator().for_output_image(NATIVE, ImageSize(0, 960))
    with pytest.raises(GeometryValidationError):
        IntrinsicsRotator().for_output_image(CameraIntrinsics(0.0, 1.0, 1.0, 1.0), ImageSize(10, 10))


def test_from_flat_reads_column_major_matrix():
    flat = [1000.0, 0.0, 0.0, 0.0, 1010.0, 0.0, 960.0, 720.0, 1.0]
    assert CameraIntrinsics.from_flat(flat) == NATIVE
    np.testing.assert_allclose(NATIVE.as_matrix(), np.asarray(flat).reshape(3, 3).T)


def test_from_flat_rejects_wrong_length():
    with pytest.raises(RecordFormatError):
        CameraIntrinsics.from_flat([1.0] * 8)


def test_back_project_pinhole():
    k = CameraIntrinsics(fx=500.0, fy=500.0, cx=360.0, cy=480.0)
    np.testing.assert_allclose(k.back_project(360.0, 480.0, 2.0), [0.0, 0.0, 2.0])
    np.testing.assert_allclose(k.back_project(610.0, 480.0, 2.0), [1.0, 0.0, 2.0])


def test_portrait_point_maps_to_landscape():
    """(0.25, 0.6) in the output image is (0.6, 0.75) on the sensor."""
    lx, ly = to_landscape(Point2D(0.25, 0.6))
    assert lx == pytest.approx(0.6)
    assert ly == pytest.approx(0.75)


def grid(height=3, width=5, fill=None):
    values = np.arange(height * width, dtype=np.float32).reshape(height, width) * 0.1 + 0.5
    if fill is not None:
        values[:] = fill
    return DepthMap(values)


def test_nearest_sample_uses_rounded_landscape_cell():
    depth_map = grid()
    sample = DepthSampler().sample((0.25, 0.6), depth_map)
    # col = round(0.6 * 4) = 2, row = round(0.75 * 2) = 2
    assert sample.valid
    assert sample.depth == pytest.approx(float(depth_map.values[2, 2]))


def test_out_of_range_points_are_clamped():
    depth_map = grid()
    sample = DepthSampler().sample((-3.0, 7.0), depth_map)
    # lx clamps to 1, ly clamps to 1
    assert sample.valid
    assert sample.depth == pytest.approx(float(depth_map.values[2, 4]))


@pytest.mark.parametrize("value", [np.nan, np.inf, 0.0, -1.0, 0.05, 5.5])
def test_invalid_depth_values(value):
    sample = DepthSampler().sample((0.5, 0.5), grid(fill=value))
    assert not sample.valid


def test_empty_depth_map_yields_invalid_sample():
    assert not DepthSampler().sample((0.5, 0.5), DepthMap()).valid


def test_bilinear_interpolates_four_cells():
    depth_map = DepthMap(np.array([[1.0, 2.0], [3.0, 4.0]], dtype=np.float32))
    sample = DepthSampler(mode="bilinear").sample((0.5, 0.5), depth_map)
    assert sample.valid
    assert sample.depth == pytest.approx(2.5)


def test_bilinear_falls_back_to_nearest_valid_neighbour():
    depth_map = DepthMap(np.array([[np.nan, 2.0], [3.0, 4.0]], dtype=np.float32))
    sample = DepthSampler(mode="bilinear").sample((0.5, 0.5), depth_map)
    assert sample.valid
    assert sample.depth == pytest.approx(2.0)


def test_depth_map_from_little_endian_bytes():
    values = np.array([[1.0, 1.5, 2.0], [2.5, 3.0, 3.5]], dtype="<f4")
    depth_map = DepthMap.from_bytes(values.tobytes(), width=3, height=2)
    assert (depth_map.width, depth_map.height) == (3, 2)
    np.testing.assert_allclose(depth_map.values, values)


def test_depth_map_from_short_buffer_raises():
    with pytest.raises(RecordFormatError):
        DepthMap.from_bytes(b"\x00" * 8, width=3, height=2)
