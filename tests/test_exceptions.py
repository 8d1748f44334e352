"""Tests for custom exception hierarchy."""

import pytest

from arplan.exceptions import (
    ArplanError,
    ConfigurationError,
    GeometryError,
    GeometryValidationError,
    ImageDecodeError,
    NonConvexQuadrilateralError,
    RecordFormatError,
    ValidationError,
)


def test_arplan_error_base():
    """Test base ArplanError."""
    error = ArplanError("Test error", {"key": "value"})
    assert str(error) == "Test error"
    assert error.message == "Test error"
    assert error.details == {"key": "value"}


def test_details_default_to_empty_dict():
    error = ArplanError("No details")
    assert error.details == {}


def test_configuration_error():
    """Test ConfigurationError."""
    error = ConfigurationError("Config missing", {"setting": "cache_capacity"})
    assert isinstance(error, ArplanError)
    assert error.message == "Config missing"


def test_record_format_error_is_validation_error():
    error = RecordFormatError("transform must have 16 values")
    assert isinstance(error, ValidationError)
    assert isinstance(error, ArplanError)


def test_non_convex_quad_is_geometry_validation_error():
    """Callers catching GeometryValidationError also see non-convex rejections."""
    error = NonConvexQuadrilateralError("quadrilateral is not convex", {"corner": "2"})
    assert isinstance(error, GeometryValidationError)
    assert isinstance(error, GeometryError)
    assert error.details["corner"] == "2"


def test_image_decode_error():
    error = ImageDecodeError("could not decode source image")
    assert isinstance(error, GeometryError)
    assert not isinstance(error, GeometryValidationError)


def test_exception_can_be_raised():
    """Test that exceptions can be raised and caught."""
    with pytest.raises(GeometryValidationError) as exc_info:
        raise NonConvexQuadrilateralError("Test error", {"key": "value"})

    assert exc_info.value.message == "Test error"
    assert exc_info.value.details == {"key": "value"}
