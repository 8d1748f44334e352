"""Custom exception hierarchy for the arplan geometry engine."""

from __future__ import annotations


class ArplanError(Exception):
    """Base exception for all arplan-specific errors."""
    
    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ArplanError):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(ArplanError):
    """Base class for validation errors."""
    pass


class RecordFormatError(ValidationError):
    """Raised when a single persisted plane or corner record is malformed."""
    pass


class GeometryError(ArplanError):
    """Raised when geometry operations fail."""
    pass


class GeometryValidationError(GeometryError):
    """Raised when input geometry violates an invariant."""
    pass


class NonConvexQuadrilateralError(GeometryValidationError):
    """Raised when a perspective source region is not a convex quadrilateral."""
    pass


class ImageDecodeError(GeometryError):
    """Raised when source image bytes cannot be decoded."""
    pass
