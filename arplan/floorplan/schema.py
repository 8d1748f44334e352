"""Persisted plane and corner records.

Captures store anchors as camelCase JSON objects with a flattened 16-float
column-major transform. The records are validated with pydantic and turned
into :class:`~arplan.floorplan.projector.WorldPlane` /
:class:`~arplan.floorplan.models.CornerCandidate` at the boundary; a
malformed record is dropped on its own without failing the batch.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from arplan.exceptions import RecordFormatError
from arplan.floorplan.models import (
    CornerCandidate,
    PlaneAlignment,
    PlaneClassification,
    Point2D,
)
from arplan.floorplan.projector import WorldPlane
from arplan.geometry.matrix import Transform


logger = logging.getLogger(__name__)


class PlaneRecord(BaseModel):
    id: str
    alignment: Literal["vertical", "horizontal"] = "vertical"
    classification: str | None = None
    transform: list[float]
    extent_x: float = Field(..., alias="extentX", ge=0.0)
    extent_z: float = Field(..., alias="extentZ", ge=0.0)
    center_3d: list[float] | None = Field(None, alias="center3D")
    normal: list[float] | None = None
    projected_vertices: list[list[float]] = Field(default_factory=list, alias="projectedVertices")
    width_meters: float | None = Field(None, alias="widthMeters")
    height_meters: float | None = Field(None, alias="heightMeters")

    class Config:
        populate_by_name = True

    @field_validator("transform")
    @classmethod
    def _flat_4x4(cls, value: list[float]) -> list[float]:
        if len(value) != 16:
            raise ValueError(f"transform must have 16 values, got {len(value)}")
        return value

    @field_validator("alignment", mode="before")
    @classmethod
    def _lower_alignment(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @classmethod
    def from_plane(cls, plane: WorldPlane) -> "PlaneRecord":
        return cls(
            id=plane.id,
            alignment=plane.alignment.value,
            classification=plane.classification.value if plane.classification is not None else None,
            transform=plane.transform.to_flat(),
            extent_x=plane.extent_x,
            extent_z=plane.extent_z,
            center_3d=[float(v) for v in plane.center],
            normal=[float(v) for v in plane.normal],
            width_meters=plane.extent_x,
            height_meters=plane.extent_z,
        )

    def to_plane(self) -> WorldPlane:
        classification = (
            PlaneClassification.parse(self.classification) if self.classification is not None else None
        )
        return WorldPlane(
            id=self.id,
            transform=Transform.from_flat(self.transform),
            extent_x=self.extent_x,
            extent_z=self.extent_z,
            alignment=PlaneAlignment(self.alignment),
            classification=classification,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class CornerRecord(BaseModel):
    position_3d: list[float] = Field(..., alias="position3D")
    plane_id_a: str = Field(..., alias="planeIdA")
    plane_id_b: str = Field(..., alias="planeIdB")
    angle_degrees: float = Field(90.0, alias="angleDegrees")

    class Config:
        populate_by_name = True

    @field_validator("position_3d")
    @classmethod
    def _xyz(cls, value: list[float]) -> list[float]:
        if len(value) != 3:
            raise ValueError(f"position3D must have 3 values, got {len(value)}")
        return value

    def to_candidate(self) -> CornerCandidate:
        """Project onto the floor: world X and Z become plan x and y."""
        x, _, z = self.position_3d
        return CornerCandidate(
            position=Point2D(float(x), float(z)),
            plane_id_a=self.plane_id_a,
            plane_id_b=self.plane_id_b,
            angle=self.angle_degrees,
        )


def parse_plane_records(payload: Iterable[Any]) -> List[PlaneRecord]:
    """Validate raw plane dicts, skipping malformed entries."""
    records: List[PlaneRecord] = []
    for index, raw in enumerate(payload):
        try:
            if not isinstance(raw, dict):
                raise RecordFormatError("plane record must be an object", {"index": str(index)})
            records.append(PlaneRecord.model_validate(raw))
        except (ValidationError, RecordFormatError) as exc:
            logger.warning("Skipping malformed plane record %d: %s", index, exc)
    return records


def parse_corner_records(payload: Iterable[Any]) -> List[CornerRecord]:
    """Validate raw corner dicts, skipping malformed entries."""
    records: List[CornerRecord] = []
    for index, raw in enumerate(payload):
        try:
            if not isinstance(raw, dict):
                raise RecordFormatError("corner record must be an object", {"index": str(index)})
            records.append(CornerRecord.model_validate(raw))
        except (ValidationError, RecordFormatError) as exc:
            logger.warning("Skipping malformed corner record %d: %s", index, exc)
    return records


__all__ = [
    "PlaneRecord",
    "CornerRecord",
    "parse_plane_records",
    "parse_corner_records",
]
