from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from arplan.exceptions import ConfigurationError
from arplan.geometry import contract

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


class FloorPlanSettings(BaseModel):
    # Lengths in metres
    default_wall_thickness: float = Field(contract.DEFAULT_WALL_THICKNESS, gt=0.0)
    snap_threshold: float = Field(contract.CORNER_SNAP_THRESHOLD, gt=0.0)
    proximity_join_threshold: float = Field(contract.PROXIMITY_JOIN_THRESHOLD, gt=0.0)
    join_epsilon: float = Field(contract.JOIN_EPSILON, ge=0.0)
    bounds_padding: float = Field(contract.BOUNDS_PADDING, ge=0.0)
    min_axis_length: float = Field(contract.MIN_AXIS_LENGTH, gt=0.0)

    @model_validator(mode="after")
    def _check_join_window(self) -> "FloorPlanSettings":
        if self.join_epsilon >= self.proximity_join_threshold:
            raise ValueError("join_epsilon must be smaller than proximity_join_threshold")
        return self


class CornerDetectionSettings(BaseModel):
    min_angle_deg: float = Field(contract.CORNER_MIN_ANGLE_DEG, ge=0.0, le=180.0)
    max_angle_deg: float = Field(contract.CORNER_MAX_ANGLE_DEG, ge=0.0, le=180.0)
    max_center_distance: float = Field(contract.CORNER_MAX_CENTER_DISTANCE, gt=0.0)


class DepthSettings(BaseModel):
    min_depth: float = Field(contract.MIN_SENSOR_DEPTH, ge=0.0)
    max_depth: float = Field(contract.MAX_SENSOR_DEPTH, gt=0.0)
    mode: Literal["nearest", "bilinear"] = "nearest"

    @model_validator(mode="after")
    def _check_range(self) -> "DepthSettings":
        if self.min_depth >= self.max_depth:
            raise ValueError("min_depth must be smaller than max_depth")
        return self


class MeasurementSettings(BaseModel):
    estimated_meters_per_pixel: float = Field(contract.ESTIMATED_METERS_PER_PIXEL, gt=0.0)
    feet_conversion_factor: float = Field(contract.FEET_PER_METER, gt=0.0)
    rotation_degrees: int = 90

    @field_validator("rotation_degrees")
    @classmethod
    def _only_quarter_turn(cls, value: int) -> int:
        if value != 90:
            raise ValueError("only a 90 degree sensor-to-output rotation is supported")
        return value


class PerspectiveSettings(BaseModel):
    cache_capacity: int = Field(contract.PERSPECTIVE_CACHE_CAPACITY, ge=1, le=1000)
    interpolation: Literal["nearest", "linear", "cubic"] = "linear"
    output_extension: str = ".png"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    log_file: str | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> str:
        if value is None:
            return "INFO"
        return str(value).upper()


class Settings(BaseModel):
    floorplan: FloorPlanSettings = Field(default_factory=FloorPlanSettings)
    corners: CornerDetectionSettings = Field(default_factory=CornerDetectionSettings)
    depth: DepthSettings = Field(default_factory=DepthSettings)
    measurement: MeasurementSettings = Field(default_factory=MeasurementSettings)
    perspective: PerspectiveSettings = Field(default_factory=PerspectiveSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.
        
        Args:
            path: Optional path to configuration file. If not provided, uses
                ARPLAN_CONFIG environment variable or defaults to config/default.yaml.
        
        Returns:
            Settings instance with loaded configuration. When no explicit path
            is given and the default file is absent, built-in defaults are used.
        
        Raises:
            ConfigurationError: If an explicit file is missing or the payload is invalid.
        """
        explicit = path is not None or "ARPLAN_CONFIG" in os.environ
        config_path = path or Path(os.getenv("ARPLAN_CONFIG", "config/default.yaml"))
        if not config_path.exists():
            if explicit:
                raise ConfigurationError(
                    f"Configuration file not found: {config_path}",
                    {"path": str(config_path)},
                )
            return cls()
        with config_path.open("r", encoding="utf-8") as fp:
            try:
                payload = yaml.safe_load(fp) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML: {exc}", {"path": str(config_path)}) from exc
        if not isinstance(payload, dict):
            raise ConfigurationError("Configuration root must be a mapping", {"path": str(config_path)})
        try:
            return cls(**payload)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", {"path": str(config_path)}) from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "FloorPlanSettings",
    "CornerDetectionSettings",
    "DepthSettings",
    "MeasurementSettings",
    "PerspectiveSettings",
    "LoggingSettings",
    "get_settings",
]
