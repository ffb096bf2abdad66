"""Pydantic schemas for sensor readings and derived views."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import SensorType
from app.schemas.alert import ThresholdViolation


class ReadingCreate(BaseModel):
    serial_number: str = Field(..., min_length=1, max_length=128)
    value: float
    unit: str = Field(..., min_length=1, max_length=16)
    timestamp: datetime | None = None
    quality: float | None = Field(default=None, ge=0, le=1)


class StationRef(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class ReadingSensorRef(BaseModel):
    id: int
    serial_number: str
    type: SensorType
    name: str
    station: StationRef

    model_config = ConfigDict(from_attributes=True)


class ReadingRead(BaseModel):
    id: int
    sensor_id: int
    value: float
    unit: str
    timestamp: datetime
    quality: float
    sensor: ReadingSensorRef

    model_config = ConfigDict(from_attributes=True)


class ReadingCreated(ReadingRead):
    threshold_violations: list[ThresholdViolation] | None = None


class AggregatedBucket(BaseModel):
    time_bucket: datetime
    serial_number: str
    sensor_type: SensorType
    average: float
    min: float
    max: float
    sample_count: int


class DataQualityReport(BaseModel):
    is_valid: bool
    score: float
    issues: list[str]
    readings_count: int = 0
    period: dict[str, Any] | None = None
    sensor: dict[str, Any] | None = None


class RawDataCreate(BaseModel):
    serial_number: str = Field(..., min_length=1, max_length=128)
    payload: dict[str, Any]


class RawDataRead(BaseModel):
    id: int
    sensor_id: int
    raw_payload: dict[str, Any]
    received_at: datetime
    processed: bool

    model_config = ConfigDict(from_attributes=True)


class RawProcessResult(BaseModel):
    processed: int
    failed: int
