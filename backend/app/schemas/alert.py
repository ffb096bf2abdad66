"""Pydantic schemas for thresholds and station alerts."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import AlertSeverity, SensorType


class ThresholdBase(BaseModel):
    sensor_type: SensorType
    severity: AlertSeverity
    min_value: float | None = None
    max_value: float | None = None
    description: str | None = Field(default=None, max_length=100)


class ThresholdCreate(ThresholdBase):
    is_active: bool = True


class ThresholdUpdate(BaseModel):
    sensor_type: SensorType | None = None
    severity: AlertSeverity | None = None
    min_value: float | None = None
    max_value: float | None = None
    description: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None


class ThresholdRead(ThresholdBase):
    id: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ThresholdViolation(BaseModel):
    threshold_id: int
    severity: AlertSeverity
    min_value: float | None
    max_value: float | None
    description: str | None
    actual_value: float


class ReadingValidationRequest(BaseModel):
    value: float


class StationAlertRead(BaseModel):
    id: int
    station_id: int
    sensor_id: int | None
    sensor_type: SensorType
    value: float
    threshold_value: float
    severity: AlertSeverity
    message: str
    is_active: bool
    acknowledged: bool
    acknowledged_by: int | None
    acknowledged_at: datetime | None
    resolved_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AlertQuery(BaseModel):
    station_id: int | None = None
    sensor_type: SensorType | None = None
    severity: AlertSeverity | None = None
    is_active: bool | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort: Literal["asc", "desc"] = "desc"


class AlertPage(BaseModel):
    items: list[StationAlertRead]
    total: int
    page: int
    limit: int
    total_pages: int


class ClearHistoryResult(BaseModel):
    deleted_count: int
