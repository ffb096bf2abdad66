"""Pydantic schemas for data exports."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import AlertSeverity, ExportFormat, ExportStatus, SensorType


class ExportFilters(BaseModel):
    start_date: datetime | None = None
    end_date: datetime | None = None
    sensor_types: list[SensorType] | None = None
    station_ids: list[int] | None = None
    severity: AlertSeverity | None = None
    include_readings: bool = True
    include_alerts: bool = True
    include_aggregated: bool = False
    limit: int | None = Field(default=None, ge=1, le=100000)


class ExportCreate(BaseModel):
    format: ExportFormat
    filters: ExportFilters = Field(default_factory=ExportFilters)


class ExportRead(BaseModel):
    id: int
    user_id: int
    format: ExportFormat
    filters: dict[str, Any]
    status: ExportStatus
    file_name: str | None
    file_size: int | None
    error_message: str | None
    started_at: datetime | None
    completed_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ExportPage(BaseModel):
    exports: list[ExportRead]
    pagination: Pagination


class ExportCleanupResult(BaseModel):
    deleted_count: int
    error_count: int
    total_processed: int
