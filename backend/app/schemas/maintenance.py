"""Pydantic schemas for maintenance schedules."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import MaintenanceScheduleType


class MaintenanceBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    schedule_type: MaintenanceScheduleType
    start_date: datetime
    end_date: datetime | None = None
    station_id: int | None = None
    sensor_id: int | None = None
    assigned_to: int | None = None


class MaintenanceCreate(MaintenanceBase):
    pass


class MaintenanceUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    schedule_type: MaintenanceScheduleType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    station_id: int | None = None
    sensor_id: int | None = None
    assigned_to: int | None = None
    is_completed: bool | None = None


class MaintenanceAssign(BaseModel):
    user_id: int


class MaintenanceComplete(BaseModel):
    notes: str | None = None


class MaintenanceRead(MaintenanceBase):
    id: int
    is_completed: bool
    completed_at: datetime | None
    notes: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MaintenanceStats(BaseModel):
    total: int
    completed: int
    upcoming: int
    by_type: dict[str, int]
