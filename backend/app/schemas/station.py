"""Pydantic schemas for stations, sensors, and station statistics."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import AlertSeverity, SensorType


class StationBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: str | None = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude: float | None = None
    address: str | None = Field(default=None, max_length=255)


class StationCreate(StationBase):
    is_active: bool = True


class StationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    description: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    altitude: float | None = None
    address: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None


class StationRead(StationBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SensorBase(BaseModel):
    type: SensorType
    name: str = Field(..., min_length=1, max_length=100)
    serial_number: str = Field(..., min_length=1, max_length=128)
    model: str | None = Field(default=None, max_length=128)


class SensorCreate(SensorBase):
    station_id: int
    is_active: bool = True
    calibration_date: datetime | None = None


class SensorUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    model: str | None = Field(default=None, max_length=128)
    station_id: int | None = None
    is_active: bool | None = None
    calibration_date: datetime | None = None


class SensorRead(SensorBase):
    id: int
    station_id: int
    is_active: bool
    calibration_date: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SensorStatusCreate(BaseModel):
    is_online: bool = True
    battery: float | None = Field(default=None, ge=0, le=100)
    signal: int | None = None


class SensorStatusRead(SensorStatusCreate):
    id: int
    sensor_id: int
    last_check: datetime

    model_config = ConfigDict(from_attributes=True)


class StationAlertBrief(BaseModel):
    id: int
    sensor_type: SensorType
    severity: AlertSeverity
    value: float
    message: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StationDetail(StationRead):
    sensors: list[SensorRead] = []
    alerts: list[StationAlertBrief] = []


class NearbyStation(StationRead):
    distance_m: float


class StationHealth(BaseModel):
    health_score: int
    status: str
    online_sensors: int
    total_sensors: int
    active_alerts: int
    last_updated: datetime


class StationStatsSummary(BaseModel):
    total_sensors: int
    active_sensors: int
    online_sensors: int
    active_alerts: int
    critical_alerts: int
    upcoming_maintenance: int


class StationStats(BaseModel):
    station: StationRead
    sensors: list[dict[str, Any]]
    aggregated_data: list[dict[str, Any]]
    alerts: list[dict[str, Any]]
    maintenance: list[dict[str, Any]]
    summary: StationStatsSummary
    unit_system: str
