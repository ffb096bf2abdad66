"""Pydantic schemas for backups, system events, and activity logs."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import BackupStatus, SystemEventType


class BackupCreate(BaseModel):
    type: str = Field(default="database")
    description: str | None = None


class BackupRead(BaseModel):
    id: int
    file_name: str
    file_size: float | None
    status: BackupStatus
    description: str | None
    error_message: str | None
    started_at: datetime | None
    completed_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BackupStats(BaseModel):
    total: int
    completed: int
    failed: int
    pending: int
    cancelled: int
    total_size_mb: float


class PgDumpStatus(BaseModel):
    available: bool
    version: str | None = None
    error: str | None = None


class SystemEventCreate(BaseModel):
    type: SystemEventType
    source: str = Field(..., min_length=1, max_length=128)
    message: str = Field(..., min_length=1)
    details: dict[str, Any] | None = None


class SystemEventRead(SystemEventCreate):
    id: int
    created_by: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CleanupResult(BaseModel):
    deleted_count: int


class HealthCheck(BaseModel):
    status: str
    details: dict[str, Any] = Field(default_factory=dict)


class SystemHealth(BaseModel):
    status: Literal["healthy", "unhealthy"]
    timestamp: datetime
    uptime: str
    checks: dict[str, HealthCheck]


class ActivityLogCreate(BaseModel):
    user_id: int
    action: str = Field(..., min_length=1, max_length=64)
    resource: str | None = Field(default=None, max_length=255)
    ip_address: str | None = Field(default=None, max_length=64)
    user_agent: str | None = Field(default=None, max_length=512)
    metadata: dict[str, Any] | None = None


class ActivityLogRead(BaseModel):
    id: int
    user_id: int
    action: str
    resource: str | None
    ip_address: str | None
    user_agent: str | None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="activity_metadata")
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
