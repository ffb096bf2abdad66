"""Pydantic schemas for user operations."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import MeasurementUnit, Role

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserBase(BaseModel):
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)


class UserCreate(UserBase):
    password: str = Field(..., min_length=8, max_length=20)
    role: Role = Role.OBSERVER


class UserRead(UserBase):
    id: int
    role: Role
    is_active: bool
    last_login: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    id: int
    email: str
    first_name: str | None
    last_name: str | None
    role: Role

    model_config = ConfigDict(from_attributes=True)


class UserRoleUpdate(BaseModel):
    role: Role


class UserProfileUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)


class PreferencesRead(BaseModel):
    language: str
    measurement_unit: MeasurementUnit
    notifications_enabled: bool
    dark_mode_enabled: bool
    email_notifications: bool
    push_notifications: bool
    sms_notifications: bool

    model_config = ConfigDict(from_attributes=True)


class PreferencesUpdate(BaseModel):
    language: str | None = Field(default=None, min_length=2, max_length=8)
    measurement_unit: MeasurementUnit | None = None
    notifications_enabled: bool | None = None
    dark_mode_enabled: bool | None = None
    email_notifications: bool | None = None
    push_notifications: bool | None = None
    sms_notifications: bool | None = None


class UserSessionRead(BaseModel):
    id: int
    ip_address: str | None
    user_agent: str | None
    role: Role
    expires_at: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
