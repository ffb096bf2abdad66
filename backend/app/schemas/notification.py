"""Pydantic schemas for notifications, templates, and alert channels."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import AlertSeverity, NotificationType


class NotificationCreate(BaseModel):
    user_id: int
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    priority: AlertSeverity = AlertSeverity.LOW
    expires_at: datetime | None = None


class NotificationFromTemplate(BaseModel):
    user_id: int
    type: NotificationType
    language: str | None = Field(default=None, min_length=2, max_length=8)
    priority: AlertSeverity = AlertSeverity.LOW
    variables: dict[str, Any] = Field(default_factory=dict)


class NotificationRead(BaseModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    priority: AlertSeverity
    is_read: bool
    expires_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MarkReadRequest(BaseModel):
    notification_ids: list[int] | None = None


class MarkReadResult(BaseModel):
    count: int


class TemplateBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)


class TemplateCreate(TemplateBase):
    type: NotificationType
    language: str = Field(..., min_length=2, max_length=8)


class TemplateUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    message: str | None = Field(default=None, min_length=1)


class TemplateRead(TemplateBase):
    id: int
    type: NotificationType
    language: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AlertChannelBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    type: str = Field(..., pattern=r"^(teams|slack|discord|telegram)$")
    enabled: bool = Field(default=True)
    min_severity: AlertSeverity = AlertSeverity.HIGH


class AlertChannelCreate(AlertChannelBase):
    endpoint: str = Field(..., min_length=1)  # webhook URL or bot token, stored encrypted
    chat_id: str | None = Field(default=None)  # for Telegram


class AlertChannelUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    endpoint: str | None = Field(default=None, min_length=1)
    chat_id: str | None = None
    enabled: bool | None = None
    min_severity: AlertSeverity | None = None


class AlertChannelRead(AlertChannelBase):
    id: int
    channel_metadata: dict[str, Any] | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
