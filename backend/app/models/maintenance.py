"""Database model for maintenance schedules."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.timeutils import utcnow
from app.db.base import Base
from app.models.enums import MaintenanceScheduleType


class MaintenanceSchedule(Base):
    """Planned work on a station or sensor, optionally assigned to a user."""

    __tablename__ = "maintenance_schedules"

    id: Mapped[int] = mapped_column(primary_key=True)
    station_id: Mapped[int | None] = mapped_column(ForeignKey("monitoring_stations.id", ondelete="CASCADE"), default=None)
    sensor_id: Mapped[int | None] = mapped_column(ForeignKey("sensors.id", ondelete="CASCADE"), default=None)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    schedule_type: Mapped[MaintenanceScheduleType] = mapped_column(
        Enum(MaintenanceScheduleType, native_enum=False, length=32)
    )
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), default=None)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    station: Mapped["MonitoringStation"] = relationship("MonitoringStation")
    sensor: Mapped["Sensor"] = relationship("Sensor")
    assignee: Mapped["User"] = relationship("User")
