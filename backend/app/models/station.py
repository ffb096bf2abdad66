"""Database models for monitoring stations and their sensors."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.timeutils import utcnow
from app.db.base import Base
from app.models.enums import SensorType


class MonitoringStation(Base):
    """Physical monitoring location owning one or more sensors."""

    __tablename__ = "monitoring_stations"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    altitude: Mapped[float | None] = mapped_column(Float, default=None)
    address: Mapped[str | None] = mapped_column(String(255), default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    sensors: Mapped[list["Sensor"]] = relationship(
        "Sensor", back_populates="station", cascade="all, delete-orphan"
    )
    alerts: Mapped[list["StationAlert"]] = relationship(
        "StationAlert", back_populates="station", cascade="all, delete-orphan"
    )


class Sensor(Base):
    """Typed measurement device attached to a station."""

    __tablename__ = "sensors"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    station_id: Mapped[int] = mapped_column(ForeignKey("monitoring_stations.id", ondelete="CASCADE"), index=True)
    type: Mapped[SensorType] = mapped_column(Enum(SensorType, native_enum=False, length=32), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    model: Mapped[str | None] = mapped_column(String(128), default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    calibration_date: Mapped[datetime | None] = mapped_column(DateTime, default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    station: Mapped[MonitoringStation] = relationship("MonitoringStation", back_populates="sensors")
    statuses: Mapped[list["SensorStatus"]] = relationship(
        "SensorStatus", back_populates="sensor", cascade="all, delete-orphan"
    )
    readings: Mapped[list["SensorReading"]] = relationship(
        "SensorReading", back_populates="sensor", cascade="all, delete-orphan"
    )


class SensorStatus(Base):
    """Point-in-time connectivity and power report for a sensor."""

    __tablename__ = "sensor_statuses"

    id: Mapped[int] = mapped_column(primary_key=True)
    sensor_id: Mapped[int] = mapped_column(ForeignKey("sensors.id", ondelete="CASCADE"), index=True)
    is_online: Mapped[bool] = mapped_column(Boolean, default=True)
    battery: Mapped[float | None] = mapped_column(Float, default=None)  # percent
    signal: Mapped[int | None] = mapped_column(Integer, default=None)  # dBm
    last_check: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)

    sensor: Mapped[Sensor] = relationship("Sensor", back_populates="statuses")
