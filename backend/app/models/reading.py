"""Database models for sensor readings, raw payloads, and aggregates."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.timeutils import utcnow
from app.db.base import Base
from app.models.enums import SensorType


class SensorReading(Base):
    __tablename__ = "sensor_readings"

    id: Mapped[int] = mapped_column(primary_key=True)
    sensor_id: Mapped[int] = mapped_column(ForeignKey("sensors.id", ondelete="CASCADE"), index=True)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    quality: Mapped[float] = mapped_column(Float, default=1.0)  # 0..1

    sensor: Mapped["Sensor"] = relationship("Sensor", back_populates="readings")


class RawSensorData(Base):
    """Unparsed device payload waiting for the ingest job."""

    __tablename__ = "raw_sensor_data"

    id: Mapped[int] = mapped_column(primary_key=True)
    sensor_id: Mapped[int] = mapped_column(ForeignKey("sensors.id", ondelete="CASCADE"), index=True)
    raw_payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    received_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    processed: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    sensor: Mapped["Sensor"] = relationship("Sensor")


class AggregatedData(Base):
    """Precomputed statistics per station and sensor type over a time range."""

    __tablename__ = "aggregated_data"

    id: Mapped[int] = mapped_column(primary_key=True)
    station_id: Mapped[int] = mapped_column(ForeignKey("monitoring_stations.id", ondelete="CASCADE"), index=True)
    sensor_type: Mapped[SensorType] = mapped_column(Enum(SensorType, native_enum=False, length=32))
    time_range: Mapped[str] = mapped_column(String(16), nullable=False)  # e.g. "24h"
    average: Mapped[float] = mapped_column(Float, nullable=False)
    min_value: Mapped[float] = mapped_column(Float, nullable=False)
    max_value: Mapped[float] = mapped_column(Float, nullable=False)
    std_dev: Mapped[float | None] = mapped_column(Float, default=None)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
