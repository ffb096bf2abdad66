"""Station dashboards: per-station statistics, health scoring, and 24h aggregates."""
from __future__ import annotations

import logging
import math
import statistics
from collections import defaultdict
from datetime import timedelta
from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timeutils import utcnow
from app.models.alert import StationAlert
from app.models.enums import AlertSeverity, SensorType
from app.models.maintenance import MaintenanceSchedule
from app.models.reading import AggregatedData, SensorReading
from app.models.station import MonitoringStation, Sensor
from app.services import alerts as alert_service
from app.services import sensors as sensor_service
from app.services import stations as station_service
from app.services.unit_conversion import convert_value, get_storage_unit_system

logger = logging.getLogger(__name__)

AGGREGATE_RANGE = "24h"
HEALTH_LEVELS = (
    (90, "EXCELLENT"),
    (75, "GOOD"),
    (60, "FAIR"),
    (40, "POOR"),
)


def _convert(value: float, sensor_type: SensorType, unit_system: str) -> dict[str, Any]:
    converted = convert_value(value, sensor_type, get_storage_unit_system(), unit_system)
    return {"value": round(converted.value, 2), "unit": converted.unit}


def health_status(score: int) -> str:
    for floor, label in HEALTH_LEVELS:
        if score >= floor:
            return label
    return "CRITICAL"


def compute_health_score(total_sensors: int, online_sensors: int, active_alerts: int) -> int:
    score = 100.0
    if total_sensors:
        score -= (total_sensors - online_sensors) / total_sensors * 40
    score -= min(active_alerts * 10, 30)
    return int(math.floor(max(0.0, score) + 0.5))


async def _active_sensors(session: AsyncSession, station_id: int) -> list[Sensor]:
    result = await session.execute(
        select(Sensor).where(Sensor.station_id == station_id, Sensor.is_active.is_(True)).order_by(Sensor.id)
    )
    return list(result.scalars().all())


async def _last_reading(session: AsyncSession, sensor_id: int) -> SensorReading | None:
    result = await session.execute(
        select(SensorReading)
        .where(SensorReading.sensor_id == sensor_id)
        .order_by(SensorReading.timestamp.desc(), SensorReading.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_station_stats(session: AsyncSession, station_id: int, unit_system: str) -> dict[str, Any]:
    station = await station_service.get_station(session, station_id)
    now = utcnow()

    sensors = []
    online = 0
    for sensor in await _active_sensors(session, station_id):
        reading = await _last_reading(session, sensor.id)
        status = await sensor_service.get_latest_status(session, sensor.id)
        if status and status.is_online:
            online += 1
        sensors.append(
            {
                "id": sensor.id,
                "name": sensor.name,
                "type": SensorType(sensor.type).value,
                "serial_number": sensor.serial_number,
                "last_reading": (
                    {**_convert(reading.value, sensor.type, unit_system), "timestamp": reading.timestamp}
                    if reading
                    else None
                ),
                "status": (
                    {"is_online": status.is_online, "battery": status.battery, "signal": status.signal,
                     "last_check": status.last_check}
                    if status
                    else None
                ),
            }
        )

    aggregates = await session.execute(
        select(AggregatedData)
        .where(
            AggregatedData.station_id == station_id,
            AggregatedData.time_range == AGGREGATE_RANGE,
            AggregatedData.end_time >= now - timedelta(hours=24),
        )
        .order_by(AggregatedData.end_time.desc(), AggregatedData.id.desc())
    )
    latest: dict[SensorType, AggregatedData] = {}
    for row in aggregates.scalars().all():
        latest.setdefault(SensorType(row.sensor_type), row)
    aggregated_data = [
        {
            "sensor_type": SensorType(row.sensor_type).value,
            "time_range": row.time_range,
            "average": _convert(row.average, row.sensor_type, unit_system)["value"],
            "min_value": _convert(row.min_value, row.sensor_type, unit_system)["value"],
            "max_value": _convert(row.max_value, row.sensor_type, unit_system)["value"],
            "std_dev": row.std_dev,
            "unit": _convert(row.average, row.sensor_type, unit_system)["unit"],
            "start_time": row.start_time,
            "end_time": row.end_time,
        }
        for row in latest.values()
    ]

    alert_rows = await session.execute(
        select(StationAlert)
        .where(
            StationAlert.station_id == station_id,
            StationAlert.is_active.is_(True),
            StationAlert.created_at >= now - timedelta(days=7),
        )
        .order_by(StationAlert.created_at.desc())
        .limit(50)
    )
    alerts = []
    critical = 0
    for alert in alert_rows.scalars().all():
        if alert.severity == AlertSeverity.CRITICAL:
            critical += 1
        converted = _convert(alert.value, alert.sensor_type, unit_system)
        alerts.append(
            {
                "id": alert.id,
                "sensor_type": SensorType(alert.sensor_type).value,
                "severity": AlertSeverity(alert.severity).value,
                "value": converted["value"],
                "threshold_value": _convert(alert.threshold_value, alert.sensor_type, unit_system)["value"],
                "unit": converted["unit"],
                "message": alert.message,
                "acknowledged": alert.acknowledged,
                "created_at": alert.created_at,
            }
        )

    maintenance_rows = await session.execute(
        select(MaintenanceSchedule)
        .where(
            MaintenanceSchedule.station_id == station_id,
            MaintenanceSchedule.is_completed.is_(False),
            MaintenanceSchedule.start_date >= now,
        )
        .order_by(MaintenanceSchedule.start_date.asc())
        .limit(10)
    )
    maintenance = [
        {
            "id": item.id,
            "title": item.title,
            "schedule_type": item.schedule_type.value,
            "start_date": item.start_date,
            "assigned_to": item.assigned_to,
        }
        for item in maintenance_rows.scalars().all()
    ]

    return {
        "station": station,
        "sensors": sensors,
        "aggregated_data": aggregated_data,
        "alerts": alerts,
        "maintenance": maintenance,
        "summary": {
            "total_sensors": len(station.sensors),
            "active_sensors": len(sensors),
            "online_sensors": online,
            "active_alerts": len(alerts),
            "critical_alerts": critical,
            "upcoming_maintenance": len(maintenance),
        },
        "unit_system": unit_system,
    }


async def get_sensor_type_stats(
    session: AsyncSession, station_id: int, sensor_type: SensorType, unit_system: str
) -> list[dict[str, Any]]:
    await station_service.get_station(session, station_id)
    result = await session.execute(
        select(AggregatedData)
        .where(
            AggregatedData.station_id == station_id,
            AggregatedData.sensor_type == sensor_type,
            AggregatedData.start_time >= utcnow() - timedelta(days=7),
        )
        .order_by(AggregatedData.start_time.asc())
    )
    rows = []
    for row in result.scalars().all():
        average = _convert(row.average, sensor_type, unit_system)
        rows.append(
            {
                "time_range": row.time_range,
                "average": average["value"],
                "min_value": _convert(row.min_value, sensor_type, unit_system)["value"],
                "max_value": _convert(row.max_value, sensor_type, unit_system)["value"],
                "std_dev": row.std_dev,
                "unit": average["unit"],
                "start_time": row.start_time,
                "end_time": row.end_time,
            }
        )
    return rows


async def get_station_health(session: AsyncSession, station_id: int) -> dict[str, Any]:
    await station_service.get_station(session, station_id)
    sensors = await _active_sensors(session, station_id)
    online = 0
    for sensor in sensors:
        status = await sensor_service.get_latest_status(session, sensor.id)
        if status and status.is_online:
            online += 1
    active_alerts = await alert_service.count_active(session, station_id)
    score = compute_health_score(len(sensors), online, active_alerts)
    return {
        "health_score": score,
        "status": health_status(score),
        "online_sensors": online,
        "total_sensors": len(sensors),
        "active_alerts": active_alerts,
        "last_updated": utcnow(),
    }


async def refresh_station_aggregates(session: AsyncSession) -> int:
    """Store a 24h snapshot per active station and sensor type; returns rows written."""

    end = utcnow()
    start = end - timedelta(hours=24)
    result = await session.execute(
        select(Sensor.station_id, Sensor.type, SensorReading.value)
        .join(SensorReading, SensorReading.sensor_id == Sensor.id)
        .join(MonitoringStation, MonitoringStation.id == Sensor.station_id)
        .where(MonitoringStation.is_active.is_(True), SensorReading.timestamp >= start, SensorReading.timestamp <= end)
    )
    grouped: dict[tuple[int, SensorType], list[float]] = defaultdict(list)
    for station_id, sensor_type, value in result.all():
        grouped[(station_id, sensor_type)].append(value)

    # one live 24h snapshot per station and sensor type
    await session.execute(
        delete(AggregatedData).where(
            AggregatedData.time_range == AGGREGATE_RANGE,
            or_(AggregatedData.end_time < start, AggregatedData.station_id.in_(sorted({key[0] for key in grouped}))),
        )
    )
    for (station_id, sensor_type), values in grouped.items():
        session.add(
            AggregatedData(
                station_id=station_id,
                sensor_type=sensor_type,
                time_range=AGGREGATE_RANGE,
                average=statistics.fmean(values),
                min_value=min(values),
                max_value=max(values),
                std_dev=statistics.pstdev(values),
                start_time=start,
                end_time=end,
            )
        )
    await session.flush()
    logger.info("Stored %d aggregate snapshot(s)", len(grouped))
    return len(grouped)
