"""Sensor reading ingestion, queries, aggregation, and data quality scoring."""
from __future__ import annotations

import logging
import statistics
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.errors import NotFoundError, ValidationError
from app.core.timeutils import to_naive_utc, utcnow
from app.models.enums import AlertSeverity, SensorType
from app.models.reading import RawSensorData, SensorReading
from app.models.station import Sensor
from app.schemas.alert import ThresholdViolation
from app.schemas.reading import AggregatedBucket, DataQualityReport, ReadingCreate
from app.services import alerts as alert_service
from app.services import sensors as sensor_service
from app.services import thresholds as threshold_service

logger = logging.getLogger(__name__)

SEVERITY_WEIGHTS = {
    AlertSeverity.LOW: 0.1,
    AlertSeverity.MEDIUM: 0.3,
    AlertSeverity.HIGH: 0.6,
    AlertSeverity.CRITICAL: 1.0,
}

DEFAULT_UNITS = {
    SensorType.TEMPERATURE: "°C",
    SensorType.HUMIDITY: "%",
    SensorType.CO2: "ppm",
    SensorType.AIR_QUALITY: "AQI",
    SensorType.PM2_5: "µg/m³",
    SensorType.PM10: "µg/m³",
    SensorType.PRESSURE: "hPa",
    SensorType.NOISE: "dB",
    SensorType.WATER_QUALITY: "NTU",
}

# Placeholder the dashboard sends when no sensor is selected
ALL_SENSORS_PLACEHOLDERS = {"All sensors", "All+sensors"}

GAP_THRESHOLD = timedelta(hours=2)
STALE_THRESHOLD = timedelta(hours=2)
ANOMALY_SIGMA = 3
MIN_VALID_SCORE = 0.7


@dataclass(slots=True)
class IngestResult:
    reading: SensorReading
    violations: list[ThresholdViolation]


def _fmt(value: float | None) -> str:
    if value is None:
        return "n/a"
    return str(int(value)) if float(value).is_integer() else str(value)


def compute_quality(base_quality: float | None, violations: list[ThresholdViolation]) -> float:
    if not violations:
        return 1.0 if base_quality is None else base_quality
    worst = max(SEVERITY_WEIGHTS[AlertSeverity(v.severity)] for v in violations)
    return max(0.0, 1.0 - worst)


def violation_message(sensor_type: SensorType, violation: ThresholdViolation) -> tuple[float, str]:
    """Return the exceeded bound and the human-readable alert message."""

    label = SensorType(sensor_type).value.lower().replace("_", " ")
    value = violation.actual_value
    if violation.min_value is not None and value < violation.min_value:
        bound = violation.min_value
        text = f"Sensor {label} reading {_fmt(value)} is below minimum threshold {_fmt(bound)}."
    else:
        bound = violation.max_value
        text = f"Sensor {label} reading {_fmt(value)} is above maximum threshold {_fmt(bound)}."
    if violation.description:
        text = f"{text} {violation.description}"
    return bound, text.strip()


async def _ingest(
    session: AsyncSession,
    sensor: Sensor,
    value: float,
    unit: str,
    timestamp: datetime | None = None,
    quality: float | None = None,
) -> IngestResult:
    violations = await threshold_service.validate_sensor_reading(session, sensor.type, value)
    reading = SensorReading(
        sensor_id=sensor.id,
        value=value,
        unit=unit,
        timestamp=to_naive_utc(timestamp) or utcnow(),
        quality=compute_quality(quality, violations),
    )
    reading.sensor = sensor
    session.add(reading)
    await session.flush()

    for violation in violations:
        bound, message = violation_message(sensor.type, violation)
        await alert_service.create_alert_if_threshold_exceeded(
            session,
            station_id=sensor.station_id,
            sensor_id=sensor.id,
            sensor_type=sensor.type,
            value=value,
            threshold_value=bound,
            severity=violation.severity,
            message=message,
        )
    if violations:
        logger.info(
            "Reading %s from sensor %s violated %d threshold(s)", reading.id, sensor.serial_number, len(violations)
        )
    return IngestResult(reading=reading, violations=violations)


async def create_reading(session: AsyncSession, data: ReadingCreate) -> IngestResult:
    sensor = await sensor_service.get_sensor_by_serial(session, data.serial_number, active_only=True)
    if not sensor:
        raise NotFoundError(f"Sensor with serial number '{data.serial_number}' not found or inactive")
    return await _ingest(session, sensor, data.value, data.unit, data.timestamp, data.quality)


def _validate_range(start_time: datetime, end_time: datetime) -> tuple[datetime, datetime]:
    start, end = to_naive_utc(start_time), to_naive_utc(end_time)
    if start >= end:
        raise ValidationError("start_time must be earlier than end_time")
    return start, end


async def _resolve_serial(session: AsyncSession, serial_number: str | None) -> Sensor | None:
    if not serial_number or serial_number in ALL_SENSORS_PLACEHOLDERS:
        return None
    sensor = await sensor_service.get_sensor_by_serial(session, serial_number)
    if not sensor:
        raise NotFoundError(f"Sensor with serial number '{serial_number}' not found")
    return sensor


def _filtered_readings(
    sensor: Sensor | None,
    station_id: int | None,
    sensor_type: SensorType | None,
    start: datetime,
    end: datetime,
):
    stmt = (
        select(SensorReading)
        .join(Sensor, SensorReading.sensor_id == Sensor.id)
        .options(selectinload(SensorReading.sensor).selectinload(Sensor.station))
        .where(SensorReading.timestamp >= start, SensorReading.timestamp <= end)
    )
    if sensor is not None:
        stmt = stmt.where(SensorReading.sensor_id == sensor.id)
    if station_id is not None:
        stmt = stmt.where(Sensor.station_id == station_id)
    if sensor_type is not None:
        stmt = stmt.where(Sensor.type == sensor_type)
    return stmt


async def get_readings(
    session: AsyncSession,
    start_time: datetime,
    end_time: datetime,
    sensor_serial_number: str | None = None,
    station_id: int | None = None,
    sensor_type: SensorType | None = None,
) -> list[SensorReading]:
    start, end = _validate_range(start_time, end_time)
    sensor = await _resolve_serial(session, sensor_serial_number)
    stmt = _filtered_readings(sensor, station_id, sensor_type, start, end).order_by(
        SensorReading.timestamp.asc(), SensorReading.id.asc()
    )
    return list((await session.execute(stmt)).scalars().all())


async def get_latest_readings(
    session: AsyncSession,
    sensor_serial_number: str | None = None,
    station_id: int | None = None,
    limit: int = 10,
) -> list[SensorReading]:
    sensor = await _resolve_serial(session, sensor_serial_number)
    if sensor is None and station_id is None:
        raise ValidationError("Either sensor_serial_number or station_id must be provided")

    base = select(SensorReading).options(selectinload(SensorReading.sensor).selectinload(Sensor.station))
    newest_first = (SensorReading.timestamp.desc(), SensorReading.id.desc())
    if sensor is not None:
        stmt = base.where(SensorReading.sensor_id == sensor.id).order_by(*newest_first).limit(limit)
        return list((await session.execute(stmt)).scalars().all())

    latest = []
    for station_sensor in await sensor_service.list_sensors(session, station_id=station_id):
        stmt = base.where(SensorReading.sensor_id == station_sensor.id).order_by(*newest_first).limit(1)
        reading = (await session.execute(stmt)).scalar_one_or_none()
        if reading:
            latest.append(reading)
    latest.sort(key=lambda item: item.timestamp, reverse=True)
    return latest[:limit]


async def get_aggregated_data(
    session: AsyncSession,
    start_time: datetime,
    end_time: datetime,
    sensor_serial_number: str | None = None,
    station_id: int | None = None,
    sensor_type: SensorType | None = None,
    interval_minutes: int = 60,
) -> list[AggregatedBucket]:
    if interval_minutes <= 0:
        raise ValidationError("interval must be a positive number of minutes")
    start, end = _validate_range(start_time, end_time)
    sensor = await _resolve_serial(session, sensor_serial_number)
    readings = (await session.execute(_filtered_readings(sensor, station_id, sensor_type, start, end))).scalars().all()

    step = interval_minutes * 60
    buckets: dict[tuple[int, str, SensorType], list[float]] = defaultdict(list)
    for reading in readings:
        epoch = int(reading.timestamp.replace(tzinfo=timezone.utc).timestamp())
        bucket = epoch - epoch % step
        buckets[(bucket, reading.sensor.serial_number, reading.sensor.type)].append(reading.value)

    rows = []
    for (bucket, serial, kind), values in sorted(buckets.items(), key=lambda item: (item[0][0], item[0][1])):
        rows.append(
            AggregatedBucket(
                time_bucket=datetime.fromtimestamp(bucket, tz=timezone.utc).replace(tzinfo=None),
                serial_number=serial,
                sensor_type=kind,
                average=sum(values) / len(values),
                min=min(values),
                max=max(values),
                sample_count=len(values),
            )
        )
    return rows


async def validate_data_quality(session: AsyncSession, serial_number: str, hours: int = 24) -> DataQualityReport:
    sensor = await sensor_service.get_sensor_by_serial(session, serial_number)
    if not sensor:
        raise NotFoundError(f"Sensor with serial number '{serial_number}' not found")

    end = utcnow()
    start = end - timedelta(hours=hours)
    result = await session.execute(
        select(SensorReading)
        .where(SensorReading.sensor_id == sensor.id, SensorReading.timestamp >= start, SensorReading.timestamp <= end)
        .order_by(SensorReading.timestamp.asc())
    )
    readings = list(result.scalars().all())
    if not readings:
        return DataQualityReport(is_valid=False, score=0, issues=["No data available for the specified period"])

    issues = []
    score = 1.0

    gaps = sum(
        1 for prev, cur in zip(readings, readings[1:]) if cur.timestamp - prev.timestamp > GAP_THRESHOLD
    )
    if gaps:
        score -= 0.1 * gaps
        issues.append(f"Found {gaps} data gaps in the time series")

    if end - readings[-1].timestamp > STALE_THRESHOLD:
        score -= 0.3
        issues.append("Data appears to be stale")

    average_quality = sum(r.quality for r in readings) / len(readings)
    score -= 1.0 - average_quality

    values = [r.value for r in readings]
    mean = statistics.fmean(values)
    std_dev = statistics.pstdev(values)
    anomalies = sum(1 for v in values if abs(v - mean) > ANOMALY_SIGMA * std_dev) if std_dev > 0 else 0
    if anomalies:
        score -= 0.05 * anomalies
        issues.append(f"Detected {anomalies} potential anomalies")

    score = min(1.0, max(0.0, score))
    return DataQualityReport(
        is_valid=score >= MIN_VALID_SCORE,
        score=round(score, 4),
        issues=issues or ["No quality issues detected"],
        readings_count=len(readings),
        period={"start": start, "end": end, "hours": hours},
        sensor={
            "id": sensor.id,
            "serial_number": sensor.serial_number,
            "type": SensorType(sensor.type).value,
            "name": sensor.name,
        },
    )


async def store_raw_data(session: AsyncSession, serial_number: str, payload: dict) -> RawSensorData:
    sensor = await sensor_service.get_sensor_by_serial(session, serial_number)
    if not sensor:
        raise NotFoundError(f"Sensor with serial number '{serial_number}' not found")
    raw = RawSensorData(sensor_id=sensor.id, raw_payload=payload)
    session.add(raw)
    await session.flush()
    return raw


def _parse_payload_timestamp(payload: dict) -> datetime | None:
    raw = payload.get("timestamp")
    if not raw:
        return None
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw, tz=timezone.utc)
    return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))


async def process_raw_sensor_data(session: AsyncSession, batch_size: int | None = None) -> tuple[int, int]:
    """Turn pending raw payloads into readings. Returns (processed, failed)."""

    batch_size = batch_size or get_settings().raw_data_batch_size
    result = await session.execute(
        select(RawSensorData)
        .options(selectinload(RawSensorData.sensor))
        .where(RawSensorData.processed.is_(False))
        .order_by(RawSensorData.received_at.asc())
        .limit(batch_size)
    )
    processed = failed = 0
    for raw in result.scalars().all():
        payload = raw.raw_payload or {}
        if "value" not in payload:
            logger.warning("Raw payload %s has no value, skipping", raw.id)
            raw.processed = True
            failed += 1
            continue
        try:
            async with session.begin_nested():
                sensor = raw.sensor
                value = float(payload["value"])
                unit = payload.get("unit") or DEFAULT_UNITS.get(SensorType(sensor.type), "")
                await _ingest(session, sensor, value, unit, _parse_payload_timestamp(payload), payload.get("quality"))
                raw.processed = True
            processed += 1
        except (SQLAlchemyError, ValueError, TypeError) as exc:
            logger.error("Failed to process raw payload %s: %s", raw.id, exc)
            failed += 1
    await session.flush()
    if processed or failed:
        logger.info("Processed %d raw payload(s), %d failed", processed, failed)
    return processed, failed

