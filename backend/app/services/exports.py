"""Data export jobs: record lifecycle and background file generation."""
from __future__ import annotations

import asyncio
import logging
import math
from datetime import timedelta
from pathlib import Path
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import NotFoundError, ValidationError
from app.core.timeutils import to_naive_utc, utcnow
from app.db.session import get_session
from app.models.alert import StationAlert
from app.models.enums import AlertSeverity, ExportFormat, ExportStatus, SensorType
from app.models.export import DataExport
from app.models.reading import AggregatedData, SensorReading
from app.models.station import MonitoringStation, Sensor
from app.schemas.export import ExportCreate, ExportFilters
from app.services.export_writers import EXTENSIONS, WRITERS, ExportDataset

logger = logging.getLogger(__name__)

CANCELLABLE = {ExportStatus.PENDING, ExportStatus.PROCESSING}


def export_dir() -> Path:
    path = Path(get_settings().export_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


async def create_export(session: AsyncSession, user_id: int, data: ExportCreate) -> DataExport:
    export = DataExport(
        user_id=user_id,
        format=data.format,
        filters=data.filters.model_dump(mode="json"),
        status=ExportStatus.PENDING,
    )
    session.add(export)
    await session.flush()
    logger.info("Export %s queued for user %s (%s)", export.id, user_id, data.format.value)
    return export


async def list_user_exports(session: AsyncSession, user_id: int, page: int = 1, limit: int = 10) -> dict[str, Any]:
    total = (
        await session.execute(select(func.count(DataExport.id)).where(DataExport.user_id == user_id))
    ).scalar_one()
    result = await session.execute(
        select(DataExport)
        .where(DataExport.user_id == user_id)
        .order_by(DataExport.created_at.desc(), DataExport.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return {
        "exports": list(result.scalars().all()),
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


async def get_user_export(session: AsyncSession, user_id: int, export_id: int) -> DataExport:
    export = await session.get(DataExport, export_id)
    if not export or export.user_id != user_id:
        raise NotFoundError(f"Export with ID {export_id} not found")
    return export


async def get_download(session: AsyncSession, user_id: int, export_id: int) -> tuple[DataExport, Path]:
    export = await get_user_export(session, user_id, export_id)
    if export.status != ExportStatus.COMPLETED or not export.file_path:
        raise ValidationError("Export is not ready for download")
    path = Path(export.file_path)
    if not path.is_file():
        raise NotFoundError("Export file not found")
    return export, path


async def cancel_export(session: AsyncSession, user_id: int, export_id: int) -> DataExport:
    export = await get_user_export(session, user_id, export_id)
    if export.status not in CANCELLABLE:
        raise ValidationError(f"Cannot cancel export with status {ExportStatus(export.status).value}")
    export.status = ExportStatus.CANCELLED
    export.completed_at = utcnow()
    await session.flush()
    return export


def _remove_file(file_path: str | None) -> None:
    if file_path:
        Path(file_path).unlink(missing_ok=True)


async def delete_export(session: AsyncSession, user_id: int, export_id: int) -> None:
    export = await get_user_export(session, user_id, export_id)
    _remove_file(export.file_path)
    await session.delete(export)
    await session.flush()


async def cleanup_old_exports(session: AsyncSession, days: int | None = None) -> dict[str, int]:
    days = days if days is not None else get_settings().export_retention_days
    cutoff = utcnow() - timedelta(days=days)
    result = await session.execute(select(DataExport).where(DataExport.created_at < cutoff))
    exports = result.scalars().all()
    deleted = errors = 0
    for export in exports:
        try:
            _remove_file(export.file_path)
        except OSError as exc:
            logger.warning("Could not remove export file %s: %s", export.file_path, exc)
            errors += 1
            continue
        await session.delete(export)
        deleted += 1
    await session.flush()
    logger.info("Export cleanup removed %d of %d export(s)", deleted, len(exports))
    return {"deleted_count": deleted, "error_count": errors, "total_processed": len(exports)}


async def collect_dataset(session: AsyncSession, filters: ExportFilters) -> ExportDataset:
    limit = filters.limit or get_settings().export_default_limit
    start = to_naive_utc(filters.start_date)
    end = to_naive_utc(filters.end_date)
    dataset = ExportDataset(filters=filters.model_dump(mode="json", exclude_none=True))

    if filters.include_readings:
        stmt = (
            select(SensorReading, Sensor, MonitoringStation)
            .join(Sensor, SensorReading.sensor_id == Sensor.id)
            .join(MonitoringStation, Sensor.station_id == MonitoringStation.id)
        )
        if start:
            stmt = stmt.where(SensorReading.timestamp >= start)
        if end:
            stmt = stmt.where(SensorReading.timestamp <= end)
        if filters.sensor_types:
            stmt = stmt.where(Sensor.type.in_(filters.sensor_types))
        if filters.station_ids:
            stmt = stmt.where(Sensor.station_id.in_(filters.station_ids))
        rows = await session.execute(stmt.order_by(SensorReading.timestamp.desc()).limit(limit))
        dataset.readings = [
            {
                "timestamp": reading.timestamp,
                "station": station.name,
                "sensor": sensor.serial_number,
                "sensor_type": SensorType(sensor.type).value,
                "value": reading.value,
                "unit": reading.unit,
                "quality": reading.quality,
            }
            for reading, sensor, station in rows.all()
        ]

    if filters.include_alerts:
        stmt = select(StationAlert, MonitoringStation).join(
            MonitoringStation, StationAlert.station_id == MonitoringStation.id
        )
        if start:
            stmt = stmt.where(StationAlert.created_at >= start)
        if end:
            stmt = stmt.where(StationAlert.created_at <= end)
        if filters.sensor_types:
            stmt = stmt.where(StationAlert.sensor_type.in_(filters.sensor_types))
        if filters.station_ids:
            stmt = stmt.where(StationAlert.station_id.in_(filters.station_ids))
        if filters.severity:
            stmt = stmt.where(StationAlert.severity == filters.severity)
        rows = await session.execute(stmt.order_by(StationAlert.created_at.desc()).limit(limit))
        dataset.alerts = [
            {
                "timestamp": alert.created_at,
                "station": station.name,
                "sensor_type": SensorType(alert.sensor_type).value,
                "severity": AlertSeverity(alert.severity).value,
                "value": alert.value,
                "threshold_value": alert.threshold_value,
                "message": alert.message,
                "is_active": alert.is_active,
            }
            for alert, station in rows.all()
        ]

    if filters.include_aggregated:
        stmt = select(AggregatedData, MonitoringStation).join(
            MonitoringStation, AggregatedData.station_id == MonitoringStation.id
        )
        if start:
            stmt = stmt.where(AggregatedData.start_time >= start)
        if end:
            stmt = stmt.where(AggregatedData.end_time <= end)
        if filters.sensor_types:
            stmt = stmt.where(AggregatedData.sensor_type.in_(filters.sensor_types))
        if filters.station_ids:
            stmt = stmt.where(AggregatedData.station_id.in_(filters.station_ids))
        rows = await session.execute(stmt.order_by(AggregatedData.start_time.desc()).limit(limit))
        dataset.aggregated = [
            {
                "start_time": row.start_time,
                "end_time": row.end_time,
                "station": station.name,
                "sensor_type": SensorType(row.sensor_type).value,
                "time_range": row.time_range,
                "average": row.average,
                "min_value": row.min_value,
                "max_value": row.max_value,
                "std_dev": row.std_dev,
            }
            for row, station in rows.all()
        ]
    return dataset


async def run_export(session: AsyncSession, export_id: int) -> DataExport | None:
    """Generate the export file and move the record to its final status."""

    export = await session.get(DataExport, export_id)
    if not export:
        logger.warning("Export %s removed before processing", export_id)
        return None
    if export.status != ExportStatus.PENDING:
        logger.info("Export %s is %s, skipping", export_id, ExportStatus(export.status).value)
        return export

    export.status = ExportStatus.PROCESSING
    export.started_at = utcnow()
    await session.commit()

    export_format = ExportFormat(export.format)
    file_name = f"export-{export.id}-{utcnow():%Y%m%d%H%M%S}.{EXTENSIONS[export_format]}"
    path = export_dir() / file_name
    try:
        dataset = await collect_dataset(session, ExportFilters.model_validate(export.filters or {}))
        await asyncio.to_thread(WRITERS[export_format], path, dataset)
    except Exception as exc:
        logger.exception("Export %s failed", export_id)
        path.unlink(missing_ok=True)
        await session.rollback()
        await session.refresh(export)
        if export.status == ExportStatus.CANCELLED:
            return export
        export.status = ExportStatus.FAILED
        export.error_message = str(exc)
        export.completed_at = utcnow()
        await session.commit()
        return export

    await session.refresh(export)
    if export.status == ExportStatus.CANCELLED:
        path.unlink(missing_ok=True)
        logger.info("Export %s cancelled while running", export_id)
        return export

    export.status = ExportStatus.COMPLETED
    export.file_name = file_name
    export.file_path = str(path)
    export.file_size = path.stat().st_size
    export.completed_at = utcnow()
    await session.commit()
    logger.info("Export %s completed (%d bytes)", export_id, export.file_size)
    return export


async def process_export(export_id: int) -> None:
    """Background task entrypoint with its own database session."""

    async with get_session() as session:
        await run_export(session, export_id)
