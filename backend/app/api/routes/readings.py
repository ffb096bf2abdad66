"""Sensor reading ingestion and query endpoints."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, require_roles
from app.models.enums import Role, SensorType
from app.models.user import User
from app.schemas.reading import (
    AggregatedBucket,
    DataQualityReport,
    RawDataCreate,
    RawDataRead,
    RawProcessResult,
    ReadingCreate,
    ReadingCreated,
    ReadingRead,
)
from app.services import readings as reading_service

router = APIRouter(prefix="/sensor-readings", tags=["sensor-readings"])


@router.post("/", response_model=ReadingCreated, status_code=status.HTTP_201_CREATED)
async def create_reading(payload: ReadingCreate, session: AsyncSession = Depends(get_db)) -> ReadingCreated:
    result = await reading_service.create_reading(session, payload)
    await session.commit()
    created = ReadingCreated.model_validate(result.reading)
    if result.violations:
        created.threshold_violations = result.violations
    return created


@router.get("/", response_model=list[ReadingRead])
async def get_readings(
    start_time: datetime,
    end_time: datetime,
    sensor_serial_number: str | None = None,
    station_id: int | None = None,
    sensor_type: SensorType | None = None,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[ReadingRead]:
    readings = await reading_service.get_readings(
        session,
        start_time,
        end_time,
        sensor_serial_number=sensor_serial_number,
        station_id=station_id,
        sensor_type=sensor_type,
    )
    return [ReadingRead.model_validate(reading) for reading in readings]


@router.get("/latest", response_model=list[ReadingRead])
async def get_latest_readings(
    sensor_serial_number: str | None = None,
    station_id: int | None = None,
    limit: int = Query(default=10, ge=1, le=1000),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[ReadingRead]:
    readings = await reading_service.get_latest_readings(
        session, sensor_serial_number=sensor_serial_number, station_id=station_id, limit=limit
    )
    return [ReadingRead.model_validate(reading) for reading in readings]


@router.get("/aggregated", response_model=list[AggregatedBucket])
async def get_aggregated_data(
    start_time: datetime,
    end_time: datetime,
    sensor_serial_number: str | None = None,
    station_id: int | None = None,
    sensor_type: SensorType | None = None,
    interval: int = Query(default=60, ge=1, description="Bucket size in minutes"),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[AggregatedBucket]:
    return await reading_service.get_aggregated_data(
        session,
        start_time,
        end_time,
        sensor_serial_number=sensor_serial_number,
        station_id=station_id,
        sensor_type=sensor_type,
        interval_minutes=interval,
    )


@router.get("/quality/{serial_number}", response_model=DataQualityReport)
async def validate_data_quality(
    serial_number: str,
    hours: int = Query(default=24, ge=1, le=24 * 365),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> DataQualityReport:
    return await reading_service.validate_data_quality(session, serial_number, hours)


@router.post("/raw", response_model=RawDataRead, status_code=status.HTTP_201_CREATED)
async def store_raw_data(payload: RawDataCreate, session: AsyncSession = Depends(get_db)) -> RawDataRead:
    raw = await reading_service.store_raw_data(session, payload.serial_number, payload.payload)
    await session.commit()
    return RawDataRead.model_validate(raw)


@router.post("/raw/process", response_model=RawProcessResult)
async def process_raw_data(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(Role.OPERATOR)),
) -> RawProcessResult:
    processed, failed = await reading_service.process_raw_sensor_data(session)
    await session.commit()
    return RawProcessResult(processed=processed, failed=failed)
