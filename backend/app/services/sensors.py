"""Service functions for sensors and their status reports."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ConflictError, NotFoundError
from app.core.timeutils import utcnow
from app.models.enums import SensorType
from app.models.station import MonitoringStation, Sensor, SensorStatus
from app.schemas.station import SensorCreate, SensorStatusCreate, SensorUpdate


async def _ensure_station(session: AsyncSession, station_id: int) -> None:
    if not await session.get(MonitoringStation, station_id):
        raise NotFoundError(f"Monitoring station with ID {station_id} not found")


async def get_sensor(session: AsyncSession, sensor_id: int) -> Sensor:
    result = await session.execute(
        select(Sensor).options(selectinload(Sensor.station)).where(Sensor.id == sensor_id)
    )
    sensor = result.scalar_one_or_none()
    if not sensor:
        raise NotFoundError(f"Sensor with ID {sensor_id} not found")
    return sensor


async def get_sensor_by_serial(
    session: AsyncSession, serial_number: str, active_only: bool = False
) -> Sensor | None:
    stmt = select(Sensor).options(selectinload(Sensor.station)).where(Sensor.serial_number == serial_number)
    if active_only:
        stmt = stmt.where(Sensor.is_active.is_(True))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_sensor(session: AsyncSession, data: SensorCreate) -> Sensor:
    await _ensure_station(session, data.station_id)
    if await get_sensor_by_serial(session, data.serial_number):
        raise ConflictError(f"Sensor with serial number '{data.serial_number}' already exists")
    sensor = Sensor(**data.model_dump())
    session.add(sensor)
    await session.flush()
    session.add(SensorStatus(sensor_id=sensor.id, is_online=True))
    await session.flush()
    return sensor


async def list_sensors(
    session: AsyncSession,
    station_id: int | None = None,
    sensor_type: SensorType | None = None,
) -> list[Sensor]:
    stmt = select(Sensor).order_by(Sensor.id)
    if station_id is not None:
        await _ensure_station(session, station_id)
        stmt = stmt.where(Sensor.station_id == station_id)
    if sensor_type is not None:
        stmt = stmt.where(Sensor.type == sensor_type)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_sensor(session: AsyncSession, sensor_id: int, data: SensorUpdate) -> Sensor:
    sensor = await get_sensor(session, sensor_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("station_id") is not None:
        await _ensure_station(session, changes["station_id"])
    for field, value in changes.items():
        setattr(sensor, field, value)
    await session.flush()
    return sensor


async def delete_sensor(session: AsyncSession, sensor_id: int) -> None:
    sensor = await get_sensor(session, sensor_id)
    await session.delete(sensor)
    await session.flush()


async def set_sensor_active(session: AsyncSession, sensor_id: int, active: bool) -> Sensor:
    sensor = await get_sensor(session, sensor_id)
    sensor.is_active = active
    await session.flush()
    return sensor


async def calibrate_sensor(session: AsyncSession, sensor_id: int) -> Sensor:
    sensor = await get_sensor(session, sensor_id)
    sensor.calibration_date = utcnow()
    await session.flush()
    return sensor


async def record_status(session: AsyncSession, sensor_id: int, data: SensorStatusCreate) -> SensorStatus:
    await get_sensor(session, sensor_id)
    status = SensorStatus(sensor_id=sensor_id, **data.model_dump())
    session.add(status)
    await session.flush()
    return status


async def get_latest_status(session: AsyncSession, sensor_id: int) -> SensorStatus | None:
    result = await session.execute(
        select(SensorStatus)
        .where(SensorStatus.sensor_id == sensor_id)
        .order_by(SensorStatus.last_check.desc(), SensorStatus.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_status_history(session: AsyncSession, sensor_id: int, limit: int = 100) -> list[SensorStatus]:
    await get_sensor(session, sensor_id)
    result = await session.execute(
        select(SensorStatus)
        .where(SensorStatus.sensor_id == sensor_id)
        .order_by(SensorStatus.last_check.desc(), SensorStatus.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
