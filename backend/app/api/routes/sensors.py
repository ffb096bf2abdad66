"""Sensor endpoints and sensor status reports."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_roles
from app.models.enums import Role, SensorType
from app.models.user import User
from app.schemas.station import SensorCreate, SensorRead, SensorStatusCreate, SensorStatusRead, SensorUpdate
from app.services import sensors as sensor_service

router = APIRouter(prefix="/sensors", tags=["sensors"])

operator = require_roles(Role.OPERATOR)


@router.post("/", response_model=SensorRead, status_code=status.HTTP_201_CREATED)
async def create_sensor(
    payload: SensorCreate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> SensorRead:
    sensor = await sensor_service.create_sensor(session, payload)
    await session.commit()
    return SensorRead.model_validate(sensor)


@router.get("/", response_model=list[SensorRead])
async def list_sensors(
    station_id: int | None = None,
    sensor_type: SensorType | None = None,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> list[SensorRead]:
    sensors = await sensor_service.list_sensors(session, station_id=station_id, sensor_type=sensor_type)
    return [SensorRead.model_validate(sensor) for sensor in sensors]


@router.get("/station/{station_id}", response_model=list[SensorRead])
async def list_station_sensors(
    station_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> list[SensorRead]:
    sensors = await sensor_service.list_sensors(session, station_id=station_id)
    return [SensorRead.model_validate(sensor) for sensor in sensors]


@router.get("/type/{sensor_type}", response_model=list[SensorRead])
async def list_sensors_by_type(
    sensor_type: SensorType,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> list[SensorRead]:
    sensors = await sensor_service.list_sensors(session, sensor_type=sensor_type)
    return [SensorRead.model_validate(sensor) for sensor in sensors]


@router.get("/{sensor_id}", response_model=SensorRead)
async def get_sensor(
    sensor_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> SensorRead:
    return SensorRead.model_validate(await sensor_service.get_sensor(session, sensor_id))


@router.patch("/{sensor_id}", response_model=SensorRead)
async def update_sensor(
    sensor_id: int,
    payload: SensorUpdate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> SensorRead:
    sensor = await sensor_service.update_sensor(session, sensor_id, payload)
    await session.commit()
    return SensorRead.model_validate(sensor)


@router.delete("/{sensor_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_sensor(
    sensor_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> Response:
    await sensor_service.delete_sensor(session, sensor_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{sensor_id}/activate", response_model=SensorRead)
async def activate_sensor(
    sensor_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> SensorRead:
    sensor = await sensor_service.set_sensor_active(session, sensor_id, True)
    await session.commit()
    return SensorRead.model_validate(sensor)


@router.patch("/{sensor_id}/deactivate", response_model=SensorRead)
async def deactivate_sensor(
    sensor_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> SensorRead:
    sensor = await sensor_service.set_sensor_active(session, sensor_id, False)
    await session.commit()
    return SensorRead.model_validate(sensor)


@router.put("/{sensor_id}/calibrate", response_model=SensorRead)
async def calibrate_sensor(
    sensor_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> SensorRead:
    sensor = await sensor_service.calibrate_sensor(session, sensor_id)
    await session.commit()
    return SensorRead.model_validate(sensor)


@router.post("/{sensor_id}/status", response_model=SensorStatusRead, status_code=status.HTTP_201_CREATED)
async def record_status(
    sensor_id: int,
    payload: SensorStatusCreate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> SensorStatusRead:
    sensor_status = await sensor_service.record_status(session, sensor_id, payload)
    await session.commit()
    return SensorStatusRead.model_validate(sensor_status)


@router.get("/{sensor_id}/status/latest", response_model=SensorStatusRead)
async def get_latest_status(
    sensor_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> SensorStatusRead:
    sensor_status = await sensor_service.get_latest_status(session, sensor_id)
    if not sensor_status:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No status found for sensor {sensor_id}")
    return SensorStatusRead.model_validate(sensor_status)


@router.get("/{sensor_id}/status/history", response_model=list[SensorStatusRead])
async def get_status_history(
    sensor_id: int,
    limit: int = Query(default=100, ge=1, le=1000),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> list[SensorStatusRead]:
    history = await sensor_service.get_status_history(session, sensor_id, limit)
    return [SensorStatusRead.model_validate(item) for item in history]
