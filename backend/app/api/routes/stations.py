"""Monitoring station endpoints, including statistics and health."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, require_roles
from app.models.enums import Role, SensorType
from app.models.user import User
from app.schemas.station import (
    NearbyStation,
    StationCreate,
    StationDetail,
    StationHealth,
    StationRead,
    StationStats,
    StationUpdate,
)
from app.services import station_stats as stats_service
from app.services import stations as station_service
from app.services.users import get_measurement_unit

router = APIRouter(prefix="/stations", tags=["stations"])

operator = require_roles(Role.OPERATOR)


@router.post("/", response_model=StationRead, status_code=status.HTTP_201_CREATED)
async def create_station(
    payload: StationCreate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> StationRead:
    station = await station_service.create_station(session, payload)
    await session.commit()
    return StationRead.model_validate(station)


@router.get("/", response_model=list[StationDetail])
async def list_stations(session: AsyncSession = Depends(get_db)) -> list[StationDetail]:
    stations = await station_service.list_active_stations(session)
    return [StationDetail.model_validate(station) for station in stations]


@router.get("/nearby", response_model=list[NearbyStation])
async def find_nearby_stations(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius: float = Query(..., gt=0, description="Search radius in metres"),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[NearbyStation]:
    matches = await station_service.find_in_radius(session, latitude, longitude, radius)
    return [
        NearbyStation(**StationRead.model_validate(station).model_dump(), distance_m=round(distance, 2))
        for station, distance in matches
    ]


@router.get("/{station_id}", response_model=StationDetail)
async def get_station(station_id: int, session: AsyncSession = Depends(get_db)) -> StationDetail:
    return StationDetail.model_validate(await station_service.get_station(session, station_id))


@router.patch("/{station_id}", response_model=StationRead)
async def update_station(
    station_id: int,
    payload: StationUpdate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> StationRead:
    station = await station_service.update_station(session, station_id, payload)
    await session.commit()
    return StationRead.model_validate(station)


@router.delete("/{station_id}", response_model=StationRead)
async def remove_station(
    station_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(Role.ADMIN)),
) -> StationRead:
    station = await station_service.remove_station(session, station_id)
    await session.commit()
    return StationRead.model_validate(station)


@router.patch("/{station_id}/activate", response_model=StationRead)
async def activate_station(
    station_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> StationRead:
    station = await station_service.set_station_active(session, station_id, True)
    await session.commit()
    return StationRead.model_validate(station)


@router.patch("/{station_id}/deactivate", response_model=StationRead)
async def deactivate_station(
    station_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> StationRead:
    station = await station_service.set_station_active(session, station_id, False)
    await session.commit()
    return StationRead.model_validate(station)


@router.get("/{station_id}/stats", response_model=StationStats)
async def get_station_stats(
    station_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StationStats:
    unit_system = await get_measurement_unit(session, current_user.id)
    stats = await stats_service.get_station_stats(session, station_id, unit_system)
    return StationStats.model_validate({**stats, "station": StationRead.model_validate(stats["station"])})


@router.get("/{station_id}/stats/{sensor_type}", response_model=list[dict[str, Any]])
async def get_sensor_type_stats(
    station_id: int,
    sensor_type: SensorType,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[dict[str, Any]]:
    unit_system = await get_measurement_unit(session, current_user.id)
    return await stats_service.get_sensor_type_stats(session, station_id, sensor_type, unit_system)


@router.get("/{station_id}/health", response_model=StationHealth)
async def get_station_health(
    station_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> StationHealth:
    return StationHealth.model_validate(await stats_service.get_station_health(session, station_id))
