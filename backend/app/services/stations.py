"""Service functions for monitoring stations."""
from __future__ import annotations

import math

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import NotFoundError
from app.models.station import MonitoringStation
from app.schemas.station import StationCreate, StationUpdate

EARTH_RADIUS_M = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


async def create_station(session: AsyncSession, data: StationCreate) -> MonitoringStation:
    station = MonitoringStation(**data.model_dump())
    session.add(station)
    await session.flush()
    return station


async def list_active_stations(session: AsyncSession) -> list[MonitoringStation]:
    result = await session.execute(
        select(MonitoringStation)
        .options(selectinload(MonitoringStation.sensors), selectinload(MonitoringStation.alerts))
        .where(MonitoringStation.is_active.is_(True))
        .order_by(MonitoringStation.id)
    )
    return list(result.scalars().unique().all())


async def get_station(session: AsyncSession, station_id: int) -> MonitoringStation:
    result = await session.execute(
        select(MonitoringStation)
        .options(selectinload(MonitoringStation.sensors), selectinload(MonitoringStation.alerts))
        .where(MonitoringStation.id == station_id)
    )
    station = result.scalar_one_or_none()
    if not station:
        raise NotFoundError(f"Monitoring station with ID {station_id} not found")
    return station


async def update_station(session: AsyncSession, station_id: int, data: StationUpdate) -> MonitoringStation:
    station = await get_station(session, station_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(station, field, value)
    await session.flush()
    return station


async def set_station_active(session: AsyncSession, station_id: int, active: bool) -> MonitoringStation:
    station = await get_station(session, station_id)
    station.is_active = active
    await session.flush()
    return station


async def remove_station(session: AsyncSession, station_id: int) -> MonitoringStation:
    # stations keep their history, removal only deactivates
    return await set_station_active(session, station_id, False)


async def find_in_radius(
    session: AsyncSession, latitude: float, longitude: float, radius_m: float
) -> list[tuple[MonitoringStation, float]]:
    result = await session.execute(
        select(MonitoringStation).where(MonitoringStation.is_active.is_(True))
    )
    matches = []
    for station in result.scalars().all():
        distance = haversine_distance(latitude, longitude, station.latitude, station.longitude)
        if distance <= radius_m:
            matches.append((station, distance))
    matches.sort(key=lambda item: item[1])
    return matches
