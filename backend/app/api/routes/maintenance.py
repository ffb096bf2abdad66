"""Maintenance schedule endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_roles
from app.models.enums import MaintenanceScheduleType, Role
from app.models.user import User
from app.schemas.maintenance import (
    MaintenanceAssign,
    MaintenanceComplete,
    MaintenanceCreate,
    MaintenanceRead,
    MaintenanceStats,
    MaintenanceUpdate,
)
from app.services import maintenance as maintenance_service

router = APIRouter(prefix="/maintenance", tags=["maintenance"])

operator = require_roles(Role.OPERATOR)


@router.post("/", response_model=MaintenanceRead, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    payload: MaintenanceCreate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> MaintenanceRead:
    schedule = await maintenance_service.create_schedule(session, payload)
    await session.commit()
    return MaintenanceRead.model_validate(schedule)


@router.get("/", response_model=list[MaintenanceRead])
async def list_schedules(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> list[MaintenanceRead]:
    schedules = await maintenance_service.list_schedules(session)
    return [MaintenanceRead.model_validate(item) for item in schedules]


@router.get("/stats", response_model=MaintenanceStats)
async def get_stats(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> MaintenanceStats:
    return MaintenanceStats.model_validate(await maintenance_service.get_stats(session))


@router.get("/upcoming", response_model=list[MaintenanceRead])
async def get_my_upcoming(
    days: int = Query(default=7, ge=1, le=365),
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(operator),
) -> list[MaintenanceRead]:
    schedules = await maintenance_service.get_upcoming_for_user(session, current_user.id, days)
    return [MaintenanceRead.model_validate(item) for item in schedules]


@router.get("/type/{schedule_type}", response_model=list[MaintenanceRead])
async def list_by_type(
    schedule_type: MaintenanceScheduleType,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> list[MaintenanceRead]:
    schedules = await maintenance_service.list_by_type(session, schedule_type)
    return [MaintenanceRead.model_validate(item) for item in schedules]


@router.post("/check-upcoming")
async def check_upcoming(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> dict[str, int]:
    sent = await maintenance_service.check_upcoming_maintenance(session)
    await session.commit()
    return {"notifications_sent": sent}


@router.get("/{schedule_id}", response_model=MaintenanceRead)
async def get_schedule(
    schedule_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> MaintenanceRead:
    return MaintenanceRead.model_validate(await maintenance_service.get_schedule(session, schedule_id))


@router.put("/{schedule_id}", response_model=MaintenanceRead)
async def update_schedule(
    schedule_id: int,
    payload: MaintenanceUpdate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> MaintenanceRead:
    schedule = await maintenance_service.update_schedule(session, schedule_id, payload)
    await session.commit()
    return MaintenanceRead.model_validate(schedule)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_schedule(
    schedule_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> Response:
    await maintenance_service.delete_schedule(session, schedule_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{schedule_id}/assign", response_model=MaintenanceRead)
async def assign_schedule(
    schedule_id: int,
    payload: MaintenanceAssign,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> MaintenanceRead:
    schedule = await maintenance_service.assign_schedule(session, schedule_id, payload.user_id)
    await session.commit()
    return MaintenanceRead.model_validate(schedule)


@router.patch("/{schedule_id}/complete", response_model=MaintenanceRead)
async def complete_schedule(
    schedule_id: int,
    payload: MaintenanceComplete,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> MaintenanceRead:
    schedule = await maintenance_service.complete_schedule(session, schedule_id, payload.notes)
    await session.commit()
    return MaintenanceRead.model_validate(schedule)
