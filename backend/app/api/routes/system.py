"""System events, health, and statistics endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_roles
from app.models.enums import Role, SystemEventType
from app.models.user import User
from app.schemas.system import CleanupResult, SystemEventCreate, SystemEventRead, SystemHealth
from app.services import system as system_service

router = APIRouter(prefix="/system", tags=["system"])

admin_only = require_roles(Role.ADMIN)


@router.post("/events", response_model=SystemEventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: SystemEventCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(admin_only),
) -> SystemEventRead:
    event = await system_service.create_event(session, payload, created_by=current_user.id)
    await session.commit()
    return SystemEventRead.model_validate(event)


@router.get("/events", response_model=list[SystemEventRead])
async def list_events(
    type: SystemEventType | None = None,
    source: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = 50,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[SystemEventRead]:
    events = await system_service.list_events(session, type, source, start_date, end_date, limit)
    return [SystemEventRead.model_validate(item) for item in events]


@router.get("/events/summary", response_model=list[SystemEventRead])
async def events_summary(
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[SystemEventRead]:
    events = await system_service.get_events_summary(session, limit)
    return [SystemEventRead.model_validate(item) for item in events]


@router.delete("/events/cleanup", response_model=CleanupResult)
async def cleanup_events(
    days: int = Query(default=30, ge=1),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> CleanupResult:
    deleted = await system_service.cleanup_events(session, days)
    await session.commit()
    return CleanupResult(deleted_count=deleted)


@router.get("/events/{event_id}", response_model=SystemEventRead)
async def get_event(
    event_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> SystemEventRead:
    return SystemEventRead.model_validate(await system_service.get_event(session, event_id))


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_event(
    event_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> Response:
    await system_service.delete_event(session, event_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/health", response_model=SystemHealth)
async def system_health(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> SystemHealth:
    return SystemHealth.model_validate(await system_service.get_system_health(session))


@router.get("/statistics")
async def system_statistics(
    time_range: str = "day",
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> dict[str, Any]:
    return await system_service.get_system_statistics(session, time_range)


@router.get("/dashboard")
async def dashboard(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> dict[str, Any]:
    data = await system_service.get_dashboard(session)
    data["recent_events"] = [SystemEventRead.model_validate(item) for item in data["recent_events"]]
    return data
