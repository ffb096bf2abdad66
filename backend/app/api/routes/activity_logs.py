"""User activity log endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_roles
from app.models.enums import Role
from app.models.user import User
from app.schemas.system import ActivityLogCreate, ActivityLogRead, CleanupResult
from app.services import activity_log as activity_service

router = APIRouter(prefix="/user-activity-logs", tags=["user-activity-logs"])

admin_only = require_roles(Role.ADMIN)


@router.post("/", response_model=ActivityLogRead, status_code=status.HTTP_201_CREATED)
async def create_log(
    payload: ActivityLogCreate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> ActivityLogRead:
    log = await activity_service.create_log(session, payload)
    await session.commit()
    return ActivityLogRead.model_validate(log)


@router.get("/", response_model=list[ActivityLogRead])
async def list_logs(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[ActivityLogRead]:
    logs = await activity_service.list_all(session, skip, limit)
    return [ActivityLogRead.model_validate(item) for item in logs]


@router.get("/user/{user_id}", response_model=list[ActivityLogRead])
async def list_user_logs(
    user_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[ActivityLogRead]:
    logs = await activity_service.list_by_user(session, user_id)
    return [ActivityLogRead.model_validate(item) for item in logs]


@router.delete("/cleanup", response_model=CleanupResult)
async def cleanup_logs(
    days: int | None = Query(default=None, ge=1),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> CleanupResult:
    deleted = await activity_service.cleanup_old_logs(session, days)
    await session.commit()
    return CleanupResult(deleted_count=deleted)


@router.get("/{log_id}", response_model=ActivityLogRead)
async def get_log(
    log_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> ActivityLogRead:
    return ActivityLogRead.model_validate(await activity_service.get_log(session, log_id))


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_log(
    log_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> Response:
    await activity_service.delete_log(session, log_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
