"""In-app notification endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, require_roles
from app.models.enums import Role
from app.models.user import User
from app.schemas.notification import (
    MarkReadRequest,
    MarkReadResult,
    NotificationCreate,
    NotificationFromTemplate,
    NotificationRead,
)
from app.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])

admin_only = require_roles(Role.ADMIN)


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> NotificationRead:
    notification = await notification_service.create_notification(session, payload)
    await session.commit()
    return NotificationRead.model_validate(notification)


@router.post("/from-template", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def create_from_template(
    payload: NotificationFromTemplate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> NotificationRead:
    notification = await notification_service.create_from_template(session, payload)
    await session.commit()
    return NotificationRead.model_validate(notification)


@router.get("/", response_model=list[NotificationRead])
async def list_my_notifications(
    unread_only: bool = False,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[NotificationRead]:
    notifications = await notification_service.list_user_notifications(session, current_user.id, unread_only)
    return [NotificationRead.model_validate(item) for item in notifications]


@router.patch("/read", response_model=MarkReadResult)
async def mark_as_read(
    payload: MarkReadRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MarkReadResult:
    count = await notification_service.mark_as_read(session, current_user.id, payload.notification_ids)
    await session.commit()
    return MarkReadResult(count=count)


@router.get("/{notification_id}", response_model=NotificationRead)
async def get_notification(
    notification_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationRead:
    notification = await notification_service.get_user_notification(session, current_user.id, notification_id)
    return NotificationRead.model_validate(notification)
