"""Notification template endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_roles
from app.models.enums import NotificationType, Role
from app.models.user import User
from app.schemas.notification import TemplateCreate, TemplateRead, TemplateUpdate
from app.services import notifications as notification_service

router = APIRouter(prefix="/notification-templates", tags=["notification-templates"])

admin_only = require_roles(Role.ADMIN)


@router.post("/", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
async def create_template(
    payload: TemplateCreate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> TemplateRead:
    template = await notification_service.create_template(session, payload)
    await session.commit()
    return TemplateRead.model_validate(template)


@router.get("/", response_model=list[TemplateRead])
async def list_templates(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[TemplateRead]:
    templates = await notification_service.list_templates(session)
    return [TemplateRead.model_validate(item) for item in templates]


@router.get("/{template_id}", response_model=TemplateRead)
async def get_template_by_id(
    template_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> TemplateRead:
    return TemplateRead.model_validate(await notification_service.get_template_by_id(session, template_id))


@router.get("/{type}/{language}", response_model=TemplateRead)
async def get_template(
    type: NotificationType,
    language: str,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> TemplateRead:
    return TemplateRead.model_validate(await notification_service.get_template(session, type, language))


@router.put("/{type}/{language}", response_model=TemplateRead)
async def update_template(
    type: NotificationType,
    language: str,
    payload: TemplateUpdate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> TemplateRead:
    template = await notification_service.update_template(session, type, language, payload)
    await session.commit()
    return TemplateRead.model_validate(template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_template(
    template_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> Response:
    await notification_service.delete_template(session, template_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
