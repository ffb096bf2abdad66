"""In-app user notifications and localised notification templates."""
from __future__ import annotations

import logging
import re
from datetime import timedelta
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import ConflictError, NotFoundError
from app.core.timeutils import to_naive_utc, utcnow
from app.models.enums import AlertSeverity, NotificationType
from app.models.notification import Notification, NotificationTemplate
from app.models.user import User
from app.schemas.notification import NotificationCreate, NotificationFromTemplate, TemplateCreate, TemplateUpdate

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def render_template(text: str, variables: dict[str, Any]) -> str:
    """Substitute {{key}} placeholders; unknown keys are left untouched."""

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        return str(variables[key]) if key in variables else match.group(0)

    return _PLACEHOLDER.sub(_replace, text)


async def create_notification(session: AsyncSession, data: NotificationCreate) -> Notification:
    if not await session.get(User, data.user_id):
        raise NotFoundError(f"User with ID {data.user_id} not found")
    notification = Notification(
        user_id=data.user_id,
        type=data.type,
        title=data.title,
        message=data.message,
        priority=data.priority,
        expires_at=to_naive_utc(data.expires_at),
    )
    session.add(notification)
    await session.flush()
    return notification


async def notify_user(
    session: AsyncSession,
    user_id: int,
    type: NotificationType,
    title: str,
    message: str,
    priority: AlertSeverity = AlertSeverity.LOW,
    expires_in: timedelta | None = None,
) -> Notification | None:
    """Best-effort notification used by other services; failures are logged."""

    try:
        async with session.begin_nested():
            return await create_notification(
                session,
                NotificationCreate(
                    user_id=user_id,
                    type=type,
                    title=title,
                    message=message,
                    priority=priority,
                    expires_at=utcnow() + expires_in if expires_in else None,
                ),
            )
    except NotFoundError as exc:
        logger.warning("Notification '%s' for user %s not created: %s", title, user_id, exc)
        return None
    except SQLAlchemyError:
        logger.exception("Notification '%s' for user %s not created", title, user_id)
        return None


async def create_from_template(session: AsyncSession, data: NotificationFromTemplate) -> Notification:
    language = data.language or get_settings().default_language
    template = await get_template(session, data.type, language)
    return await create_notification(
        session,
        NotificationCreate(
            user_id=data.user_id,
            type=data.type,
            title=render_template(template.title, data.variables),
            message=render_template(template.message, data.variables),
            priority=data.priority,
        ),
    )


async def list_user_notifications(
    session: AsyncSession, user_id: int, unread_only: bool = False
) -> list[Notification]:
    stmt = select(Notification).where(
        Notification.user_id == user_id,
        or_(Notification.expires_at.is_(None), Notification.expires_at > utcnow()),
    )
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    result = await session.execute(stmt.order_by(Notification.created_at.desc(), Notification.id.desc()))
    return list(result.scalars().all())


async def get_user_notification(session: AsyncSession, user_id: int, notification_id: int) -> Notification:
    notification = await session.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise NotFoundError(f"Notification with ID {notification_id} not found")
    return notification


async def mark_as_read(session: AsyncSession, user_id: int, notification_ids: list[int] | None = None) -> int:
    stmt = update(Notification).where(Notification.user_id == user_id, Notification.is_read.is_(False))
    if notification_ids:
        stmt = stmt.where(Notification.id.in_(notification_ids))
    result = await session.execute(stmt.values(is_read=True).execution_options(synchronize_session=False))
    return result.rowcount or 0


async def create_template(session: AsyncSession, data: TemplateCreate) -> NotificationTemplate:
    existing = await session.execute(
        select(NotificationTemplate).where(
            NotificationTemplate.type == data.type, NotificationTemplate.language == data.language
        )
    )
    if existing.scalar_one_or_none():
        raise ConflictError(f"Template for {data.type.value} in language '{data.language}' already exists")
    template = NotificationTemplate(**data.model_dump())
    session.add(template)
    await session.flush()
    return template


async def list_templates(session: AsyncSession) -> list[NotificationTemplate]:
    result = await session.execute(
        select(NotificationTemplate).order_by(NotificationTemplate.type, NotificationTemplate.language)
    )
    return list(result.scalars().all())


async def get_template(session: AsyncSession, type: NotificationType, language: str) -> NotificationTemplate:
    result = await session.execute(
        select(NotificationTemplate).where(
            NotificationTemplate.type == type, NotificationTemplate.language == language
        )
    )
    template = result.scalar_one_or_none()
    if not template:
        raise NotFoundError(f"Template for {NotificationType(type).value} in language '{language}' not found")
    return template


async def get_template_by_id(session: AsyncSession, template_id: int) -> NotificationTemplate:
    template = await session.get(NotificationTemplate, template_id)
    if not template:
        raise NotFoundError(f"Template with ID {template_id} not found")
    return template


async def update_template(
    session: AsyncSession, type: NotificationType, language: str, data: TemplateUpdate
) -> NotificationTemplate:
    template = await get_template(session, type, language)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(template, field, value)
    await session.flush()
    return template


async def delete_template(session: AsyncSession, template_id: int) -> None:
    template = await get_template_by_id(session, template_id)
    await session.delete(template)
    await session.flush()
