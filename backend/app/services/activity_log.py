"""Audit trail of user actions."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from fastapi import Request
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.dependencies import client_ip
from app.core.errors import NotFoundError
from app.core.timeutils import utcnow
from app.models.system import UserActivityLog
from app.schemas.system import ActivityLogCreate

logger = logging.getLogger(__name__)


async def create_log(session: AsyncSession, data: ActivityLogCreate) -> UserActivityLog:
    entry = UserActivityLog(
        user_id=data.user_id,
        action=data.action,
        resource=data.resource,
        ip_address=data.ip_address,
        user_agent=data.user_agent,
        activity_metadata=data.metadata,
    )
    session.add(entry)
    await session.flush()
    return entry


async def create_from_request(
    session: AsyncSession,
    request: Request,
    user_id: int,
    action: str,
    resource: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> UserActivityLog:
    return await create_log(
        session,
        ActivityLogCreate(
            user_id=user_id,
            action=action,
            resource=resource,
            ip_address=client_ip(request),
            user_agent=(request.headers.get("user-agent") or "")[:512] or None,
            metadata=metadata,
        ),
    )


async def list_all(session: AsyncSession, skip: int = 0, limit: int = 100) -> list[UserActivityLog]:
    result = await session.execute(
        select(UserActivityLog)
        .order_by(UserActivityLog.created_at.desc(), UserActivityLog.id.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_by_user(session: AsyncSession, user_id: int) -> list[UserActivityLog]:
    result = await session.execute(
        select(UserActivityLog)
        .where(UserActivityLog.user_id == user_id)
        .order_by(UserActivityLog.created_at.desc(), UserActivityLog.id.desc())
    )
    return list(result.scalars().all())


async def get_log(session: AsyncSession, log_id: int) -> UserActivityLog:
    entry = await session.get(UserActivityLog, log_id)
    if not entry:
        raise NotFoundError(f"User activity log with ID {log_id} not found")
    return entry


async def delete_log(session: AsyncSession, log_id: int) -> None:
    entry = await get_log(session, log_id)
    await session.delete(entry)
    await session.flush()


async def cleanup_old_logs(session: AsyncSession, days: int | None = None) -> int:
    days = days or get_settings().activity_log_retention_days
    cutoff = utcnow() - timedelta(days=days)
    result = await session.execute(delete(UserActivityLog).where(UserActivityLog.created_at < cutoff))
    deleted = result.rowcount or 0
    logger.info("Removed %d activity log(s) older than %d days", deleted, days)
    return deleted
