"""Server-side login sessions with a sliding expiry window."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.security import generate_session_token
from app.core.timeutils import utcnow
from app.models.enums import Role
from app.models.user import User, UserSession

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionContext:
    session: UserSession
    user: User


def _ttl() -> timedelta:
    return timedelta(hours=get_settings().session_ttl_hours)


async def cleanup_expired_sessions(session: AsyncSession) -> int:
    result = await session.execute(delete(UserSession).where(UserSession.expires_at < utcnow()))
    if result.rowcount:
        logger.debug("Removed %d expired session(s)", result.rowcount)
    return result.rowcount or 0


async def create_session(
    session: AsyncSession,
    user: User,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> UserSession:
    await cleanup_expired_sessions(session)
    user_session = UserSession(
        user_id=user.id,
        token=generate_session_token(),
        expires_at=utcnow() + _ttl(),
        ip_address=ip_address,
        user_agent=user_agent,
        role=user.role,
    )
    session.add(user_session)
    await session.flush()
    return user_session


async def get_session_by_token(session: AsyncSession, token: str) -> UserSession | None:
    await cleanup_expired_sessions(session)
    result = await session.execute(select(UserSession).where(UserSession.token == token))
    return result.scalar_one_or_none()


async def validate_session(session: AsyncSession, token: str) -> SessionContext | None:
    user_session = await get_session_by_token(session, token)
    if not user_session:
        return None
    user = await session.get(User, user_session.user_id)
    if not user or not user.is_active:
        return None
    return SessionContext(session=user_session, user=user)


async def extend_session(session: AsyncSession, token: str) -> UserSession | None:
    user_session = await get_session_by_token(session, token)
    if not user_session:
        return None
    user_session.expires_at = utcnow() + _ttl()
    await session.flush()
    return user_session


async def delete_session(session: AsyncSession, token: str) -> None:
    await session.execute(delete(UserSession).where(UserSession.token == token))


async def delete_all_user_sessions(session: AsyncSession, user_id: int) -> None:
    await session.execute(delete(UserSession).where(UserSession.user_id == user_id))


async def update_user_role_in_all_sessions(session: AsyncSession, user_id: int, role: Role) -> None:
    await session.execute(update(UserSession).where(UserSession.user_id == user_id).values(role=role))


async def get_user_sessions(session: AsyncSession, user_id: int) -> list[UserSession]:
    await cleanup_expired_sessions(session)
    result = await session.execute(
        select(UserSession).where(UserSession.user_id == user_id).order_by(UserSession.created_at.desc())
    )
    return list(result.scalars().all())


def has_role(user_session: UserSession, role: Role) -> bool:
    return user_session.role == Role.ADMIN or user_session.role == role


def has_any_role(user_session: UserSession, roles: list[Role]) -> bool:
    return any(has_role(user_session, role) for role in roles)
