"""Tests for server-side sessions and their sliding expiry."""

from datetime import timedelta

from sqlalchemy import func, select

from app.core.config import get_settings
from app.core.timeutils import utcnow
from app.models.user import UserSession
from app.services import sessions as session_service


async def test_expired_sessions_are_purged_on_lookup(db_session, make_user):
    user = await make_user()
    stale = await session_service.create_session(db_session, user)
    fresh = await session_service.create_session(db_session, user)
    stale.expires_at = utcnow() - timedelta(minutes=1)
    await db_session.flush()

    assert await session_service.get_session_by_token(db_session, stale.token) is None
    assert (await session_service.get_session_by_token(db_session, fresh.token)).id == fresh.id
    assert await db_session.scalar(select(func.count()).select_from(UserSession)) == 1


async def test_extend_session_slides_expiry(db_session, make_user):
    user = await make_user()
    user_session = await session_service.create_session(db_session, user)
    user_session.expires_at = utcnow() + timedelta(hours=1)
    await db_session.flush()

    extended = await session_service.extend_session(db_session, user_session.token)

    ttl = timedelta(hours=get_settings().session_ttl_hours)
    assert extended.expires_at > utcnow() + ttl - timedelta(minutes=1)


async def test_extend_unknown_token(db_session):
    assert await session_service.extend_session(db_session, "missing") is None


async def test_inactive_user_session_is_rejected(db_session, make_user):
    user = await make_user()
    user_session = await session_service.create_session(db_session, user)
    user.is_active = False
    await db_session.flush()

    assert await session_service.validate_session(db_session, user_session.token) is None
