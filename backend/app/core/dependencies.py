"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.security import SecretManager, SessionSigner
from app.db.session import get_session
from app.models.enums import Role
from app.models.user import User
from app.services import sessions as session_service
from app.services.sessions import SessionContext


async def get_db() -> AsyncIterator[AsyncSession]:
    async with get_session() as session:
        yield session


async def get_secret_manager() -> SecretManager:
    return SecretManager()


def read_session_token(request: Request) -> str | None:
    """Return the unsigned session token from the cookie, if any and valid."""

    raw = request.cookies.get(get_settings().session_cookie_name)
    if not raw:
        return None
    try:
        return SessionSigner().loads(raw)
    except ValueError:
        return None


async def get_session_context(
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> SessionContext:
    if not request.cookies.get(get_settings().session_cookie_name):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    token = read_session_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")

    context = await session_service.validate_session(session, token)
    if not context:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")
    return context


async def get_current_user(context: SessionContext = Depends(get_session_context)) -> User:
    return context.user


def require_roles(*roles: Role) -> Callable[..., Awaitable[User]]:
    """Dependency factory allowing the given roles; ADMIN is always allowed."""

    async def _checker(context: SessionContext = Depends(get_session_context)) -> User:
        if not session_service.has_any_role(context.session, list(roles)):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return context.user

    return _checker


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
