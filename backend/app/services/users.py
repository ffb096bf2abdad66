"""User service functions for CRUD, authentication, and preferences."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError
from app.core.security import PasswordHasher
from app.core.timeutils import utcnow
from app.models.enums import Role
from app.models.user import User, UserPreferences
from app.schemas.user import PreferencesUpdate, UserCreate, UserProfileUpdate
from app.services import sessions as session_service


async def get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError(f"User with ID {user_id} not found")
    return user


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(select(User).order_by(User.id))
    return list(result.scalars().all())


async def count_users(session: AsyncSession, active_only: bool = False) -> int:
    stmt = select(func.count(User.id))
    if active_only:
        stmt = stmt.where(User.is_active.is_(True))
    return (await session.execute(stmt)).scalar_one()


async def create_user(session: AsyncSession, user_in: UserCreate) -> User:
    if await get_user_by_email(session, user_in.email):
        raise ConflictError("User with this email already exists")
    user = User(
        email=user_in.email.lower(),
        password_hash=PasswordHasher.hash(user_in.password),
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        role=user_in.role,
    )
    session.add(user)
    await session.flush()
    session.add(UserPreferences(user_id=user.id))
    await session.flush()
    return user


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(session, email)
    if not user or not user.is_active:
        return None
    if not PasswordHasher.verify(password, user.password_hash):
        return None
    user.last_login = utcnow()
    await session.flush()
    return user


async def delete_user(session: AsyncSession, user_id: int) -> None:
    user = await get_user(session, user_id)
    await session.delete(user)
    await session.flush()


async def set_user_active(session: AsyncSession, user_id: int, active: bool) -> User:
    user = await get_user(session, user_id)
    user.is_active = active
    if not active:
        await session_service.delete_all_user_sessions(session, user.id)
    await session.flush()
    return user


async def change_user_role(session: AsyncSession, user_id: int, role: Role) -> User:
    user = await get_user(session, user_id)
    user.role = role
    await session_service.update_user_role_in_all_sessions(session, user.id, role)
    await session.flush()
    return user


async def update_profile(session: AsyncSession, user: User, data: UserProfileUpdate) -> User:
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)
    await session.flush()
    return user


async def get_preferences(session: AsyncSession, user_id: int) -> UserPreferences:
    result = await session.execute(select(UserPreferences).where(UserPreferences.user_id == user_id))
    preferences = result.scalar_one_or_none()
    if preferences is None:
        preferences = UserPreferences(user_id=user_id)
        session.add(preferences)
        await session.flush()
    return preferences


async def update_preferences(session: AsyncSession, user_id: int, data: PreferencesUpdate) -> UserPreferences:
    preferences = await get_preferences(session, user_id)
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(preferences, field, value)
    await session.flush()
    return preferences


async def get_measurement_unit(session: AsyncSession, user_id: int) -> str:
    result = await session.execute(
        select(UserPreferences.measurement_unit).where(UserPreferences.user_id == user_id)
    )
    return result.scalar_one_or_none() or "metric"
