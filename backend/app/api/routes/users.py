"""User administration and profile endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, require_roles
from app.models.enums import Role
from app.models.user import User
from app.schemas.user import UserProfileUpdate, UserRead, UserRoleUpdate, UserSessionRead
from app.services import sessions as session_service
from app.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_roles(Role.ADMIN)


@router.get("/", response_model=list[UserRead])
async def list_users(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[UserRead]:
    users = await user_service.list_users(session)
    return [UserRead.model_validate(user) for user in users]


@router.get("/email", response_model=UserRead)
async def get_user_by_email(
    email: str = Query(..., min_length=3),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> UserRead:
    user = await user_service.get_user_by_email(session, email)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"User with email {email} not found")
    return UserRead.model_validate(user)


@router.patch("/profile", response_model=UserRead)
async def update_profile(
    payload: UserProfileUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserRead:
    user = await user_service.update_profile(session, current_user, payload)
    await session.commit()
    return UserRead.model_validate(user)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> UserRead:
    return UserRead.model_validate(await user_service.get_user(session, user_id))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_user(
    user_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> Response:
    await user_service.delete_user(session, user_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{user_id}/block", response_model=UserRead)
async def block_user(
    user_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> UserRead:
    user = await user_service.set_user_active(session, user_id, False)
    await session.commit()
    return UserRead.model_validate(user)


@router.patch("/{user_id}/unblock", response_model=UserRead)
async def unblock_user(
    user_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> UserRead:
    user = await user_service.set_user_active(session, user_id, True)
    await session.commit()
    return UserRead.model_validate(user)


@router.patch("/{user_id}/role", response_model=UserRead)
async def change_role(
    user_id: int,
    payload: UserRoleUpdate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> UserRead:
    user = await user_service.change_user_role(session, user_id, payload.role)
    await session.commit()
    return UserRead.model_validate(user)


@router.get("/{user_id}/sessions", response_model=list[UserSessionRead])
async def list_user_sessions(
    user_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[UserSessionRead]:
    await user_service.get_user(session, user_id)
    sessions = await session_service.get_user_sessions(session, user_id)
    await session.commit()
    return [UserSessionRead.model_validate(item) for item in sessions]
