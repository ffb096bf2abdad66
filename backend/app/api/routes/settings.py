"""Per-user preference endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db
from app.models.user import User
from app.schemas.user import PreferencesRead, PreferencesUpdate
from app.services import users as user_service

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/", response_model=PreferencesRead)
async def get_settings(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PreferencesRead:
    preferences = await user_service.get_preferences(session, current_user.id)
    await session.commit()
    return PreferencesRead.model_validate(preferences)


@router.patch("/", response_model=PreferencesRead)
async def update_settings(
    payload: PreferencesUpdate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PreferencesRead:
    preferences = await user_service.update_preferences(session, current_user.id, payload)
    await session.commit()
    return PreferencesRead.model_validate(preferences)
