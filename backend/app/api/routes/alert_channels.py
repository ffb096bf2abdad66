"""Alert channel endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_secret_manager, require_roles
from app.core.security import SecretManager
from app.models.enums import Role
from app.models.user import User
from app.schemas.notification import AlertChannelCreate, AlertChannelRead, AlertChannelUpdate
from app.services import alert_channels as channel_service
from app.services.alert_delivery import AlertMessage, DeliveryError, build_provider, deliver

router = APIRouter(prefix="/alert-channels", tags=["alert-channels"])

admin_only = require_roles(Role.ADMIN)


@router.get("/", response_model=list[AlertChannelRead])
async def list_channels(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[AlertChannelRead]:
    channels = await channel_service.list_channels(session)
    return [AlertChannelRead.model_validate(item) for item in channels]


@router.post("/", response_model=AlertChannelRead, status_code=status.HTTP_201_CREATED)
async def create_channel(
    payload: AlertChannelCreate,
    session: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
    _: User = Depends(admin_only),
) -> AlertChannelRead:
    channel = await channel_service.create_channel(session, payload, secret_manager)
    await session.commit()
    return AlertChannelRead.model_validate(channel)


@router.get("/{channel_id}", response_model=AlertChannelRead)
async def get_channel(
    channel_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> AlertChannelRead:
    return AlertChannelRead.model_validate(await channel_service.get_channel(session, channel_id))


@router.put("/{channel_id}", response_model=AlertChannelRead)
async def update_channel(
    channel_id: int,
    payload: AlertChannelUpdate,
    session: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
    _: User = Depends(admin_only),
) -> AlertChannelRead:
    channel = await channel_service.get_channel(session, channel_id)
    updated = await channel_service.update_channel(session, channel, payload, secret_manager)
    await session.commit()
    return AlertChannelRead.model_validate(updated)


@router.delete("/{channel_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_channel(
    channel_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> Response:
    channel = await channel_service.get_channel(session, channel_id)
    await channel_service.delete_channel(session, channel)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{channel_id}/test", status_code=status.HTTP_200_OK)
async def test_channel(
    channel_id: int,
    session: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
    _: User = Depends(admin_only),
) -> dict[str, str]:
    channel = await channel_service.get_channel(session, channel_id)
    if not channel.enabled:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Channel is disabled")

    test_message = AlertMessage(
        subject="Test Notification",
        body=f"This is a test alert from Eco Monitor. Your {channel.type.upper()} integration is working.",
    )
    try:
        provider = build_provider(channel, secret_manager)
        await deliver(provider, test_message)
    except DeliveryError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    return {"status": "success", "message": f"Test notification sent successfully to {channel.name}"}
