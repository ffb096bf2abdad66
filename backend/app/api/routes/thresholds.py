"""Threshold endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, require_roles
from app.models.enums import Role, SensorType
from app.models.user import User
from app.schemas.alert import (
    ReadingValidationRequest,
    ThresholdCreate,
    ThresholdRead,
    ThresholdUpdate,
    ThresholdViolation,
)
from app.services import thresholds as threshold_service

router = APIRouter(prefix="/thresholds", tags=["thresholds"])

operator = require_roles(Role.OPERATOR)


@router.post("/", response_model=ThresholdRead, status_code=status.HTTP_201_CREATED)
async def create_threshold(
    payload: ThresholdCreate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> ThresholdRead:
    threshold = await threshold_service.create_threshold(session, payload)
    await session.commit()
    return ThresholdRead.model_validate(threshold)


@router.get("/", response_model=list[ThresholdRead])
async def list_thresholds(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(Role.ADMIN)),
) -> list[ThresholdRead]:
    thresholds = await threshold_service.list_thresholds(session)
    return [ThresholdRead.model_validate(item) for item in thresholds]


@router.get("/sensor-type/{sensor_type}", response_model=list[ThresholdRead])
async def list_active_thresholds(
    sensor_type: SensorType,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> list[ThresholdRead]:
    thresholds = await threshold_service.list_active_for_type(session, sensor_type)
    return [ThresholdRead.model_validate(item) for item in thresholds]


@router.post("/validate-reading/{sensor_type}", response_model=list[ThresholdViolation])
async def validate_reading(
    sensor_type: SensorType,
    payload: ReadingValidationRequest,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[ThresholdViolation]:
    return await threshold_service.validate_sensor_reading(session, sensor_type, payload.value)


@router.get("/{threshold_id}", response_model=ThresholdRead)
async def get_threshold(
    threshold_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> ThresholdRead:
    return ThresholdRead.model_validate(await threshold_service.get_threshold(session, threshold_id))


@router.patch("/{threshold_id}", response_model=ThresholdRead)
async def update_threshold(
    threshold_id: int,
    payload: ThresholdUpdate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> ThresholdRead:
    threshold = await threshold_service.update_threshold(session, threshold_id, payload)
    await session.commit()
    return ThresholdRead.model_validate(threshold)


@router.patch("/{threshold_id}/activate", response_model=ThresholdRead)
async def activate_threshold(
    threshold_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> ThresholdRead:
    threshold = await threshold_service.set_threshold_active(session, threshold_id, True)
    await session.commit()
    return ThresholdRead.model_validate(threshold)


@router.patch("/{threshold_id}/deactivate", response_model=ThresholdRead)
async def deactivate_threshold(
    threshold_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> ThresholdRead:
    threshold = await threshold_service.set_threshold_active(session, threshold_id, False)
    await session.commit()
    return ThresholdRead.model_validate(threshold)


@router.delete("/{threshold_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_threshold(
    threshold_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(operator),
) -> Response:
    await threshold_service.delete_threshold(session, threshold_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
