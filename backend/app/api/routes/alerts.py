"""Station alert endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, require_roles
from app.models.enums import Role
from app.models.user import User
from app.schemas.alert import AlertPage, AlertQuery, ClearHistoryResult, StationAlertRead
from app.services import alerts as alert_service

router = APIRouter(prefix="/station-alerts", tags=["station-alerts"])


def _to_page(result: alert_service.AlertPageResult) -> AlertPage:
    return AlertPage(
        items=[StationAlertRead.model_validate(item) for item in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/active", response_model=AlertPage)
async def get_active_alerts(
    query: Annotated[AlertQuery, Query()],
    session: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> AlertPage:
    return _to_page(await alert_service.get_active_alerts(session, query))


@router.get("/history", response_model=AlertPage)
async def get_alert_history(
    query: Annotated[AlertQuery, Query()],
    session: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> AlertPage:
    return _to_page(await alert_service.query_alerts(session, query))


@router.delete("/history", response_model=ClearHistoryResult)
async def clear_alert_history(
    older_than: datetime | None = None,
    resolved: bool | None = None,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(Role.ADMIN)),
) -> ClearHistoryResult:
    deleted = await alert_service.clear_history(session, older_than=older_than, resolved=resolved)
    await session.commit()
    return ClearHistoryResult(deleted_count=deleted)


@router.get("/{alert_id}", response_model=StationAlertRead)
async def get_alert(
    alert_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
) -> StationAlertRead:
    return StationAlertRead.model_validate(await alert_service.get_alert(session, alert_id))


@router.patch("/{alert_id}/acknowledge", response_model=StationAlertRead)
async def acknowledge_alert(
    alert_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StationAlertRead:
    alert = await alert_service.acknowledge_alert(session, alert_id, current_user.id)
    await session.commit()
    return StationAlertRead.model_validate(alert)


@router.patch("/{alert_id}/resolve", response_model=StationAlertRead)
async def resolve_alert(
    alert_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(Role.OPERATOR)),
) -> StationAlertRead:
    alert = await alert_service.resolve_alert(session, alert_id)
    await session.commit()
    return StationAlertRead.model_validate(alert)
