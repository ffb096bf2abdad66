"""Station alert lifecycle: raise, deduplicate, acknowledge, resolve."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import NotFoundError, ValidationError
from app.core.timeutils import to_naive_utc, utcnow
from app.models.alert import StationAlert
from app.models.enums import AlertSeverity, SensorType
from app.models.station import MonitoringStation
from app.schemas.alert import AlertQuery
from app.services import alert_channels

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AlertPageResult:
    items: list[StationAlert]
    total: int
    page: int
    limit: int
    total_pages: int


async def create_alert_if_threshold_exceeded(
    session: AsyncSession,
    station_id: int,
    sensor_type: SensorType,
    value: float,
    threshold_value: float,
    severity: AlertSeverity,
    message: str | None = None,
    sensor_id: int | None = None,
    notify_channels: bool = True,
) -> StationAlert:
    """Refresh the matching active alert or raise a new one."""

    message = message or f"Sensor {SensorType(sensor_type).value} reading {value} exceeded threshold {threshold_value}"
    stmt = select(StationAlert).where(
        StationAlert.station_id == station_id,
        StationAlert.sensor_type == sensor_type,
        StationAlert.severity == severity,
        StationAlert.is_active.is_(True),
    )
    if sensor_id is not None:
        stmt = stmt.where(StationAlert.sensor_id == sensor_id)
    existing = (await session.execute(stmt.order_by(StationAlert.created_at.desc()).limit(1))).scalar_one_or_none()

    if existing:
        existing.value = value
        existing.threshold_value = threshold_value
        existing.message = message
        existing.resolved_at = None
        if existing.acknowledged:
            existing.acknowledged = False
            existing.acknowledged_by = None
            existing.acknowledged_at = None
        await session.flush()
        logger.debug("Refreshed active alert %s for station %s", existing.id, station_id)
        return existing

    alert = StationAlert(
        station_id=station_id,
        sensor_id=sensor_id,
        sensor_type=sensor_type,
        value=value,
        threshold_value=threshold_value,
        severity=severity,
        message=message,
    )
    session.add(alert)
    await session.flush()
    logger.info("Raised %s alert %s for station %s", AlertSeverity(severity).value, alert.id, station_id)

    if notify_channels:
        station = await session.get(MonitoringStation, station_id)
        await alert_channels.dispatch_alert(session, alert, station.name if station else None)
    return alert


def _apply_filters(stmt, query: AlertQuery):
    if query.station_id is not None:
        stmt = stmt.where(StationAlert.station_id == query.station_id)
    if query.sensor_type is not None:
        stmt = stmt.where(StationAlert.sensor_type == query.sensor_type)
    if query.severity is not None:
        stmt = stmt.where(StationAlert.severity == query.severity)
    if query.is_active is not None:
        stmt = stmt.where(StationAlert.is_active.is_(query.is_active))
    if query.from_date is not None:
        stmt = stmt.where(StationAlert.created_at >= to_naive_utc(query.from_date))
    if query.to_date is not None:
        stmt = stmt.where(StationAlert.created_at <= to_naive_utc(query.to_date))
    return stmt


async def query_alerts(session: AsyncSession, query: AlertQuery) -> AlertPageResult:
    total = (await session.execute(_apply_filters(select(func.count(StationAlert.id)), query))).scalar_one()
    order = StationAlert.created_at.asc() if query.sort == "asc" else StationAlert.created_at.desc()
    stmt = (
        _apply_filters(select(StationAlert), query)
        .order_by(order, StationAlert.id)
        .offset((query.page - 1) * query.limit)
        .limit(query.limit)
    )
    items = list((await session.execute(stmt)).scalars().all())
    return AlertPageResult(
        items=items,
        total=total,
        page=query.page,
        limit=query.limit,
        total_pages=math.ceil(total / query.limit) if total else 0,
    )


async def get_active_alerts(session: AsyncSession, query: AlertQuery) -> AlertPageResult:
    return await query_alerts(session, query.model_copy(update={"is_active": True}))


async def get_alert(session: AsyncSession, alert_id: int) -> StationAlert:
    alert = await session.get(StationAlert, alert_id)
    if not alert:
        raise NotFoundError(f"Alert with ID {alert_id} not found")
    return alert


async def acknowledge_alert(session: AsyncSession, alert_id: int, user_id: int) -> StationAlert:
    alert = await get_alert(session, alert_id)
    if not alert.is_active:
        raise ValidationError("Cannot acknowledge a resolved alert")
    alert.acknowledged = True
    alert.acknowledged_by = user_id
    alert.acknowledged_at = utcnow()
    await session.flush()
    return alert


async def resolve_alert(session: AsyncSession, alert_id: int) -> StationAlert:
    alert = await get_alert(session, alert_id)
    alert.is_active = False
    alert.resolved_at = utcnow()
    await session.flush()
    return alert


async def auto_resolve_alerts(session: AsyncSession, older_than_minutes: int | None = None) -> int:
    minutes = older_than_minutes if older_than_minutes is not None else get_settings().alert_auto_resolve_minutes
    now = utcnow()
    result = await session.execute(
        update(StationAlert)
        .where(StationAlert.is_active.is_(True), StationAlert.created_at < now - timedelta(minutes=minutes))
        .values(is_active=False, resolved_at=now)
        .execution_options(synchronize_session=False)
    )
    count = result.rowcount or 0
    if count:
        logger.info("Auto-resolved %d alert(s)", count)
    return count


async def clear_history(
    session: AsyncSession, older_than: datetime | None = None, resolved: bool | None = None
) -> int:
    stmt = delete(StationAlert)
    if older_than is not None:
        stmt = stmt.where(StationAlert.created_at < to_naive_utc(older_than))
    if resolved is not None:
        stmt = stmt.where(StationAlert.is_active.is_(not resolved))
    result = await session.execute(stmt.execution_options(synchronize_session=False))
    count = result.rowcount or 0
    logger.info("Cleared %d alert(s) from history", count)
    return count


async def count_active(
    session: AsyncSession, station_id: int, since: datetime | None = None, severity: AlertSeverity | None = None
) -> int:
    stmt = select(func.count(StationAlert.id)).where(
        StationAlert.station_id == station_id, StationAlert.is_active.is_(True)
    )
    if since is not None:
        stmt = stmt.where(StationAlert.created_at >= since)
    if severity is not None:
        stmt = stmt.where(StationAlert.severity == severity)
    return (await session.execute(stmt)).scalar_one()
