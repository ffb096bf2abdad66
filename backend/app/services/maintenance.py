"""Maintenance scheduling with assignee notifications."""
from __future__ import annotations

import logging
from datetime import datetime, time, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.core.timeutils import to_naive_utc, utcnow
from app.models.enums import AlertSeverity, MaintenanceScheduleType, NotificationType
from app.models.maintenance import MaintenanceSchedule
from app.models.station import MonitoringStation, Sensor
from app.models.user import User
from app.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate
from app.services.notifications import notify_user

logger = logging.getLogger(__name__)


def _describe(schedule: MaintenanceSchedule) -> str:
    start = schedule.start_date.strftime("%Y-%m-%d %H:%M")
    details = f"{schedule.schedule_type.value.lower()} maintenance starting {start} UTC"
    if schedule.description:
        details = f"{details}. {schedule.description}"
    return details


async def _validate_refs(
    session: AsyncSession, station_id: int | None, sensor_id: int | None, assigned_to: int | None
) -> None:
    if station_id is not None and not await session.get(MonitoringStation, station_id):
        raise NotFoundError(f"Monitoring station with ID {station_id} not found")
    if sensor_id is not None and not await session.get(Sensor, sensor_id):
        raise NotFoundError(f"Sensor with ID {sensor_id} not found")
    if assigned_to is not None and not await session.get(User, assigned_to):
        raise NotFoundError(f"User with ID {assigned_to} not found")


async def _notify_assignment(session: AsyncSession, schedule: MaintenanceSchedule, title_prefix: str) -> None:
    if schedule.assigned_to is None:
        return
    await notify_user(
        session,
        schedule.assigned_to,
        NotificationType.INFO,
        f"{title_prefix}: {schedule.title}",
        f"You have been assigned {_describe(schedule)}.",
        priority=AlertSeverity.MEDIUM,
    )


async def create_schedule(session: AsyncSession, data: MaintenanceCreate) -> MaintenanceSchedule:
    await _validate_refs(session, data.station_id, data.sensor_id, data.assigned_to)
    values = data.model_dump()
    values["start_date"] = to_naive_utc(data.start_date)
    values["end_date"] = to_naive_utc(data.end_date)
    schedule = MaintenanceSchedule(**values)
    session.add(schedule)
    await session.flush()
    await _notify_assignment(session, schedule, "New Maintenance Scheduled")
    return schedule


async def list_schedules(session: AsyncSession) -> list[MaintenanceSchedule]:
    result = await session.execute(select(MaintenanceSchedule).order_by(MaintenanceSchedule.start_date.asc()))
    return list(result.scalars().all())


async def get_schedule(session: AsyncSession, schedule_id: int) -> MaintenanceSchedule:
    schedule = await session.get(MaintenanceSchedule, schedule_id)
    if not schedule:
        raise NotFoundError(f"Maintenance schedule with ID {schedule_id} not found")
    return schedule


async def update_schedule(session: AsyncSession, schedule_id: int, data: MaintenanceUpdate) -> MaintenanceSchedule:
    schedule = await get_schedule(session, schedule_id)
    changes = data.model_dump(exclude_unset=True)
    await _validate_refs(session, changes.get("station_id"), changes.get("sensor_id"), changes.get("assigned_to"))
    previous_assignee = schedule.assigned_to
    for field, value in changes.items():
        if isinstance(value, datetime):
            value = to_naive_utc(value)
        setattr(schedule, field, value)
    if changes.get("is_completed") and schedule.completed_at is None:
        schedule.completed_at = utcnow()
    await session.flush()
    if "assigned_to" in changes and schedule.assigned_to != previous_assignee:
        await _notify_assignment(session, schedule, "Maintenance Assigned")
    return schedule


async def delete_schedule(session: AsyncSession, schedule_id: int) -> None:
    schedule = await get_schedule(session, schedule_id)
    await session.delete(schedule)
    await session.flush()


async def assign_schedule(session: AsyncSession, schedule_id: int, user_id: int) -> MaintenanceSchedule:
    schedule = await get_schedule(session, schedule_id)
    await _validate_refs(session, None, None, user_id)
    schedule.assigned_to = user_id
    await session.flush()
    await _notify_assignment(session, schedule, "Maintenance Assigned")
    return schedule


async def complete_schedule(session: AsyncSession, schedule_id: int, notes: str | None = None) -> MaintenanceSchedule:
    schedule = await get_schedule(session, schedule_id)
    schedule.is_completed = True
    schedule.completed_at = utcnow()
    if notes:
        schedule.notes = notes
    await session.flush()
    logger.info("Maintenance schedule %s completed", schedule.id)
    return schedule


async def get_upcoming_for_user(session: AsyncSession, user_id: int, days: int = 7) -> list[MaintenanceSchedule]:
    now = utcnow()
    result = await session.execute(
        select(MaintenanceSchedule)
        .where(
            MaintenanceSchedule.assigned_to == user_id,
            MaintenanceSchedule.is_completed.is_(False),
            MaintenanceSchedule.start_date >= now,
            MaintenanceSchedule.start_date <= now + timedelta(days=days),
        )
        .order_by(MaintenanceSchedule.start_date.asc())
    )
    return list(result.scalars().all())


async def list_by_type(session: AsyncSession, schedule_type: MaintenanceScheduleType) -> list[MaintenanceSchedule]:
    result = await session.execute(
        select(MaintenanceSchedule)
        .where(MaintenanceSchedule.schedule_type == schedule_type)
        .order_by(MaintenanceSchedule.start_date.asc())
    )
    return list(result.scalars().all())


async def check_upcoming_maintenance(session: AsyncSession) -> int:
    """Remind assignees about work starting tomorrow; returns reminders sent."""

    tomorrow = (utcnow() + timedelta(days=1)).date()
    window_start = datetime.combine(tomorrow, time.min)
    window_end = window_start + timedelta(days=1)
    result = await session.execute(
        select(MaintenanceSchedule).where(
            MaintenanceSchedule.is_completed.is_(False),
            MaintenanceSchedule.assigned_to.is_not(None),
            MaintenanceSchedule.start_date >= window_start,
            MaintenanceSchedule.start_date < window_end,
        )
    )
    sent = 0
    for schedule in result.scalars().all():
        notification = await notify_user(
            session,
            schedule.assigned_to,
            NotificationType.WARNING,
            f"Upcoming Maintenance: {schedule.title}",
            f"Reminder: {_describe(schedule)}.",
            priority=AlertSeverity.LOW,
        )
        if notification:
            sent += 1
    await session.flush()
    if sent:
        logger.info("Sent %d maintenance reminder(s)", sent)
    return sent


async def get_stats(session: AsyncSession) -> dict:
    total = (await session.execute(select(func.count(MaintenanceSchedule.id)))).scalar_one()
    completed = (
        await session.execute(
            select(func.count(MaintenanceSchedule.id)).where(MaintenanceSchedule.is_completed.is_(True))
        )
    ).scalar_one()
    upcoming = (
        await session.execute(
            select(func.count(MaintenanceSchedule.id)).where(
                MaintenanceSchedule.is_completed.is_(False), MaintenanceSchedule.start_date >= utcnow()
            )
        )
    ).scalar_one()
    by_type_rows = await session.execute(
        select(MaintenanceSchedule.schedule_type, func.count(MaintenanceSchedule.id)).group_by(
            MaintenanceSchedule.schedule_type
        )
    )
    by_type = {MaintenanceScheduleType(kind).value: count for kind, count in by_type_rows.all()}
    return {"total": total, "completed": completed, "upcoming": upcoming, "by_type": by_type}
