"""System events, health checks, and platform statistics."""
from __future__ import annotations

import logging
import os
import shutil
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from sqlalchemy import delete, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError
from app.core.timeutils import to_naive_utc, utcnow
from app.models.enums import BackupStatus, SystemEventType
from app.models.system import SystemBackup, SystemEvent, UserActivityLog
from app.models.user import User
from app.schemas.system import SystemEventCreate

logger = logging.getLogger(__name__)

WARNING_PERCENT = 80
CRITICAL_PERCENT = 90
MAX_EVENT_LIMIT = 100
CLEANABLE_EVENT_TYPES = (SystemEventType.INFO, SystemEventType.WARNING)
TIME_RANGES = {"day": timedelta(days=1), "week": timedelta(weeks=1), "month": timedelta(days=30)}

_started_at = time.monotonic()


async def create_event(session: AsyncSession, data: SystemEventCreate, created_by: int | None = None) -> SystemEvent:
    event = SystemEvent(
        type=data.type, source=data.source, message=data.message, details=data.details, created_by=created_by
    )
    session.add(event)
    await session.flush()
    return event


async def _log(
    session: AsyncSession, type: SystemEventType, source: str, message: str, details: dict | None = None
) -> SystemEvent:
    logger.log(
        logging.ERROR if type in (SystemEventType.ERROR, SystemEventType.CRITICAL) else logging.INFO,
        "[%s] %s",
        source,
        message,
    )
    return await create_event(session, SystemEventCreate(type=type, source=source, message=message, details=details))


async def log_error(session: AsyncSession, source: str, message: str, details: dict | None = None) -> SystemEvent:
    return await _log(session, SystemEventType.ERROR, source, message, details)


async def log_warning(session: AsyncSession, source: str, message: str, details: dict | None = None) -> SystemEvent:
    return await _log(session, SystemEventType.WARNING, source, message, details)


async def log_info(session: AsyncSession, source: str, message: str, details: dict | None = None) -> SystemEvent:
    return await _log(session, SystemEventType.INFO, source, message, details)


async def log_maintenance(session: AsyncSession, source: str, message: str, details: dict | None = None) -> SystemEvent:
    return await _log(session, SystemEventType.MAINTENANCE, source, message, details)


async def list_events(
    session: AsyncSession,
    type: SystemEventType | None = None,
    source: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = 50,
) -> list[SystemEvent]:
    if limit < 1 or limit > MAX_EVENT_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_EVENT_LIMIT}")
    stmt = select(SystemEvent)
    if type is not None:
        stmt = stmt.where(SystemEvent.type == type)
    if source:
        stmt = stmt.where(SystemEvent.source == source)
    if start_date:
        stmt = stmt.where(SystemEvent.created_at >= to_naive_utc(start_date))
    if end_date:
        stmt = stmt.where(SystemEvent.created_at <= to_naive_utc(end_date))
    result = await session.execute(stmt.order_by(SystemEvent.created_at.desc(), SystemEvent.id.desc()).limit(limit))
    return list(result.scalars().all())


async def get_events_summary(session: AsyncSession, limit: int = 10) -> list[SystemEvent]:
    result = await session.execute(
        select(SystemEvent).order_by(SystemEvent.created_at.desc(), SystemEvent.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def get_event(session: AsyncSession, event_id: int) -> SystemEvent:
    event = await session.get(SystemEvent, event_id)
    if not event:
        raise NotFoundError(f"System event with ID {event_id} not found")
    return event


async def delete_event(session: AsyncSession, event_id: int) -> None:
    event = await get_event(session, event_id)
    await session.delete(event)
    await session.flush()


async def cleanup_events(session: AsyncSession, days: int = 30) -> int:
    """Delete INFO and WARNING events older than ``days``; errors are kept."""

    cutoff = utcnow() - timedelta(days=days)
    result = await session.execute(
        delete(SystemEvent).where(SystemEvent.type.in_(CLEANABLE_EVENT_TYPES), SystemEvent.created_at < cutoff)
    )
    deleted = result.rowcount or 0
    if deleted:
        logger.info("Removed %d system event(s) older than %d days", deleted, days)
    return deleted


def _usage_status(percent: float) -> str:
    if percent > CRITICAL_PERCENT:
        return "critical"
    if percent > WARNING_PERCENT:
        return "warning"
    return "healthy"


def format_uptime(seconds: float) -> str:
    seconds = int(seconds)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    return f"{days}d {hours}h {minutes}m {seconds}s"


async def check_database(session: AsyncSession) -> dict[str, Any]:
    started = time.perf_counter()
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Database health check failed: %s", exc)
        return {"status": "critical", "details": {"error": str(exc)}}
    elapsed = round((time.perf_counter() - started) * 1000, 2)
    return {"status": "healthy", "details": {"response_time_ms": elapsed}}


def check_disk(path: str = ".") -> dict[str, Any]:
    usage = shutil.disk_usage(path)
    percent = round(usage.used / usage.total * 100, 2) if usage.total else 0.0
    return {
        "status": _usage_status(percent),
        "details": {
            "total_gb": round(usage.total / 1024**3, 2),
            "used_gb": round(usage.used / 1024**3, 2),
            "free_gb": round(usage.free / 1024**3, 2),
            "usage_percent": percent,
        },
    }


def _read_meminfo(path: Path = Path("/proc/meminfo")) -> dict[str, int]:
    values: dict[str, int] = {}
    for line in path.read_text().splitlines():
        key, _, rest = line.partition(":")
        parts = rest.split()
        if parts and parts[0].isdigit():
            values[key] = int(parts[0])
    return values


def check_memory() -> dict[str, Any]:
    try:
        info = _read_meminfo()
    except OSError:
        return {"status": "unknown", "details": {"error": "memory information unavailable"}}
    total = info.get("MemTotal", 0)
    available = info.get("MemAvailable", info.get("MemFree", 0))
    if not total:
        return {"status": "unknown", "details": {"error": "memory information unavailable"}}
    percent = round((total - available) / total * 100, 2)
    return {
        "status": _usage_status(percent),
        "details": {
            "total_mb": round(total / 1024, 2),
            "available_mb": round(available / 1024, 2),
            "usage_percent": percent,
        },
    }


def check_cpu() -> dict[str, Any]:
    cores = os.cpu_count() or 1
    try:
        load1, load5, load15 = os.getloadavg()
    except OSError:
        return {"status": "unknown", "details": {"cores": cores}}
    percent = round(min(load1 / cores * 100, 100.0), 2)
    return {
        "status": _usage_status(percent),
        "details": {"cores": cores, "load_average": [load1, load5, load15], "usage_percent": percent},
    }


async def get_system_health(session: AsyncSession) -> dict[str, Any]:
    checks = {
        "database": await check_database(session),
        "disk": check_disk(),
        "memory": check_memory(),
        "cpu": check_cpu(),
    }
    healthy = all(check["status"] == "healthy" for check in checks.values())
    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": utcnow(),
        "uptime": format_uptime(time.monotonic() - _started_at),
        "checks": checks,
    }


async def get_system_statistics(session: AsyncSession, time_range: str = "day") -> dict[str, Any]:
    if time_range not in TIME_RANGES:
        raise ValidationError("time_range must be one of: day, week, month")
    since = utcnow() - TIME_RANGES[time_range]

    event_rows = await session.execute(
        select(SystemEvent.type, func.count(SystemEvent.id))
        .where(SystemEvent.created_at >= since)
        .group_by(SystemEvent.type)
    )
    events = {kind.value: 0 for kind in SystemEventType}
    for kind, count in event_rows.all():
        events[SystemEventType(kind).value] = count

    total_users = (await session.execute(select(func.count(User.id)))).scalar_one()
    active_users = (await session.execute(select(func.count(User.id)).where(User.is_active.is_(True)))).scalar_one()
    activity = (
        await session.execute(select(func.count(UserActivityLog.id)).where(UserActivityLog.created_at >= since))
    ).scalar_one()

    backup_rows = await session.execute(
        select(SystemBackup.status, func.count(SystemBackup.id))
        .where(SystemBackup.created_at >= since)
        .group_by(SystemBackup.status)
    )
    backups = {status.value: 0 for status in BackupStatus}
    for status, count in backup_rows.all():
        backups[BackupStatus(status).value] = count

    return {
        "time_range": time_range,
        "since": since,
        "events": events,
        "users": {"total": total_users, "active": active_users},
        "activity_count": activity,
        "backups": backups,
        "health": await get_system_health(session),
    }


async def get_dashboard(session: AsyncSession) -> dict[str, Any]:
    return {
        "health": await get_system_health(session),
        "statistics": await get_system_statistics(session, "day"),
        "recent_events": await get_events_summary(session),
    }
