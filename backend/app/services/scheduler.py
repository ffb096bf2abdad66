"""Background scheduler for periodic maintenance jobs."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.session import get_session
from app.services import activity_log, alerts, exports, maintenance, readings, station_stats, system

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler()
    return _scheduler


def start_scheduler() -> None:
    scheduler = get_scheduler()
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def shutdown_scheduler() -> None:
    scheduler = get_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")


async def _run_job(name: str, job: Callable[[AsyncSession], Awaitable[object]]) -> None:
    async with get_session() as session:
        try:
            result = await job(session)
            await session.commit()
            logger.debug("Job %s finished: %s", name, result)
        except Exception as exc:  # noqa: BLE001
            await session.rollback()
            logger.exception("Job %s failed: %s", name, exc)


def _add_interval_job(job_id: str, func: Callable[[], Awaitable[None]], **interval: int) -> None:
    get_scheduler().add_job(func, trigger=IntervalTrigger(**interval), id=job_id, replace_existing=True)
    logger.info("Scheduled %s every %s", job_id, interval)


async def _auto_resolve_alerts() -> None:
    await _run_job("auto-resolve-alerts", alerts.auto_resolve_alerts)


async def _process_raw_sensor_data() -> None:
    await _run_job("process-raw-sensor-data", readings.process_raw_sensor_data)


async def _refresh_station_aggregates() -> None:
    await _run_job("refresh-station-aggregates", station_stats.refresh_station_aggregates)


async def _upcoming_maintenance_reminders() -> None:
    await _run_job("upcoming-maintenance-reminders", maintenance.check_upcoming_maintenance)


async def _cleanup_old_exports() -> None:
    await _run_job("cleanup-old-exports", exports.cleanup_old_exports)


async def _cleanup_system_events() -> None:
    days = get_settings().event_retention_days
    await _run_job("cleanup-system-events", lambda session: system.cleanup_events(session, days))


async def _cleanup_activity_logs() -> None:
    await _run_job("cleanup-activity-logs", activity_log.cleanup_old_logs)


def schedule_auto_resolve_job() -> None:
    _add_interval_job("auto-resolve-alerts", _auto_resolve_alerts, minutes=1)


def schedule_raw_data_job() -> None:
    _add_interval_job("process-raw-sensor-data", _process_raw_sensor_data, seconds=30)


def schedule_aggregate_job() -> None:
    _add_interval_job("refresh-station-aggregates", _refresh_station_aggregates, hours=1)


def schedule_maintenance_reminder_job() -> None:
    _add_interval_job("upcoming-maintenance-reminders", _upcoming_maintenance_reminders, days=1)


def schedule_cleanup_jobs() -> None:
    _add_interval_job("cleanup-old-exports", _cleanup_old_exports, days=1)
    _add_interval_job("cleanup-system-events", _cleanup_system_events, days=1)
    _add_interval_job("cleanup-activity-logs", _cleanup_activity_logs, days=1)


def schedule_all_jobs() -> None:
    schedule_auto_resolve_job()
    schedule_raw_data_job()
    schedule_aggregate_job()
    schedule_maintenance_reminder_job()
    schedule_cleanup_jobs()
