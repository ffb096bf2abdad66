"""Database and filesystem backups driven by pg_dump.

Running dump processes are kept in a module-level registry keyed by backup
id so that a pending backup can be cancelled from another request.
"""
from __future__ import annotations

import asyncio
import logging
import os
import zipfile
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.errors import NotFoundError, ValidationError
from app.core.timeutils import utcnow
from app.models.enums import BackupStatus
from app.models.system import SystemBackup

logger = logging.getLogger(__name__)

BACKUP_TYPES = {"database", "full"}
EXTRA_FILES = (".env", "pyproject.toml", "docker-compose.yml")
CANCELLED_MESSAGE = "Backup cancelled by user"

_active_processes: dict[int, asyncio.subprocess.Process] = {}
_cancelled: set[int] = set()


class BackupError(RuntimeError):
    """Raised when a backup cannot be produced."""


class BackupCancelled(BackupError):
    pass


def _timestamp() -> str:
    return utcnow().strftime("%Y-%m-%dT%H-%M-%S-%f")


def _size_mb(path: Path) -> float:
    return round(path.stat().st_size / (1024 * 1024), 2)


def _require_db_config(settings: Settings) -> None:
    if not settings.backup_db_name or not settings.backup_db_user:
        raise ValidationError("Database name and user must be configured for backups")


async def _run_pg_dump(backup_id: int, output: Path, settings: Settings) -> None:
    env = dict(os.environ)
    if settings.backup_db_password:
        env["PGPASSWORD"] = settings.backup_db_password
    try:
        process = await asyncio.create_subprocess_exec(
            settings.pg_dump_path,
            "-h", settings.backup_db_host,
            "-p", str(settings.backup_db_port),
            "-U", settings.backup_db_user,
            "-d", settings.backup_db_name,
            "-f", str(output),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
    except OSError as exc:
        raise BackupError(f"Unable to start pg_dump: {exc}") from exc

    _active_processes[backup_id] = process
    try:
        _, stderr = await process.communicate()
    finally:
        _active_processes.pop(backup_id, None)

    if backup_id in _cancelled:
        _cancelled.discard(backup_id)
        raise BackupCancelled(CANCELLED_MESSAGE)
    if process.returncode != 0:
        raise BackupError(f"pg_dump exited with code {process.returncode}: {stderr.decode(errors='replace').strip()}")
    if not output.exists() or output.stat().st_size == 0:
        raise BackupError("Backup file is empty")


def _build_archive(archive: Path, dump: Path, uploads: Path) -> None:
    with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as bundle:
        bundle.write(dump, "database.sql")
        if uploads.is_dir():
            for item in uploads.rglob("*"):
                if item.is_file():
                    bundle.write(item, Path("uploads") / item.relative_to(uploads))
        for name in EXTRA_FILES:
            extra = Path(name)
            if extra.is_file():
                bundle.write(extra, name)


async def _mark_cancelled(session: AsyncSession, backup: SystemBackup) -> SystemBackup:
    backup.status = BackupStatus.CANCELLED
    backup.error_message = backup.error_message or CANCELLED_MESSAGE
    backup.completed_at = backup.completed_at or utcnow()
    await session.commit()
    logger.info("Backup %s cancelled", backup.id)
    return backup


async def create_backup(
    session: AsyncSession, backup_type: str = "database", description: str | None = None
) -> SystemBackup:
    if backup_type not in BACKUP_TYPES:
        raise ValidationError(f"Invalid backup type '{backup_type}'. Use 'database' or 'full'")
    settings = get_settings()
    _require_db_config(settings)

    stamp = _timestamp()
    if backup_type == "database":
        target_dir = Path(settings.backup_dir) / "db"
        file_name = f"backup_{stamp}.sql"
    else:
        target_dir = Path(settings.backup_dir) / "filesystem"
        file_name = f"backup_{stamp}.zip"
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / file_name

    backup = SystemBackup(
        file_name=file_name,
        file_path=str(target),
        status=BackupStatus.PENDING,
        description=description,
        started_at=utcnow(),
    )
    session.add(backup)
    await session.commit()
    logger.info("Backup %s started (%s)", backup.id, backup_type)

    dump = target if backup_type == "database" else target_dir / f"backup_{stamp}.sql"
    try:
        await _run_pg_dump(backup.id, dump, settings)
        if backup_type == "full":
            await asyncio.to_thread(_build_archive, target, dump, Path(settings.uploads_dir))
            dump.unlink(missing_ok=True)
    except BackupCancelled:
        dump.unlink(missing_ok=True)
        target.unlink(missing_ok=True)
        return await _mark_cancelled(session, backup)
    except (BackupError, OSError) as exc:
        dump.unlink(missing_ok=True)
        logger.exception("Backup %s failed", backup.id)
        backup.status = BackupStatus.FAILED
        backup.error_message = str(exc)
        backup.completed_at = utcnow()
        await session.commit()
        if isinstance(exc, BackupError):
            raise
        raise BackupError(str(exc)) from exc

    # a cancel can land after pg_dump exits, while the archive is being written
    await session.refresh(backup)
    if backup.status == BackupStatus.CANCELLED:
        target.unlink(missing_ok=True)
        return await _mark_cancelled(session, backup)

    backup.status = BackupStatus.COMPLETED
    backup.file_size = _size_mb(target)
    backup.completed_at = utcnow()
    await session.commit()
    logger.info("Backup %s completed (%.2f MB)", backup.id, backup.file_size)
    return backup


async def get_backup(session: AsyncSession, backup_id: int) -> SystemBackup:
    backup = await session.get(SystemBackup, backup_id)
    if not backup:
        raise NotFoundError(f"Backup with ID {backup_id} not found")
    return backup


async def cancel_backup(session: AsyncSession, backup_id: int) -> SystemBackup:
    backup = await get_backup(session, backup_id)
    if backup.status != BackupStatus.PENDING:
        raise ValidationError(f"Cannot cancel backup with status {BackupStatus(backup.status).value}")

    process = _active_processes.get(backup_id)
    if process and process.returncode is None:
        _cancelled.add(backup_id)
        process.kill()
    backup.status = BackupStatus.CANCELLED
    backup.error_message = CANCELLED_MESSAGE
    backup.completed_at = utcnow()
    await session.flush()
    Path(backup.file_path).unlink(missing_ok=True)
    logger.info("Backup %s cancelled by user", backup_id)
    return backup


async def list_backups(
    session: AsyncSession, skip: int = 0, take: int = 20, status: BackupStatus | None = None
) -> list[SystemBackup]:
    stmt = select(SystemBackup)
    if status is not None:
        stmt = stmt.where(SystemBackup.status == status)
    result = await session.execute(stmt.order_by(SystemBackup.created_at.desc()).offset(skip).limit(take))
    return list(result.scalars().all())


async def get_download(session: AsyncSession, backup_id: int) -> tuple[SystemBackup, Path]:
    backup = await get_backup(session, backup_id)
    if backup.status != BackupStatus.COMPLETED:
        raise ValidationError("Backup is not completed")
    path = Path(backup.file_path)
    if not path.is_file():
        raise NotFoundError("Backup file not found")
    return backup, path


async def delete_backup(session: AsyncSession, backup_id: int) -> None:
    backup = await get_backup(session, backup_id)
    try:
        Path(backup.file_path).unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not delete backup file %s: %s", backup.file_path, exc)
    await session.delete(backup)
    await session.flush()


async def get_backup_stats(session: AsyncSession) -> dict:
    rows = await session.execute(
        select(SystemBackup.status, func.count(SystemBackup.id), func.coalesce(func.sum(SystemBackup.file_size), 0))
        .group_by(SystemBackup.status)
    )
    counts = {status: 0 for status in BackupStatus}
    total_size = 0.0
    for status, count, size in rows.all():
        counts[BackupStatus(status)] = count
        total_size += float(size or 0)
    return {
        "total": sum(counts.values()),
        "completed": counts[BackupStatus.COMPLETED],
        "failed": counts[BackupStatus.FAILED],
        "pending": counts[BackupStatus.PENDING],
        "cancelled": counts[BackupStatus.CANCELLED],
        "total_size_mb": round(total_size, 2),
    }


async def check_pg_dump() -> dict:
    settings = get_settings()
    try:
        process = await asyncio.create_subprocess_exec(
            settings.pg_dump_path,
            "--version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
    except OSError as exc:
        return {"available": False, "error": str(exc)}
    if process.returncode != 0:
        return {"available": False, "error": stderr.decode(errors="replace").strip()}
    return {"available": True, "version": stdout.decode().strip()}
