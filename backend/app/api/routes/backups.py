"""Backup endpoints (administrators only)."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_roles
from app.models.enums import BackupStatus, Role
from app.models.user import User
from app.schemas.system import BackupCreate, BackupRead, BackupStats, PgDumpStatus
from app.services import backups as backup_service

router = APIRouter(prefix="/backups", tags=["backups"])

admin_only = require_roles(Role.ADMIN)


@router.post("/", response_model=BackupRead, status_code=status.HTTP_201_CREATED)
async def create_backup(
    payload: BackupCreate,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> BackupRead:
    try:
        backup = await backup_service.create_backup(session, payload.type, payload.description)
    except backup_service.BackupError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Backup failed: {exc}"
        ) from exc
    return BackupRead.model_validate(backup)


@router.get("/", response_model=list[BackupRead])
async def list_backups(
    skip: int = Query(default=0, ge=0),
    take: int = Query(default=20, ge=1, le=100),
    backup_status: BackupStatus | None = Query(default=None, alias="status"),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> list[BackupRead]:
    backups = await backup_service.list_backups(session, skip, take, backup_status)
    return [BackupRead.model_validate(item) for item in backups]


@router.get("/stats", response_model=BackupStats)
async def get_backup_stats(
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> BackupStats:
    return BackupStats.model_validate(await backup_service.get_backup_stats(session))


@router.get("/pg-dump", response_model=PgDumpStatus)
async def check_pg_dump(_: User = Depends(admin_only)) -> PgDumpStatus:
    return PgDumpStatus.model_validate(await backup_service.check_pg_dump())


@router.get("/{backup_id}", response_model=BackupRead)
async def get_backup(
    backup_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> BackupRead:
    return BackupRead.model_validate(await backup_service.get_backup(session, backup_id))


@router.get("/{backup_id}/download")
async def download_backup(
    backup_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> FileResponse:
    backup, path = await backup_service.get_download(session, backup_id)
    media_type = "application/zip" if path.suffix == ".zip" else "application/sql"
    return FileResponse(path, media_type=media_type, filename=backup.file_name)


@router.post("/{backup_id}/cancel", response_model=BackupRead)
async def cancel_backup(
    backup_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> BackupRead:
    backup = await backup_service.cancel_backup(session, backup_id)
    await session.commit()
    return BackupRead.model_validate(backup)


@router.delete("/{backup_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_backup(
    backup_id: int,
    session: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
) -> Response:
    await backup_service.delete_backup(session, backup_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
