"""Data export endpoints."""
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user, get_db, require_roles
from app.models.enums import ExportFormat, Role
from app.models.user import User
from app.schemas.export import ExportCleanupResult, ExportCreate, ExportPage, ExportRead
from app.services import exports as export_service
from app.services.export_writers import MEDIA_TYPES

router = APIRouter(prefix="/data-exports", tags=["data-exports"])


@router.post("/", response_model=ExportRead, status_code=status.HTTP_201_CREATED)
async def create_export(
    payload: ExportCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ExportRead:
    export = await export_service.create_export(session, current_user.id, payload)
    await session.commit()
    background_tasks.add_task(export_service.process_export, export.id)
    return ExportRead.model_validate(export)


@router.get("/", response_model=ExportPage)
async def list_exports(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ExportPage:
    return ExportPage.model_validate(await export_service.list_user_exports(session, current_user.id, page, limit))


@router.delete("/cleanup", response_model=ExportCleanupResult)
async def cleanup_exports(
    days: int = Query(default=30, ge=1),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(require_roles(Role.ADMIN)),
) -> ExportCleanupResult:
    result = await export_service.cleanup_old_exports(session, days)
    await session.commit()
    return ExportCleanupResult.model_validate(result)


@router.get("/{export_id}", response_model=ExportRead)
async def get_export(
    export_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ExportRead:
    return ExportRead.model_validate(await export_service.get_user_export(session, current_user.id, export_id))


@router.get("/{export_id}/download")
async def download_export(
    export_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> FileResponse:
    export, path = await export_service.get_download(session, current_user.id, export_id)
    return FileResponse(path, media_type=MEDIA_TYPES[ExportFormat(export.format)], filename=export.file_name)


@router.post("/{export_id}/cancel", response_model=ExportRead)
async def cancel_export(
    export_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ExportRead:
    export = await export_service.cancel_export(session, current_user.id, export_id)
    await session.commit()
    return ExportRead.model_validate(export)


@router.delete("/{export_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_export(
    export_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    await export_service.delete_export(session, current_user.id, export_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
