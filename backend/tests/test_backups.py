"""Tests for pg_dump backups with the dump process stubbed out."""

import zipfile
from pathlib import Path

import pytest
from sqlalchemy import update

from app.core.config import get_settings
from app.core.errors import ValidationError
from app.models.enums import BackupStatus
from app.models.system import SystemBackup
from app.services import backups as backup_service


@pytest.fixture
def db_config(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "backup_db_name", "eco")
    monkeypatch.setattr(settings, "backup_db_user", "eco")
    return settings


@pytest.fixture
def fake_dump(monkeypatch):
    async def _dump(backup_id, output, settings):
        output.write_text("-- dump\nCREATE TABLE stations();\n", encoding="utf-8")

    monkeypatch.setattr(backup_service, "_run_pg_dump", _dump)


@pytest.fixture
def failing_dump(monkeypatch):
    async def _dump(backup_id, output, settings):
        raise backup_service.BackupError("pg_dump exited with code 1: connection refused")

    monkeypatch.setattr(backup_service, "_run_pg_dump", _dump)


async def test_invalid_type(db_session, db_config):
    with pytest.raises(ValidationError, match="Invalid backup type"):
        await backup_service.create_backup(db_session, "incremental")


async def test_requires_database_settings(db_session):
    with pytest.raises(ValidationError, match="must be configured"):
        await backup_service.create_backup(db_session)


async def test_database_backup_completes(db_session, db_config, fake_dump):
    backup = await backup_service.create_backup(db_session, "database", "nightly")

    assert backup.status == BackupStatus.COMPLETED
    assert backup.file_name.startswith("backup_") and backup.file_name.endswith(".sql")
    assert Path(backup.file_path).parent.name == "db"
    assert backup.file_size is not None
    assert backup.completed_at is not None


async def test_full_backup_bundles_dump_and_uploads(db_session, db_config, fake_dump, isolated_dirs):
    uploads = isolated_dirs / "uploads"
    (uploads / "images").mkdir(parents=True)
    (uploads / "images" / "station.png").write_bytes(b"png")

    backup = await backup_service.create_backup(db_session, "full")

    assert backup.status == BackupStatus.COMPLETED
    with zipfile.ZipFile(backup.file_path) as bundle:
        names = set(bundle.namelist())
    assert "database.sql" in names
    assert "uploads/images/station.png" in names
    assert not list(Path(backup.file_path).parent.glob("*.sql"))


async def test_failed_dump_marks_backup_failed(db_session, db_config, failing_dump):
    with pytest.raises(backup_service.BackupError):
        await backup_service.create_backup(db_session)

    [backup] = await backup_service.list_backups(db_session)
    assert backup.status == BackupStatus.FAILED
    assert "connection refused" in backup.error_message


async def test_cancel_only_pending(db_session, db_config, fake_dump):
    backup = await backup_service.create_backup(db_session)

    with pytest.raises(ValidationError, match="Cannot cancel"):
        await backup_service.cancel_backup(db_session, backup.id)


async def test_download_and_stats(db_session, db_config, failing_dump):
    stats = await backup_service.get_backup_stats(db_session)
    assert stats["total"] == 0

    with pytest.raises(backup_service.BackupError):
        await backup_service.create_backup(db_session)

    [failed] = await backup_service.list_backups(db_session)
    with pytest.raises(ValidationError, match="not completed"):
        await backup_service.get_download(db_session, failed.id)

    stats = await backup_service.get_backup_stats(db_session)
    assert stats["failed"] == 1
    assert stats["total_size_mb"] == 0


async def test_delete_removes_file(db_session, db_config, fake_dump):
    backup = await backup_service.create_backup(db_session)
    path = Path(backup.file_path)

    await backup_service.delete_backup(db_session, backup.id)

    assert not path.exists()
    assert await backup_service.list_backups(db_session) == []


async def test_missing_pg_dump_binary(monkeypatch):
    monkeypatch.setattr(get_settings(), "pg_dump_path", "/nonexistent/pg_dump")

    status = await backup_service.check_pg_dump()

    assert status["available"] is False
    assert status["error"]


async def test_cancel_during_archive_is_kept(db_session, db_config, monkeypatch):
    async def _dump(backup_id, output, settings):
        output.write_text("-- dump\n", encoding="utf-8")
        await db_session.execute(
            update(SystemBackup).where(SystemBackup.id == backup_id).values(status=BackupStatus.CANCELLED)
        )
        await db_session.commit()

    monkeypatch.setattr(backup_service, "_run_pg_dump", _dump)

    backup = await backup_service.create_backup(db_session, "full")

    assert backup.status == BackupStatus.CANCELLED
    assert backup.error_message == backup_service.CANCELLED_MESSAGE
    assert not Path(backup.file_path).exists()


async def test_killed_dump_is_recorded_as_cancelled(db_session, db_config, monkeypatch):
    async def _dump(backup_id, output, settings):
        raise backup_service.BackupCancelled(backup_service.CANCELLED_MESSAGE)

    monkeypatch.setattr(backup_service, "_run_pg_dump", _dump)

    backup = await backup_service.create_backup(db_session)

    assert backup.status == BackupStatus.CANCELLED
    assert backup.completed_at is not None
