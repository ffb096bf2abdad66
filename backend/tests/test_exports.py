"""Tests for data export jobs and file writers."""

import csv
import json
from datetime import timedelta
from pathlib import Path

import pytest
from openpyxl import load_workbook
from sqlalchemy import update

from app.core.errors import NotFoundError, ValidationError
from app.core.timeutils import utcnow
from app.models.enums import ExportFormat, ExportStatus
from app.models.export import DataExport
from app.schemas.export import ExportCreate, ExportFilters
from app.schemas.reading import ReadingCreate
from app.services import exports as export_service
from app.services import readings as reading_service
from app.services.export_writers import CSV_HEADER, ExportDataset, write_excel, write_pdf


async def _seed_reading(session, make_station_with_sensor):
    _, sensor = await make_station_with_sensor()
    await reading_service.create_reading(session, ReadingCreate(serial_number=sensor.serial_number, value=21.5, unit="°C"))
    await session.commit()


async def test_csv_export_completes(db_session, make_user, make_station_with_sensor):
    user = await make_user()
    await _seed_reading(db_session, make_station_with_sensor)
    export = await export_service.create_export(db_session, user.id, ExportCreate(format=ExportFormat.CSV))
    await db_session.commit()

    finished = await export_service.run_export(db_session, export.id)

    assert finished.status == ExportStatus.COMPLETED
    assert finished.file_name.endswith(".csv")
    with Path(finished.file_path).open(encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == CSV_HEADER
    assert rows[1][0] == "READING"
    assert rows[1][3] == "21.5"
    assert finished.file_size == Path(finished.file_path).stat().st_size


async def test_json_export_has_metadata(db_session, make_user, make_station_with_sensor):
    user = await make_user()
    await _seed_reading(db_session, make_station_with_sensor)
    export = await export_service.create_export(
        db_session,
        user.id,
        ExportCreate(format=ExportFormat.JSON, filters=ExportFilters(include_alerts=False)),
    )
    await db_session.commit()

    finished = await export_service.run_export(db_session, export.id)

    document = json.loads(Path(finished.file_path).read_text(encoding="utf-8"))
    assert document["metadata"]["record_count"] == 1
    assert document["data"]["readings"][0]["station"] == "Kyiv Center"
    assert document["data"]["alerts"] == []


async def test_cancelled_export_is_not_processed(db_session, make_user):
    user = await make_user()
    export = await export_service.create_export(db_session, user.id, ExportCreate(format=ExportFormat.CSV))
    await export_service.cancel_export(db_session, user.id, export.id)
    await db_session.commit()

    result = await export_service.run_export(db_session, export.id)

    assert result.status == ExportStatus.CANCELLED
    assert result.file_path is None


async def test_cancel_completed_export_is_rejected(db_session, make_user):
    user = await make_user()
    export = await export_service.create_export(db_session, user.id, ExportCreate(format=ExportFormat.JSON))
    await db_session.commit()
    await export_service.run_export(db_session, export.id)

    with pytest.raises(ValidationError):
        await export_service.cancel_export(db_session, user.id, export.id)


async def test_exports_are_private_to_owner(db_session, make_user):
    owner = await make_user("owner@example.com")
    other = await make_user("other@example.com")
    export = await export_service.create_export(db_session, owner.id, ExportCreate(format=ExportFormat.CSV))

    with pytest.raises(NotFoundError):
        await export_service.get_user_export(db_session, other.id, export.id)


async def test_download_requires_completed_export(db_session, make_user):
    user = await make_user()
    export = await export_service.create_export(db_session, user.id, ExportCreate(format=ExportFormat.CSV))

    with pytest.raises(ValidationError, match="not ready"):
        await export_service.get_download(db_session, user.id, export.id)


async def test_list_paginates(db_session, make_user):
    user = await make_user()
    for _ in range(3):
        await export_service.create_export(db_session, user.id, ExportCreate(format=ExportFormat.CSV))

    page = await export_service.list_user_exports(db_session, user.id, page=2, limit=2)

    assert len(page["exports"]) == 1
    assert page["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}


async def test_cleanup_removes_old_exports_and_files(db_session, make_user):
    user = await make_user()
    export = await export_service.create_export(db_session, user.id, ExportCreate(format=ExportFormat.CSV))
    await db_session.commit()
    finished = await export_service.run_export(db_session, export.id)
    file_path = Path(finished.file_path)
    await db_session.execute(
        update(DataExport).where(DataExport.id == export.id).values(created_at=utcnow() - timedelta(days=45))
    )

    result = await export_service.cleanup_old_exports(db_session, days=30)

    assert result == {"deleted_count": 1, "error_count": 0, "total_processed": 1}
    assert not file_path.exists()


async def test_writer_error_marks_export_failed(db_session, make_user, make_station_with_sensor):
    user = await make_user()
    _, sensor = await make_station_with_sensor(name="Station\x01A")
    await reading_service.create_reading(db_session, ReadingCreate(serial_number=sensor.serial_number, value=5, unit="°C"))
    export = await export_service.create_export(db_session, user.id, ExportCreate(format=ExportFormat.EXCEL))
    await db_session.commit()

    finished = await export_service.run_export(db_session, export.id)

    assert finished.status == ExportStatus.FAILED
    assert finished.error_message
    assert finished.file_path is None
    assert list(export_service.export_dir().iterdir()) == []


def _sample_dataset():
    now = utcnow()
    return ExportDataset(
        readings=[
            {
                "timestamp": now,
                "station": "Kyiv Center",
                "sensor": "Thermo",
                "sensor_type": "TEMPERATURE",
                "value": 21.5,
                "unit": "°C",
                "quality": 1.0,
            }
        ],
        alerts=[
            {
                "timestamp": now,
                "station": "Kyiv Center",
                "sensor_type": "TEMPERATURE",
                "severity": "HIGH",
                "value": 35.0,
                "threshold_value": 30.0,
                "message": "Too hot",
                "is_active": True,
            }
        ],
        aggregated=[
            {
                "start_time": now - timedelta(hours=24),
                "end_time": now,
                "station": "Kyiv Center",
                "sensor_type": "TEMPERATURE",
                "time_range": "24h",
                "average": 20.0,
                "min_value": 10.0,
                "max_value": 30.0,
                "std_dev": 8.16,
            }
        ],
    )


def test_excel_writer_sheets(tmp_path):
    path = tmp_path / "export.xlsx"

    write_excel(path, _sample_dataset())

    workbook = load_workbook(path)
    assert workbook.sheetnames == ["Sensor Readings", "Alerts", "Aggregated"]
    assert workbook["Sensor Readings"]["B2"].value == "Kyiv Center"
    assert workbook["Alerts"]["D2"].value == "HIGH"
    assert workbook["Aggregated"]["F2"].value == 20.0


def test_pdf_writer_produces_titled_document(tmp_path):
    path = tmp_path / "export.pdf"

    write_pdf(path, _sample_dataset())

    content = path.read_bytes()
    assert content.startswith(b"%PDF")
    assert b"Environmental Data Export" in content
