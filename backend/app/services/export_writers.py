"""File writers for data exports (CSV, JSON, XLSX, PDF)."""
from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from openpyxl import Workbook
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.models.enums import ExportFormat

CSV_HEADER = ["DATA_TYPE", "TIMESTAMP", "SENSOR_TYPE", "VALUE", "STATION", "UNIT"]
PDF_PREVIEW_ROWS = 10

EXTENSIONS = {
    ExportFormat.CSV: "csv",
    ExportFormat.JSON: "json",
    ExportFormat.EXCEL: "xlsx",
    ExportFormat.PDF: "pdf",
}

MEDIA_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.JSON: "application/json",
    ExportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.PDF: "application/pdf",
}


@dataclass
class ExportDataset:
    readings: list[dict[str, Any]] = field(default_factory=list)
    alerts: list[dict[str, Any]] = field(default_factory=list)
    aggregated: list[dict[str, Any]] = field(default_factory=list)
    filters: dict[str, Any] = field(default_factory=dict)

    @property
    def record_count(self) -> int:
        return len(self.readings) + len(self.alerts) + len(self.aggregated)


def _iso(value: datetime | None) -> str:
    return value.isoformat() if value else ""


def write_csv(path: Path, dataset: ExportDataset) -> None:
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_HEADER)
        for row in dataset.readings:
            writer.writerow(["READING", _iso(row["timestamp"]), row["sensor_type"], row["value"], row["station"], row["unit"]])
        for row in dataset.alerts:
            writer.writerow(["ALERT", _iso(row["timestamp"]), row["sensor_type"], row["value"], row["station"], row["severity"]])
        for row in dataset.aggregated:
            writer.writerow(
                ["AGGREGATED", _iso(row["start_time"]), row["sensor_type"], row["average"], row["station"], row["time_range"]]
            )


def write_json(path: Path, dataset: ExportDataset) -> None:
    document = {
        "metadata": {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "record_count": dataset.record_count,
            "filters": dataset.filters,
        },
        "data": {
            "readings": dataset.readings,
            "alerts": dataset.alerts,
            "aggregated": dataset.aggregated,
        },
    }
    with path.open("w", encoding="utf-8") as handle:
        json.dump(document, handle, default=str, ensure_ascii=False, indent=2)


def write_excel(path: Path, dataset: ExportDataset) -> None:
    workbook = Workbook()
    readings_sheet = workbook.active
    readings_sheet.title = "Sensor Readings"
    readings_sheet.append(["Timestamp", "Station", "Sensor", "Sensor Type", "Value", "Unit", "Quality"])
    for row in dataset.readings:
        readings_sheet.append(
            [row["timestamp"], row["station"], row["sensor"], row["sensor_type"], row["value"], row["unit"], row["quality"]]
        )

    alerts_sheet = workbook.create_sheet("Alerts")
    alerts_sheet.append(["Created", "Station", "Sensor Type", "Severity", "Value", "Threshold", "Message", "Active"])
    for row in dataset.alerts:
        alerts_sheet.append(
            [
                row["timestamp"],
                row["station"],
                row["sensor_type"],
                row["severity"],
                row["value"],
                row["threshold_value"],
                row["message"],
                row["is_active"],
            ]
        )

    if dataset.aggregated:
        aggregated_sheet = workbook.create_sheet("Aggregated")
        aggregated_sheet.append(["Start", "End", "Station", "Sensor Type", "Range", "Average", "Min", "Max", "Std Dev"])
        for row in dataset.aggregated:
            aggregated_sheet.append(
                [
                    row["start_time"],
                    row["end_time"],
                    row["station"],
                    row["sensor_type"],
                    row["time_range"],
                    row["average"],
                    row["min_value"],
                    row["max_value"],
                    row["std_dev"],
                ]
            )
    workbook.save(path)


def _pdf_table(header: list[str], rows: list[list[Any]]) -> Table:
    table = Table([header, *rows], repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2e7d32")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ]
        )
    )
    return table


def write_pdf(path: Path, dataset: ExportDataset) -> None:
    styles = getSampleStyleSheet()
    story = [
        Paragraph("Environmental Data Export", styles["Title"]),
        Paragraph(f"Generated: {datetime.now(timezone.utc):%Y-%m-%d %H:%M} UTC", styles["Normal"]),
        Paragraph(
            f"Readings: {len(dataset.readings)} &nbsp; Alerts: {len(dataset.alerts)} &nbsp; "
            f"Aggregates: {len(dataset.aggregated)}",
            styles["Normal"],
        ),
        Spacer(1, 12),
    ]

    if dataset.readings:
        recent = sorted(dataset.readings, key=lambda r: r["timestamp"], reverse=True)[:PDF_PREVIEW_ROWS]
        story.append(Paragraph("Recent readings", styles["Heading2"]))
        story.append(
            _pdf_table(
                ["Timestamp", "Station", "Type", "Value", "Unit"],
                [[_iso(r["timestamp"])[:19], r["station"], r["sensor_type"], r["value"], r["unit"]] for r in recent],
            )
        )
        story.append(Spacer(1, 12))

    if dataset.alerts:
        recent = sorted(dataset.alerts, key=lambda r: r["timestamp"], reverse=True)[:PDF_PREVIEW_ROWS]
        story.append(Paragraph("Recent alerts", styles["Heading2"]))
        story.append(
            _pdf_table(
                ["Created", "Station", "Type", "Severity", "Value"],
                [[_iso(r["timestamp"])[:19], r["station"], r["sensor_type"], r["severity"], r["value"]] for r in recent],
            )
        )

    SimpleDocTemplate(str(path), pagesize=A4, title="Environmental Data Export").build(story)


WRITERS: dict[ExportFormat, Callable[[Path, ExportDataset], None]] = {
    ExportFormat.CSV: write_csv,
    ExportFormat.JSON: write_json,
    ExportFormat.EXCEL: write_excel,
    ExportFormat.PDF: write_pdf,
}
