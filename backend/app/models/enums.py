"""Enumerations shared by models and schemas."""
from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    OPERATOR = "OPERATOR"
    OBSERVER = "OBSERVER"


class SensorType(str, Enum):
    TEMPERATURE = "TEMPERATURE"
    HUMIDITY = "HUMIDITY"
    CO2 = "CO2"
    AIR_QUALITY = "AIR_QUALITY"
    PM2_5 = "PM2_5"
    PM10 = "PM10"
    PRESSURE = "PRESSURE"
    NOISE = "NOISE"
    WATER_QUALITY = "WATER_QUALITY"


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


SEVERITY_RANK = {
    AlertSeverity.LOW: 0,
    AlertSeverity.MEDIUM: 1,
    AlertSeverity.HIGH: 2,
    AlertSeverity.CRITICAL: 3,
}


class MaintenanceScheduleType(str, Enum):
    ROUTINE = "ROUTINE"
    CALIBRATION = "CALIBRATION"
    REPAIR = "REPAIR"
    INSPECTION = "INSPECTION"
    REPLACEMENT = "REPLACEMENT"
    CLEANING = "CLEANING"


class NotificationType(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ALERT = "ALERT"
    ERROR = "ERROR"
    MAINTENANCE = "MAINTENANCE"


class ExportFormat(str, Enum):
    CSV = "CSV"
    JSON = "JSON"
    EXCEL = "EXCEL"
    PDF = "PDF"


class ExportStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class BackupStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class SystemEventType(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    MAINTENANCE = "MAINTENANCE"


class MeasurementUnit(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"
