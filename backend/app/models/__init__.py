"""SQLAlchemy models exposed for metadata creation and imports."""
from .alert import StationAlert, Threshold
from .export import DataExport
from .maintenance import MaintenanceSchedule
from .notification import AlertChannel, Notification, NotificationTemplate
from .reading import AggregatedData, RawSensorData, SensorReading
from .station import MonitoringStation, Sensor, SensorStatus
from .system import SystemBackup, SystemEvent, UserActivityLog
from .user import User, UserPreferences, UserSession

__all__ = [
    "User",
    "UserSession",
    "UserPreferences",
    "MonitoringStation",
    "Sensor",
    "SensorStatus",
    "SensorReading",
    "RawSensorData",
    "AggregatedData",
    "Threshold",
    "StationAlert",
    "MaintenanceSchedule",
    "Notification",
    "NotificationTemplate",
    "AlertChannel",
    "DataExport",
    "SystemBackup",
    "SystemEvent",
    "UserActivityLog",
]
