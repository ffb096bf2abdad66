"""Route modules for the Eco Monitor API."""
from . import (
    activity_logs,
    alert_channels,
    alerts,
    auth,
    backups,
    exports,
    maintenance,
    notification_templates,
    notifications,
    readings,
    sensors,
    settings,
    stations,
    system,
    thresholds,
    users,
)

__all__ = [
    "auth",
    "users",
    "settings",
    "stations",
    "sensors",
    "readings",
    "thresholds",
    "alerts",
    "alert_channels",
    "maintenance",
    "notifications",
    "notification_templates",
    "exports",
    "backups",
    "system",
    "activity_logs",
]
