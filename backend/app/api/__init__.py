"""API router aggregator."""
from fastapi import APIRouter

from app.api.routes import (
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

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(settings.router)
api_router.include_router(stations.router)
api_router.include_router(sensors.router)
api_router.include_router(readings.router)
api_router.include_router(thresholds.router)
api_router.include_router(alerts.router)
api_router.include_router(alert_channels.router)
api_router.include_router(maintenance.router)
api_router.include_router(notifications.router)
api_router.include_router(notification_templates.router)
api_router.include_router(exports.router)
api_router.include_router(backups.router)
api_router.include_router(system.router)
api_router.include_router(activity_logs.router)

__all__ = ["api_router"]
