"""Service layer for alert channel persistence and alert fan-out."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError
from app.core.security import SecretManager
from app.models.alert import StationAlert
from app.models.enums import SEVERITY_RANK, AlertSeverity, SensorType
from app.models.notification import AlertChannel
from app.schemas.notification import AlertChannelCreate, AlertChannelUpdate
from app.services.alert_delivery import AlertMessage, DeliveryError, build_provider, deliver

logger = logging.getLogger(__name__)


async def list_channels(session: AsyncSession) -> list[AlertChannel]:
    result = await session.execute(select(AlertChannel).order_by(AlertChannel.created_at.desc()))
    return list(result.scalars().all())


async def get_channel(session: AsyncSession, channel_id: int) -> AlertChannel:
    channel = await session.get(AlertChannel, channel_id)
    if not channel:
        raise NotFoundError("Channel not found")
    return channel


async def create_channel(
    session: AsyncSession, data: AlertChannelCreate, secret_manager: SecretManager
) -> AlertChannel:
    channel_metadata = {"chat_id": data.chat_id} if data.type == "telegram" and data.chat_id else None
    channel = AlertChannel(
        name=data.name,
        type=data.type.lower(),
        endpoint_encrypted=secret_manager.encrypt(data.endpoint),
        enabled=data.enabled,
        min_severity=data.min_severity,
        channel_metadata=channel_metadata,
    )
    session.add(channel)
    await session.flush()
    return channel


async def update_channel(
    session: AsyncSession,
    channel: AlertChannel,
    data: AlertChannelUpdate,
    secret_manager: SecretManager,
) -> AlertChannel:
    if data.name is not None:
        channel.name = data.name
    if data.endpoint is not None:
        channel.endpoint_encrypted = secret_manager.encrypt(data.endpoint)
    if data.enabled is not None:
        channel.enabled = data.enabled
    if data.min_severity is not None:
        channel.min_severity = data.min_severity
    if data.chat_id is not None:
        # reassign so the JSON column is flagged dirty
        channel.channel_metadata = {**(channel.channel_metadata or {}), "chat_id": data.chat_id}
    await session.flush()
    return channel


async def delete_channel(session: AsyncSession, channel: AlertChannel) -> None:
    await session.delete(channel)
    await session.flush()


def format_alert(alert: StationAlert, station_name: str | None = None) -> AlertMessage:
    where = station_name or f"station {alert.station_id}"
    return AlertMessage(
        subject=f"[{AlertSeverity(alert.severity).value}] {SensorType(alert.sensor_type).value} alert at {where}",
        body=alert.message,
    )


async def dispatch_alert(
    session: AsyncSession,
    alert: StationAlert,
    station_name: str | None = None,
    secret_manager: SecretManager | None = None,
) -> int:
    """Send the alert to every enabled channel at or below its severity.

    Returns the number of successful deliveries; failures are logged only.
    """

    result = await session.execute(select(AlertChannel).where(AlertChannel.enabled.is_(True)))
    channels = [
        channel
        for channel in result.scalars().all()
        if SEVERITY_RANK[AlertSeverity(alert.severity)] >= SEVERITY_RANK[AlertSeverity(channel.min_severity)]
    ]
    if not channels:
        return 0

    secret_manager = secret_manager or SecretManager()
    message = format_alert(alert, station_name)
    delivered = 0
    for channel in channels:
        try:
            provider = build_provider(channel, secret_manager)
            await deliver(provider, message)
            delivered += 1
        except (DeliveryError, ValueError) as exc:
            logger.warning("Alert %s not delivered to channel %s: %s", alert.id, channel.name, exc)
        except Exception:
            logger.exception("Unexpected error delivering alert %s to channel %s", alert.id, channel.name)
    return delivered
