"""Webhook dispatchers that push station alerts to external chat channels."""
from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from app.core.security import SecretManager
from app.models.notification import AlertChannel

logger = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    """Raised when a webhook delivery attempt fails."""


@dataclass(slots=True)
class AlertMessage:
    subject: str
    body: str


class AlertProvider(Protocol):
    async def send(self, message: AlertMessage) -> None:
        ...


class WebhookProvider(abc.ABC):
    """Base class for webhook-style integrations with encrypted endpoints."""

    def __init__(self, encrypted_endpoint: str, secret_manager: SecretManager) -> None:
        self._endpoint = secret_manager.decrypt(encrypted_endpoint)

    @abc.abstractmethod
    def build_payload(self, message: AlertMessage) -> dict:
        ...

    async def send(self, message: AlertMessage) -> None:
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.post(self._endpoint, json=self.build_payload(message))
        if response.status_code >= 400:
            raise DeliveryError(f"Webhook response {response.status_code}: {response.text}")


class SlackProvider(WebhookProvider):
    def build_payload(self, message: AlertMessage) -> dict:
        return {"text": f"*{message.subject}*\n{message.body}"}


class TeamsProvider(WebhookProvider):
    def build_payload(self, message: AlertMessage) -> dict:
        return {
            "type": "message",
            "attachments": [
                {
                    "contentType": "application/vnd.microsoft.card.adaptive",
                    "content": {
                        "type": "AdaptiveCard",
                        "$schema": "http://adaptivecards.io/schemas/adaptive-card.json",
                        "version": "1.4",
                        "body": [
                            {"type": "TextBlock", "size": "Medium", "weight": "Bolder", "text": message.subject},
                            {"type": "TextBlock", "text": message.body, "wrap": True},
                        ],
                    },
                }
            ],
        }


class DiscordProvider(WebhookProvider):
    def build_payload(self, message: AlertMessage) -> dict:
        return {"content": f"**{message.subject}**\n{message.body}"}


class TelegramProvider(WebhookProvider):
    def __init__(self, encrypted_bot_token: str, chat_id: str, secret_manager: SecretManager) -> None:
        bot_token = secret_manager.decrypt(encrypted_bot_token)
        self._endpoint = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        self._chat_id = chat_id

    def build_payload(self, message: AlertMessage) -> dict:
        return {"chat_id": self._chat_id, "text": f"{message.subject}\n{message.body}"}


def build_provider(channel: AlertChannel, secret_manager: SecretManager) -> WebhookProvider:
    if channel.type == "slack":
        return SlackProvider(channel.endpoint_encrypted, secret_manager)
    if channel.type == "teams":
        return TeamsProvider(channel.endpoint_encrypted, secret_manager)
    if channel.type == "discord":
        return DiscordProvider(channel.endpoint_encrypted, secret_manager)
    if channel.type == "telegram":
        chat_id = (channel.channel_metadata or {}).get("chat_id", "")
        if not chat_id:
            raise DeliveryError("Telegram chat ID not configured")
        return TelegramProvider(channel.endpoint_encrypted, chat_id, secret_manager)
    raise DeliveryError(f"Unsupported channel type: {channel.type}")


async def deliver(provider: AlertProvider, message: AlertMessage) -> None:
    try:
        await provider.send(message)
    except DeliveryError:
        logger.exception("Webhook rejected alert delivery")
        raise
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.exception("Failed to deliver alert: %s", exc)
        raise DeliveryError(str(exc)) from exc
