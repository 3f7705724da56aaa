from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests

from yoon.core.config import settings
from yoon.core.errors import NotificationDeliveryError

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    def send(
        self, token: str, title: str, body: str, data: Optional[dict] = None
    ) -> Optional[dict]:
        ...


class ExpoPushDispatcher:
    """
    Sends push notifications through the Expo push service.
    Raises NotificationDeliveryError on transport failures and error tickets;
    callers decide whether delivery matters.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.url = url or settings.expo_push_url
        self.timeout = timeout if timeout is not None else settings.push_timeout_seconds
        self.enabled = settings.push_enabled if enabled is None else enabled

    def send(
        self, token: str, title: str, body: str, data: Optional[dict] = None
    ) -> Optional[dict]:
        if not self.enabled:
            logger.info("Push disabled, dropping notification %r", title)
            return None

        message = {
            "to": token,
            "sound": "default",
            "title": title,
            "body": body,
            "data": data or {},
        }
        headers = {
            "Accept": "application/json",
            "Accept-encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        try:
            resp = requests.post(self.url, json=message, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            result = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise NotificationDeliveryError(f"Expo push request failed: {exc}") from exc

        ticket = result.get("data") if isinstance(result, dict) else None
        if isinstance(ticket, dict) and ticket.get("status") == "error":
            raise NotificationDeliveryError(
                f"Expo push rejected: {ticket.get('message', 'unknown error')}"
            )
        logger.info("Push notification delivered to %s", token)
        return result
