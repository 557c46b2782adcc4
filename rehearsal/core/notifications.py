"""
Notification collaborator.

The scheduler decides when and what to notify; a Notifier only
delivers. LoggingNotifier is the default when nothing else is wired in;
WebhookNotifier posts to an HTTP endpoint when one is configured.
"""

import logging
from abc import ABC, abstractmethod

import httpx

from rehearsal.models.scheduling import ReminderNotification

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Delivers a title/message/priority alert to a user."""

    @abstractmethod
    async def send(self, notification: ReminderNotification) -> None:
        ...


class LoggingNotifier(Notifier):
    """Writes notifications to the application log."""

    async def send(self, notification: ReminderNotification) -> None:
        logger.info(
            f"[{notification.priority.value}] {notification.user_id}: "
            f"{notification.title} - {notification.message}"
        )


class WebhookNotifier(Notifier):
    """
    Posts notifications as JSON to an HTTP endpoint.

    Delivery failures are raised to the caller; the scheduler logs them
    without retrying.
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        # HTTP client for deliveries
        self.client = client or httpx.AsyncClient(headers=headers, timeout=timeout)

    async def send(self, notification: ReminderNotification) -> None:
        try:
            response = await self.client.post(
                self.url,
                json=notification.model_dump(mode="json"),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Webhook delivery of {notification.id} failed: {e}")
            raise

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
