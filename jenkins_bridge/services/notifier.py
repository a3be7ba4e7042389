"""
Delivery of build notifications to the chat-side webhook.
"""

from __future__ import annotations

import httpx

from jenkins_bridge.core.exceptions import NotificationError
from jenkins_bridge.core.logging import get_logger
from jenkins_bridge.models.tracked import BuildNotification

logger = get_logger(__name__)


class Notifier:
    """Posts one notification per finished build. Failures are raised, never retried."""

    def __init__(
        self,
        webhook_url: str | None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._transport = transport

    async def notify(self, notification: BuildNotification) -> None:
        """
        Send a build outcome to the callback target.

        Raises:
            NotificationError: If the webhook is unset, unreachable or answers non-2xx
        """
        label = f"{notification.job_name} #{notification.build_number}"
        if not self._webhook_url:
            logger.error(f"Notification webhook URL is not configured; cannot notify {label}")
            raise NotificationError("Notification webhook URL is not configured")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    self._webhook_url,
                    json=notification.to_dict(),
                    headers={"Content-Type": "application/json"},
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text
            logger.error(f"Notification for {label} rejected with {exc.response.status_code}: {detail}")
            raise NotificationError(
                f"Failed to send notification: HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
                body=detail,
            ) from exc
        except httpx.RequestError as exc:
            logger.error(f"Notification for {label} failed: {exc}")
            raise NotificationError(f"Failed to send notification: {exc}", network=True) from exc

        logger.info(
            f"Notification sent for {label} (status={notification.status.value}, response={response.status_code})"
        )
