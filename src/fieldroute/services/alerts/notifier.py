"""Owner/manager notification for new alerts over an HTTP webhook."""

from __future__ import annotations

import logging
import time

import httpx

from ...config import settings
from ...exceptions import NotificationError
from ...models.domain import Alert, AlertType

logger = logging.getLogger(__name__)

ALERT_TITLES = {
    AlertType.ROUTE_DEVIATION: "Route Deviation Alert",
    AlertType.SIGNIFICANT_DELAY: "Significant Delay Alert",
    AlertType.MISSED_STOP: "Missed Stop Alert",
    AlertType.EXTENDED_VISIT: "Extended Visit Alert",
}


def build_payload(alert: Alert) -> dict:
    return {
        "title": ALERT_TITLES.get(alert.alert_type, "Route Alert"),
        "content": alert.message,
        "alert": {
            "id": alert.id,
            "agent_id": alert.agent_id,
            "route_id": alert.route_id,
            "type": alert.alert_type.value,
            "severity": alert.severity.value,
            "metadata": alert.metadata,
            "created_at": alert.created_at.isoformat(),
        },
    }


class OwnerNotifier:
    """Subscriber for :class:`~fieldroute.services.alerts.events.AlertBus`."""

    def __init__(
        self,
        webhook_url: str | None = None,
        *,
        timeout: float = 10.0,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.timeout = timeout
        self.max_retries = settings.notification_max_retries if max_retries is None else max_retries
        self.backoff_seconds = settings.notification_backoff_seconds if backoff_seconds is None else backoff_seconds
        self.transport = transport

    def __call__(self, alert: Alert) -> bool:
        return self.notify(alert)

    def notify(self, alert: Alert) -> bool:
        """POST the alert; returns False when no webhook is configured.

        Raises NotificationError once retries are exhausted.
        """
        if not self.webhook_url:
            logger.info(f"Notification webhook not configured - alert {alert.id} stored without notification")
            return False

        payload = build_payload(alert)
        attempt = 0
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    response = client.post(self.webhook_url, json=payload)
                    response.raise_for_status()
                    logger.info(f"Sent {alert.alert_type.value} notification for agent {alert.agent_id}")
                    return True
                except httpx.HTTPError as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise NotificationError(
                            f"Failed to deliver notification for alert {alert.id} after {attempt} attempt(s): {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Notification failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
