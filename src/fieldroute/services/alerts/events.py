"""In-process hand-off from alert creation to whoever needs to hear about it."""

from __future__ import annotations

import logging
from typing import Callable

from ...models.domain import Alert

logger = logging.getLogger(__name__)

AlertHandler = Callable[[Alert], object]


class AlertBus:
    """Publishes created alerts to subscribers.

    A subscriber failure is logged and does not affect other subscribers or
    the alert itself, which is already stored when it is published.
    """

    def __init__(self) -> None:
        self._handlers: list[AlertHandler] = []

    def subscribe(self, handler: AlertHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: AlertHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, alert: Alert) -> int:
        delivered = 0
        for handler in list(self._handlers):
            try:
                handler(alert)
                delivered += 1
            except Exception:
                logger.exception(f"Alert handler {handler!r} failed for alert {alert.id}")
        return delivered
