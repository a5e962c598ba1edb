"""Error types raised by the planning and monitoring services."""

from __future__ import annotations


class FieldRouteError(Exception):
    """Base class for service errors."""


class RouteNotFoundError(FieldRouteError, LookupError):
    def __init__(self, route_id: str) -> None:
        super().__init__(f"Route '{route_id}' not found.")
        self.route_id = route_id


class PersistenceError(FieldRouteError):
    """The backing store rejected or failed a read/write."""


class NotificationError(FieldRouteError):
    """An alert notification could not be delivered."""
