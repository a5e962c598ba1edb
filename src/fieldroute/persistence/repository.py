"""Storage contract consumed by the planning and monitoring services."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..models.domain import (
    Alert,
    AlertType,
    GpsSample,
    Location,
    RouteRecord,
    RouteStatus,
    RouteStop,
    Visit,
)


class FieldDataRepository(Protocol):
    """Routes, stops, customers, GPS samples, visits and alerts.

    Lookups for something that does not exist return ``None`` or an empty
    list. Store failures raise :class:`~fieldroute.exceptions.PersistenceError`.
    """

    def get_route(self, route_id: str) -> Optional[RouteRecord]: ...

    def list_routes(
        self,
        *,
        route_date: date | None = None,
        status: RouteStatus | None = None,
    ) -> list[RouteRecord]: ...

    def save_route(self, record: RouteRecord, stops: Sequence[RouteStop]) -> RouteRecord: ...

    def get_route_stops(self, route_id: str) -> list[RouteStop]: ...

    def get_location(self, customer_id: str) -> Optional[Location]: ...

    def get_locations(self, customer_ids: Iterable[str]) -> dict[str, Location]: ...

    def add_gps_sample(self, sample: GpsSample) -> GpsSample: ...

    def get_latest_gps_sample(self, agent_id: str) -> Optional[GpsSample]: ...

    def list_latest_gps_samples(self, since: datetime) -> list[GpsSample]: ...

    def get_open_visit(self, agent_id: str) -> Optional[Visit]: ...

    def list_open_visits(self) -> list[Visit]: ...

    def get_visits_since(self, agent_id: str, since: datetime) -> list[Visit]: ...

    def create_alert(self, alert: Alert) -> Alert: ...

    def list_alerts(self, *, agent_id: str | None = None, unread_only: bool = False) -> list[Alert]: ...

    def find_recent_alerts(
        self,
        *,
        agent_id: str,
        alert_type: AlertType,
        since: datetime,
        route_id: str | None = None,
    ) -> list[Alert]: ...

    def mark_alert_read(self, alert_id: str) -> bool: ...
