"""Process-local store used for tests and when Supabase is not configured."""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

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
from ..services.clock import ensure_aware


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryRepository:
    """Thread-safe implementation of ``FieldDataRepository``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._routes: dict[str, RouteRecord] = {}
        self._stops: dict[str, list[RouteStop]] = {}
        self._locations: dict[str, Location] = {}
        self._samples: dict[str, list[GpsSample]] = {}
        self._visits: dict[str, Visit] = {}
        self._alerts: dict[str, Alert] = {}

    # seeding helpers for data owned by other systems

    def add_location(self, location: Location) -> Location:
        with self._lock:
            self._locations[location.id] = location
        return location

    def add_visit(self, visit: Visit) -> Visit:
        with self._lock:
            if visit.id is None:
                visit.id = _new_id()
            self._visits[visit.id] = visit
        return visit

    # routes

    def get_route(self, route_id: str) -> Optional[RouteRecord]:
        with self._lock:
            return self._routes.get(route_id)

    def list_routes(
        self,
        *,
        route_date: date | None = None,
        status: RouteStatus | None = None,
    ) -> list[RouteRecord]:
        with self._lock:
            routes = list(self._routes.values())
        if route_date is not None:
            routes = [route for route in routes if route.route_date == route_date]
        if status is not None:
            routes = [route for route in routes if route.status == status]
        return routes

    def save_route(self, record: RouteRecord, stops: Sequence[RouteStop]) -> RouteRecord:
        with self._lock:
            self._routes[record.id] = record
            stored = []
            for stop in stops:
                stored.append(replace(stop, route_id=record.id, id=stop.id or _new_id()))
            self._stops[record.id] = stored
        return record

    def get_route_stops(self, route_id: str) -> list[RouteStop]:
        with self._lock:
            stops = list(self._stops.get(route_id, []))
        return sorted(stops, key=lambda stop: stop.stop_order)

    # customers

    def get_location(self, customer_id: str) -> Optional[Location]:
        with self._lock:
            return self._locations.get(customer_id)

    def get_locations(self, customer_ids: Iterable[str]) -> dict[str, Location]:
        with self._lock:
            return {cid: self._locations[cid] for cid in customer_ids if cid in self._locations}

    # GPS

    def add_gps_sample(self, sample: GpsSample) -> GpsSample:
        with self._lock:
            self._samples.setdefault(sample.agent_id, []).append(sample)
        return sample

    def get_latest_gps_sample(self, agent_id: str) -> Optional[GpsSample]:
        with self._lock:
            samples = list(self._samples.get(agent_id, []))
        if not samples:
            return None
        return max(samples, key=lambda sample: ensure_aware(sample.timestamp))

    def list_latest_gps_samples(self, since: datetime) -> list[GpsSample]:
        with self._lock:
            agent_ids = list(self._samples)
        latest = []
        for agent_id in agent_ids:
            sample = self.get_latest_gps_sample(agent_id)
            if sample is not None and ensure_aware(sample.timestamp) >= ensure_aware(since):
                latest.append(sample)
        return latest

    # visits

    def get_open_visit(self, agent_id: str) -> Optional[Visit]:
        open_visits = [visit for visit in self.list_open_visits() if visit.agent_id == agent_id]
        if not open_visits:
            return None
        return max(open_visits, key=lambda visit: ensure_aware(visit.check_in_time))

    def list_open_visits(self) -> list[Visit]:
        with self._lock:
            return [visit for visit in self._visits.values() if visit.is_open]

    def get_visits_since(self, agent_id: str, since: datetime) -> list[Visit]:
        with self._lock:
            visits = list(self._visits.values())
        return [
            visit
            for visit in visits
            if visit.agent_id == agent_id and ensure_aware(visit.check_in_time) >= ensure_aware(since)
        ]

    # alerts

    def create_alert(self, alert: Alert) -> Alert:
        with self._lock:
            if alert.id is None:
                alert.id = _new_id()
            self._alerts[alert.id] = alert
        return alert

    def list_alerts(self, *, agent_id: str | None = None, unread_only: bool = False) -> list[Alert]:
        with self._lock:
            alerts = list(self._alerts.values())
        if agent_id is not None:
            alerts = [alert for alert in alerts if alert.agent_id == agent_id]
        if unread_only:
            alerts = [alert for alert in alerts if not alert.is_read]
        return sorted(alerts, key=lambda alert: ensure_aware(alert.created_at), reverse=True)

    def find_recent_alerts(
        self,
        *,
        agent_id: str,
        alert_type: AlertType,
        since: datetime,
        route_id: str | None = None,
    ) -> list[Alert]:
        return [
            alert
            for alert in self.list_alerts(agent_id=agent_id)
            if alert.alert_type == alert_type
            and alert.route_id == route_id
            and ensure_aware(alert.created_at) >= ensure_aware(since)
        ]

    def mark_alert_read(self, alert_id: str) -> bool:
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None:
                return False
            alert.is_read = True
        return True
