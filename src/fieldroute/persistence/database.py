"""Supabase-backed persistence for routes, tracking data and alerts."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from ..db.supabase import get_supabase_client
from ..exceptions import PersistenceError
from ..models.domain import (
    Alert,
    AlertSeverity,
    AlertType,
    GpsSample,
    Location,
    RouteRecord,
    RouteStatus,
    RouteStop,
    Visit,
    VisitStatus,
)
from ..services.clock import ensure_aware

logger = logging.getLogger(__name__)


def _parse_float(value: Any) -> Optional[float]:
    """Coordinates and speeds arrive as decimal strings or numbers."""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def row_to_route(row: dict[str, Any]) -> RouteRecord:
    return RouteRecord(
        id=str(row["id"]),
        agent_id=str(row["agent_id"]),
        name=row.get("route_name") or "",
        route_date=_parse_date(row["route_date"]),
        status=RouteStatus(row.get("status") or RouteStatus.PLANNED.value),
    )


def row_to_stop(row: dict[str, Any]) -> RouteStop:
    return RouteStop(
        id=str(row["id"]) if row.get("id") is not None else None,
        route_id=str(row["route_id"]),
        customer_id=str(row["customer_id"]),
        stop_order=int(row["stop_order"]),
        planned_arrival=_parse_datetime(row.get("planned_arrival")),
    )


def row_to_location(row: dict[str, Any]) -> Optional[Location]:
    latitude = _parse_float(row.get("latitude"))
    longitude = _parse_float(row.get("longitude"))
    if latitude is None or longitude is None:
        return None
    duration = row.get("visit_duration")
    return Location(
        id=str(row["id"]),
        name=row.get("name") or "",
        latitude=latitude,
        longitude=longitude,
        visit_duration_minutes=int(duration) if duration is not None else None,
        priority=int(row.get("priority") or 3),
        visit_frequency=_parse_float(row.get("visit_frequency")),
        average_order_value=_parse_float(row.get("average_order_value")),
        last_visit_at=_parse_datetime(row.get("last_visit_date")),
    )


def row_to_sample(row: dict[str, Any]) -> Optional[GpsSample]:
    latitude = _parse_float(row.get("latitude"))
    longitude = _parse_float(row.get("longitude"))
    timestamp = _parse_datetime(row.get("timestamp"))
    if latitude is None or longitude is None or timestamp is None:
        return None
    return GpsSample(
        agent_id=str(row["agent_id"]),
        latitude=latitude,
        longitude=longitude,
        timestamp=timestamp,
        speed=_parse_float(row.get("speed")),
        heading=_parse_float(row.get("heading")),
        accuracy=_parse_float(row.get("accuracy")),
    )


def row_to_visit(row: dict[str, Any]) -> Visit:
    check_out = _parse_datetime(row.get("check_out_time"))
    return Visit(
        id=str(row["id"]) if row.get("id") is not None else None,
        agent_id=str(row["agent_id"]),
        customer_id=str(row["customer_id"]),
        check_in_time=_parse_datetime(row["check_in_time"]),
        check_out_time=check_out,
        check_in_latitude=_parse_float(row.get("check_in_latitude")),
        check_in_longitude=_parse_float(row.get("check_in_longitude")),
        status=VisitStatus(row.get("status") or (VisitStatus.COMPLETED if check_out else VisitStatus.IN_PROGRESS)),
    )


def row_to_alert(row: dict[str, Any]) -> Alert:
    metadata = row.get("metadata") or {}
    if isinstance(metadata, str):
        try:
            metadata = json.loads(metadata)
        except json.JSONDecodeError:
            metadata = {"raw": metadata}
    return Alert(
        id=str(row["id"]) if row.get("id") is not None else None,
        agent_id=str(row["agent_id"]),
        route_id=str(row["route_id"]) if row.get("route_id") is not None else None,
        alert_type=AlertType(row["alert_type"]),
        severity=AlertSeverity(row.get("severity") or AlertSeverity.MEDIUM.value),
        message=row.get("message") or "",
        metadata=metadata,
        is_read=bool(row.get("is_read")),
        created_at=_parse_datetime(row.get("created_at")) or ensure_aware(datetime.now()),
    )


def alert_to_row(alert: Alert) -> dict[str, Any]:
    row = {
        "agent_id": alert.agent_id,
        "route_id": alert.route_id,
        "alert_type": alert.alert_type.value,
        "severity": alert.severity.value,
        "message": alert.message,
        "metadata": alert.metadata,
        "is_read": alert.is_read,
        "created_at": alert.created_at.isoformat(),
    }
    if alert.id is not None:
        row["id"] = alert.id
    return row


class SupabaseRepository:
    """``FieldDataRepository`` over the Supabase tables of the sales application."""

    def __init__(self, client: Any | None = None) -> None:
        self.client = client or get_supabase_client()
        if self.client is None:
            raise ValueError("Supabase is not configured.")

    def _execute(self, description: str, query: Any) -> list[dict[str, Any]]:
        try:
            response = query.execute()
        except Exception as exc:
            logger.warning(f"Supabase request failed ({description}): {exc}")
            raise PersistenceError(f"Failed to {description}: {exc}") from exc
        return response.data or []

    # routes

    def get_route(self, route_id: str) -> Optional[RouteRecord]:
        rows = self._execute("load route", self.client.table("routes").select("*").eq("id", route_id).limit(1))
        return row_to_route(rows[0]) if rows else None

    def list_routes(
        self,
        *,
        route_date: date | None = None,
        status: RouteStatus | None = None,
    ) -> list[RouteRecord]:
        query = self.client.table("routes").select("*")
        if route_date is not None:
            query = query.eq("route_date", route_date.isoformat())
        if status is not None:
            query = query.eq("status", status.value)
        return [row_to_route(row) for row in self._execute("list routes", query)]

    def save_route(self, record: RouteRecord, stops: Sequence[RouteStop]) -> RouteRecord:
        """Upsert the route and replace its stops.

        The client has no transactions, so a failed insert puts the previous
        stops back before the error is raised.
        """
        self._execute(
            "save route",
            self.client.table("routes").upsert(
                {
                    "id": record.id,
                    "agent_id": record.agent_id,
                    "route_name": record.name,
                    "route_date": record.route_date.isoformat(),
                    "status": record.status.value,
                }
            ),
        )
        previous = self._execute(
            "load route stops",
            self.client.table("route_stops").select("*").eq("route_id", record.id).order("stop_order"),
        )
        # stop orders are rewritten as a whole so they stay dense
        self._execute("clear route stops", self.client.table("route_stops").delete().eq("route_id", record.id))
        if stops:
            payload = [
                {
                    "route_id": record.id,
                    "customer_id": stop.customer_id,
                    "stop_order": stop.stop_order,
                    "planned_arrival": stop.planned_arrival.isoformat() if stop.planned_arrival else None,
                }
                for stop in stops
            ]
            try:
                self._execute("save route stops", self.client.table("route_stops").insert(payload))
            except PersistenceError:
                if previous:
                    restored = [
                        {key: row.get(key) for key in ("route_id", "customer_id", "stop_order", "planned_arrival")}
                        for row in previous
                    ]
                    self._execute("restore route stops", self.client.table("route_stops").insert(restored))
                    logger.warning(f"Restored {len(restored)} previous stops of route {record.id}")
                raise
        logger.info(f"Saved route {record.id} with {len(stops)} stops to database")
        return record

    def get_route_stops(self, route_id: str) -> list[RouteStop]:
        rows = self._execute(
            "load route stops",
            self.client.table("route_stops").select("*").eq("route_id", route_id).order("stop_order"),
        )
        return [row_to_stop(row) for row in rows]

    # customers

    def get_location(self, customer_id: str) -> Optional[Location]:
        rows = self._execute(
            "load customer", self.client.table("customers").select("*").eq("id", customer_id).limit(1)
        )
        return row_to_location(rows[0]) if rows else None

    def get_locations(self, customer_ids: Iterable[str]) -> dict[str, Location]:
        ids = list(dict.fromkeys(customer_ids))
        if not ids:
            return {}
        rows = self._execute("load customers", self.client.table("customers").select("*").in_("id", ids))
        locations: dict[str, Location] = {}
        for row in rows:
            location = row_to_location(row)
            if location is None:
                logger.warning(f"Customer {row.get('id')} has no coordinates, skipping")
                continue
            locations[location.id] = location
        return locations

    # GPS

    def add_gps_sample(self, sample: GpsSample) -> GpsSample:
        self._execute(
            "store GPS sample",
            self.client.table("gps_tracks").insert(
                {
                    "agent_id": sample.agent_id,
                    "latitude": str(sample.latitude),
                    "longitude": str(sample.longitude),
                    "speed": None if sample.speed is None else str(sample.speed),
                    "heading": None if sample.heading is None else str(sample.heading),
                    "accuracy": sample.accuracy,
                    "timestamp": sample.timestamp.isoformat(),
                }
            ),
        )
        return sample

    def get_latest_gps_sample(self, agent_id: str) -> Optional[GpsSample]:
        rows = self._execute(
            "load latest GPS sample",
            self.client.table("gps_tracks")
            .select("*")
            .eq("agent_id", agent_id)
            .order("timestamp", desc=True)
            .limit(1),
        )
        return row_to_sample(rows[0]) if rows else None

    def list_latest_gps_samples(self, since: datetime) -> list[GpsSample]:
        rows = self._execute(
            "load recent GPS samples",
            self.client.table("gps_tracks")
            .select("*")
            .gte("timestamp", since.isoformat())
            .order("timestamp", desc=True),
        )
        latest: dict[str, GpsSample] = {}
        for row in rows:
            sample = row_to_sample(row)
            if sample is not None and sample.agent_id not in latest:
                latest[sample.agent_id] = sample
        return list(latest.values())

    # visits

    def get_open_visit(self, agent_id: str) -> Optional[Visit]:
        rows = self._execute(
            "load open visit",
            self.client.table("visits")
            .select("*")
            .eq("agent_id", agent_id)
            .is_("check_out_time", "null")
            .order("check_in_time", desc=True)
            .limit(1),
        )
        return row_to_visit(rows[0]) if rows else None

    def list_open_visits(self) -> list[Visit]:
        rows = self._execute(
            "load open visits",
            self.client.table("visits").select("*").is_("check_out_time", "null"),
        )
        return [row_to_visit(row) for row in rows]

    def get_visits_since(self, agent_id: str, since: datetime) -> list[Visit]:
        rows = self._execute(
            "load visits",
            self.client.table("visits")
            .select("*")
            .eq("agent_id", agent_id)
            .gte("check_in_time", since.isoformat()),
        )
        return [row_to_visit(row) for row in rows]

    # alerts

    def create_alert(self, alert: Alert) -> Alert:
        rows = self._execute("create alert", self.client.table("alerts").insert(alert_to_row(alert)))
        if rows and rows[0].get("id") is not None:
            alert.id = str(rows[0]["id"])
        return alert

    def list_alerts(self, *, agent_id: str | None = None, unread_only: bool = False) -> list[Alert]:
        query = self.client.table("alerts").select("*")
        if agent_id is not None:
            query = query.eq("agent_id", agent_id)
        if unread_only:
            query = query.eq("is_read", False)
        return [row_to_alert(row) for row in self._execute("list alerts", query.order("created_at", desc=True))]

    def find_recent_alerts(
        self,
        *,
        agent_id: str,
        alert_type: AlertType,
        since: datetime,
        route_id: str | None = None,
    ) -> list[Alert]:
        query = (
            self.client.table("alerts")
            .select("*")
            .eq("agent_id", agent_id)
            .eq("alert_type", alert_type.value)
            .gte("created_at", since.isoformat())
        )
        query = query.is_("route_id", "null") if route_id is None else query.eq("route_id", route_id)
        return [row_to_alert(row) for row in self._execute("load recent alerts", query)]

    def mark_alert_read(self, alert_id: str) -> bool:
        rows = self._execute(
            "mark alert read", self.client.table("alerts").update({"is_read": True}).eq("id", alert_id)
        )
        return bool(rows)
