"""Route deviation, delay, missed-stop and extended-visit alerts.

Each check reads a snapshot (position, stops, today's visits), decides, and
inserts new immutable Alert rows. Created alerts are handed to the
``AlertBus``; what happens to them afterwards never affects the stored alert.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from ...config import settings
from ...exceptions import RouteNotFoundError
from ...models.domain import (
    Alert,
    AlertSeverity,
    AlertType,
    GpsSample,
    Location,
    RouteRecord,
    RouteStop,
)
from ...persistence.repository import FieldDataRepository
from ..clock import ensure_aware, local_now, minutes_between, start_of_day
from ..geospatial import haversine_m
from ..tracking.classifier import completed_today
from ..tracking.position import PositionTracker
from .events import AlertBus

logger = logging.getLogger(__name__)

SEVERITY_RANK = {AlertSeverity.LOW: 0, AlertSeverity.MEDIUM: 1, AlertSeverity.HIGH: 2}


def deviation_severity(
    distance_m: float,
    *,
    threshold_m: float | None = None,
    high_m: float | None = None,
) -> Optional[AlertSeverity]:
    threshold = settings.deviation_threshold_meters if threshold_m is None else threshold_m
    high = settings.deviation_high_meters if high_m is None else high_m
    if distance_m <= threshold:
        return None
    return AlertSeverity.HIGH if distance_m > high else AlertSeverity.MEDIUM


def delay_severity(
    minutes_late: float,
    *,
    threshold_min: float | None = None,
    high_min: float | None = None,
) -> Optional[AlertSeverity]:
    threshold = settings.delay_threshold_minutes if threshold_min is None else threshold_min
    high = settings.delay_high_minutes if high_min is None else high_min
    if minutes_late <= threshold:
        return None
    return AlertSeverity.HIGH if minutes_late > high else AlertSeverity.MEDIUM


def extended_visit_severity(minutes_on_site: float) -> Optional[AlertSeverity]:
    if minutes_on_site <= settings.extended_visit_minutes:
        return None
    if minutes_on_site > settings.extended_visit_high_minutes:
        return AlertSeverity.HIGH
    return AlertSeverity.MEDIUM


def nearest_stop(
    position: GpsSample,
    stops: list[RouteStop],
    customers: dict[str, Location],
) -> Optional[tuple[float, RouteStop, Location]]:
    """Closest stop with known coordinates, as (meters, stop, customer)."""

    best: Optional[tuple[float, RouteStop, Location]] = None
    for stop in stops:
        customer = customers.get(stop.customer_id)
        if customer is None:
            continue
        distance = haversine_m(position.latitude, position.longitude, customer.latitude, customer.longitude)
        if best is None or distance < best[0]:
            best = (distance, stop, customer)
    return best


class AlertEngine:
    def __init__(
        self,
        repository: FieldDataRepository,
        *,
        tracker: PositionTracker | None = None,
        bus: AlertBus | None = None,
        cooldown_minutes: int | None = None,
    ) -> None:
        self.repository = repository
        self.tracker = tracker or PositionTracker(repository)
        self.bus = bus or AlertBus()
        self.cooldown_minutes = settings.alert_cooldown_minutes if cooldown_minutes is None else cooldown_minutes

    def _require_route(self, route_id: str) -> RouteRecord:
        route = self.repository.get_route(route_id)
        if route is None:
            raise RouteNotFoundError(route_id)
        return route

    def _suppressed(self, alert: Alert, now: datetime) -> bool:
        if self.cooldown_minutes <= 0:
            return False
        recent = self.repository.find_recent_alerts(
            agent_id=alert.agent_id,
            alert_type=alert.alert_type,
            since=now - timedelta(minutes=self.cooldown_minutes),
            route_id=alert.route_id,
        )
        customer_id = alert.metadata.get("customer_id")
        for previous in recent:
            if previous.is_read:
                continue
            # an escalation is never held back by a milder alert
            if SEVERITY_RANK[previous.severity] < SEVERITY_RANK[alert.severity]:
                continue
            if customer_id is not None and previous.metadata.get("customer_id") != customer_id:
                continue
            return True
        return False

    def _raise(self, alert: Alert, now: datetime) -> Optional[Alert]:
        if self._suppressed(alert, now):
            logger.debug(
                f"Suppressed repeated {alert.alert_type.value} alert for agent {alert.agent_id} on route {alert.route_id}"
            )
            return None
        created = self.repository.create_alert(alert)
        logger.info(f"Created {created.severity.value} {created.alert_type.value} alert: {created.message}")
        self.bus.publish(created)
        return created

    def check_route_deviation(
        self,
        agent_id: str,
        route_id: str,
        *,
        now: datetime | None = None,
        position: GpsSample | None = None,
    ) -> Optional[Alert]:
        """Alert when the agent is farther than the threshold from every planned stop."""

        now = now or local_now()
        route = self._require_route(route_id)
        position = position or self.tracker.current_position(agent_id, now)
        if position is None:
            return None

        stops = self.repository.get_route_stops(route_id)
        if not stops:
            return None
        customers = self.repository.get_locations(stop.customer_id for stop in stops)
        nearest = nearest_stop(position, stops, customers)
        if nearest is None:
            logger.warning(f"Route {route_id} has no stops with coordinates, skipping deviation check")
            return None

        distance, _, customer = nearest
        severity = deviation_severity(distance)
        if severity is None:
            return None

        message = (
            f"Agent {agent_id} is {round(distance)}m away from the nearest planned stop "
            f"on route \"{route.name}\"."
        )
        return self._raise(
            Alert(
                agent_id=agent_id,
                route_id=route_id,
                alert_type=AlertType.ROUTE_DEVIATION,
                severity=severity,
                message=message,
                metadata={
                    "distance": distance,
                    "nearest_stop": customer.name,
                    "nearest_customer_id": customer.id,
                    "current_location": {"lat": position.latitude, "lon": position.longitude},
                    "is_virtual_position": position.is_virtual,
                },
                created_at=now,
            ),
            now,
        )

    def check_route_delay(
        self,
        agent_id: str,
        route_id: str,
        *,
        now: datetime | None = None,
    ) -> list[Alert]:
        """One alert per stop that is past its planned arrival by more than the threshold."""

        now = now or local_now()
        route = self._require_route(route_id)
        stops = self.repository.get_route_stops(route_id)
        if not stops:
            return []
        visits = self.repository.get_visits_since(agent_id, start_of_day(now))
        customers = self.repository.get_locations(stop.customer_id for stop in stops)

        alerts: list[Alert] = []
        for stop in stops:
            if stop.planned_arrival is None:
                continue
            minutes_late = math.floor(minutes_between(stop.planned_arrival, now))
            severity = delay_severity(minutes_late)
            if severity is None:
                continue
            if completed_today(visits, stop.customer_id, agent_id=agent_id, now=now) is not None:
                continue

            customer = customers.get(stop.customer_id)
            customer_name = customer.name if customer else "customer"
            created = self._raise(
                Alert(
                    agent_id=agent_id,
                    route_id=route_id,
                    alert_type=AlertType.SIGNIFICANT_DELAY,
                    severity=severity,
                    message=(
                        f"Agent {agent_id} is {minutes_late} minutes late for planned visit to "
                        f"{customer_name} on route \"{route.name}\"."
                    ),
                    metadata={
                        "minutes_late": minutes_late,
                        "customer_id": stop.customer_id,
                        "customer_name": customer.name if customer else None,
                        "stop_order": stop.stop_order,
                        "planned_arrival": ensure_aware(stop.planned_arrival).isoformat(),
                    },
                    created_at=now,
                ),
                now,
            )
            if created is not None:
                alerts.append(created)
        return alerts

    def check_missed_stops(
        self,
        agent_id: str,
        route_id: str,
        *,
        now: datetime | None = None,
    ) -> list[Alert]:
        """Stops skipped over: overdue and not done while a later stop is already done."""

        now = now or local_now()
        route = self._require_route(route_id)
        stops = self.repository.get_route_stops(route_id)
        if not stops:
            return []
        visits = self.repository.get_visits_since(agent_id, start_of_day(now))
        done_orders = [
            stop.stop_order
            for stop in stops
            if completed_today(visits, stop.customer_id, agent_id=agent_id, now=now) is not None
        ]
        if not done_orders:
            return []
        last_done = max(done_orders)
        customers = self.repository.get_locations(stop.customer_id for stop in stops)

        alerts: list[Alert] = []
        for stop in stops:
            if stop.stop_order >= last_done or stop.stop_order in done_orders:
                continue
            if stop.planned_arrival is None or ensure_aware(stop.planned_arrival) > ensure_aware(now):
                continue
            customer = customers.get(stop.customer_id)
            customer_name = customer.name if customer else "customer"
            created = self._raise(
                Alert(
                    agent_id=agent_id,
                    route_id=route_id,
                    alert_type=AlertType.MISSED_STOP,
                    severity=AlertSeverity.HIGH,
                    message=(
                        f"Agent {agent_id} skipped stop {stop.stop_order} ({customer_name}) "
                        f"on route \"{route.name}\"."
                    ),
                    metadata={
                        "customer_id": stop.customer_id,
                        "customer_name": customer.name if customer else None,
                        "stop_order": stop.stop_order,
                        "planned_arrival": ensure_aware(stop.planned_arrival).isoformat(),
                    },
                    created_at=now,
                ),
                now,
            )
            if created is not None:
                alerts.append(created)
        return alerts

    def check_extended_visit(
        self,
        agent_id: str,
        route_id: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Optional[Alert]:
        """Alert when the agent's open check-in has lasted longer than expected."""

        now = now or local_now()
        visit = self.repository.get_open_visit(agent_id)
        if visit is None:
            return None
        minutes_on_site = math.floor(minutes_between(visit.check_in_time, now))
        severity = extended_visit_severity(minutes_on_site)
        if severity is None:
            return None

        customer = self.repository.get_location(visit.customer_id)
        customer_name = customer.name if customer else "customer"
        return self._raise(
            Alert(
                agent_id=agent_id,
                route_id=route_id,
                alert_type=AlertType.EXTENDED_VISIT,
                severity=severity,
                message=f"Agent {agent_id} has been checked in at {customer_name} for {minutes_on_site} minutes.",
                metadata={
                    "customer_id": visit.customer_id,
                    "customer_name": customer.name if customer else None,
                    "minutes_on_site": minutes_on_site,
                    "check_in_time": ensure_aware(visit.check_in_time).isoformat(),
                },
                created_at=now,
            ),
            now,
        )

    def check_route(
        self,
        agent_id: str,
        route_id: str,
        *,
        now: datetime | None = None,
        position: GpsSample | None = None,
    ) -> list[Alert]:
        """Every check for one agent's active route, from one position snapshot."""

        now = now or local_now()
        route = self._require_route(route_id)
        if route.agent_id != agent_id:
            raise ValueError(f"Route {route_id} is assigned to agent {route.agent_id}, not {agent_id}.")
        position = position or self.tracker.current_position(agent_id, now)
        alerts: list[Alert] = []
        if position is not None:
            deviation = self.check_route_deviation(agent_id, route_id, now=now, position=position)
            if deviation is not None:
                alerts.append(deviation)
        alerts.extend(self.check_route_delay(agent_id, route_id, now=now))
        alerts.extend(self.check_missed_stops(agent_id, route_id, now=now))
        extended = self.check_extended_visit(agent_id, route_id, now=now)
        if extended is not None:
            alerts.append(extended)
        return alerts
