"""Completed / active / pending status for planned stops.

Status is never stored; it is recomputed from today's visits and the agent's
current position on every read.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional

from ...config import settings
from ...exceptions import RouteNotFoundError
from ...models.domain import GpsSample, Location, RouteStop, StopStatus, Visit
from ...persistence.repository import FieldDataRepository
from ..clock import ensure_aware, local_now, start_of_day
from ..geospatial import haversine_m
from .models import RouteProgress, StopProgress
from .position import PositionTracker


def completed_today(
    visits: Iterable[Visit],
    customer_id: str,
    *,
    agent_id: str | None = None,
    now: datetime | None = None,
) -> Optional[Visit]:
    """A checked-out visit to ``customer_id`` that was checked in today."""

    day_start = start_of_day(now or local_now())
    day_end = day_start + timedelta(days=1)
    for visit in visits:
        if visit.customer_id != customer_id or not visit.is_completed:
            continue
        if agent_id is not None and visit.agent_id != agent_id:
            continue
        if day_start <= ensure_aware(visit.check_in_time) < day_end:
            return visit
    return None


def distance_to_stop_m(position: Optional[GpsSample], customer: Optional[Location]) -> Optional[float]:
    if position is None or customer is None:
        return None
    return haversine_m(position.latitude, position.longitude, customer.latitude, customer.longitude)


def classify_stop(
    stop: RouteStop,
    customer: Optional[Location],
    current_position: Optional[GpsSample],
    visits: Iterable[Visit],
    *,
    agent_id: str | None = None,
    now: datetime | None = None,
    radius_m: float | None = None,
) -> StopStatus:
    if completed_today(visits, stop.customer_id, agent_id=agent_id, now=now) is not None:
        return StopStatus.COMPLETED

    radius = settings.proximity_radius_meters if radius_m is None else radius_m
    distance = distance_to_stop_m(current_position, customer)
    if distance is not None and distance <= radius:
        return StopStatus.ACTIVE
    return StopStatus.PENDING


def summarize_route(
    repository: FieldDataRepository,
    route_id: str,
    *,
    tracker: PositionTracker | None = None,
    now: datetime | None = None,
) -> RouteProgress:
    route = repository.get_route(route_id)
    if route is None:
        raise RouteNotFoundError(route_id)

    now = now or local_now()
    tracker = tracker or PositionTracker(repository)
    position = tracker.current_position(route.agent_id, now)
    stops = repository.get_route_stops(route_id)
    customers = repository.get_locations(stop.customer_id for stop in stops)
    visits = repository.get_visits_since(route.agent_id, start_of_day(now))

    progress = RouteProgress(route=route, position=position)
    for stop in stops:
        customer = customers.get(stop.customer_id)
        progress.stops.append(
            StopProgress(
                stop=stop,
                customer=customer,
                status=classify_stop(stop, customer, position, visits, agent_id=route.agent_id, now=now),
                distance_m=distance_to_stop_m(position, customer),
            )
        )
    return progress
