"""Routing orchestration service."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time, timedelta
from typing import Sequence

from ...config import settings
from ...models.domain import Location, Route, RouteRecord, RouteStatus, RouteStop
from ...persistence.repository import FieldDataRepository
from ..clock import local_zone
from ..geospatial import haversine_km
from .metrics import travel_minutes, visit_minutes
from .models import PlannedRoute, PlanningResult
from .partitioner import split_into_routes

logger = logging.getLogger(__name__)


def resolve_locations(
    repository: FieldDataRepository,
    customer_ids: Sequence[str],
) -> tuple[list[Location], list[str]]:
    """Load customer snapshots, keeping request order; report ids with no usable coordinates."""

    found = repository.get_locations(customer_ids)
    locations: list[Location] = []
    missing: list[str] = []
    for cid in dict.fromkeys(customer_ids):
        location = found.get(cid)
        if location is None:
            missing.append(cid)
        else:
            locations.append(location)
    if missing:
        logger.warning(f"{len(missing)} customer(s) not found or without coordinates: {missing}")
    return locations, missing


def schedule_stops(route: Route, route_id: str, start_time: datetime) -> list[RouteStop]:
    """Dense 1-based stop orders with planned arrivals from the route's time model.

    The first stop is planned at ``start_time``; each following arrival adds
    the previous stop's visit time and the straight-line travel time.
    """
    stops: list[RouteStop] = []
    arrival = start_time
    previous: Location | None = None
    for order, location in enumerate(route.locations, start=1):
        if previous is not None:
            leg_km = haversine_km(previous.latitude, previous.longitude, location.latitude, location.longitude)
            arrival = arrival + timedelta(minutes=visit_minutes(previous) + travel_minutes(leg_km))
        stops.append(
            RouteStop(
                route_id=route_id,
                customer_id=location.id,
                stop_order=order,
                planned_arrival=arrival,
            )
        )
        previous = location
    return stops


def plan_routes(
    repository: FieldDataRepository,
    *,
    agent_id: str,
    locations: Sequence[Location],
    route_date: date,
    start_time: datetime | None = None,
    origin: tuple[float, float] | None = None,
    method: str = "nearest-neighbor",
    max_stops_per_route: int | None = None,
    max_iterations: int | None = None,
    route_name: str | None = None,
    persist: bool = True,
) -> PlanningResult:
    """Build, refine and split the agent's stops, then store routes and stops."""

    metadata: dict = {
        "method": method,
        "route_date": route_date.isoformat(),
        "requested_stops": len(locations),
    }

    routes = split_into_routes(
        locations,
        max_stops_per_route,
        origin=origin,
        method=method,
        max_iterations=max_iterations,
    )
    if not routes or all(route.stop_count == 0 for route in routes):
        logger.info(f"Nothing to optimize for agent {agent_id} on {route_date}")
        metadata["status"] = "nothing_to_optimize"
        return PlanningResult(agent_id=agent_id, plans=[], metadata=metadata)

    start = start_time or datetime.combine(route_date, time(hour=settings.workday_start_hour), tzinfo=local_zone())
    base_name = route_name or f"{agent_id} {route_date.isoformat()}"

    plans: list[PlannedRoute] = []
    for index, route in enumerate(routes, start=1):
        record = RouteRecord(
            id=uuid.uuid4().hex,
            agent_id=agent_id,
            name=base_name if len(routes) == 1 else f"{base_name} ({index}/{len(routes)})",
            route_date=route_date,
            status=RouteStatus.PLANNED,
        )
        stops = schedule_stops(route, record.id, start)
        if persist:
            repository.save_route(record, stops)
        plans.append(PlannedRoute(record=record, route=route, stops=stops))

    metadata.update(
        {
            "status": "complete",
            "route_count": len(plans),
            "total_stops": sum(len(plan.stops) for plan in plans),
            "total_distance_km": sum(plan.route.total_distance_km for plan in plans),
            "persisted": persist,
        }
    )
    logger.info(
        f"Planned {len(plans)} route(s) with {metadata['total_stops']} stops for agent {agent_id} on {route_date}"
    )
    return PlanningResult(agent_id=agent_id, plans=plans, metadata=metadata)
