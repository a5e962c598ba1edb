"""Distance, duration and efficiency figures for an ordered stop sequence."""

from __future__ import annotations

import uuid
from typing import Sequence

from ...config import settings
from ...models.domain import Location, Route
from ..geospatial import path_length_km


def route_distance_km(locations: Sequence[Location]) -> float:
    """Straight-line length of the route from its first stop to its last."""

    return path_length_km(location.coordinates for location in locations)


def visit_minutes(location: Location, default_visit_minutes: int | None = None) -> int:
    if location.visit_duration_minutes is not None:
        return location.visit_duration_minutes
    return settings.default_visit_minutes if default_visit_minutes is None else default_visit_minutes


def travel_minutes(distance_km: float, *, minutes_per_km: float | None = None) -> float:
    rate = settings.minutes_per_km if minutes_per_km is None else minutes_per_km
    return distance_km * rate


def estimate_duration_minutes(
    distance_km: float,
    locations: Sequence[Location],
    *,
    minutes_per_km: float | None = None,
    default_visit_minutes: int | None = None,
) -> float:
    """Travel time for the distance plus the on-site time of every stop."""

    on_site = sum(visit_minutes(location, default_visit_minutes) for location in locations)
    return travel_minutes(distance_km, minutes_per_km=minutes_per_km) + on_site


def efficiency_score(
    stop_count: int,
    total_distance_km: float,
    estimated_duration_min: float,
    *,
    ideal_km_per_stop: float | None = None,
    ideal_minutes_per_stop: float | None = None,
) -> int:
    """Score 0-100: distance (max 50) + time (max 30) + stop density (max 20)."""

    if stop_count == 0:
        return 0

    km_per_stop = settings.ideal_km_per_stop if ideal_km_per_stop is None else ideal_km_per_stop
    min_per_stop = settings.ideal_minutes_per_stop if ideal_minutes_per_stop is None else ideal_minutes_per_stop
    ideal_distance = stop_count * km_per_stop
    ideal_duration = stop_count * min_per_stop

    if total_distance_km > 0:
        distance_part = min(50.0, ideal_distance / total_distance_km * 50)
        stop_part = min(20.0, stop_count / total_distance_km * 20)
    else:
        distance_part = 50.0
        stop_part = 20.0

    if estimated_duration_min > 0:
        time_part = min(30.0, ideal_duration / estimated_duration_min * 30)
    else:
        time_part = 30.0

    return int(round(distance_part + time_part + stop_part))


def make_route(
    locations: Sequence[Location],
    *,
    method: str,
    origin: tuple[float, float] | None = None,
    route_id: str | None = None,
) -> Route:
    ordered = tuple(locations)
    distance = route_distance_km(ordered)
    duration = estimate_duration_minutes(distance, ordered)
    return Route(
        id=route_id or uuid.uuid4().hex,
        locations=ordered,
        total_distance_km=distance,
        estimated_duration_min=duration,
        efficiency_score=efficiency_score(len(ordered), distance, duration),
        method=method,
        origin=origin,
    )
