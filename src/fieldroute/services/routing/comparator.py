"""Deltas between two candidate routes."""

from __future__ import annotations

from ...models.domain import Route
from .models import RouteComparison


def compare_routes(original: Route, optimized: Route) -> RouteComparison:
    """Positive values mean ``optimized`` is shorter / faster than ``original``."""

    distance_saved = original.total_distance_km - optimized.total_distance_km
    time_saved = original.estimated_duration_min - optimized.estimated_duration_min
    if original.total_distance_km > 0:
        efficiency_gain = distance_saved / original.total_distance_km * 100
    else:
        efficiency_gain = 0.0
    return RouteComparison(
        distance_saved_km=distance_saved,
        time_saved_min=time_saved,
        efficiency_gain_pct=efficiency_gain,
    )
