"""Alternative route suggestions for a day's candidate customers."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Location, Route
from .comparator import compare_routes
from .constructor import build_route
from .models import RouteSuggestion
from .refiner import refine_route

SUGGESTION_REFINE_ITERATIONS = 50


def _estimated_revenue(route: Route) -> float:
    return sum(
        location.average_order_value if location.average_order_value is not None else settings.default_order_value
        for location in route.locations
    )


def generate_route_suggestions(
    locations: Sequence[Location],
    origin: tuple[float, float] | None = None,
    max_suggestions: int = 3,
    *,
    now: datetime | None = None,
) -> list[RouteSuggestion]:
    """Up to three candidates: fastest to compute, shortest, and highest value.

    Returned best-confidence first.
    """
    if max_suggestions < 1:
        return []

    suggestions: list[RouteSuggestion] = []

    nearest = build_route(locations, origin, "nearest-neighbor")
    suggestions.append(
        RouteSuggestion(
            label="nearest-neighbor",
            route=nearest,
            estimated_revenue=_estimated_revenue(nearest),
            confidence=75,
            reasoning=[
                "Uses nearest neighbor algorithm for fast optimization",
                f"Total distance: {nearest.total_distance_km:.1f} km",
                f"Estimated stops: {nearest.stop_count}",
            ],
        )
    )

    if max_suggestions > 1:
        refined = refine_route(nearest, SUGGESTION_REFINE_ITERATIONS)
        improvement = compare_routes(nearest, refined).efficiency_gain_pct
        suggestions.append(
            RouteSuggestion(
                label="two-opt",
                route=refined,
                estimated_revenue=_estimated_revenue(refined),
                confidence=85,
                reasoning=[
                    "Uses 2-opt algorithm for advanced optimization",
                    f"Total distance: {refined.total_distance_km:.1f} km",
                    f"Improvement: {improvement:.1f}% shorter than nearest neighbor",
                    f"Estimated stops: {refined.stop_count}",
                ],
            )
        )

    if max_suggestions > 2:
        prioritized = build_route(locations, origin, "priority", now=now)
        revenue = _estimated_revenue(prioritized)
        suggestions.append(
            RouteSuggestion(
                label="priority",
                route=prioritized,
                estimated_revenue=revenue,
                confidence=70,
                reasoning=[
                    "Prioritizes high-value customers and frequent visitors",
                    f"Total distance: {prioritized.total_distance_km:.1f} km",
                    f"Estimated revenue: ${revenue:.0f}",
                    f"Focuses on {prioritized.stop_count} highest-priority customers",
                ],
            )
        )

    return sorted(suggestions, key=lambda suggestion: suggestion.confidence, reverse=True)


def recommend_route(suggestions: Sequence[RouteSuggestion]) -> Optional[RouteSuggestion]:
    if not suggestions:
        return None

    def weighted(suggestion: RouteSuggestion) -> float:
        return (
            suggestion.confidence * 0.4
            + suggestion.estimated_revenue / 1000 * 0.3
            + (1 - suggestion.route.total_distance_km / 100) * 0.3
        )

    return max(suggestions, key=weighted)
