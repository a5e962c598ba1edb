"""2-opt local search over a constructed route."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import Location, Route
from .metrics import make_route, route_distance_km

logger = logging.getLogger(__name__)


def two_opt(locations: Sequence[Location], max_iterations: int) -> list[Location]:
    """Reverse sub-segments while doing so strictly shortens the route.

    One iteration is a full pass over every pair (i, j) with j >= i + 2. The
    search stops after a pass with no improvement or after ``max_iterations``
    passes. The first stop never moves.
    """
    if max_iterations < 0:
        raise ValueError("max_iterations must be >= 0")

    best = list(locations)
    best_distance = route_distance_km(best)
    improved = True
    iteration = 0

    while improved and iteration < max_iterations:
        improved = False
        iteration += 1
        for i in range(len(best) - 1):
            for j in range(i + 2, len(best)):
                candidate = best[: i + 1] + best[i + 1 : j + 1][::-1] + best[j + 1 :]
                candidate_distance = route_distance_km(candidate)
                if candidate_distance < best_distance:
                    best = candidate
                    best_distance = candidate_distance
                    improved = True

    logger.debug(f"2-opt finished after {iteration} iteration(s), distance {best_distance:.3f} km")
    return best


def refine_route(route: Route, max_iterations: int | None = None) -> Route:
    """Return a new route that is never longer than ``route``."""

    iterations = settings.two_opt_max_iterations if max_iterations is None else max_iterations
    refined = two_opt(route.locations, iterations)
    method = route.method if route.method.endswith("+2-opt") else f"{route.method}+2-opt"
    return make_route(refined, method=method, origin=route.origin)
