"""Build an initial route from an unordered set of locations."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ...config import settings
from ...models.domain import Location, Route
from .dispatcher import execute_strategy
from .metrics import make_route

logger = logging.getLogger(__name__)


def build_route(
    locations: Sequence[Location],
    origin: tuple[float, float] | None = None,
    method: str = "nearest-neighbor",
    *,
    route_id: str | None = None,
    **strategy_options: Any,
) -> Route:
    """Order ``locations`` with the chosen heuristic and compute the route figures.

    An empty input gives an empty route with zero distance; a single location
    is trivially optimal.
    """
    start = tuple(origin) if origin is not None else tuple(settings.default_origin)
    ordered = execute_strategy(method, locations=locations, origin=start, **strategy_options)
    route = make_route(ordered, method=method, origin=start, route_id=route_id)
    logger.debug(
        f"Built {method} route {route.id}: {route.stop_count} stops, {route.total_distance_km:.2f} km"
    )
    return route
