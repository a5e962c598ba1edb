"""Split an oversized stop set into bounded sub-routes."""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import Location, Route
from .constructor import build_route
from .dispatcher import execute_strategy
from .refiner import refine_route

logger = logging.getLogger(__name__)


def _build_and_refine(
    locations: Sequence[Location],
    origin: tuple[float, float],
    method: str,
    max_iterations: int | None,
) -> Route:
    # priority construction would otherwise drop stops beyond its top-k
    options = {"top_k": len(locations)} if method == "priority" else {}
    return refine_route(build_route(locations, origin, method, **options), max_iterations)


def split_into_routes(
    locations: Sequence[Location],
    max_stops_per_route: int | None = None,
    *,
    origin: tuple[float, float] | None = None,
    method: str = "nearest-neighbor",
    max_iterations: int | None = None,
) -> list[Route]:
    """Partition ``locations`` into routes of at most ``max_stops_per_route`` stops.

    The full set is first put in nearest-neighbor order so that consecutive
    slices stay spatially coherent; every slice is then constructed and
    refined on its own. Each input location appears in exactly one route.
    """
    limit = settings.max_stops_per_route if max_stops_per_route is None else max_stops_per_route
    if limit < 1:
        raise ValueError("max_stops_per_route must be >= 1")
    if not locations:
        return []

    start = tuple(origin) if origin is not None else tuple(settings.default_origin)

    if len(locations) <= limit:
        return [_build_and_refine(locations, start, method, max_iterations)]

    ordered = execute_strategy("nearest-neighbor", locations=locations, origin=start)
    chunks = [ordered[index : index + limit] for index in range(0, len(ordered), limit)]
    logger.info(f"Splitting {len(locations)} locations into {len(chunks)} routes of at most {limit} stops")
    return [_build_and_refine(chunk, start, method, max_iterations) for chunk in chunks]
