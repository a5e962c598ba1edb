"""Greedy nearest-neighbor route construction."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Location
from ..geospatial import haversine_km
from .base import ConstructionStrategy


class NearestNeighborConstruction(ConstructionStrategy):
    """Always move to the closest location not yet on the route.

    Equal distances resolve to the location that came first in the input.
    """

    name = "nearest-neighbor"

    def order(
        self,
        locations: Sequence[Location],
        *,
        origin: tuple[float, float],
    ) -> list[Location]:
        remaining = list(locations)
        ordered: list[Location] = []
        current_lat, current_lon = origin

        while remaining:
            best_index = 0
            best_distance = haversine_km(current_lat, current_lon, remaining[0].latitude, remaining[0].longitude)
            for index in range(1, len(remaining)):
                candidate = remaining[index]
                distance = haversine_km(current_lat, current_lon, candidate.latitude, candidate.longitude)
                if distance < best_distance:
                    best_index = index
                    best_distance = distance

            nearest = remaining.pop(best_index)
            ordered.append(nearest)
            current_lat, current_lon = nearest.latitude, nearest.longitude

        return ordered
