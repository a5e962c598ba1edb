"""Factory for route construction strategies based on user selection."""

from __future__ import annotations

from typing import Any, Sequence

from ...models.domain import Location
from .base import ConstructionStrategy
from .nearest_neighbor import NearestNeighborConstruction
from .priority import PriorityConstruction

METHODS = ("nearest-neighbor", "priority")


def get_strategy(method: str, **kwargs: Any) -> ConstructionStrategy:
    match method:
        case "nearest-neighbor":
            return NearestNeighborConstruction()
        case "priority":
            priority_kwargs = {k: v for k, v in kwargs.items() if k in {"top_k", "weights", "now"}}
            return PriorityConstruction(**priority_kwargs)
        case _:
            raise ValueError(f"Unknown construction method '{method}'.")


def execute_strategy(
    method: str,
    *,
    locations: Sequence[Location],
    origin: tuple[float, float],
    **kwargs: Any,
) -> list[Location]:
    strategy = get_strategy(method, **kwargs)
    return strategy.order(locations, origin=origin)
