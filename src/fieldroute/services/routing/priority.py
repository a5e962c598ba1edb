"""Priority-weighted route construction.

Customers are scored on how often they should be seen, what they usually
order and how long it has been since the last visit. The best ``top_k`` are
kept and then visited in order of distance from the origin, so the day still
reads sensibly on a map.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ...config import settings
from ...models.domain import Location
from ..clock import ensure_aware, local_now
from ..geospatial import haversine_km
from .base import ConstructionStrategy

SECONDS_PER_DAY = 86400.0
RECENCY_HORIZON_DAYS = 30.0


def score_location(
    location: Location,
    *,
    now: datetime,
    weights: Sequence[float] | None = None,
    default_order_value: float | None = None,
) -> float:
    frequency_weight, value_weight, recency_weight = weights or settings.priority_weights
    order_value = location.average_order_value
    if order_value is None:
        order_value = settings.default_order_value if default_order_value is None else default_order_value
    frequency = location.visit_frequency if location.visit_frequency is not None else 1.0

    if location.last_visit_at is not None:
        elapsed = (ensure_aware(now) - ensure_aware(location.last_visit_at)).total_seconds()
        recency = elapsed / SECONDS_PER_DAY / RECENCY_HORIZON_DAYS
    else:
        recency = 1.0

    return frequency * frequency_weight + order_value / 1000 * value_weight + recency * recency_weight


class PriorityConstruction(ConstructionStrategy):
    name = "priority"

    def __init__(
        self,
        top_k: int | None = None,
        weights: Sequence[float] | None = None,
        now: datetime | None = None,
    ) -> None:
        self.top_k = top_k if top_k is not None else settings.priority_top_k
        if self.top_k < 1:
            raise ValueError("top_k must be >= 1")
        self.weights = tuple(weights) if weights is not None else settings.priority_weights
        if len(self.weights) != 3:
            raise ValueError("weights needs exactly three values")
        self.now = now

    def order(
        self,
        locations: Sequence[Location],
        *,
        origin: tuple[float, float],
    ) -> list[Location]:
        now = self.now or local_now()
        ranked = sorted(
            enumerate(locations),
            key=lambda item: (
                -score_location(item[1], now=now, weights=self.weights),
                -item[1].priority,
                item[0],
            ),
        )
        selected = [location for _, location in ranked[: self.top_k]]
        return sorted(
            selected,
            key=lambda location: haversine_km(origin[0], origin[1], location.latitude, location.longitude),
        )
