"""Live tracking result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ...models.domain import GpsSample, Location, RouteRecord, RouteStop, StopStatus


@dataclass(slots=True)
class StopProgress:
    stop: RouteStop
    customer: Optional[Location]
    status: StopStatus
    distance_m: Optional[float] = None


@dataclass(slots=True)
class RouteProgress:
    route: RouteRecord
    position: Optional[GpsSample]
    stops: List[StopProgress] = field(default_factory=list)

    def count(self, status: StopStatus) -> int:
        return sum(1 for item in self.stops if item.status == status)

    @property
    def percent_complete(self) -> float:
        if not self.stops:
            return 0.0
        return self.count(StopStatus.COMPLETED) / len(self.stops) * 100
