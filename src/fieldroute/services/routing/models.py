"""Routing result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from ...models.domain import Route, RouteRecord, RouteStop


@dataclass(slots=True)
class RouteComparison:
    distance_saved_km: float
    time_saved_min: float
    efficiency_gain_pct: float


@dataclass(slots=True)
class RouteSuggestion:
    label: str
    route: Route
    estimated_revenue: float
    confidence: float
    reasoning: List[str] = field(default_factory=list)


@dataclass(slots=True)
class PlannedRoute:
    record: RouteRecord
    route: Route
    stops: List[RouteStop]


@dataclass(slots=True)
class PlanningResult:
    agent_id: str
    plans: List[PlannedRoute]
    metadata: dict
