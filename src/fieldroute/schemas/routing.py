"""Routing request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from ..models.domain import Location, Route, RouteStop
from ..services.routing.models import PlannedRoute, RouteComparison, RouteSuggestion


class LocationModel(BaseModel):
    id: str
    name: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    visit_duration_minutes: Optional[int] = Field(default=None, ge=0)
    priority: int = 3
    visit_frequency: Optional[float] = None
    average_order_value: Optional[float] = None
    last_visit_at: Optional[datetime] = None

    def to_domain(self) -> Location:
        return Location(
            id=self.id,
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            visit_duration_minutes=self.visit_duration_minutes,
            priority=self.priority,
            visit_frequency=self.visit_frequency,
            average_order_value=self.average_order_value,
            last_visit_at=self.last_visit_at,
        )

    @classmethod
    def from_domain(cls, location: Location) -> "LocationModel":
        return cls(
            id=location.id,
            name=location.name,
            latitude=location.latitude,
            longitude=location.longitude,
            visit_duration_minutes=location.visit_duration_minutes,
            priority=location.priority,
            visit_frequency=location.visit_frequency,
            average_order_value=location.average_order_value,
            last_visit_at=location.last_visit_at,
        )


class BuildRouteRequest(BaseModel):
    locations: List[LocationModel]
    origin: Optional[Tuple[float, float]] = Field(default=None, description="(latitude, longitude) start point")
    method: str = Field(default="nearest-neighbor", description="'nearest-neighbor' or 'priority'")


class RouteInput(BaseModel):
    """An already ordered route, e.g. the order an agent used to follow."""

    locations: List[LocationModel]
    origin: Optional[Tuple[float, float]] = None
    method: str = "manual"


class RefineRouteRequest(BaseModel):
    route: RouteInput
    max_iterations: Optional[int] = Field(default=None, ge=0)


class SplitRoutesRequest(BaseModel):
    locations: List[LocationModel]
    max_stops_per_route: Optional[int] = Field(default=None, ge=1)
    origin: Optional[Tuple[float, float]] = None
    method: str = "nearest-neighbor"
    max_iterations: Optional[int] = Field(default=None, ge=0)


class CompareRoutesRequest(BaseModel):
    original: RouteInput
    optimized: RouteInput


class SuggestionsRequest(BaseModel):
    locations: List[LocationModel]
    origin: Optional[Tuple[float, float]] = None
    max_suggestions: int = Field(default=3, ge=1, le=3)


class PlanRoutesRequest(BaseModel):
    agent_id: str
    route_date: date
    customer_ids: Optional[List[str]] = Field(
        default=None,
        description="Customers to load from the store. Ignored when locations are given.",
    )
    locations: Optional[List[LocationModel]] = None
    start_time: Optional[datetime] = None
    origin: Optional[Tuple[float, float]] = None
    method: str = "nearest-neighbor"
    max_stops_per_route: Optional[int] = Field(default=None, ge=1)
    max_iterations: Optional[int] = Field(default=None, ge=0)
    route_name: Optional[str] = None
    persist: bool = True


class RouteModel(BaseModel):
    id: str
    method: str
    stop_count: int
    total_distance_km: float
    estimated_duration_min: float
    efficiency_score: int
    origin: Optional[Tuple[float, float]] = None
    locations: List[LocationModel]

    @classmethod
    def from_domain(cls, route: Route) -> "RouteModel":
        return cls(
            id=route.id,
            method=route.method,
            stop_count=route.stop_count,
            total_distance_km=round(route.total_distance_km, 2),
            estimated_duration_min=round(route.estimated_duration_min, 1),
            efficiency_score=route.efficiency_score,
            origin=route.origin,
            locations=[LocationModel.from_domain(location) for location in route.locations],
        )


class SplitRoutesResponse(BaseModel):
    route_count: int
    routes: List[RouteModel]


class ComparisonModel(BaseModel):
    distance_saved_km: float
    time_saved_min: float
    efficiency_gain_pct: float

    @classmethod
    def from_domain(cls, comparison: RouteComparison) -> "ComparisonModel":
        return cls(
            distance_saved_km=round(comparison.distance_saved_km, 2),
            time_saved_min=round(comparison.time_saved_min, 1),
            efficiency_gain_pct=round(comparison.efficiency_gain_pct, 1),
        )


class SuggestionModel(BaseModel):
    label: str
    confidence: float
    estimated_revenue: float
    reasoning: List[str]
    route: RouteModel

    @classmethod
    def from_domain(cls, suggestion: RouteSuggestion) -> "SuggestionModel":
        return cls(
            label=suggestion.label,
            confidence=suggestion.confidence,
            estimated_revenue=round(suggestion.estimated_revenue, 2),
            reasoning=list(suggestion.reasoning),
            route=RouteModel.from_domain(suggestion.route),
        )


class SuggestionsResponse(BaseModel):
    recommended: Optional[str] = None
    suggestions: List[SuggestionModel]


class RouteStopModel(BaseModel):
    id: Optional[str] = None
    route_id: str
    customer_id: str
    stop_order: int
    planned_arrival: Optional[datetime] = None

    @classmethod
    def from_domain(cls, stop: RouteStop) -> "RouteStopModel":
        return cls(
            id=stop.id,
            route_id=stop.route_id,
            customer_id=stop.customer_id,
            stop_order=stop.stop_order,
            planned_arrival=stop.planned_arrival,
        )


class RoutePlanModel(BaseModel):
    route_id: str
    name: str
    route_date: date
    status: str
    route: RouteModel
    stops: List[RouteStopModel]

    @classmethod
    def from_domain(cls, plan: PlannedRoute) -> "RoutePlanModel":
        return cls(
            route_id=plan.record.id,
            name=plan.record.name,
            route_date=plan.record.route_date,
            status=plan.record.status.value,
            route=RouteModel.from_domain(plan.route),
            stops=[RouteStopModel.from_domain(stop) for stop in plan.stops],
        )


class PlanRoutesResponse(BaseModel):
    agent_id: str
    metadata: Dict
    plans: List[RoutePlanModel]
