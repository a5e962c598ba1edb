"""Live tracking schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import GpsSample, StopStatus
from ..services.tracking.models import RouteProgress, StopProgress


class GpsSampleRequest(BaseModel):
    agent_id: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timestamp: Optional[datetime] = Field(default=None, description="Defaults to the time of receipt.")
    speed: Optional[float] = None
    heading: Optional[float] = None
    accuracy: Optional[float] = None

    def to_domain(self, received_at: datetime) -> GpsSample:
        return GpsSample(
            agent_id=self.agent_id,
            latitude=self.latitude,
            longitude=self.longitude,
            timestamp=self.timestamp or received_at,
            speed=self.speed,
            heading=self.heading,
            accuracy=self.accuracy,
        )


class PositionModel(BaseModel):
    agent_id: str
    latitude: float
    longitude: float
    timestamp: datetime
    speed: Optional[float] = None
    heading: Optional[float] = None
    accuracy: Optional[float] = None
    is_virtual: bool = False
    visit_id: Optional[str] = None

    @classmethod
    def from_domain(cls, sample: GpsSample) -> "PositionModel":
        return cls(
            agent_id=sample.agent_id,
            latitude=sample.latitude,
            longitude=sample.longitude,
            timestamp=sample.timestamp,
            speed=sample.speed,
            heading=sample.heading,
            accuracy=sample.accuracy,
            is_virtual=sample.is_virtual,
            visit_id=sample.visit_id,
        )


class AgentPositionResponse(BaseModel):
    agent_id: str
    position: Optional[PositionModel] = None


class ActivePositionsResponse(BaseModel):
    count: int
    positions: List[PositionModel]


class StopProgressModel(BaseModel):
    customer_id: str
    customer_name: Optional[str] = None
    stop_order: int
    planned_arrival: Optional[datetime] = None
    status: str
    distance_m: Optional[float] = None

    @classmethod
    def from_domain(cls, item: StopProgress) -> "StopProgressModel":
        return cls(
            customer_id=item.stop.customer_id,
            customer_name=item.customer.name if item.customer else None,
            stop_order=item.stop.stop_order,
            planned_arrival=item.stop.planned_arrival,
            status=item.status.value,
            distance_m=round(item.distance_m, 1) if item.distance_m is not None else None,
        )


class RouteProgressResponse(BaseModel):
    route_id: str
    agent_id: str
    name: str
    completed: int
    active: int
    pending: int
    percent_complete: float
    position: Optional[PositionModel] = None
    stops: List[StopProgressModel]

    @classmethod
    def from_domain(cls, progress: RouteProgress) -> "RouteProgressResponse":
        return cls(
            route_id=progress.route.id,
            agent_id=progress.route.agent_id,
            name=progress.route.name,
            completed=progress.count(StopStatus.COMPLETED),
            active=progress.count(StopStatus.ACTIVE),
            pending=progress.count(StopStatus.PENDING),
            percent_complete=round(progress.percent_complete, 1),
            position=PositionModel.from_domain(progress.position) if progress.position else None,
            stops=[StopProgressModel.from_domain(item) for item in progress.stops],
        )
