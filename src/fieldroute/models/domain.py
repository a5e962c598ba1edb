"""Domain models for stops, routes, visits, GPS samples and alerts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional


class RouteStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class VisitStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class StopStatus(str, Enum):
    COMPLETED = "completed"
    ACTIVE = "active"
    PENDING = "pending"


class AlertType(str, Enum):
    ROUTE_DEVIATION = "route_deviation"
    SIGNIFICANT_DELAY = "significant_delay"
    MISSED_STOP = "missed_stop"
    EXTENDED_VISIT = "extended_visit"


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(slots=True, frozen=True)
class Location:
    """Snapshot of a customer location taken when a route is built."""

    id: str
    name: str
    latitude: float
    longitude: float
    visit_duration_minutes: Optional[int] = None
    priority: int = 3
    visit_frequency: Optional[float] = None
    average_order_value: Optional[float] = None
    last_visit_at: Optional[datetime] = None

    @property
    def coordinates(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(slots=True, frozen=True)
class Route:
    """An ordered visiting sequence. The order of ``locations`` is the route."""

    id: str
    locations: tuple[Location, ...]
    total_distance_km: float
    estimated_duration_min: float
    efficiency_score: int
    method: str = "nearest-neighbor"
    origin: Optional[tuple[float, float]] = None

    @property
    def stop_count(self) -> int:
        return len(self.locations)


@dataclass(slots=True)
class RouteRecord:
    """A persisted route assignment for one agent and one day."""

    id: str
    agent_id: str
    name: str
    route_date: date
    status: RouteStatus = RouteStatus.PLANNED


@dataclass(slots=True)
class RouteStop:
    route_id: str
    customer_id: str
    stop_order: int
    planned_arrival: Optional[datetime] = None
    id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class GpsSample:
    """A device position fix, or a virtual one derived from an open check-in."""

    agent_id: str
    latitude: float
    longitude: float
    timestamp: datetime
    speed: Optional[float] = None
    heading: Optional[float] = None
    accuracy: Optional[float] = None
    is_virtual: bool = False
    visit_id: Optional[str] = None


@dataclass(slots=True)
class Visit:
    agent_id: str
    customer_id: str
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    check_in_latitude: Optional[float] = None
    check_in_longitude: Optional[float] = None
    status: VisitStatus = VisitStatus.IN_PROGRESS
    id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None

    @property
    def is_completed(self) -> bool:
        return self.check_out_time is not None


@dataclass(slots=True)
class Alert:
    """Raised by the alerting engine. Only ``is_read`` changes after creation."""

    agent_id: str
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    route_id: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: Optional[str] = None
