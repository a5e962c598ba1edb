"""Alert schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from ..models.domain import Alert


class AlertModel(BaseModel):
    id: Optional[str] = None
    agent_id: str
    route_id: Optional[str] = None
    alert_type: str
    severity: str
    message: str
    metadata: Dict[str, Any]
    is_read: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, alert: Alert) -> "AlertModel":
        return cls(
            id=alert.id,
            agent_id=alert.agent_id,
            route_id=alert.route_id,
            alert_type=alert.alert_type.value,
            severity=alert.severity.value,
            message=alert.message,
            metadata=alert.metadata,
            is_read=alert.is_read,
            created_at=alert.created_at,
        )


class AlertCheckRequest(BaseModel):
    agent_id: str
    route_id: str


class AlertCheckResponse(BaseModel):
    agent_id: str
    route_id: str
    created: int
    alerts: List[AlertModel]


class AlertListResponse(BaseModel):
    count: int
    alerts: List[AlertModel]
