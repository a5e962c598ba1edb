"""Alert endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...exceptions import RouteNotFoundError
from ...persistence import FieldDataRepository
from ...schemas.alerts import AlertCheckRequest, AlertCheckResponse, AlertListResponse, AlertModel
from ...services.alerts.engine import AlertEngine
from ..dependencies import get_alert_engine, get_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.post("/check", response_model=AlertCheckResponse, status_code=status.HTTP_200_OK)
def check_route(
    payload: AlertCheckRequest,
    engine: AlertEngine = Depends(get_alert_engine),
) -> AlertCheckResponse:
    """Run every check for one agent's route now, outside the monitor's cadence."""
    try:
        alerts = engine.check_route(payload.agent_id, payload.route_id)
    except RouteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error checking route {payload.route_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to check route: {str(exc)}",
        ) from exc
    return AlertCheckResponse(
        agent_id=payload.agent_id,
        route_id=payload.route_id,
        created=len(alerts),
        alerts=[AlertModel.from_domain(alert) for alert in alerts],
    )


@router.get("", response_model=AlertListResponse, status_code=status.HTTP_200_OK)
def list_alerts(
    agent_id: str | None = Query(default=None, description="Only alerts for this agent"),
    unread_only: bool = Query(default=False),
    repository: FieldDataRepository = Depends(get_repository),
) -> AlertListResponse:
    alerts = repository.list_alerts(agent_id=agent_id, unread_only=unread_only)
    return AlertListResponse(count=len(alerts), alerts=[AlertModel.from_domain(alert) for alert in alerts])


@router.post("/{alert_id}/read", status_code=status.HTTP_200_OK)
def mark_read(alert_id: str, repository: FieldDataRepository = Depends(get_repository)) -> dict:
    if not repository.mark_alert_read(alert_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Alert '{alert_id}' not found.")
    return {"success": True, "alert_id": alert_id}
