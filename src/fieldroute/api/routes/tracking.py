"""Live tracking endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...exceptions import RouteNotFoundError
from ...persistence import FieldDataRepository
from ...schemas.tracking import (
    ActivePositionsResponse,
    AgentPositionResponse,
    GpsSampleRequest,
    PositionModel,
    RouteProgressResponse,
)
from ...services.clock import local_now
from ...services.tracking.classifier import summarize_route
from ...services.tracking.position import PositionTracker
from ..dependencies import get_position_tracker, get_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.post("/samples", response_model=PositionModel, status_code=status.HTTP_201_CREATED)
def record_sample(
    payload: GpsSampleRequest,
    tracker: PositionTracker = Depends(get_position_tracker),
) -> PositionModel:
    sample = tracker.record_sample(payload.to_domain(local_now()))
    return PositionModel.from_domain(sample)


@router.get("/agents/{agent_id}/position", response_model=AgentPositionResponse, status_code=status.HTTP_200_OK)
def agent_position(
    agent_id: str,
    tracker: PositionTracker = Depends(get_position_tracker),
) -> AgentPositionResponse:
    """Current position; ``position`` is null when nothing is known about the agent."""
    position = tracker.current_position(agent_id)
    return AgentPositionResponse(
        agent_id=agent_id,
        position=PositionModel.from_domain(position) if position else None,
    )


@router.get("/active", response_model=ActivePositionsResponse, status_code=status.HTTP_200_OK)
def active_positions(tracker: PositionTracker = Depends(get_position_tracker)) -> ActivePositionsResponse:
    positions = tracker.active_positions()
    return ActivePositionsResponse(
        count=len(positions),
        positions=[PositionModel.from_domain(sample) for sample in positions],
    )


@router.get("/routes/{route_id}/progress", response_model=RouteProgressResponse, status_code=status.HTTP_200_OK)
def route_progress(
    route_id: str,
    repository: FieldDataRepository = Depends(get_repository),
    tracker: PositionTracker = Depends(get_position_tracker),
) -> RouteProgressResponse:
    try:
        progress = summarize_route(repository, route_id, tracker=tracker)
    except RouteNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error summarizing route {route_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to summarize route: {str(exc)}",
        ) from exc
    return RouteProgressResponse.from_domain(progress)
