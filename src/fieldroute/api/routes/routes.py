"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...persistence import FieldDataRepository
from ...schemas.routing import (
    BuildRouteRequest,
    CompareRoutesRequest,
    ComparisonModel,
    PlanRoutesRequest,
    PlanRoutesResponse,
    RefineRouteRequest,
    RouteInput,
    RouteModel,
    RoutePlanModel,
    SplitRoutesRequest,
    SplitRoutesResponse,
    SuggestionModel,
    SuggestionsRequest,
    SuggestionsResponse,
)
from ...services.routing import build_route, compare_routes, refine_route, split_into_routes
from ...services.routing.metrics import make_route
from ...services.routing.service import plan_routes, resolve_locations
from ...services.routing.suggestions import generate_route_suggestions, recommend_route
from ..dependencies import get_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/routes", tags=["routes"])


def _as_route(payload: RouteInput):
    origin = tuple(payload.origin) if payload.origin is not None else None
    return make_route([item.to_domain() for item in payload.locations], method=payload.method, origin=origin)


def _server_error(action: str, exc: Exception) -> HTTPException:
    logger.exception(f"Error {action}: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed {action}: {str(exc)}",
    )


@router.post("/build", response_model=RouteModel, status_code=status.HTTP_200_OK)
def build(payload: BuildRouteRequest) -> RouteModel:
    try:
        route = build_route([item.to_domain() for item in payload.locations], payload.origin, payload.method)
        return RouteModel.from_domain(route)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("building route", exc) from exc


@router.post("/refine", response_model=RouteModel, status_code=status.HTTP_200_OK)
def refine(payload: RefineRouteRequest) -> RouteModel:
    try:
        return RouteModel.from_domain(refine_route(_as_route(payload.route), payload.max_iterations))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("refining route", exc) from exc


@router.post("/split", response_model=SplitRoutesResponse, status_code=status.HTTP_200_OK)
def split(payload: SplitRoutesRequest) -> SplitRoutesResponse:
    try:
        routes = split_into_routes(
            [item.to_domain() for item in payload.locations],
            payload.max_stops_per_route,
            origin=payload.origin,
            method=payload.method,
            max_iterations=payload.max_iterations,
        )
        return SplitRoutesResponse(
            route_count=len(routes),
            routes=[RouteModel.from_domain(route) for route in routes],
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("splitting routes", exc) from exc


@router.post("/compare", response_model=ComparisonModel, status_code=status.HTTP_200_OK)
def compare(payload: CompareRoutesRequest) -> ComparisonModel:
    try:
        comparison = compare_routes(_as_route(payload.original), _as_route(payload.optimized))
        return ComparisonModel.from_domain(comparison)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("comparing routes", exc) from exc


@router.post("/suggestions", response_model=SuggestionsResponse, status_code=status.HTTP_200_OK)
def suggestions(payload: SuggestionsRequest) -> SuggestionsResponse:
    try:
        candidates = generate_route_suggestions(
            [item.to_domain() for item in payload.locations],
            payload.origin,
            payload.max_suggestions,
        )
        best = recommend_route(candidates)
        return SuggestionsResponse(
            recommended=best.label if best else None,
            suggestions=[SuggestionModel.from_domain(candidate) for candidate in candidates],
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("generating route suggestions", exc) from exc


@router.post("/plan", response_model=PlanRoutesResponse, status_code=status.HTTP_200_OK)
def plan(
    payload: PlanRoutesRequest,
    repository: FieldDataRepository = Depends(get_repository),
) -> PlanRoutesResponse:
    """Plan and store an agent's routes for a day.

    Customers are taken from ``locations`` when given, otherwise loaded by
    ``customer_ids``; unknown ids and customers without coordinates are
    reported under ``metadata.missing_customer_ids``.
    """
    try:
        missing: list[str] = []
        if payload.locations is not None:
            locations = [item.to_domain() for item in payload.locations]
        else:
            locations, missing = resolve_locations(repository, payload.customer_ids or [])

        result = plan_routes(
            repository,
            agent_id=payload.agent_id,
            locations=locations,
            route_date=payload.route_date,
            start_time=payload.start_time,
            origin=payload.origin,
            method=payload.method,
            max_stops_per_route=payload.max_stops_per_route,
            max_iterations=payload.max_iterations,
            route_name=payload.route_name,
            persist=payload.persist,
        )
        metadata = dict(result.metadata)
        if missing:
            metadata["missing_customer_ids"] = missing
        return PlanRoutesResponse(
            agent_id=result.agent_id,
            metadata=metadata,
            plans=[RoutePlanModel.from_domain(item) for item in result.plans],
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        raise _server_error("planning routes", exc) from exc
