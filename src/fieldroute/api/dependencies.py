"""Shared service instances for request handlers.

Handlers receive these through ``Depends`` so tests can swap them with
``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from ..persistence import FieldDataRepository
from ..persistence import get_repository as _get_repository
from ..services.alerts.engine import AlertEngine
from ..services.alerts.events import AlertBus
from ..services.alerts.notifier import OwnerNotifier
from ..services.tracking.position import PositionTracker


def get_repository() -> FieldDataRepository:
    return _get_repository()


@lru_cache(maxsize=1)
def get_alert_bus() -> AlertBus:
    bus = AlertBus()
    bus.subscribe(OwnerNotifier())
    return bus


def get_position_tracker(repository: FieldDataRepository = Depends(get_repository)) -> PositionTracker:
    return PositionTracker(repository)


def get_alert_engine(
    repository: FieldDataRepository = Depends(get_repository),
    tracker: PositionTracker = Depends(get_position_tracker),
    bus: AlertBus = Depends(get_alert_bus),
) -> AlertEngine:
    return AlertEngine(repository, tracker=tracker, bus=bus)
