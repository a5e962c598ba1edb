"""Polling loop that runs the alert checks for every route in progress today."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ...config import settings
from ...models.domain import Alert, RouteRecord, RouteStatus
from ..clock import local_now, start_of_day
from .engine import AlertEngine

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MonitorCycleReport:
    started_at: datetime
    routes_checked: int = 0
    routes_skipped: int = 0
    failures: int = 0
    alerts: list[Alert] = field(default_factory=list)


class RouteMonitor:
    def __init__(self, engine: AlertEngine, interval_seconds: float | None = None) -> None:
        self.engine = engine
        self.interval_seconds = settings.poll_interval_seconds if interval_seconds is None else interval_seconds

    def _check(self, route: RouteRecord, now: datetime) -> Optional[list[Alert]]:
        position = self.engine.tracker.current_position(route.agent_id, now)
        if position is None:
            return None
        return self.engine.check_route(route.agent_id, route.id, now=now, position=position)

    async def run_cycle(self, now: datetime | None = None) -> MonitorCycleReport:
        now = now or local_now()
        report = MonitorCycleReport(started_at=now)
        routes = await asyncio.to_thread(
            self.engine.repository.list_routes,
            route_date=start_of_day(now).date(),
            status=RouteStatus.IN_PROGRESS,
        )
        if not routes:
            return report

        results = await asyncio.gather(
            *(asyncio.to_thread(self._check, route, now) for route in routes),
            return_exceptions=True,
        )
        for route, result in zip(routes, results):
            if isinstance(result, BaseException):
                report.failures += 1
                logger.error(f"Alert checks failed for route {route.id} (agent {route.agent_id}): {result}")
            elif result is None:
                report.routes_skipped += 1
                logger.debug(f"No position for agent {route.agent_id}, skipping route {route.id} this cycle")
            else:
                report.routes_checked += 1
                report.alerts.extend(result)

        logger.info(
            f"Monitor cycle: {report.routes_checked} checked, {report.routes_skipped} skipped, "
            f"{report.failures} failed, {len(report.alerts)} alert(s)"
        )
        return report

    async def run_forever(self, stop_event: asyncio.Event | None = None) -> None:
        """Run a cycle every ``interval_seconds`` until ``stop_event`` is set."""

        stop_event = stop_event or asyncio.Event()
        logger.info(f"Route monitor started (interval={self.interval_seconds}s)")
        while not stop_event.is_set():
            try:
                await self.run_cycle()
            except Exception as e:
                logger.error(f"Route monitor cycle error: {e}")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass
        logger.info("Route monitor stopped")
