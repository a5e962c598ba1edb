"""Current position of an agent from GPS samples, with a check-in fallback.

Devices stop reporting while an agent stands still at a customer. An open
check-in is then the best evidence of where the agent is, so a *virtual*
sample is synthesized from the check-in coordinates instead of reporting the
agent as missing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ...config import settings
from ...models.domain import GpsSample, Visit
from ...persistence.repository import FieldDataRepository
from ..clock import ensure_aware, local_now

logger = logging.getLogger(__name__)


def virtual_track(visit: Visit) -> Optional[GpsSample]:
    """Position stand-in for an open visit, or None without check-in coordinates."""

    if not visit.is_open:
        return None
    if visit.check_in_latitude is None or visit.check_in_longitude is None:
        return None
    return GpsSample(
        agent_id=visit.agent_id,
        latitude=visit.check_in_latitude,
        longitude=visit.check_in_longitude,
        timestamp=visit.check_in_time,
        speed=0.0,
        heading=0.0,
        accuracy=0.0,
        is_virtual=True,
        visit_id=visit.id,
    )


class PositionTracker:
    def __init__(self, repository: FieldDataRepository, freshness_seconds: int | None = None) -> None:
        self.repository = repository
        self.freshness = timedelta(
            seconds=settings.gps_freshness_seconds if freshness_seconds is None else freshness_seconds
        )

    def record_sample(self, sample: GpsSample) -> GpsSample:
        if sample.is_virtual:
            raise ValueError("Virtual positions are derived, not stored.")
        return self.repository.add_gps_sample(sample)

    def is_fresh(self, sample: GpsSample, now: datetime | None = None) -> bool:
        now = now or local_now()
        return ensure_aware(now) - ensure_aware(sample.timestamp) <= self.freshness

    def current_position(self, agent_id: str, now: datetime | None = None) -> Optional[GpsSample]:
        """Latest fresh sample, else a virtual track from an open check-in, else the stale sample.

        ``None`` means no position is known for the agent; that is a normal state.
        """
        now = now or local_now()
        latest = self.repository.get_latest_gps_sample(agent_id)
        if latest is not None and self.is_fresh(latest, now):
            return latest

        visit = self.repository.get_open_visit(agent_id)
        if visit is not None:
            virtual = virtual_track(visit)
            newer_sample = latest is not None and ensure_aware(latest.timestamp) >= ensure_aware(visit.check_in_time)
            if virtual is not None and not newer_sample:
                logger.debug(f"Using virtual track for agent {agent_id} from visit {visit.id}")
                return virtual

        return latest

    def active_positions(self, now: datetime | None = None) -> list[GpsSample]:
        """One position per agent that is moving (fresh sample) or checked in somewhere."""

        now = now or local_now()
        positions = {
            sample.agent_id: sample for sample in self.repository.list_latest_gps_samples(now - self.freshness)
        }
        open_visits = sorted(self.repository.list_open_visits(), key=lambda visit: ensure_aware(visit.check_in_time))
        for visit in reversed(open_visits):
            if visit.agent_id in positions:
                continue
            virtual = virtual_track(visit)
            if virtual is not None:
                positions[visit.agent_id] = virtual
        return list(positions.values())
