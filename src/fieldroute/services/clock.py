"""Time helpers shared by planning and monitoring."""

from __future__ import annotations

from datetime import datetime, time
from zoneinfo import ZoneInfo

from ..config import settings


def local_zone() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def local_now() -> datetime:
    return datetime.now(local_zone())


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive timestamps from the store as local time."""

    if moment.tzinfo is None:
        return moment.replace(tzinfo=local_zone())
    return moment


def start_of_day(moment: datetime) -> datetime:
    """Midnight of the local calendar day containing ``moment``."""

    local = ensure_aware(moment).astimezone(local_zone())
    return datetime.combine(local.date(), time.min, tzinfo=local.tzinfo)


def minutes_between(earlier: datetime, later: datetime) -> float:
    return (ensure_aware(later) - ensure_aware(earlier)).total_seconds() / 60.0
