"""Route group exports."""

from . import alerts, health, routes, tracking

__all__ = ["alerts", "health", "routes", "tracking"]
