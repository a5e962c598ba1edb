"""Route planning and live-route monitoring for field sales agents."""

__version__ = "0.1.0"
