"""Route group exports."""

from . import health, trip

__all__ = ["health", "trip"]
