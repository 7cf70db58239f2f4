"""Route group exports."""

from . import health, travel

__all__ = ["health", "travel"]
