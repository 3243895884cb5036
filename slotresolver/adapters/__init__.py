"""
Adapters layer - Input sources for plans, exceptions and time slots.
"""

from .json_source import JsonAvailabilitySource

__all__ = ["JsonAvailabilitySource"]
