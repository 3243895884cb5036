"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, AvailabilitySourceProtocol

__all__ = ["AvailabilityService", "AvailabilitySourceProtocol"]
