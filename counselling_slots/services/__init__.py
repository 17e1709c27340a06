"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService
from .bookings import BookingService

__all__ = ["AvailabilityService", "BookingService"]
