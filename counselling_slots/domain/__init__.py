"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    AvailableDate,
    Booking,
    BookingStatus,
    CustomerType,
    OperatingWindow,
    ServiceCatalog,
    ServiceType,
    SessionType,
    SlotAvailability,
)
from .slot_generator import SlotGenerator

__all__ = [
    "AvailableDate",
    "Booking",
    "BookingStatus",
    "CustomerType",
    "OperatingWindow",
    "ServiceCatalog",
    "ServiceType",
    "SessionType",
    "SlotAvailability",
    "SlotGenerator",
]
