"""
Adapters layer - Booking storage.
"""

from .booking_store import BookingStoreProtocol, InMemoryBookingStore, JsonFileBookingStore

__all__ = ["BookingStoreProtocol", "InMemoryBookingStore", "JsonFileBookingStore"]
