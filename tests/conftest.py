"""Shared test fixtures."""

from datetime import time

import pendulum
import pytest

from counselling_slots.adapters.booking_store import InMemoryBookingStore
from counselling_slots.domain.models import OperatingWindow, ServiceCatalog
from counselling_slots.domain.slot_generator import SlotGenerator
from counselling_slots.services.availability import AvailabilityService
from counselling_slots.services.bookings import BookingService

# A Monday; services treat it as today
MONDAY = pendulum.date(2026, 11, 2)


@pytest.fixture
def window():
    return OperatingWindow(
        start=time(8, 0),
        end=time(18, 0),
        lunch_start=time(12, 0),
        lunch_end=time(13, 0),
        buffer_minutes=10,
        rest_days=frozenset({6}),
    )


@pytest.fixture
def catalog():
    return ServiceCatalog.default()


@pytest.fixture
def generator(window, catalog):
    return SlotGenerator(window=window, catalog=catalog)


@pytest.fixture
def store():
    return InMemoryBookingStore()


@pytest.fixture
def availability(store, generator):
    return AvailabilityService(
        booking_store=store,
        slot_generator=generator,
        today_provider=lambda: MONDAY,
    )


@pytest.fixture
def booking_service(store, availability):
    return BookingService(booking_store=store, availability=availability)
