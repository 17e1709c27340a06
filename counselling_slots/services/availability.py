"""
Application service answering availability queries.

The service validates raw caller input, reads occupied start times from a
booking store, and delegates the slot arithmetic to the domain-level
``SlotGenerator``. Keeping the clock injectable lets tests pin "today".
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

import pendulum
from pendulum import Date

from ..adapters.booking_store import BookingStoreProtocol
from ..domain.models import AvailableDate, ServiceType, SlotAvailability
from ..domain.slot_generator import SlotGenerator
from .validation import ensure_not_past, parse_customer_type, parse_date, parse_service

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_DAYS = 30


class AvailabilityService:
    """
    Computes free slots for a date and the dates that still have room.
    """

    def __init__(
        self,
        booking_store: BookingStoreProtocol,
        slot_generator: SlotGenerator,
        timezone: str = "Europe/Berlin",
        today_provider: Optional[Callable[[], Date]] = None,
    ) -> None:
        self._booking_store = booking_store
        self._slot_generator = slot_generator
        self._timezone = timezone
        self._today_provider = today_provider or (lambda: pendulum.now(self._timezone).date())

    @property
    def slot_generator(self) -> SlotGenerator:
        return self._slot_generator

    def today(self) -> Date:
        """Current calendar day in the practice's timezone."""
        return self._today_provider()

    def resolve_service(self, service_id: str) -> ServiceType:
        return parse_service(service_id, self._slot_generator.catalog)

    def resolve_bookable_date(self, date_str: str) -> Date:
        """
        Parse a date and reject it if it lies before today.

        Raises:
            InvalidDateError: If the date cannot be parsed
            PastDateError: If the date precedes the current day
        """
        date = parse_date(date_str)
        ensure_not_past(date, self.today())
        return date

    def get_slots(
        self,
        date_str: str,
        service_id: str,
        customer_type: Optional[str] = None,
    ) -> SlotAvailability:
        """
        Free and booked start times for a service on a date.

        Args:
            date_str: Requested calendar date
            service_id: Service identifier, e.g. ``individual``
            customer_type: Optional customer type echoed in the result

        Returns:
            SlotAvailability for the date
        """
        service = self.resolve_service(service_id)
        date = self.resolve_bookable_date(date_str)
        parsed_customer_type = parse_customer_type(customer_type)
        duration = self._slot_generator.catalog.duration_for(service)

        if not self._slot_generator.window.is_operating_day(date):
            weekday = date.format("dddd", locale="en")
            logger.debug("%s is a rest day, no slots for %s", date.to_date_string(), service.value)
            return SlotAvailability(
                date=date,
                service=service,
                duration=duration,
                available_slots=[],
                booked_slots=[],
                total_slots=0,
                customer_type=parsed_customer_type,
                message=f"No sessions available on {weekday}",
            )

        all_slots = self._slot_generator.generate_slots(date, service)
        occupied = self._booking_store.occupied_start_times(date)
        free = self._slot_generator.free_slots(date, service, occupied)

        logger.debug(
            "%s on %s: %d of %d slots free",
            service.value, date.to_date_string(), len(free), len(all_slots)
        )

        return SlotAvailability(
            date=date,
            service=service,
            duration=duration,
            available_slots=free,
            booked_slots=sorted(occupied),
            total_slots=len(all_slots),
            customer_type=parsed_customer_type,
        )

    def get_available_dates(
        self,
        service_id: str,
        days: int = DEFAULT_LOOKAHEAD_DAYS,
    ) -> List[AvailableDate]:
        """
        Scan the coming days and keep those with at least one free slot.

        Args:
            service_id: Service identifier
            days: Number of calendar days to scan, starting today

        Returns:
            AvailableDate entries in date order
        """
        service = self.resolve_service(service_id)
        start = self.today()

        available: List[AvailableDate] = []

        for offset in range(days):
            date = start.add(days=offset)

            if not self._slot_generator.window.is_operating_day(date):
                continue

            occupied = self._booking_store.occupied_start_times(date)
            count = self._slot_generator.count_free_slots(date, service, occupied)

            if count > 0:
                available.append(AvailableDate(date=date, available_slots=count))

        logger.debug(
            "%d of the next %d days have %s slots", len(available), days, service.value
        )
        return available
