"""
Core business logic for generating bookable session slots.

Pure domain logic: no storage, no clock, no I/O. The caller supplies the
occupied start times and is responsible for rejecting past dates.
"""

from typing import AbstractSet, List

from pendulum import Date

from .models import OperatingWindow, ServiceCatalog, ServiceType


class SlotGenerator:
    """
    Turns the operating window and a service duration into start times.

    Algorithm:
    1. Return nothing on rest days
    2. Walk a cursor from opening time at a fixed stride of duration + buffer
    3. Skip cursors inside the lunch break (advancing by the same stride)
    4. Emit a cursor when its session ends by closing time and either ends
       before lunch or starts after it
    """

    def __init__(self, window: OperatingWindow, catalog: ServiceCatalog):
        self.window = window
        self.catalog = catalog

    def generate_slots(self, date: Date, service: ServiceType) -> List[str]:
        """
        Generate every candidate start time for a service on a date.

        Args:
            date: Calendar day to generate slots for
            service: Service whose duration sets the stride

        Returns:
            Zero-padded ``HH:MM`` strings, earliest first

        Raises:
            KeyError: If the service is not in the catalog
        """
        if not self.window.is_operating_day(date):
            return []

        duration = self.catalog.duration_for(service)
        stride = duration + self.window.buffer_minutes

        cursor = self.window.opens_at(date)
        closes_at = self.window.closes_at(date)
        lunch_start, lunch_end = self.window.lunch_for(date)

        slots: List[str] = []

        while cursor < closes_at:
            if lunch_start <= cursor < lunch_end:
                # Fixed stride, no snapping to the end of lunch.
                cursor = cursor.add(minutes=stride)
                continue

            slot_end = cursor.add(minutes=duration)

            # A session may not straddle lunch or run past closing time.
            # Afternoon slots get the closing check too, unlike the old booking
            # backend, which offered e.g. a 17:20 family session ending 18:20.
            clear_of_lunch = slot_end <= lunch_start or cursor >= lunch_end
            if slot_end <= closes_at and clear_of_lunch:
                slots.append(cursor.format("HH:mm"))

            cursor = cursor.add(minutes=stride)

        return slots

    def free_slots(
        self,
        date: Date,
        service: ServiceType,
        occupied: AbstractSet[str]
    ) -> List[str]:
        """
        Generated slots minus the occupied start times, order preserved.
        """
        return [
            slot for slot in self.generate_slots(date, service)
            if slot not in occupied
        ]

    def count_free_slots(
        self,
        date: Date,
        service: ServiceType,
        occupied: AbstractSet[str]
    ) -> int:
        return len(self.free_slots(date, service, occupied))
