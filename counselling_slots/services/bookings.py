"""
Application service for the booking lifecycle: create, reschedule, cancel.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import List, Optional

import pendulum
from pendulum import Date

from ..adapters.booking_store import BookingStoreProtocol
from ..domain.exceptions import BookingStateError, BookingValidationError, InvalidTimeError
from ..domain.models import Booking, BookingStatus, CustomerType, ServiceType, calculate_end_time
from .availability import AvailabilityService
from .validation import parse_customer_type, parse_session_type, parse_start_time, parse_status

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "Customer requested cancellation"


class BookingService:
    """
    Validates booking requests against generated slots and stores them.

    Conflicts are decided by the booking store at write time, so two
    requests racing for the same slot cannot both win.
    """

    def __init__(
        self,
        booking_store: BookingStoreProtocol,
        availability: AvailabilityService,
    ) -> None:
        self._booking_store = booking_store
        self._availability = availability

    def create_booking(
        self,
        *,
        customer_email: str,
        service_id: str,
        date_str: str,
        start_time: str,
        session_type: str = "in-person",
        customer_type: str = "new",
        phone: Optional[str] = None,
        customer_notes: Optional[str] = None,
        special_requests: Optional[str] = None,
    ) -> Booking:
        """
        Claim a start time for a customer.

        Raises:
            BookingValidationError: If any input is rejected
            SlotUnavailableError: If the start time is already booked
        """
        if not customer_email or "@" not in customer_email:
            raise BookingValidationError(f"Invalid customer email: '{customer_email}'")

        service = self._availability.resolve_service(service_id)
        date = self._availability.resolve_bookable_date(date_str)
        start_time = self._ensure_generated_slot(date, service, start_time)
        duration = self._availability.slot_generator.catalog.duration_for(service)

        booking = Booking(
            id=uuid.uuid4().hex,
            customer_email=customer_email.strip().lower(),
            service=service,
            booking_date=date,
            start_time=start_time,
            session_duration=duration,
            end_time=calculate_end_time(start_time, duration),
            session_type=parse_session_type(session_type),
            customer_type=parse_customer_type(customer_type) or CustomerType.NEW,
            phone=phone.strip() if phone else None,
            customer_notes=customer_notes or None,
            special_requests=special_requests or None,
        )

        self._booking_store.add(booking)
        logger.info(
            "Created %s booking %s on %s at %s",
            service.value, booking.id, date.to_date_string(), start_time
        )
        return booking

    def reschedule_booking(self, booking_id: str, date_str: str, start_time: str) -> Booking:
        """
        Move a booking to another date or start time.

        The booking goes back to pending, as a new slot needs confirming.

        Raises:
            BookingNotFoundError: If the booking does not exist
            BookingStateError: If the booking is no longer active or has passed
            SlotUnavailableError: If the new start time is already booked
        """
        booking = self._booking_store.get(booking_id)

        if not booking.can_be_rescheduled(self._availability.today()):
            raise BookingStateError(
                f"Booking {booking_id} cannot be rescheduled (status: {booking.status.value})"
            )

        date = self._availability.resolve_bookable_date(date_str)
        start_time = self._ensure_generated_slot(date, booking.service, start_time)

        booking = self._booking_store.move(
            booking_id,
            date,
            start_time,
            calculate_end_time(start_time, booking.session_duration),
            status=BookingStatus.PENDING,
            updated_at=pendulum.now(),
        )

        logger.info(
            "Rescheduled booking %s to %s at %s", booking_id, date.to_date_string(), start_time
        )
        return booking

    def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        """
        Cancel an active booking, freeing its start time.

        Raises:
            BookingNotFoundError: If the booking does not exist
            BookingStateError: If the booking is not pending or confirmed
        """
        booking = self._booking_store.get(booking_id)

        if not booking.can_be_cancelled():
            raise BookingStateError(
                f"Booking {booking_id} cannot be cancelled (status: {booking.status.value})"
            )

        now = pendulum.now()
        booking = self._booking_store.save(replace(
            booking,
            status=BookingStatus.CANCELLED,
            cancelled_at=now,
            updated_at=now,
            cancellation_reason=reason or DEFAULT_CANCELLATION_REASON,
        ))

        logger.info("Cancelled booking %s: %s", booking_id, booking.cancellation_reason)
        return booking

    def get_booking(self, booking_id: str) -> Booking:
        return self._booking_store.get(booking_id)

    def list_bookings(self, status: Optional[str] = None) -> List[Booking]:
        return self._booking_store.list_bookings(parse_status(status))

    def _ensure_generated_slot(self, date: Date, service: ServiceType, start_time: str) -> str:
        start_time = parse_start_time(start_time)
        slots = self._availability.slot_generator.generate_slots(date, service)
        if start_time not in slots:
            raise InvalidTimeError(
                f"{start_time} is not a bookable start time for {service.value} "
                f"on {date.to_date_string()}"
            )
        return start_time
